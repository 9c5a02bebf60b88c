#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Pool swimming: pool-length bins and SWOLF.

"""
from pwfio._types import SwimSummary
from pwfio._util.diagnostics import WarningCollector
from pwfio._util.misc import mean_or_none


class PoolBin:
    """A named pool size catching raw lengths in ``[low, high]``."""
    __slots__ = ('label', 'low', 'high', 'nominal', 'unit')

    def __init__(self, label, nominal, unit, low=None, high=None):
        self.label, self.nominal, self.unit = label, nominal, unit
        self.low, self.high = low, high

    def __contains__(self, raw):
        if self.low is None or self.high is None:
            return False
        return self.low <= raw <= self.high

    def __repr__(self):
        return 'PoolBin(%r, %r-%r)' % (self.label, self.low, self.high)


DEFAULT_BINS = (
    PoolBin('50 m', 50, 'meters', 45.0, 55.0),
    PoolBin('33 yd', 33, 'yards', 30.0, 40.0),
)
DEFAULT_POOL = PoolBin('25 m', 25, 'meters')


class PoolLengthBins:
    """Snap noisy device pool lengths onto a few well-known pool sizes.

    Devices record pool length as a float that drifts around the real
    size. The first bin containing the raw value wins; anything else is
    taken to be the `default` pool.

        >>> PoolLengthBins().classify(50.2).label
        '50 m'
        >>> PoolLengthBins().classify(60.0).label
        '25 m'
    """

    def __init__(self, bins=DEFAULT_BINS, default=DEFAULT_POOL):
        self.bins = tuple(bins)
        self.default = default

    def classify(self, raw):
        if raw is None:
            return self.default
        for pool in self.bins:
            if raw in pool:
                return pool
        return self.default


def bin_pool_length(raw, bins=None):
    """Raw device pool length --> bin label, e.g. "50 m"."""
    return (bins or PoolLengthBins()).classify(raw).label


def swolf(duration, stroke_count):
    """Stroke count plus the length's duration in whole seconds.

    Seconds are truncated, not rounded, so 45.9 s and 20 strokes is 65.
    None without a stroke count.
    """
    if stroke_count is None or duration is None:
        return None
    return int(stroke_count) + int(duration)


def summarize_lengths(lengths, raw_pool_length, *, bins=None, warnings=None,
                      path=None):
    """Digest a swim segment's lengths into a `SwimSummary`.

    Fills in each length's SWOLF where it's missing, and warns when the
    pool length had to be snapped or defaulted.
    """
    if warnings is None:
        warnings = WarningCollector()
    bins = bins or PoolLengthBins()

    pool = bins.classify(raw_pool_length)
    if raw_pool_length is None:
        warnings.missing_field(
            'pool_length', 'not recorded, assuming a %s pool' % pool.label,
            path)
    elif raw_pool_length != pool.nominal:
        clamped = pool.label
        if pool is bins.default:
            clamped += ' (default pool)'
        warnings.value_clamped('pool_length', raw_pool_length, clamped, path)

    for length in lengths:
        if length.swolf is None:
            length.swolf = swolf(length.duration, length.stroke_count)

    active = [length for length in lengths if length.active]
    strokes = {length.stroke for length in active if length.stroke is not None}

    return SwimSummary(
        pool_length=pool.label,
        nominal_length=pool.nominal,
        unit=pool.unit,
        raw_length=raw_pool_length,
        total_lengths=len(lengths),
        active_lengths=len(active),
        swolf_avg=mean_or_none(length.swolf for length in active),
        stroke=strokes.pop() if len(strokes) == 1 else None,
    )
