#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import pytest

from pwfio._types import PoolLength, StrokeType
from pwfio._util.diagnostics import WarningCollector, WarningKind
from pwfio.analysis import swim


@pytest.mark.parametrize('raw, label', [
    (45.0, '50 m'), (50.0, '50 m'), (55.0, '50 m'),
    (30.0, '33 yd'), (35.0, '33 yd'), (40.0, '33 yd'),
    (10.0, '25 m'), (60.0, '25 m'), (25.0, '25 m'),
])
def test_pool_length_bins(raw, label):
    assert swim.bin_pool_length(raw) == label


@pytest.mark.parametrize('duration, strokes, expected', [
    (60, 20, 80),
    (45.9, 20, 65),
    (30.0, 0, 30),
    (0, 12, 12),
    (28.4, 14, 42),
])
def test_swolf(duration, strokes, expected):
    assert swim.swolf(duration, strokes) == expected


def test_swolf_needs_strokes():
    assert swim.swolf(60, None) is None


def test_configurable_bins():
    bins = swim.PoolLengthBins(
        bins=[swim.PoolBin('25 yd', 25, 'yards', 22.0, 23.5)],
        default=swim.PoolBin('50 m', 50, 'meters'))
    assert bins.classify(22.86).label == '25 yd'
    assert bins.classify(50.0).label == '50 m'


def test_summary():
    lengths = [PoolLength(stroke=StrokeType.FREESTYLE, stroke_count=20,
                          duration=40.0, active=(i % 2 == 0))
               for i in range(10)]
    warnings = WarningCollector()
    summary = swim.summarize_lengths(lengths, 50.2, warnings=warnings)

    assert summary.pool_length == '50 m'
    assert summary.total_lengths == 10
    assert summary.active_lengths == 5
    assert summary.swolf_avg == 60
    assert summary.stroke is StrokeType.FREESTYLE
    assert all(length.swolf == 60 for length in lengths)
    assert [w.kind for w in warnings] == [WarningKind.VALUE_CLAMPED]


def test_summary_mixed_strokes_and_missing_pool():
    lengths = [PoolLength(stroke=StrokeType.FREESTYLE, duration=30),
               PoolLength(stroke=StrokeType.BACKSTROKE, duration=35)]
    warnings = WarningCollector()
    summary = swim.summarize_lengths(lengths, None, warnings=warnings)

    assert summary.pool_length == '25 m'
    assert summary.stroke is None
    assert summary.swolf_avg is None
    assert [w.kind for w in warnings] == [WarningKind.MISSING_FIELD]


def test_exact_pool_length_no_warning():
    warnings = WarningCollector()
    swim.summarize_lengths([], 25.0, warnings=warnings)
    swim.summarize_lengths([], 50.0, warnings=warnings)
    assert len(warnings) == 0
