#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Non-fatal diagnostics accumulated over a single conversion.

A `WarningCollector` is created per conversion and handed explicitly to
every reader and writer involved. It only ever grows.

"""
from enum import Enum
import logging


logger = logging.getLogger(__name__)


class WarningKind(Enum):
    MISSING_FIELD = 'missing-field'
    VALUE_CLAMPED = 'value-clamped'
    UNSUPPORTED_FEATURE = 'unsupported-feature'
    TIME_SERIES_SKIPPED = 'time-series-skipped'
    DATA_QUALITY_ISSUE = 'data-quality-issue'


class ConversionWarning:
    """Something that could not be carried across a conversion intact."""
    __slots__ = ('kind', 'message', 'path')

    def __init__(self, kind, message, path=None):
        self.kind = WarningKind(kind)
        self.message = message
        self.path = path

    def __repr__(self):
        return 'ConversionWarning(%r, %r, path=%r)' % (
            self.kind.value, self.message, self.path)

    def __str__(self):
        if self.path:
            return '[%s] %s: %s' % (self.kind.value, self.path, self.message)
        return '[%s] %s' % (self.kind.value, self.message)

    def __eq__(self, other):
        if not isinstance(other, ConversionWarning):
            return NotImplemented
        return ((self.kind, self.message, self.path)
                == (other.kind, other.message, other.path))

    def __hash__(self):
        return hash((self.kind, self.message, self.path))

    def as_dict(self):
        return {'kind': self.kind.value, 'message': self.message,
                'path': self.path}


class WarningCollector:
    """Additive sink for `ConversionWarning` objects.

    Identical warnings are all kept (each usually refers to a different
    record), and nothing in here raises.

        >>> warnings = WarningCollector()
        >>> warnings.missing_field('lap.total_strokes', 'no destination')
        >>> len(warnings)
        1
    """

    def __init__(self, warnings=()):
        self._warnings = list(warnings)

    def add(self, warning):
        self._warnings.append(warning)
        logger.debug('%s', warning)

    def extend(self, warnings):
        for warning in warnings:
            self.add(warning)

    # Shorthand for each kind
    # -----------------------
    def missing_field(self, field, reason, path=None):
        self.add(ConversionWarning(
            WarningKind.MISSING_FIELD,
            "Missing field '%s': %s" % (field, reason), path or field))

    def value_clamped(self, field, original, clamped, path=None):
        self.add(ConversionWarning(
            WarningKind.VALUE_CLAMPED,
            "Value for '%s' clamped from %s to %s" % (field, original, clamped),
            path or field))

    def unsupported_feature(self, feature, path=None):
        self.add(ConversionWarning(
            WarningKind.UNSUPPORTED_FEATURE,
            'Unsupported feature: %s' % feature, path))

    def time_series_skipped(self, reason, path=None):
        self.add(ConversionWarning(
            WarningKind.TIME_SERIES_SKIPPED,
            'Time series skipped: %s' % reason, path))

    def data_quality_issue(self, issue, path=None):
        self.add(ConversionWarning(
            WarningKind.DATA_QUALITY_ISSUE,
            'Data quality issue: %s' % issue, path))

    # Read access
    # -----------
    def of_kind(self, kind):
        kind = WarningKind(kind)
        return [w for w in self._warnings if w.kind is kind]

    def __iter__(self):
        return iter(self._warnings)

    def __len__(self):
        return len(self._warnings)

    def __getitem__(self, index):
        return self._warnings[index]

    def __bool__(self):
        return bool(self._warnings)

    def __repr__(self):
        return 'WarningCollector(%r)' % self._warnings

    def to_list(self):
        return list(self._warnings)
