#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Workout model --> flat CSV, one row per telemetry point.

"""
from datetime import datetime
import logging

from pandas import DataFrame

from pwfio._util.diagnostics import WarningCollector
from pwfio._util.misc import TZ_UTC, format_timestamp


logger = logging.getLogger(__name__)

LEADING = ('workout_label', 'timestamp', 'elapsed_sec')
INTEGER_COLUMNS = frozenset(('heart_rate', 'power', 'cadence'))

# column group --> ((csv column, TelemetryPoint attribute), ...)
GROUPS = {
    'heart_rate': (('heart_rate', 'heart_rate'),),
    'power': (('power', 'power'),),
    'cadence': (('cadence', 'cadence'),),
    'coordinates': (('latitude', 'latitude'), ('longitude', 'longitude')),
    'elevation': (('elevation_m', 'altitude'),),
    'speed': (('speed_mps', 'speed'),),
    'temperature': (('temperature_c', 'temperature'),),
    'distance': (('distance_m', 'distance'),),
}

DEFAULT_COLUMNS = ('heart_rate', 'power', 'cadence', 'coordinates',
                   'elevation', 'speed', 'temperature', 'distance')


def write(history, *, columns=DEFAULT_COLUMNS, include_metadata=False,
          warnings=None):
    """`History` --> CSV text.

    Parameters
    ----------
    history : History
    columns : iterable of str, optional
        Column groups to include, in order, after the leading
        ``workout_label``, ``timestamp`` and ``elapsed_sec``.
    include_metadata : bool, optional
        Prefix the table with ``# key: value`` comment lines.
    warnings : WarningCollector, optional

    Raises
    ------
    ValueError
        For an unknown column group.
    """
    if warnings is None:
        warnings = WarningCollector()

    fields = resolve_columns(columns)
    frame = to_frame(history, fields)
    if frame.empty:
        warnings.missing_field('telemetry',
                               'no telemetry points in any workout; only the '
                               'header was written', 'workouts')

    lines = []
    if include_metadata:
        lines.extend('# %s: %s' % item for item in _metadata(history, frame))
    text = frame.to_csv(index=False, lineterminator='\n')

    logger.debug('wrote %d CSV rows', len(frame))
    return ''.join(line + '\n' for line in lines) + text


def resolve_columns(columns):
    """Column group names --> ((csv column, attribute), ...)."""
    if isinstance(columns, str):
        columns = [c.strip() for c in columns.split(',') if c.strip()]
    fields = []
    for name in columns:
        try:
            fields.extend(GROUPS[name])
        except KeyError:
            raise ValueError('unknown CSV column %r (choose from %s)'
                             % (name, ', '.join(GROUPS))) from None
    return tuple(fields)


def to_frame(history, fields):
    """The rows `write` would produce, as a DataFrame."""
    records = []
    for workout in history.workouts:
        name = workout.title or workout.start_time.date().isoformat()
        for segment in workout.segments:
            for i, lap in enumerate(segment.laps):
                label = '%s / %s / lap %d' % (name, segment.sport.value, i + 1)
                for point in lap.points:
                    record = {
                        'workout_label': label,
                        'timestamp': format_timestamp(point.timestamp),
                        'elapsed_sec': (point.timestamp
                                        - workout.start_time).total_seconds(),
                        '_order': point.timestamp,
                    }
                    for column, attribute in fields:
                        record[column] = getattr(point, attribute)
                    records.append(record)

    columns = list(LEADING) + [column for column, _ in fields]
    if not records:
        return DataFrame(columns=columns)
    frame = DataFrame.from_records(records)
    frame = frame.sort_values('_order', kind='mergesort')
    frame = frame[columns].reset_index(drop=True)
    for column in INTEGER_COLUMNS.intersection(frame.columns):
        frame[column] = frame[column].astype('Int64')   # no 140.0
    return frame


def _metadata(history, frame):
    exported_at = history.exported_at or datetime.now(TZ_UTC)
    return (
        ('source', history.source_app or 'unknown'),
        ('exported_at', format_timestamp(exported_at)),
        ('workouts', len(history.workouts)),
        ('rows', len(frame)),
        ('columns', ','.join(frame.columns)),
    )
