#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PWF history document (YAML) --> workout model.

Exercises become segments and sets become laps; a set's ``time_series``
is unpacked into telemetry points. Strength content (reps, weight, RPE)
stays on the laps.

"""
from datetime import timedelta
import logging
import numbers

import yaml

from pwfio._types import (
    DeviceInfo, History, Lap, PoolLength, PowerMetrics, Segment, Sport,
    StrokeType, TelemetryPoint, Transition, Workout)
from pwfio._types.sports import Modality
from pwfio._util import exceptions
from pwfio._util.diagnostics import WarningCollector
from pwfio._util.misc import (
    decode_text, max_or_none, mean_or_none, sum_or_none, to_float, to_int,
    to_utc)
from pwfio.analysis import (
    PoolBin, PoolLengthBins, compute_power_metrics, detect_multi_sport,
    summarize_lengths)


logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS = (1, 2)

POUND = 0.45359237  # kg

# time_series key --> (TelemetryPoint attribute, converter)
SERIES = (
    ('heart_rate', 'heart_rate', to_int),
    ('power', 'power', to_int),
    ('cadence', 'cadence', to_int),
    ('speed_mps', 'speed', to_float),
    ('elevation_m', 'altitude', to_float),
    ('latitude', 'latitude', to_float),
    ('longitude', 'longitude', to_float),
    ('distance_m', 'distance', to_float),
    ('temperature_c', 'temperature', to_float),
    ('heading_deg', 'heading', to_float),
)

POOL_UNITS = {'meters': 'm', 'yards': 'yd'}


def load(data):
    """YAML text --> mapping.

    Raises
    ------
    ReadError
        On YAML syntax errors or bytes that aren't UTF-8.
    InvalidDataError
        If the document isn't a mapping.
    """
    data = decode_text(data, 'PWF document')
    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as e:
        raise exceptions.ReadError('malformed PWF YAML: %s' % e) from e
    if not isinstance(document, dict):
        raise exceptions.InvalidDataError('a PWF document must be a mapping')
    return document


def read(data, *, summary_only=False, ftp=None, pool_bins=None,
         warnings=None):
    """PWF history document --> `History`.

    Parameters
    ----------
    data : str, bytes or dict
        YAML text, or a document that has already been loaded.
    summary_only : bool, optional
        Drop time series, keeping set summaries.
    ftp : float, optional
        Used when power has to be derived from time series.
    pool_bins : PoolLengthBins, optional
        For swim sets recorded without a pool configuration.
    warnings : WarningCollector, optional

    Raises
    ------
    ReadError
    UnsupportedFormatError
        For plan documents and unknown history versions.
    InvalidDataError
        If there is no ``workouts`` list.
    MissingRequiredFieldError
        If a workout has neither ``started_at`` nor ``date``.
    """
    if warnings is None:
        warnings = WarningCollector()

    document = data if isinstance(data, dict) else load(data)

    if 'plan_version' in document and 'history_version' not in document:
        raise exceptions.UnsupportedFormatError(
            message='PWF plans describe future training, not workout '
                    'history; only history documents can be converted')
    version = document.get('history_version')
    if version not in SUPPORTED_VERSIONS:
        raise exceptions.UnsupportedFormatError(
            message='unsupported history_version: %r' % (version,))

    workouts = document.get('workouts')
    if not isinstance(workouts, list):
        raise exceptions.InvalidDataError(
            "a PWF history needs a 'workouts' list")

    reader = _HistoryReader(summary_only=summary_only, ftp=ftp,
                            pool_bins=pool_bins, warnings=warnings)
    history = History(
        [reader.workout(entry, 'workouts[%d]' % i)
         for i, entry in enumerate(workouts)],
        exported_at=_timestamp(document.get('exported_at'), 'exported_at'),
    )
    source = document.get('export_source') or {}
    history.source_app = source.get('app_name')
    history.source_app_version = _text(source.get('app_version'))
    history.source_platform = source.get('platform')

    logger.debug('read %d PWF workouts (version %d)', len(history), version)
    return history


class _HistoryReader:

    def __init__(self, *, summary_only, ftp, pool_bins, warnings):
        self.summary_only = summary_only
        self.ftp = ftp
        self.pool_bins = pool_bins
        self.warnings = warnings

    def workout(self, entry, path):
        if not isinstance(entry, dict):
            raise exceptions.InvalidDataError('%s is not a mapping' % path)

        start = _timestamp(entry.get('started_at'), path + '.started_at')
        if start is None:
            start = _timestamp(entry.get('date'), path + '.date')
        if start is None:
            raise exceptions.MissingRequiredFieldError('started_at', path)

        sport = self._sport(entry.get('sport'), None, path + '.sport')
        workout = Workout(
            start_time=start,
            end_time=_timestamp(entry.get('ended_at'), path + '.ended_at'),
            duration=to_float(entry.get('duration_sec')),
            title=entry.get('title'),
            notes=entry.get('notes'),
            devices=[_device(d) for d in entry.get('devices') or ()],
        )

        cursor = start
        for i, exercise in enumerate(entry.get('exercises') or ()):
            segment = self.segment(exercise, sport, cursor,
                                   '%s.exercises[%d]' % (path, i))
            workout.add_segment(segment)
            if segment.end_time is not None:
                cursor = segment.end_time

        if not workout.segments:
            self.warnings.missing_field(
                'exercises', 'workout has none; an empty one stands in', path)
            segment = Segment(sport or Sport.OTHER, start_time=start,
                              duration=workout.duration)
            segment.ensure_lap()
            workout.add_segment(segment)

        workout.sport = sport or workout.segments[0].sport
        self._workout_telemetry(workout, entry.get('telemetry') or {}, path)
        self._sport_segments(workout, entry.get('sport_segments') or (), path)
        detect_multi_sport(workout)

        if self.summary_only and workout.n_points:
            self.warnings.time_series_skipped(
                '%d telemetry point(s) dropped' % workout.n_points, path)
            for lap in workout.laps:
                lap.points = []
        return workout.close()

    def segment(self, exercise, workout_sport, start, path):
        sport = self._sport(exercise.get('sport'), workout_sport,
                            path + '.sport')
        segment = Segment(sport or Sport.OTHER, name=exercise.get('name'),
                          start_time=start)
        modality = Modality.parse(exercise.get('modality'))

        cursor = start
        for i, entry in enumerate(exercise.get('sets') or ()):
            lap = self.lap(entry, cursor, '%s.sets[%d]' % (path, i))
            lap.name = exercise.get('name')
            lap.modality = modality
            segment.add_lap(lap)
            if lap.end_time is not None:
                cursor = lap.end_time

        if segment.laps:
            segment.start_time = segment.laps[0].start_time or start
        _aggregate(segment)
        segment.ensure_lap()

        lengths = segment.lengths
        if lengths:
            raw, bins = self._pool(exercise.get('pool_config'))
            segment.swim = summarize_lengths(
                lengths, raw, bins=bins, warnings=self.warnings, path=path)
        return segment

    def lap(self, entry, cursor, path):
        telemetry = entry.get('telemetry') or {}
        weight = to_float(entry.get('weight_kg'))
        if weight is None and entry.get('weight_lb') is not None:
            weight = to_float(entry.get('weight_lb')) * POUND

        lap = Lap(
            duration=to_float(entry.get('duration_sec')),
            distance=to_float(entry.get('distance_meters')),
            reps=to_int(entry.get('reps')),
            weight_kg=weight,
            rpe=to_float(entry.get('rpe')),
            notes=entry.get('notes'),
            avg_heart_rate=to_int(telemetry.get('heart_rate_avg')),
            max_heart_rate=to_int(telemetry.get('heart_rate_max')),
            avg_power=to_int(telemetry.get('power_avg')),
            max_power=to_int(telemetry.get('power_max')),
            avg_cadence=to_int(telemetry.get('cadence_avg')),
            calories=to_int(telemetry.get('calories')),
            total_ascent=to_float(telemetry.get('elevation_gain_m')),
            total_descent=to_float(telemetry.get('elevation_loss_m')),
        )
        for point in self._time_series(telemetry.get('time_series'),
                                       path + '.telemetry.time_series'):
            lap.add_point(point)

        completed = _timestamp(entry.get('completed_at'),
                               path + '.completed_at')
        if lap.points:
            lap.start_time = lap.points[0].timestamp
        elif completed is not None and lap.duration is not None:
            lap.start_time = completed - timedelta(seconds=lap.duration)
        else:
            lap.start_time = cursor

        swimming = entry.get('swimming') or {}
        for length in swimming.get('lengths') or ():
            lap.add_length(_length(length, path + '.swimming'))
        return lap

    def _time_series(self, series, path):
        if not series:
            return []
        stamps = series.get('timestamps') or []
        times = [_timestamp(t, path + '.timestamps') for t in stamps]

        columns = {}
        for key, attribute, convert in SERIES:
            values = series.get(key)
            if values is None:
                continue
            if len(values) != len(times):
                self.warnings.data_quality_issue(
                    '%s has %d values for %d timestamps; ignored'
                    % (key, len(values), len(times)), path)
                continue
            columns[attribute] = [convert(v) for v in values]

        points = []
        for i, when in enumerate(times):
            if when is None:
                continue
            points.append(TelemetryPoint(
                when, **{name: values[i] for name, values in columns.items()}))
        if len(points) < len(times):
            self.warnings.data_quality_issue(
                '%d sample(s) without a timestamp dropped'
                % (len(times) - len(points)), path)
        return points

    def _pool(self, config):
        """pool_config --> (raw length, bins) for `summarize_lengths`."""
        if not config or config.get('pool_length') is None:
            return None, self.pool_bins
        length = to_float(config['pool_length'])
        unit = config.get('pool_length_unit', 'meters')
        label = '%g %s' % (length, POOL_UNITS.get(unit, 'm'))
        # A declared pool is taken at its word, no snapping.
        declared = PoolBin(label, length, unit)
        return length, PoolLengthBins(bins=(), default=declared)

    def _sport(self, text, default, path):
        if text is None:
            return default
        sport = Sport.parse(text)
        if sport is None:
            self.warnings.value_clamped('sport', text, 'other', path)
            return Sport.OTHER
        return sport

    def _workout_telemetry(self, workout, telemetry, path):
        """Workout-level values fill what the exercises didn't say."""
        segments = workout.segments
        if len(segments) == 1:
            segment = segments[0]
            pairs = (('avg_heart_rate', 'heart_rate_avg'),
                     ('max_heart_rate', 'heart_rate_max'),
                     ('avg_power', 'power_avg'),
                     ('max_power', 'power_max'),
                     ('avg_cadence', 'cadence_avg'),
                     ('calories', 'total_calories'))
            for attribute, key in pairs:
                if getattr(segment, attribute) is None:
                    setattr(segment, attribute, to_int(telemetry.get(key)))
            if segment.distance is None and telemetry.get('total_distance_km') is not None:
                segment.distance = to_float(telemetry['total_distance_km']) * 1000
            if segment.total_ascent is None:
                segment.total_ascent = to_float(
                    telemetry.get('total_elevation_gain_m'))
            if segment.total_descent is None:
                segment.total_descent = to_float(
                    telemetry.get('total_elevation_loss_m'))

        reported = _power_metrics(telemetry.get('power_metrics'))
        for s, segment in enumerate(segments):
            points = list(segment.iter_points())
            if reported is not None and len(segments) == 1:
                reported.avg_power = segment.avg_power
                reported.max_power = segment.max_power
                segment.power_metrics = reported
            elif any(p.power is not None for p in points):
                segment.power_metrics = compute_power_metrics(
                    points, ftp=self.ftp, warnings=self.warnings,
                    path='%s.exercises[%d]' % (path, s))

    def _sport_segments(self, workout, entries, path):
        for i, entry in enumerate(entries):
            where = '%s.sport_segments[%d]' % (path, i)
            index = to_int(entry.get('segment_index'))
            if index is None:
                index = i
            if 0 <= index < len(workout.segments):
                metrics = _power_metrics(
                    (entry.get('telemetry') or {}).get('power_metrics'))
                if metrics is not None:
                    workout.segments[index].power_metrics = metrics
            transition = entry.get('transition')
            if transition:
                workout.transitions.append(Transition(
                    from_sport=self._sport(transition.get('from_sport'),
                                           Sport.OTHER, where),
                    to_sport=self._sport(transition.get('to_sport'),
                                         Sport.OTHER, where),
                    start_time=_timestamp(transition.get('started_at'), where),
                    duration=to_float(transition.get('duration_sec')),
                    avg_heart_rate=to_int(transition.get('heart_rate_avg')),
                ))


def _aggregate(segment):
    laps = segment.laps
    if not laps:
        return
    segment.duration = sum_or_none(lap.duration for lap in laps)
    segment.distance = sum_or_none(lap.distance for lap in laps)
    segment.calories = sum_or_none(lap.calories for lap in laps)
    segment.avg_heart_rate = _rounded(mean_or_none(lap.avg_heart_rate for lap in laps))
    segment.max_heart_rate = max_or_none(lap.max_heart_rate for lap in laps)
    segment.avg_cadence = _rounded(mean_or_none(lap.avg_cadence for lap in laps))
    segment.avg_power = _rounded(mean_or_none(lap.avg_power for lap in laps))
    segment.max_power = max_or_none(lap.max_power for lap in laps)
    segment.total_ascent = sum_or_none(lap.total_ascent for lap in laps)
    segment.total_descent = sum_or_none(lap.total_descent for lap in laps)


def _length(entry, path):
    return PoolLength(
        stroke=StrokeType.parse(entry.get('stroke_type')),
        stroke_count=to_int(entry.get('stroke_count')),
        duration=to_float(entry.get('duration_sec')),
        active=entry.get('active', True) is not False,
        swolf=to_int(entry.get('swolf')),
        start_time=_timestamp(entry.get('started_at'), path),
    )


def _power_metrics(entry):
    if not entry:
        return None
    metrics = PowerMetrics(
        normalized_power=to_float(entry.get('normalized_power')),
        training_stress_score=to_float(entry.get('training_stress_score')),
        intensity_factor=to_float(entry.get('intensity_factor')),
        variability_index=to_float(entry.get('variability_index')),
        ftp=to_float(entry.get('ftp_watts')),
        total_work_kj=to_float(entry.get('total_work_kj')),
    )
    return None if metrics.is_empty else metrics


def _device(entry):
    return DeviceInfo(
        device_type=entry.get('device_type'),
        manufacturer=entry.get('manufacturer'),
        product=_text(entry.get('product')),
        serial_number=_text(entry.get('serial_number')),
        software_version=_text(entry.get('software_version')),
    )


def _timestamp(value, path):
    """Text or YAML-native date/datetime --> aware UTC datetime."""
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        # no epoch is defined for bare numbers here
        raise exceptions.ReadError(
            'numeric timestamp %r at %s, expected ISO 8601 text'
            % (value, path))
    try:
        return to_utc(value)
    except (TypeError, ValueError) as e:
        raise exceptions.ReadError(
            'bad timestamp %r at %s' % (value, path)) from e


def _text(value):
    return None if value is None else str(value)


def _rounded(value):
    return None if value is None else int(round(value))
