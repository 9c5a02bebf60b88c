#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Workout model --> PWF history document (YAML).

Each workout becomes one entry of ``workouts``, each segment an exercise
and each lap a set. Keys without a value are left out altogether.

"""
from datetime import datetime
import logging

import yaml

from pwfio import __version__
from pwfio._types.sports import modality_for
from pwfio._util import exceptions
from pwfio._util.diagnostics import WarningCollector
from pwfio._util.misc import (
    TZ_UTC, format_timestamp, max_or_none, mean_or_none, sum_or_none)


logger = logging.getLogger(__name__)

HISTORY_VERSION = 2

# time_series key --> TelemetryPoint attribute
SERIES = (
    ('heart_rate', 'heart_rate'),
    ('power', 'power'),
    ('cadence', 'cadence'),
    ('speed_mps', 'speed'),
    ('elevation_m', 'altitude'),
    ('latitude', 'latitude'),
    ('longitude', 'longitude'),
    ('distance_m', 'distance'),
    ('temperature_c', 'temperature'),
    ('heading_deg', 'heading'),
)


def write(history, *, summary_only=False, warnings=None):
    """`History` --> PWF YAML text.

    Parameters
    ----------
    history : History
    summary_only : bool, optional
        Leave out the per-set ``time_series``.
    warnings : WarningCollector, optional

    Raises
    ------
    SerializationError
    """
    if warnings is None:
        warnings = WarningCollector()

    document = to_document(history, summary_only=summary_only,
                           warnings=warnings)
    try:
        text = yaml.safe_dump(document, sort_keys=False,
                              default_flow_style=False, allow_unicode=True)
    except yaml.YAMLError as e:
        raise exceptions.SerializationError(
            'could not write PWF YAML: %s' % e) from e

    logger.debug('wrote %d PWF workouts', len(history.workouts))
    return text


def to_document(history, *, summary_only=False, warnings=None):
    """`History` --> the plain mapping that gets dumped as YAML."""
    if warnings is None:
        warnings = WarningCollector()

    exported_at = history.exported_at or datetime.now(TZ_UTC)
    workouts = []
    for w, workout in enumerate(history.workouts):
        path = 'workouts[%d]' % w
        if summary_only and workout.n_points:
            warnings.time_series_skipped(
                '%d telemetry point(s) left out' % workout.n_points, path)
        workouts.append(_workout(workout, w, summary_only))

    return _compact({
        'history_version': HISTORY_VERSION,
        'exported_at': format_timestamp(exported_at),
        'export_source': {
            'app_name': history.source_app or 'pwfio',
            'app_version': (history.source_app_version
                            or (None if history.source_app else __version__)),
            'platform': history.source_platform,
        },
        'units': {'weight': 'kg', 'distance': 'km'},
        'workouts': workouts,
    })


def _workout(workout, w, summary_only):
    exercises = []
    for s, segment in enumerate(workout.segments):
        exercises.append(_exercise(segment, 'ex-%d-%d' % (w + 1, s + 1),
                                   summary_only))

    segments = workout.segments
    telemetry = _telemetry(segments)
    telemetry['total_distance_km'] = _km(sum_or_none(s.distance for s in segments))
    telemetry['total_calories'] = _whole(sum_or_none(s.calories for s in segments))
    telemetry['total_elevation_gain_m'] = sum_or_none(
        s.total_ascent for s in segments)
    telemetry['total_elevation_loss_m'] = sum_or_none(
        s.total_descent for s in segments)
    metrics = [s.power_metrics for s in segments if s.power_metrics is not None]
    if len(metrics) == 1:
        telemetry['power_metrics'] = _power_metrics(metrics[0])
    telemetry['gps_route'] = _gps_route(workout, 'route-%d' % (w + 1))

    entry = {
        'id': 'workout-%d' % (w + 1),
        'date': workout.start_time.date().isoformat(),
        'started_at': format_timestamp(workout.start_time),
        'ended_at': format_timestamp(workout.end_time),
        'duration_sec': _whole(workout.duration),
        'title': workout.title,
        'notes': workout.notes,
        'sport': workout.sport.value,
        'devices': [_device(d) for d in workout.devices],
        'exercises': exercises,
        'telemetry': telemetry,
    }
    if workout.is_multi_sport:
        entry['sport_segments'] = _sport_segments(workout, exercises)
    return entry


def _exercise(segment, exercise_id, summary_only):
    modality = next((lap.modality for lap in segment.laps
                     if lap.modality is not None), None)
    swim = segment.swim
    pool_config = None
    if swim is not None:
        pool_config = {'pool_length': swim.nominal_length,
                       'pool_length_unit': swim.unit}
    return {
        'id': exercise_id,
        'name': segment.name or _sport_name(segment.sport),
        'sport': segment.sport.value,
        'modality': (modality or modality_for(segment.sport)).value,
        'pool_config': pool_config,
        'sets': [_set(lap, i, summary_only)
                 for i, lap in enumerate(segment.laps)],
    }


def _set(lap, i, summary_only):
    end = lap.end_time
    telemetry = {
        'heart_rate_avg': _whole(lap.avg_heart_rate),
        'heart_rate_max': _whole(lap.max_heart_rate),
        'power_avg': _whole(lap.avg_power),
        'power_max': _whole(lap.max_power),
        'cadence_avg': _whole(lap.avg_cadence),
        'calories': _whole(lap.calories),
        'elevation_gain_m': lap.total_ascent,
        'elevation_loss_m': lap.total_descent,
    }
    if not summary_only and lap.points:
        telemetry['time_series'] = _time_series(lap.points)
    return {
        'set_number': i + 1,
        'reps': lap.reps,
        'weight_kg': lap.weight_kg,
        'duration_sec': _whole(lap.duration),
        'distance_meters': lap.distance,
        'rpe': lap.rpe,
        'completed_at': format_timestamp(end) if end is not None else None,
        'notes': lap.notes,
        'telemetry': telemetry,
        'swimming': _swimming(lap.lengths) if lap.lengths else None,
    }


def _time_series(points):
    series = {'timestamps': [format_timestamp(p.timestamp) for p in points]}
    for key, attribute in SERIES:
        values = [getattr(p, attribute) for p in points]
        if any(v is not None for v in values):
            series[key] = values
    return series


def _swimming(lengths):
    active = [length for length in lengths if length.active]
    strokes = {length.stroke for length in active if length.stroke is not None}
    return {
        'lengths': [_compact({
            'length_number': i + 1,
            'stroke_type': (length.stroke.value
                            if length.stroke is not None else None),
            'duration_sec': _whole(length.duration),
            'stroke_count': length.stroke_count,
            'swolf': length.swolf,
            'started_at': format_timestamp(length.start_time),
            'active': length.active,
        }) for i, length in enumerate(lengths)],
        'stroke_type': strokes.pop().value if len(strokes) == 1 else None,
        'total_lengths': len(lengths),
        'active_lengths': len(active),
        'swolf_avg': _whole(mean_or_none(length.swolf for length in active)),
    }


def _telemetry(segments):
    return {
        'heart_rate_avg': _whole(mean_or_none(s.avg_heart_rate for s in segments)),
        'heart_rate_max': _whole(max_or_none(s.max_heart_rate for s in segments)),
        'power_avg': _whole(mean_or_none(s.avg_power for s in segments)),
        'power_max': _whole(max_or_none(s.max_power for s in segments)),
        'cadence_avg': _whole(mean_or_none(s.avg_cadence for s in segments)),
    }


def _power_metrics(metrics):
    return {
        'normalized_power': _whole(metrics.normalized_power),
        'training_stress_score': _float(metrics.training_stress_score),
        'intensity_factor': _float(metrics.intensity_factor),
        'variability_index': _float(metrics.variability_index),
        'ftp_watts': _whole(metrics.ftp),
        'total_work_kj': _float(metrics.total_work_kj),
    }


def _gps_route(workout, route_id):
    bbox = workout.bbox
    if bbox.is_empty:
        return None
    points = [p for p in workout.iter_points() if p.has_position]
    distances = [p.distance for p in points if p.distance is not None]
    elevations = [p.altitude for p in points if p.altitude is not None]
    return {
        'route_id': route_id,
        'total_distance_m': (max(distances) - min(distances)
                             if distances else None),
        'bbox_sw_lat': bbox.min_lat,
        'bbox_sw_lng': bbox.min_lon,
        'bbox_ne_lat': bbox.max_lat,
        'bbox_ne_lng': bbox.max_lon,
        'min_elevation_m': min(elevations) if elevations else None,
        'max_elevation_m': max(elevations) if elevations else None,
    }


def _sport_segments(workout, exercises):
    unused = list(workout.transitions)
    entries = []
    for i, (segment, exercise) in enumerate(zip(workout.segments, exercises)):
        transition = None
        if i:
            previous = workout.segments[i - 1].sport
            for t in unused:
                if t.from_sport is previous and t.to_sport is segment.sport:
                    transition = t
                    unused.remove(t)
                    break
        telemetry = _telemetry([segment])
        telemetry['total_calories'] = _whole(segment.calories)
        if segment.power_metrics is not None:
            telemetry['power_metrics'] = _power_metrics(segment.power_metrics)
        entries.append({
            'segment_id': 'segment-%d' % (i + 1),
            'sport': segment.sport.value,
            'segment_index': i,
            'started_at': format_timestamp(segment.start_time),
            'duration_sec': _whole(segment.duration),
            'distance_m': segment.distance,
            'exercise_ids': [exercise['id']],
            'telemetry': telemetry,
            'transition': _transition(transition, i) if transition else None,
        })
    return entries


def _transition(transition, i):
    return {
        'transition_id': 'transition-%d' % i,
        'from_sport': transition.from_sport.value,
        'to_sport': transition.to_sport.value,
        'duration_sec': _whole(transition.duration),
        'started_at': format_timestamp(transition.start_time),
        'heart_rate_avg': _whole(transition.avg_heart_rate),
    }


def _device(device):
    return {
        'device_type': device.device_type,
        'manufacturer': device.manufacturer,
        'product': device.product,
        'serial_number': device.serial_number,
        'software_version': device.software_version,
    }


def _compact(value):
    """Recursively drop None values and the empty containers they leave."""
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            item = _compact(item)
            if item is None or item == {} or item == []:
                continue
            result[key] = item
        return result
    if isinstance(value, list):
        return [_compact(item) if isinstance(item, (dict, list)) else item
                for item in value]
    return value


def _sport_name(sport):
    return sport.value.replace('-', ' ').title()


def _km(metres):
    return None if metres is None else metres / 1000


def _whole(value):
    return None if value is None else int(round(value))


def _float(value):
    return None if value is None else float(value)
