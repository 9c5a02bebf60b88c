#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Garmin Training Center XML (TCX): activities --> laps --> trackpoints.

"""
import logging
from types import MappingProxyType

from pwfio._types import (
    DeviceInfo, History, Lap, Segment, Sport, TelemetryPoint, Workout)
from pwfio._util import exceptions
from pwfio._util.diagnostics import WarningCollector
from pwfio._util.misc import (
    max_or_none, mean_or_none, parse_timestamp, sum_or_none, to_float, to_int)
from pwfio._util.xml_reading import (
    child_text, find_child, find_children, gen_nodes, recursive_text_extract,
    sans_ns)
from pwfio.analysis import compute_power_metrics, detect_multi_sport


logger = logging.getLogger(__name__)

# Lower-cased Sport attribute --> Sport. The schema itself only allows
# Running, Biking and Other but files in the wild say all sorts.
SPORTS = MappingProxyType({
    'running': Sport.RUNNING,
    'biking': Sport.CYCLING,
    'cycling': Sport.CYCLING,
    'swimming': Sport.SWIMMING,
    'rowing': Sport.ROWING,
    'transition': Sport.TRANSITION,
    'strength': Sport.STRENGTH,
    'strength_training': Sport.STRENGTH_TRAINING,
    'strengthtraining': Sport.STRENGTH_TRAINING,
    'strength-training': Sport.STRENGTH_TRAINING,
    'hiking': Sport.HIKING,
    'walking': Sport.WALKING,
    'yoga': Sport.YOGA,
    'pilates': Sport.PILATES,
    'crossfit': Sport.FUNCTIONAL_FITNESS,
    'functional-fitness': Sport.FUNCTIONAL_FITNESS,
    'functional_fitness': Sport.FUNCTIONAL_FITNESS,
    'calisthenics': Sport.CALISTHENICS,
    'cardio': Sport.CARDIO,
    'fitness': Sport.CARDIO,
    'cross_country_skiing': Sport.CROSS_COUNTRY_SKIING,
    'cross-country-skiing': Sport.CROSS_COUNTRY_SKIING,
    'crosscountryskiing': Sport.CROSS_COUNTRY_SKIING,
    'downhill_skiing': Sport.DOWNHILL_SKIING,
    'downhill-skiing': Sport.DOWNHILL_SKIING,
    'alpine_skiing': Sport.DOWNHILL_SKIING,
    'skiing': Sport.DOWNHILL_SKIING,
    'elliptical': Sport.ELLIPTICAL,
    'stair_climbing': Sport.STAIR_CLIMBING,
    'stair-climbing': Sport.STAIR_CLIMBING,
    'stairclimbing': Sport.STAIR_CLIMBING,
})


def map_sport(text):
    """TCX Sport attribute --> Sport (case-insensitive, Other fallback)."""
    if not text:
        return Sport.OTHER
    return SPORTS.get(text.strip().lower(), Sport.OTHER)


def read(data, *, summary_only=False, ftp=None, warnings=None):
    """TCX document --> `History`, one workout per Activity.

    Parameters
    ----------
    data : str or bytes
    summary_only : bool, optional
        Keep lap summaries only, dropping trackpoints.
    ftp : float, optional
        Used for power metrics when trackpoints carry power.
    warnings : WarningCollector, optional

    Raises
    ------
    ReadError
        If this isn't a (well-formed) TCX document.
    InvalidDataError
        If there are no activities in it.
    MissingRequiredFieldError
        If an activity has no Id (start time).
    """
    if warnings is None:
        warnings = WarningCollector()

    nodes = gen_nodes(data, ('Activity', 'Course'), with_root=True)
    root = next(nodes)
    if sans_ns(root.tag) != 'TrainingCenterDatabase':
        raise exceptions.InvalidFileError('tcx')

    workouts, n_courses = [], 0
    for node in nodes:
        if sans_ns(node.tag) == 'Course':
            n_courses += 1
            continue
        path = 'Activity[%d]' % len(workouts)
        workouts.append(_read_activity(
            node, path, summary_only=summary_only, ftp=ftp,
            warnings=warnings))

    if n_courses:
        warnings.unsupported_feature('TCX courses (%d skipped)' % n_courses,
                                     'Course')
    if not workouts:
        raise exceptions.InvalidDataError('the TCX file holds no activities')

    logger.debug('read %d TCX activities', len(workouts))
    return History(workouts)


def _read_activity(node, path, *, summary_only, ftp, warnings):
    id_text = child_text(node, 'Id')
    if id_text is None:
        raise exceptions.MissingRequiredFieldError('Id', path)
    start = _timestamp(id_text, path + '.Id')

    sport = map_sport(node.get('Sport'))
    if sport is Sport.OTHER and node.get('Sport') not in (None, 'Other'):
        warnings.value_clamped('Sport', node.get('Sport'), 'other',
                               path + '.Sport')

    laps, n_points = [], 0
    for i, lap_node in enumerate(find_children(node, 'Lap')):
        lap = _read_lap(lap_node, '%s.Lap[%d]' % (path, i), warnings)
        n_points += len(lap.points)
        laps.append(lap)

    segment = Segment(sport, start_time=start, laps=laps)
    _aggregate(segment)

    points = list(segment.iter_points())
    if any(p.power is not None for p in points):
        segment.power_metrics = compute_power_metrics(
            points, ftp=ftp, warnings=warnings, path=path)

    if summary_only:
        for lap in laps:
            lap.points = []
        if n_points:
            warnings.time_series_skipped(
                '%d trackpoint(s) dropped' % n_points, path)

    segment.ensure_lap()
    workout = Workout(
        start_time=start,
        sport=sport,
        notes=child_text(node, 'Notes'),
        devices=_read_creator(find_child(node, 'Creator')),
        segments=[segment],
    )
    detect_multi_sport(workout)
    return workout.close()


def _read_lap(node, path, warnings):
    start_text = node.get('StartTime')
    if start_text is None:
        raise exceptions.MissingRequiredFieldError('StartTime', path)

    lap = Lap(
        start_time=_timestamp(start_text, path + '.StartTime'),
        duration=to_float(child_text(node, 'TotalTimeSeconds')),
        distance=to_float(child_text(node, 'DistanceMeters')),
        calories=to_int(child_text(node, 'Calories')),
        avg_heart_rate=_bpm(node, 'AverageHeartRateBpm'),
        max_heart_rate=_bpm(node, 'MaximumHeartRateBpm'),
        avg_cadence=to_int(child_text(node, 'Cadence')),
        notes=child_text(node, 'Notes'),
    )
    extensions = find_child(node, 'Extensions')
    if extensions is not None:
        lx = recursive_text_extract(extensions)
        lap.avg_power = to_int(lx.get('AvgWatts'))
        lap.max_power = to_int(lx.get('MaxWatts'))
        if lap.avg_cadence is None:
            lap.avg_cadence = to_int(lx.get('AvgRunCadence'))

    dropped = 0
    for track in find_children(node, 'Track'):
        for trkpt in find_children(track, 'Trackpoint'):
            point = _read_trackpoint(trkpt)
            if point is None:
                dropped += 1
            else:
                lap.add_point(point)
    if dropped:
        warnings.data_quality_issue(
            '%d trackpoint(s) without a time were dropped' % dropped, path)

    # Per-point series fill in whatever the lap summary left out
    points = lap.points
    if points:
        if lap.avg_heart_rate is None:
            lap.avg_heart_rate = _rounded(mean_or_none(p.heart_rate for p in points))
        if lap.max_heart_rate is None:
            lap.max_heart_rate = max_or_none(p.heart_rate for p in points)
        if lap.avg_cadence is None:
            lap.avg_cadence = _rounded(mean_or_none(p.cadence for p in points))
        if lap.avg_power is None:
            lap.avg_power = _rounded(mean_or_none(p.power for p in points))
        if lap.max_power is None:
            lap.max_power = max_or_none(p.power for p in points)
        if lap.distance is None:
            lap.distance = max_or_none(p.distance for p in points)
    return lap


def _read_trackpoint(node):
    values = recursive_text_extract(node)
    time = values.get('Time')
    if time is None:
        return None
    try:
        timestamp = parse_timestamp(time)
    except ValueError:
        return None

    cadence = values.get('Cadence', values.get('RunCadence'))
    return TelemetryPoint(
        timestamp,
        latitude=to_float(values.get('LatitudeDegrees')),
        longitude=to_float(values.get('LongitudeDegrees')),
        altitude=to_float(values.get('AltitudeMeters')),
        distance=to_float(values.get('DistanceMeters')),
        heart_rate=to_int(values.get('Value')),   # HeartRateBpm/Value
        cadence=to_int(cadence),
        speed=to_float(values.get('Speed')),
        power=to_int(values.get('Watts')),
    )


def _read_creator(node):
    if node is None:
        return []
    version = find_child(node, 'Version')
    software = None
    if version is not None:
        major = child_text(version, 'VersionMajor')
        minor = child_text(version, 'VersionMinor')
        if major is not None:
            software = '%s.%s' % (major, minor or '0')
    return [DeviceInfo(
        product=child_text(node, 'Name'),
        serial_number=child_text(node, 'UnitId'),
        software_version=software,
    )]


def _aggregate(segment):
    """Segment totals from its laps (averages are plain means of laps)."""
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


def _bpm(node, name):
    child = find_child(node, name)
    if child is None:
        return None
    return to_int(child_text(child, 'Value'))


def _timestamp(text, path):
    try:
        return parse_timestamp(text)
    except ValueError as e:
        raise exceptions.ReadError('bad timestamp %r at %s' % (text, path)) from e


def _rounded(value):
    return None if value is None else int(round(value))
