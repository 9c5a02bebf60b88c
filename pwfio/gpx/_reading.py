#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
GPS Exchange Format (GPX) 1.1: tracks --> segments --> trackpoints.

Heart rate, cadence and temperature come from Garmin's TrackPointExtension;
power from either a bare ``power`` element or Garmin's PowerExtension.

"""
import logging
from types import MappingProxyType

import numpy as np

from pwfio._types import History, Lap, Segment, Sport, TelemetryPoint, Workout
from pwfio._util import exceptions
from pwfio._util.diagnostics import WarningCollector
from pwfio._util.misc import (
    max_or_none, mean_or_none, parse_timestamp, to_float, to_int)
from pwfio._util.xml_reading import (
    child_text, find_children, gen_nodes, recursive_text_extract, sans_ns)
from pwfio.analysis import compute_power_metrics
from pwfio.tools import bearing, cumulative_distance


logger = logging.getLogger(__name__)

# <type> text --> Sport. Anything else is tried as a canonical sport name.
TYPES = MappingProxyType({
    'run': Sport.RUNNING,
    'running': Sport.RUNNING,
    'bike': Sport.CYCLING,
    'biking': Sport.CYCLING,
    'cycling': Sport.CYCLING,
    'ride': Sport.CYCLING,
    'hike': Sport.HIKING,
    'hiking': Sport.HIKING,
    'walk': Sport.WALKING,
    'walking': Sport.WALKING,
    'swim': Sport.SWIMMING,
    'swimming': Sport.SWIMMING,
    'ski': Sport.DOWNHILL_SKIING,
    'skiing': Sport.DOWNHILL_SKIING,
    'paddle': Sport.STAND_UP_PADDLING,
    'paddling': Sport.STAND_UP_PADDLING,
    'kayaking': Sport.KAYAKING,
    'row': Sport.ROWING,
    'rowing': Sport.ROWING,
})

# Substring hints searched for in metadata keywords, then description.
HINTS = (
    ('run', Sport.RUNNING),
    ('bike', Sport.CYCLING),
    ('cycl', Sport.CYCLING),
    ('hike', Sport.HIKING),
    ('walk', Sport.WALKING),
    ('swim', Sport.SWIMMING),
)


def map_type(text):
    """GPX <type> --> Sport, or None if it means nothing to us."""
    if not text:
        return None
    key = text.strip().lower()
    return TYPES.get(key) or Sport.parse(key)


def infer_sport(keywords=None, description=None):
    """Guess a sport from free metadata text; `Sport.OTHER` if no clue."""
    for text in (keywords, description):
        if not text:
            continue
        text = text.lower()
        for hint, sport in HINTS:
            if hint in text:
                return sport
    return Sport.OTHER


def read(data, *, summary_only=False, ftp=None, warnings=None):
    """GPX document --> `History`, one workout per track.

    Parameters
    ----------
    data : str or bytes
    summary_only : bool, optional
        Keep the per-segment summaries but drop the trackpoints.
    ftp : float, optional
    warnings : WarningCollector, optional

    Raises
    ------
    ReadError
        If this isn't a (well-formed) GPX document.
    InvalidDataError
        If there is no track in it.
    MissingRequiredFieldError
        If a track has no timestamped points.
    """
    if warnings is None:
        warnings = WarningCollector()

    nodes = gen_nodes(data, ('metadata', 'trk', 'rte', 'wpt'), with_root=True)
    root = next(nodes)
    if sans_ns(root.tag) != 'gpx':
        raise exceptions.InvalidFileError('gpx')

    keywords = description = None
    workouts, n_routes, n_waypoints = [], 0, 0
    for node in nodes:
        tag = sans_ns(node.tag)
        if tag == 'metadata':
            keywords = child_text(node, 'keywords')
            description = child_text(node, 'desc')
        elif tag == 'rte':
            n_routes += 1
        elif tag == 'wpt':
            n_waypoints += 1
        else:
            sport = (map_type(child_text(node, 'type'))
                     or infer_sport(keywords, description))
            path = 'trk[%d]' % len(workouts)
            workouts.append(_read_track(
                node, sport, path, summary_only=summary_only, ftp=ftp,
                warnings=warnings))

    if n_routes:
        warnings.unsupported_feature(
            'GPX routes (%d skipped)' % n_routes, 'rte')
    if n_waypoints:
        warnings.unsupported_feature(
            'GPX waypoints (%d skipped)' % n_waypoints, 'wpt')
    if not workouts:
        raise exceptions.InvalidDataError('the GPX file holds no tracks')

    logger.debug('read %d GPX tracks', len(workouts))
    return History(workouts, source_app=root.get('creator'))


def _read_track(node, sport, path, *, summary_only, ftp, warnings):
    laps, dropped = [], 0
    for trkseg in find_children(node, 'trkseg'):
        lap = Lap()
        for trkpt in find_children(trkseg, 'trkpt'):
            point = _read_trackpoint(trkpt)
            if point is None:
                dropped += 1
            else:
                lap.add_point(point)
        if lap.points:
            laps.append(lap)

    if dropped:
        warnings.data_quality_issue(
            '%d trackpoint(s) without a time were dropped' % dropped, path)
    if not laps:
        raise exceptions.MissingRequiredFieldError('time', path)

    points = [p for lap in laps for p in lap.points]
    _fill_distance(points)
    _fill_heading(points)
    for lap in laps:
        _summarize(lap, lap.points)

    start = points[0].timestamp
    segment = Segment(sport, start_time=start, laps=laps)
    _summarize(segment, points)
    segment.total_ascent, segment.total_descent = _climb(points)

    if any(p.power is not None for p in points):
        segment.power_metrics = compute_power_metrics(
            points, ftp=ftp, warnings=warnings, path=path)

    if summary_only:
        for lap in laps:
            lap.points = []
        warnings.time_series_skipped(
            '%d trackpoint(s) dropped' % len(points), path)

    workout = Workout(
        start_time=start,
        sport=sport,
        title=child_text(node, 'name'),
        notes=child_text(node, 'desc'),
        segments=[segment],
    )
    return workout.close()


def _read_trackpoint(node):
    values = recursive_text_extract(node)
    time = values.get('time')
    if time is None:
        return None
    try:
        timestamp = parse_timestamp(time)
    except ValueError:
        return None

    power = values.get('power', values.get('PowerInWatts'))
    return TelemetryPoint(
        timestamp,
        latitude=to_float(node.get('lat')),
        longitude=to_float(node.get('lon')),
        altitude=to_float(values.get('ele')),
        heart_rate=to_int(values.get('hr')),
        cadence=to_int(values.get('cad')),
        temperature=to_float(values.get('atemp')),
        speed=to_float(values.get('speed')),
        heading=to_float(values.get('course')),
        power=to_int(power),
    )


def _fill_distance(points):
    """Cumulative great-circle distance, since GPX carries none."""
    for point, total in zip(points, cumulative_distance(points)):
        point.distance = total


def _fill_heading(points):
    positioned = [p for p in points if p.has_position]
    if len(positioned) < 2:
        return
    headings = bearing(np.radians([p.longitude for p in positioned]),
                       np.radians([p.latitude for p in positioned]))
    for point, heading in zip(positioned[1:], headings[1:]):
        if point.heading is None:
            point.heading = float(heading)


def _summarize(target, points):
    """Lap/segment aggregates from a run of points."""
    target.start_time = points[0].timestamp
    target.duration = (points[-1].timestamp
                       - points[0].timestamp).total_seconds()
    target.distance = points[-1].distance - points[0].distance
    target.avg_heart_rate = _rounded(mean_or_none(p.heart_rate for p in points))
    target.max_heart_rate = max_or_none(p.heart_rate for p in points)
    target.avg_cadence = _rounded(mean_or_none(p.cadence for p in points))
    target.avg_power = _rounded(mean_or_none(p.power for p in points))
    target.max_power = max_or_none(p.power for p in points)


def _climb(points):
    elevations = np.array([p.altitude for p in points if p.altitude is not None],
                          dtype=np.float64)
    if elevations.size < 2:
        return None, None
    deltas = np.diff(elevations)
    return float(deltas[deltas > 0].sum()), float(-deltas[deltas < 0].sum())


def _rounded(value):
    return None if value is None else int(round(value))
