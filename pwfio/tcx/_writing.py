#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Workout model --> Training Center XML (TCX) v2.

Power and speed go in the ActivityExtension v2 elements, which is where
Garmin's own software puts them.

"""
import logging
from types import MappingProxyType
from xml.etree.ElementTree import Element, SubElement

from pwfio._types import Sport
from pwfio._util import exceptions
from pwfio._util.diagnostics import WarningCollector
from pwfio._util.exporting import report_omissions
from pwfio._util.misc import format_timestamp
from pwfio._util.xml_writing import format_number, qualify, serialize, sub_text


logger = logging.getLogger(__name__)

TCD_NS = 'http://www.garmin.com/xmlschemas/TrainingCenterDatabase/v2'
AX_NS = 'http://www.garmin.com/xmlschemas/ActivityExtension/v2'
XSI_NS = 'http://www.w3.org/2001/XMLSchema-instance'

NAMESPACES = (('', TCD_NS), ('ns3', AX_NS), ('xsi', XSI_NS))

# The schema's Sport_t only allows these three.
SPORTS = MappingProxyType({
    Sport.RUNNING: 'Running',
    Sport.CYCLING: 'Biking',
})


def tcd(tag):
    return qualify(TCD_NS, tag)


def ax(tag):
    return qualify(AX_NS, tag)


def write(history, *, warnings=None):
    """`History` --> TCX text, one Activity per segment.

    Raises
    ------
    SerializationError
        If a workout has nothing to anchor an Activity Id to.
    """
    if warnings is None:
        warnings = WarningCollector()

    root = Element(tcd('TrainingCenterDatabase'))
    activities = SubElement(root, tcd('Activities'))

    for w, workout in enumerate(history.workouts):
        path = 'workouts[%d]' % w
        if len(workout.segments) > 1:
            warnings.unsupported_feature(
                'multi-sport workout flattened into %d TCX activities'
                % len(workout.segments), path)
        report_omissions(workout, path, warnings, fmt='TCX')
        if workout.n_points == 0:
            warnings.missing_field(
                'trackpoints', 'workout has no telemetry to export', path)

        for s, segment in enumerate(workout.segments):
            _write_activity(activities, workout, segment,
                            '%s.segments[%d]' % (path, s), warnings,
                            first=(s == 0))

    logger.debug('wrote %d TCX activities', len(activities))
    return serialize(root, NAMESPACES)


def _write_activity(parent, workout, segment, path, warnings, *, first):
    sport = SPORTS.get(segment.sport, 'Other')
    if sport == 'Other' and segment.sport is not Sport.OTHER:
        warnings.value_clamped('Sport', segment.sport.value, 'Other',
                               path + '.sport')

    start = segment.start_time or workout.start_time
    if start is None:
        raise exceptions.SerializationError(
            'cannot write a TCX activity without a start time (%s)' % path)

    activity = SubElement(parent, tcd('Activity'), Sport=sport)
    sub_text(activity, tcd('Id'), format_timestamp(start))

    missing_calories = 0
    for lap in segment.laps:
        missing_calories += lap.calories is None
        _write_lap(activity, lap, start, segment.sport)
    if missing_calories:
        warnings.missing_field(
            'Calories', 'unknown for %d lap(s), written as 0'
            % missing_calories, path)

    if first:
        sub_text(activity, tcd('Notes'), workout.notes)
        _write_creator(activity, workout.device)


def _write_lap(parent, lap, fallback_start, sport):
    start = lap.start_time
    if start is None:
        start = lap.points[0].timestamp if lap.points else fallback_start

    duration = lap.duration
    if duration is None and len(lap.points) > 1:
        duration = (lap.points[-1].timestamp
                    - lap.points[0].timestamp).total_seconds()
    distance = lap.distance
    if distance is None:
        distance = max((p.distance for p in lap.points
                        if p.distance is not None), default=0)
    speeds = [p.speed for p in lap.points if p.speed is not None]

    element = SubElement(parent, tcd('Lap'), StartTime=format_timestamp(start))
    sub_text(element, tcd('TotalTimeSeconds'), format_number(duration or 0, 3))
    sub_text(element, tcd('DistanceMeters'), format_number(distance, 3))
    if speeds:
        sub_text(element, tcd('MaximumSpeed'), format_number(max(speeds), 3))
    sub_text(element, tcd('Calories'), int(lap.calories or 0))
    _write_bpm(element, 'AverageHeartRateBpm', lap.avg_heart_rate)
    _write_bpm(element, 'MaximumHeartRateBpm', lap.max_heart_rate)
    sub_text(element, tcd('Intensity'), 'Active')
    if sport is not Sport.RUNNING:
        sub_text(element, tcd('Cadence'), _whole(lap.avg_cadence))
    sub_text(element, tcd('TriggerMethod'), 'Manual')

    if lap.points:
        track = SubElement(element, tcd('Track'))
        for point in lap.points:
            _write_trackpoint(track, point, sport)

    sub_text(element, tcd('Notes'), lap.notes)

    running_cadence = sport is Sport.RUNNING and lap.avg_cadence is not None
    if lap.avg_power is not None or lap.max_power is not None \
            or running_cadence:
        lx = SubElement(SubElement(element, tcd('Extensions')), ax('LX'))
        if running_cadence:
            sub_text(lx, ax('AvgRunCadence'), _whole(lap.avg_cadence))
        sub_text(lx, ax('AvgWatts'), _whole(lap.avg_power))
        sub_text(lx, ax('MaxWatts'), _whole(lap.max_power))


def _write_trackpoint(parent, point, sport):
    trkpt = SubElement(parent, tcd('Trackpoint'))
    sub_text(trkpt, tcd('Time'), format_timestamp(point.timestamp))
    if point.has_position:
        position = SubElement(trkpt, tcd('Position'))
        sub_text(position, tcd('LatitudeDegrees'), repr(float(point.latitude)))
        sub_text(position, tcd('LongitudeDegrees'), repr(float(point.longitude)))
    sub_text(trkpt, tcd('AltitudeMeters'), point.altitude, fmt=format_number)
    sub_text(trkpt, tcd('DistanceMeters'), point.distance, fmt=format_number)
    _write_bpm(trkpt, 'HeartRateBpm', point.heart_rate)

    run_cadence = None
    if sport is Sport.RUNNING:
        run_cadence = point.cadence
    else:
        sub_text(trkpt, tcd('Cadence'), _whole(point.cadence))

    if point.speed is not None or point.power is not None \
            or run_cadence is not None:
        tpx = SubElement(SubElement(trkpt, tcd('Extensions')), ax('TPX'))
        sub_text(tpx, ax('Speed'), point.speed, fmt=format_number)
        sub_text(tpx, ax('RunCadence'), _whole(run_cadence))
        sub_text(tpx, ax('Watts'), _whole(point.power))


def _write_bpm(parent, name, value):
    if value is None:
        return
    bpm = SubElement(parent, tcd(name))
    sub_text(bpm, tcd('Value'), _whole(value))


def _write_creator(parent, device):
    if device is None or device.product is None:
        return
    creator = SubElement(parent, tcd('Creator'),
                         {qualify(XSI_NS, 'type'): 'Device_t'})
    sub_text(creator, tcd('Name'), device.product)
    sub_text(creator, tcd('UnitId'), _unit_id(device.serial_number))
    sub_text(creator, tcd('ProductID'), 0)
    major, _, minor = (device.software_version or '0.0').partition('.')
    version = SubElement(creator, tcd('Version'))
    sub_text(version, tcd('VersionMajor'), _unit_id(major))
    sub_text(version, tcd('VersionMinor'), _unit_id(minor))


def _unit_id(text):
    return int(text) if text and str(text).isdigit() else 0


def _whole(value):
    return None if value is None else int(round(value))
