#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Workout model --> GPX 1.1, one track per workout and one segment per lap.

"""
import logging
from xml.etree.ElementTree import Element, SubElement

from pwfio._util.diagnostics import WarningCollector
from pwfio._util.exporting import report_omissions
from pwfio._util.misc import format_timestamp
from pwfio._util.xml_writing import format_number, qualify, serialize, sub_text


logger = logging.getLogger(__name__)

GPX_NS = 'http://www.topografix.com/GPX/1/1'
TPX_NS = 'http://www.garmin.com/xmlschemas/TrackPointExtension/v1'
PWR_NS = 'http://www.garmin.com/xmlschemas/PowerExtension/v1'
XSI_NS = 'http://www.w3.org/2001/XMLSchema-instance'

NAMESPACES = (('', GPX_NS), ('gpxtpx', TPX_NS), ('gpxpx', PWR_NS),
              ('xsi', XSI_NS))

SCHEMA_LOCATION = ('http://www.topografix.com/GPX/1/1 '
                   'http://www.topografix.com/GPX/1/1/gpx.xsd')

CREATOR = 'pwfio'


def gpx(tag):
    return qualify(GPX_NS, tag)


def write(history, *, warnings=None):
    """`History` --> GPX text.

    Only points with coordinates are written; a workout without any gets a
    warning and no track.
    """
    if warnings is None:
        warnings = WarningCollector()

    root = Element(gpx('gpx'), {
        'version': '1.1',
        'creator': CREATOR,
        qualify(XSI_NS, 'schemaLocation'): SCHEMA_LOCATION,
    })
    if history.exported_at is not None:
        metadata = SubElement(root, gpx('metadata'))
        sub_text(metadata, gpx('time'), format_timestamp(history.exported_at))

    n_tracks = 0
    for w, workout in enumerate(history.workouts):
        path = 'workouts[%d]' % w
        report_omissions(workout, path, warnings, fmt='GPX')
        n_tracks += _write_track(root, workout, path, warnings)

    if not n_tracks:
        warnings.data_quality_issue('no GPS tracks found in any workout')

    logger.debug('wrote %d GPX tracks', n_tracks)
    return serialize(root, NAMESPACES)


def _write_track(parent, workout, path, warnings):
    points = list(workout.iter_points())
    positioned = sum(1 for p in points if p.has_position)
    if not positioned:
        if points:
            reason = 'none of %d point(s) carry coordinates' % len(points)
        else:
            reason = 'workout has no telemetry to export'
        warnings.missing_field('trkpt', reason, path)
        return 0
    if positioned < len(points):
        warnings.data_quality_issue(
            '%d point(s) without coordinates skipped'
            % (len(points) - positioned), path)

    trk = SubElement(parent, gpx('trk'))
    sub_text(trk, gpx('name'), workout.title or _default_title(workout))
    sub_text(trk, gpx('desc'), workout.notes)
    sub_text(trk, gpx('type'), workout.sport.value)

    for lap in workout.laps:
        lap_points = [p for p in lap.points if p.has_position]
        if not lap_points:
            continue
        trkseg = SubElement(trk, gpx('trkseg'))
        for point in lap_points:
            _write_trackpoint(trkseg, point)
    return 1


def _write_trackpoint(parent, point):
    trkpt = SubElement(parent, gpx('trkpt'), {
        'lat': repr(float(point.latitude)),
        'lon': repr(float(point.longitude)),
    })
    sub_text(trkpt, gpx('ele'), point.altitude, fmt=format_number)
    sub_text(trkpt, gpx('time'), format_timestamp(point.timestamp))

    tpx_values = (point.temperature, point.heart_rate, point.cadence)
    if all(v is None for v in tpx_values) and point.power is None:
        return

    extensions = SubElement(trkpt, gpx('extensions'))
    if any(v is not None for v in tpx_values):
        tpx = SubElement(extensions, qualify(TPX_NS, 'TrackPointExtension'))
        sub_text(tpx, qualify(TPX_NS, 'atemp'), point.temperature,
                 fmt=format_number)
        sub_text(tpx, qualify(TPX_NS, 'hr'), _whole(point.heart_rate))
        sub_text(tpx, qualify(TPX_NS, 'cad'), _whole(point.cadence))
    if point.power is not None:
        sub_text(extensions, qualify(PWR_NS, 'PowerInWatts'),
                 _whole(point.power))


def _default_title(workout):
    return 'Workout %s' % workout.start_time.date().isoformat()


def _whole(value):
    return None if value is None else int(round(value))
