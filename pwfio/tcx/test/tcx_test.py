#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from datetime import datetime, timedelta

import pytest

from pwfio import tcx
from pwfio._types import (
    History, Lap, Segment, Sport, TelemetryPoint, Workout)
from pwfio._util import exceptions
from pwfio._util.diagnostics import WarningCollector, WarningKind
from pwfio._util.misc import TZ_UTC


RIDE = b"""<?xml version="1.0" encoding="UTF-8"?>
<TrainingCenterDatabase
    xmlns="http://www.garmin.com/xmlschemas/TrainingCenterDatabase/v2"
    xmlns:ns3="http://www.garmin.com/xmlschemas/ActivityExtension/v2">
  <Activities>
    <Activity Sport="Biking">
      <Id>2024-05-04T08:00:00Z</Id>
      <Lap StartTime="2024-05-04T08:00:00Z">
        <TotalTimeSeconds>2</TotalTimeSeconds>
        <DistanceMeters>20.5</DistanceMeters>
        <Calories>3</Calories>
        <AverageHeartRateBpm><Value>121</Value></AverageHeartRateBpm>
        <Intensity>Active</Intensity>
        <TriggerMethod>Manual</TriggerMethod>
        <Track>
          <Trackpoint>
            <Time>2024-05-04T08:00:00Z</Time>
            <Position>
              <LatitudeDegrees>51.5</LatitudeDegrees>
              <LongitudeDegrees>-0.12</LongitudeDegrees>
            </Position>
            <AltitudeMeters>12.0</AltitudeMeters>
            <DistanceMeters>0.0</DistanceMeters>
            <HeartRateBpm><Value>120</Value></HeartRateBpm>
            <Cadence>88</Cadence>
            <Extensions><ns3:TPX><ns3:Speed>9.8</ns3:Speed>
              <ns3:Watts>210</ns3:Watts></ns3:TPX></Extensions>
          </Trackpoint>
          <Trackpoint>
            <Time>2024-05-04T08:00:01Z</Time>
            <HeartRateBpm><Value>122</Value></HeartRateBpm>
            <Extensions><ns3:TPX><ns3:Watts>230</ns3:Watts></ns3:TPX></Extensions>
          </Trackpoint>
          <Trackpoint>
            <HeartRateBpm><Value>123</Value></HeartRateBpm>
          </Trackpoint>
        </Track>
        <Extensions><ns3:LX><ns3:AvgWatts>220</ns3:AvgWatts></ns3:LX></Extensions>
      </Lap>
      <Lap StartTime="2024-05-04T08:00:02Z">
        <TotalTimeSeconds>3</TotalTimeSeconds>
        <DistanceMeters>30</DistanceMeters>
        <Calories>4</Calories>
        <Intensity>Active</Intensity>
        <TriggerMethod>Distance</TriggerMethod>
      </Lap>
      <Creator xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
               xsi:type="Device_t">
        <Name>Edge 530</Name>
        <UnitId>3312345678</UnitId>
        <ProductID>3121</ProductID>
        <Version><VersionMajor>9</VersionMajor><VersionMinor>20</VersionMinor></Version>
      </Creator>
    </Activity>
  </Activities>
</TrainingCenterDatabase>
"""

warnings = WarningCollector()
ride, = tcx.read(RIDE, warnings=warnings).workouts


def utc(*args):
    return datetime(*args, tzinfo=TZ_UTC)


def test_activity():
    assert ride.sport is Sport.CYCLING
    assert ride.start_time == utc(2024, 5, 4, 8)
    assert ride.duration == 5
    assert not ride.is_multi_sport
    segment, = ride.segments
    assert segment.distance == 50.5
    assert segment.calories == 7


def test_laps_and_trackpoints():
    first, second = ride.laps
    assert first.avg_power == 220
    assert first.avg_heart_rate == 121
    assert first.max_heart_rate == 122     # from the trackpoints
    assert len(first.points) == 2
    assert second.points == []

    point = first.points[0]
    assert (point.latitude, point.longitude) == (51.5, -0.12)
    assert point.heart_rate == 120
    assert point.power == 210
    assert point.speed == 9.8
    assert point.cadence == 88


def test_untimed_trackpoints_are_dropped():
    issues = warnings.of_kind(WarningKind.DATA_QUALITY_ISSUE)
    assert any('without a time' in w.message for w in issues)


def test_creator():
    device = ride.device
    assert device.product == 'Edge 530'
    assert device.serial_number == '3312345678'
    assert device.software_version == '9.20'


def test_power_metrics_from_trackpoints():
    # Two seconds of power is far too short for NP
    assert ride.segments[0].power_metrics is None
    assert any(w.kind is WarningKind.DATA_QUALITY_ISSUE and 'power' in w.message
               for w in warnings)


def test_summary_only():
    collector = WarningCollector()
    workout, = tcx.read(RIDE, summary_only=True, warnings=collector).workouts
    assert workout.n_points == 0
    assert workout.laps[0].avg_power == 220
    assert collector.of_kind(WarningKind.TIME_SERIES_SKIPPED)


def test_unknown_sport():
    collector = WarningCollector()
    text = RIDE.replace(b'Sport="Biking"', b'Sport="Underwater Hockey"')
    workout, = tcx.read(text, warnings=collector).workouts
    assert workout.sport is Sport.OTHER
    assert collector.of_kind(WarningKind.VALUE_CLAMPED)


@pytest.mark.parametrize('text, expected', [
    ('Running', Sport.RUNNING),
    ('biking', Sport.CYCLING),
    ('Other', Sport.OTHER),
    (None, Sport.OTHER),
    ('Stair-Climbing', Sport.STAIR_CLIMBING),
])
def test_map_sport(text, expected):
    assert tcx.map_sport(text) is expected


def test_not_a_tcx_file():
    with pytest.raises(exceptions.InvalidFileError):
        tcx.read(b'<gpx><trk/></gpx>')


def test_malformed():
    with pytest.raises(exceptions.ReadError):
        tcx.read(b'<TrainingCenterDatabase><Activities>')


def test_no_activities():
    with pytest.raises(exceptions.InvalidDataError):
        tcx.read(b'<TrainingCenterDatabase><Activities/>'
                 b'</TrainingCenterDatabase>')


def test_activity_without_id():
    with pytest.raises(exceptions.MissingRequiredFieldError):
        tcx.read(b'<TrainingCenterDatabase><Activities>'
                 b'<Activity Sport="Running"/></Activities>'
                 b'</TrainingCenterDatabase>')


def test_courses_are_unsupported():
    collector = WarningCollector()
    text = RIDE.replace(b'</Activities>',
                        b'</Activities><Courses><Course/></Courses>')
    tcx.read(text, warnings=collector)
    assert collector.of_kind(WarningKind.UNSUPPORTED_FEATURE)


# Writing

def run(start, seconds, **fields):
    lap = Lap(start_time=start, duration=float(seconds), calories=10)
    for i in range(seconds):
        lap.add_point(TelemetryPoint(start + timedelta(seconds=i), **fields))
    return Segment(Sport.RUNNING, start_time=start, duration=float(seconds),
                   laps=[lap])


def test_write_then_read():
    text = tcx.write(tcx.read(RIDE))
    assert text.startswith('<?xml')
    assert 'Sport="Biking"' in text
    assert '<ns3:Watts>210</ns3:Watts>' in text

    again, = tcx.read(text).workouts
    assert again.sport is Sport.CYCLING
    assert len(again.laps) == 2
    assert [p.power for p in again.iter_points()] == [210, 230]
    assert again.laps[0].points[0].latitude == 51.5
    assert again.device.product == 'Edge 530'


def test_running_cadence_goes_in_the_extension():
    start = utc(2024, 1, 1, 6)
    workout = Workout(start_time=start, sport=Sport.RUNNING,
                      segments=[run(start, 3, cadence=90, heart_rate=150)])
    text = tcx.write(History([workout.close()]))

    assert '<ns3:RunCadence>90</ns3:RunCadence>' in text
    assert '<Cadence>' not in text
    again, = tcx.read(text).workouts
    assert again.laps[0].points[0].cadence == 90


def test_write_multi_sport_flattens():
    start = utc(2024, 1, 1, 6)
    bike_start = start + timedelta(minutes=1)
    swim = Segment(Sport.SWIMMING, start_time=start, duration=60.0,
                   laps=[Lap(start_time=start, duration=60.0)])
    workout = Workout(start_time=start, sport=Sport.SWIMMING,
                      is_multi_sport=True,
                      segments=[swim, run(bike_start, 5)]).close()
    collector = WarningCollector()
    text = tcx.write(History([workout]), warnings=collector)

    assert text.count('<Activity ') == 2
    unsupported = collector.of_kind(WarningKind.UNSUPPORTED_FEATURE)
    assert any('flattened' in w.message for w in unsupported)
    clamped, = collector.of_kind(WarningKind.VALUE_CLAMPED)
    assert clamped.path == 'workouts[0].segments[0].sport'


def test_write_strength_workout():
    start = utc(2024, 1, 1, 18)
    sets = [Lap(start_time=start + timedelta(minutes=i), reps=8,
                weight_kg=60.0, rpe=8) for i in range(3)]
    workout = Workout(start_time=start, sport=Sport.STRENGTH,
                      segments=[Segment(Sport.STRENGTH, start_time=start,
                                        laps=sets)]).close()
    collector = WarningCollector()
    text = tcx.write(History([workout]), warnings=collector)

    assert text.count('<Lap ') == 3
    assert '<Calories>0</Calories>' in text
    messages = [w.message for w in collector.of_kind(
        WarningKind.UNSUPPORTED_FEATURE)]
    assert any('strength' in m for m in messages)
    assert any('RPE' in m for m in messages)
    missing = {w.message for w in collector.of_kind(WarningKind.MISSING_FIELD)}
    assert any('trackpoints' in m for m in missing)
    assert any('Calories' in m for m in missing)
