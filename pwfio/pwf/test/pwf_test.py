#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from datetime import datetime, timedelta

import pytest
import yaml

from pwfio import pwf
from pwfio._types import (
    DeviceInfo, History, Lap, PoolLength, PowerMetrics, Segment, Sport,
    StrokeType, TelemetryPoint, Transition, Workout)
from pwfio._types.sports import Modality
from pwfio._util import exceptions
from pwfio._util.diagnostics import WarningCollector, WarningKind
from pwfio._util.misc import TZ_UTC
from pwfio.analysis import summarize_lengths


def utc(*args):
    return datetime(*args, tzinfo=TZ_UTC)


START = utc(2024, 1, 15, 14, 30)

STRENGTH = """
history_version: 1
exported_at: 2024-01-15T16:00:00Z
workouts:
  - date: 2024-01-15
    title: Push day
    exercises:
      - name: Bench Press
        modality: strength
        sets:
          - reps: 5
            weight_kg: 100
            rpe: 8
          - reps: 5
            weight_lb: 225
      - name: Plank
        modality: countdown
        sets:
          - duration_sec: 60
"""


def ride():
    lap = Lap(start_time=START, duration=40.0, distance=400.0,
              avg_heart_rate=140, calories=12)
    for i in range(40):
        lap.add_point(TelemetryPoint(
            START + timedelta(seconds=i), latitude=51.0 + i * 1e-4,
            longitude=-1.0, altitude=50.0, heart_rate=140, power=200,
            distance=10.0 * i))
    segment = Segment(Sport.CYCLING, start_time=START, duration=40.0,
                      distance=400.0, avg_heart_rate=140, calories=12,
                      laps=[lap],
                      power_metrics=PowerMetrics(normalized_power=200.0,
                                                 ftp=250.0,
                                                 intensity_factor=0.8))
    return Workout(start_time=START, sport=Sport.CYCLING, title='Spin',
                   devices=[DeviceInfo(manufacturer='garmin',
                                       product='Edge 530')],
                   segments=[segment]).close()


def test_read_strength_history():
    workout, = pwf.read(STRENGTH).workouts

    assert workout.start_time == utc(2024, 1, 15)
    assert workout.title == 'Push day'
    bench, plank = workout.segments
    assert bench.name == 'Bench Press'
    first, second = bench.laps
    assert (first.reps, first.weight_kg, first.rpe) == (5, 100.0, 8.0)
    assert first.modality is Modality.STRENGTH
    assert first.is_strength
    assert second.weight_kg == pytest.approx(102.06, abs=0.01)
    assert plank.laps[0].duration == 60
    assert plank.laps[0].modality is Modality.COUNTDOWN
    assert workout.n_points == 0


def test_yaml_native_timestamps():
    history = pwf.read(STRENGTH)
    assert history.exported_at == utc(2024, 1, 15, 16)


def test_round_trip():
    history = History([ride()], exported_at=utc(2024, 1, 15, 16))
    text = pwf.write(history)
    document = yaml.safe_load(text)

    assert document['history_version'] == 2
    assert document['exported_at'] == '2024-01-15T16:00:00Z'
    entry, = document['workouts']
    assert entry['sport'] == 'cycling'
    assert entry['telemetry']['power_metrics']['normalized_power'] == 200
    assert entry['telemetry']['gps_route']['bbox_sw_lat'] == 51.0
    series = entry['exercises'][0]['sets'][0]['telemetry']['time_series']
    assert len(series['timestamps']) == 40
    assert 'temperature_c' not in series

    workout, = pwf.read(text).workouts
    assert workout.sport is Sport.CYCLING
    assert workout.title == 'Spin'
    assert workout.duration == 40
    assert workout.device.product == 'Edge 530'
    points = list(workout.iter_points())
    assert len(points) == 40
    assert points[-1].latitude == pytest.approx(51.0039)
    assert points[0].timestamp == START
    metrics = workout.segments[0].power_metrics
    assert metrics.normalized_power == 200
    assert metrics.ftp == 250


def test_keys_without_values_are_left_out():
    document = pwf.to_document(History([ride()]))
    entry = document['workouts'][0]
    assert 'notes' not in entry
    assert 'sport_segments' not in entry
    first_set = entry['exercises'][0]['sets'][0]
    assert 'reps' not in first_set and 'rpe' not in first_set
    assert all(value is not None for value in first_set.values())


def test_summary_only():
    collector = WarningCollector()
    document = pwf.to_document(History([ride()]), summary_only=True,
                               warnings=collector)
    telemetry = document['workouts'][0]['exercises'][0]['sets'][0]['telemetry']
    assert 'time_series' not in telemetry
    assert telemetry['heart_rate_avg'] == 140
    assert collector.of_kind(WarningKind.TIME_SERIES_SKIPPED)


def test_swim_round_trip():
    lengths = [PoolLength(stroke=StrokeType.BREASTSTROKE, stroke_count=18,
                          duration=30.5, start_time=START + timedelta(seconds=30 * i))
               for i in range(4)]
    lap = Lap(start_time=START, duration=122.0, distance=100.0,
              lengths=lengths)
    segment = Segment(Sport.SWIMMING, start_time=START, duration=122.0,
                      laps=[lap])
    segment.swim = summarize_lengths(lengths, 25.0)
    workout = Workout(start_time=START, sport=Sport.SWIMMING,
                      segments=[segment]).close()

    text = pwf.write(History([workout]))
    document = yaml.safe_load(text)
    exercise = document['workouts'][0]['exercises'][0]
    assert exercise['pool_config'] == {'pool_length': 25,
                                       'pool_length_unit': 'meters'}
    swimming = exercise['sets'][0]['swimming']
    assert swimming['total_lengths'] == 4
    assert swimming['stroke_type'] == 'breaststroke'
    assert swimming['lengths'][0]['swolf'] == 48

    collector = WarningCollector()
    again, = pwf.read(text, warnings=collector).workouts
    swim = again.segments[0].swim
    assert swim.pool_length == '25 m'
    assert swim.total_lengths == 4
    assert swim.stroke is StrokeType.BREASTSTROKE
    assert not collector.of_kind(WarningKind.VALUE_CLAMPED)


def test_yards_pool():
    text = """
history_version: 2
exported_at: '2024-01-15T16:00:00Z'
workouts:
  - date: '2024-01-15'
    exercises:
      - name: Swim
        sport: swimming
        pool_config: {pool_length: 25, pool_length_unit: yards}
        sets:
          - duration_sec: 40
            swimming:
              lengths:
                - {length_number: 1, stroke_type: freestyle, duration_sec: 20, stroke_count: 15}
                - {length_number: 2, stroke_type: freestyle, duration_sec: 20, stroke_count: 16}
"""
    workout, = pwf.read(text).workouts
    swim = workout.segments[0].swim
    assert swim.pool_length == '25 yd'
    assert swim.unit == 'yards'
    assert [length.swolf for length in workout.segments[0].lengths] == [35, 36]


def test_multi_sport_round_trip():
    run = Segment(Sport.RUNNING, start_time=START, duration=600.0,
                  laps=[Lap(start_time=START, duration=600.0)])
    bike_start = START + timedelta(minutes=12)
    bike = Segment(Sport.CYCLING, start_time=bike_start, duration=1200.0,
                   laps=[Lap(start_time=bike_start, duration=1200.0)])
    transition = Transition(from_sport=Sport.RUNNING, to_sport=Sport.CYCLING,
                            start_time=START + timedelta(minutes=10),
                            duration=120.0)
    workout = Workout(start_time=START, sport=Sport.RUNNING,
                      is_multi_sport=True, segments=[run, bike],
                      transitions=[transition]).close()

    document = pwf.to_document(History([workout]))
    segments = document['workouts'][0]['sport_segments']
    assert [s['sport'] for s in segments] == ['running', 'cycling']
    assert segments[1]['transition']['from_sport'] == 'running'
    assert 'transition' not in segments[0]

    again, = pwf.read(document).workouts
    assert again.is_multi_sport
    assert [s.sport for s in again.segments] == [Sport.RUNNING, Sport.CYCLING]
    assert again.transitions[0].duration == 120


def test_exercise_without_sets_gets_a_lap():
    text = """
history_version: 2
exported_at: '2024-01-15T16:00:00Z'
workouts:
  - started_at: '2024-01-15T07:00:00Z'
    sport: yoga
    exercises:
      - name: Sun salutation
"""
    workout, = pwf.read(text).workouts
    assert workout.sport is Sport.YOGA
    assert len(workout.laps) == 1


def test_plan_documents_are_not_histories():
    with pytest.raises(exceptions.UnsupportedFormatError):
        pwf.read('plan_version: 1\ncycle:\n  days: []\n')


def test_unknown_history_version():
    with pytest.raises(exceptions.UnsupportedFormatError):
        pwf.read('history_version: 7\nworkouts: []\n')


def test_missing_workouts():
    with pytest.raises(exceptions.InvalidDataError):
        pwf.read('history_version: 2\nexported_at: x\n')


def test_workout_without_start():
    with pytest.raises(exceptions.MissingRequiredFieldError):
        pwf.read('history_version: 2\nworkouts:\n  - title: When?\n')


def test_malformed_yaml():
    with pytest.raises(exceptions.ReadError):
        pwf.read('history_version: [2\n')


def test_bytes_must_be_utf8():
    with pytest.raises(exceptions.ReadError):
        pwf.read(b'history_version: 2\nworkouts:\n  - title: Caf\xe9\n')


@pytest.mark.parametrize('field', ['started_at', 'date'])
def test_numeric_timestamps_are_rejected(field):
    text = ('history_version: 2\nworkouts:\n  - %s: 1705329000\n'
            '    sport: running\n' % field)
    with pytest.raises(exceptions.ReadError, match='numeric timestamp'):
        pwf.read(text)


def test_unknown_sport_is_clamped():
    collector = WarningCollector()
    text = ('history_version: 2\nworkouts:\n  - date: 2024-01-01\n'
            '    sport: quidditch\n')
    workout, = pwf.read(text, warnings=collector).workouts
    assert workout.sport is Sport.OTHER
    assert collector.of_kind(WarningKind.VALUE_CLAMPED)


# Validation

def codes(report):
    return set(report.codes())


def test_valid_history():
    report = pwf.validate(STRENGTH)
    assert report.is_valid
    assert not report.has_warnings


def test_written_documents_validate():
    report = pwf.validate(pwf.write(History([ride()])))
    assert report.is_valid, report.errors


def test_history_errors():
    document = {
        'history_version': 3,
        'workouts': [
            {'exercises': [{'sets': []}]},
            {'date': '2024-01-01'},
            {'date': '2024-01-02', 'exercises': [{'name': 'Squat', 'sets': [
                {'notes': 'forgot to log'},
                {'reps': 5, 'rpe': 11, 'rir': 12},
            ]}]},
        ],
        'personal_records': [{}],
        'body_measurements': [{}],
    }
    report = pwf.validate(document)

    assert not report.is_valid
    assert {'PWF-H001', 'PWF-H002', 'PWF-H101', 'PWF-H201', 'PWF-H401',
            'PWF-H402', 'PWF-H501'} == {i.code for i in report.errors}
    assert {'PWF-H102', 'PWF-H202', 'PWF-H301', 'PWF-H302', 'PWF-H303',
            'PWF-H304', 'PWF-H502'} == {i.code for i in report.warnings}
    paths = {issue.path for issue in report.issues}
    assert 'workouts[0].exercises[0].name' in paths
    assert 'workouts[2].exercises[0].sets[1].rpe' in paths


def test_unparseable_yaml():
    report = pwf.validate('workouts: [')
    issue, = report.errors
    assert issue.path == '' and issue.code is None


def test_plan_glossary():
    glossary = {'AMRAP': 'As many reps as possible',
                'E2MOM': '',
                'x' * 51: 'too long a term',
                'Bad_term!': 'punctuation',
                'Wordy': 'y' * 501}
    report = pwf.validate({'plan_version': 1, 'meta': {'title': 'Base'},
                           'glossary': glossary,
                           'cycle': {'days': [{'exercises': []}]}})
    assert codes(report) == {'PWF-P007', 'PWF-P008', 'PWF-P009', 'PWF-P010'}


def test_plan_glossary_size():
    glossary = {'term %d' % i: 'definition' for i in range(101)}
    report = pwf.validate({'plan_version': 1, 'meta': {'title': 'Base'},
                           'glossary': glossary, 'cycle': {'days': [{}]}})
    assert codes(report) == {'PWF-P006'}


def test_plan_meta_timestamps():
    report = pwf.validate({
        'plan_version': 1,
        'meta': {'title': 'Block', 'status': 'completed',
                 'activated_at': '2024-02-01T00:00:00Z',
                 'completed_at': '2024-01-01T00:00:00Z'},
        'cycle': {'days': [{}]},
    })
    assert codes(report) == {'PWF-P005'}

    report = pwf.validate({
        'plan_version': 1,
        'meta': {'title': 'Block', 'status': 'active',
                 'completed_at': 'last tuesday'},
        'cycle': {'days': [{}]},
    })
    assert codes(report) == {'PWF-P002', 'PWF-P003'}


def test_plan_structure():
    report = pwf.validate('plan_version: 2\n')
    messages = [issue.message for issue in report.errors]
    assert any('plan_version' in m for m in messages)
    assert any('at least 1 day' in m for m in messages)
    assert [w.path for w in report.warnings] == ['meta']
