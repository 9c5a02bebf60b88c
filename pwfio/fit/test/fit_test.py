#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from datetime import datetime, timedelta

import pytest

from pwfio import fit
from pwfio._types import Sport, StrokeType
from pwfio._util import exceptions
from pwfio._util.diagnostics import WarningCollector, WarningKind
from pwfio.fit import DecodedMessage


START = datetime(2024, 6, 1, 7, 0, 0)    # naive UTC, as fitparse gives


def msg(name, **fields):
    return DecodedMessage(name, fields)


def records(start, seconds, **fields):
    return [msg('record', timestamp=start + timedelta(seconds=i), **fields)
            for i in range(seconds)]


def session(sport, start, seconds, **fields):
    return msg('session', sport=sport, start_time=start,
               total_elapsed_time=float(seconds), **fields)


def lap(start, seconds, **fields):
    return msg('lap', start_time=start, total_elapsed_time=float(seconds),
               **fields)


def test_swim_session():
    lengths = []
    for i in range(10):
        active = i % 2 == 0
        lengths.append(msg(
            'length', start_time=START + timedelta(seconds=45 * i),
            total_elapsed_time=40.0 if active else 45.0,
            total_strokes=22 if active else 0,
            swim_stroke='freestyle',
            length_type='active' if active else 'idle'))
    messages = (
        [msg('file_id', manufacturer='garmin', product=3113, type='activity')]
        + lengths
        + [lap(START, 450), session('swimming', START, 450, pool_length=50.2)])

    warnings = WarningCollector()
    workout, = fit.read_messages(messages, warnings=warnings).workouts

    assert len(workout.segments) == 1
    segment = workout.segments[0]
    assert segment.sport is Sport.SWIMMING
    assert segment.swim.pool_length == '50 m'
    assert len(segment.lengths) == 10
    assert all(length.swolf >= 0 for length in segment.lengths)
    assert segment.lengths[0].swolf == 62
    assert segment.swim.active_lengths == 5
    assert segment.swim.stroke is StrokeType.FREESTYLE
    assert warnings.of_kind(WarningKind.VALUE_CLAMPED)


def test_multisport_segments():
    messages, t = [], START
    for sport in ('running', 'transition', 'cycling', 'transition', 'running'):
        messages += records(t, 60, heart_rate=140)
        messages += [lap(t, 60), session(sport, t, 60)]
        t += timedelta(seconds=60)

    workout, = fit.read_messages(messages).workouts

    assert [s.sport for s in workout.segments] == [
        Sport.RUNNING, Sport.CYCLING, Sport.RUNNING]
    assert workout.is_multi_sport
    assert len(workout.transitions) == 2
    first = workout.transitions[0]
    assert (first.from_sport, first.to_sport) == (Sport.RUNNING, Sport.CYCLING)
    assert first.duration == 60
    assert workout.duration == 300


def test_same_sport_sessions_merge():
    messages, t = [], START
    for _ in range(2):
        messages += records(t, 10, power=200)
        messages += [lap(t, 10), session(1, t, 10, total_distance=1000.0)]
        t += timedelta(seconds=10)

    workout, = fit.read_messages(messages).workouts

    assert len(workout.segments) == 1
    assert not workout.is_multi_sport
    segment = workout.segments[0]
    assert segment.sport is Sport.RUNNING
    assert len(segment.laps) == 2
    assert segment.distance == 2000.0
    assert segment.duration == 20


def test_merged_sessions_keep_device_power_metrics():
    messages, t = [], START
    for _ in range(2):
        messages += records(t, 60, power=200)
        messages += [lap(t, 60),
                     session('cycling', t, 60, threshold_power=250,
                             normalized_power=210)]
        t += timedelta(seconds=60)

    workout, = fit.read_messages(messages, ftp=300).workouts
    segment, = workout.segments
    metrics = segment.power_metrics

    assert metrics.ftp == 250
    assert metrics.normalized_power == pytest.approx(210)
    assert metrics.intensity_factor == pytest.approx(0.84)
    assert metrics.training_stress_score == pytest.approx(
        120 * 210 * 0.84 / (250 * 3600) * 100)
    assert metrics.total_work_kj == pytest.approx(24.0)
    assert metrics.avg_power == pytest.approx(200)


def test_merged_sessions_fall_back_to_supplied_ftp():
    messages, t = [], START
    for _ in range(2):
        messages += records(t, 60, power=200)
        messages += [lap(t, 60), session('cycling', t, 60)]
        t += timedelta(seconds=60)

    workout, = fit.read_messages(messages, ftp=250).workouts
    metrics = workout.segments[0].power_metrics

    assert metrics.ftp == 250
    assert metrics.normalized_power == pytest.approx(200)
    assert metrics.intensity_factor == pytest.approx(0.8)


def test_sessions_batched_at_the_end():
    run_start, bike_start = START, START + timedelta(minutes=1)
    messages = (records(run_start, 60) + [lap(run_start, 60)]
                + records(bike_start, 60) + [lap(bike_start, 60)]
                + [session('running', run_start, 60),
                   session('cycling', bike_start, 60)])

    workout, = fit.read_messages(messages).workouts

    run, bike = workout.segments
    assert run.n_points == 60 and bike.n_points == 60
    assert run.laps[0].start_time < bike.laps[0].start_time


def test_orphaned_lap_reference():
    messages = [lap(START, 60, session_index=3), session('running', START, 60)]
    with pytest.raises(exceptions.InvalidDataError):
        fit.read_messages(messages)


def test_session_claims_missing_laps():
    messages = [lap(START, 60),
                session('running', START, 60, first_lap_index=0, num_laps=2)]
    with pytest.raises(exceptions.InvalidDataError):
        fit.read_messages(messages)


def test_records_and_positions():
    messages = [
        msg('record', timestamp=START, position_lat=2**30,
            position_long=-2**31, heart_rate=120, enhanced_speed=3.5),
        msg('record', timestamp=START + timedelta(seconds=1),
            position_lat=0, position_long=0, heart_rate=130),
        lap(START, 2), session('running', START, 2)]

    workout, = fit.read_messages(messages).workouts
    first, second = workout.segments[0].laps[0].points

    assert first.latitude == 90.0 and first.longitude == -180.0
    assert first.speed == 3.5
    assert first.timestamp.tzinfo is not None
    assert not second.has_position
    assert workout.segments[0].avg_heart_rate == 125


def test_device_reported_power_metrics_win():
    messages = (records(START, 120, power=200)
                + [lap(START, 120),
                   session('cycling', START, 120, normalized_power=210,
                           threshold_power=250)])

    workout, = fit.read_messages(messages).workouts
    metrics = workout.segments[0].power_metrics

    assert metrics.normalized_power == 210
    assert metrics.ftp == 250
    assert metrics.avg_power == 200
    assert metrics.variability_index == pytest.approx(1.05)
    assert metrics.intensity_factor == pytest.approx(0.84)
    assert metrics.training_stress_score == pytest.approx(
        120 * 210 * 0.84 / (250 * 3600) * 100)


def test_supplied_ftp():
    messages = (records(START, 3600, power=250)
                + [lap(START, 3600), session(2, START, 3600)])
    workout, = fit.read_messages(messages, ftp=250).workouts
    metrics = workout.segments[0].power_metrics
    assert metrics.training_stress_score == pytest.approx(100.0)


def test_summary_only():
    messages = records(START, 40, power=150) + [
        lap(START, 40), session('cycling', START, 40)]
    warnings = WarningCollector()
    workout, = fit.read_messages(messages, summary_only=True,
                                 warnings=warnings).workouts

    assert workout.n_points == 0
    assert workout.segments[0].power_metrics.normalized_power == 150
    assert warnings.of_kind(WarningKind.TIME_SERIES_SKIPPED)


def test_unmapped_fields_and_messages():
    messages = (records(START, 3, left_right_balance=50)
                + [msg('hrv', time=(0.8,)), msg('hrv', time=(0.7,)),
                   lap(START, 3), session('running', START, 3)])
    warnings = WarningCollector()
    fit.read_messages(messages, warnings=warnings)

    missing = warnings.of_kind(WarningKind.MISSING_FIELD)
    assert len(missing) == 1
    assert 'record.left_right_balance' in missing[0].message
    assert '3 messages' in missing[0].message
    unsupported = warnings.of_kind(WarningKind.UNSUPPORTED_FEATURE)
    assert [w.path for w in unsupported] == ['hrv']


def test_no_sessions():
    messages = records(START, 5, heart_rate=100) + [lap(START, 5, sport=1)]
    warnings = WarningCollector()
    workout, = fit.read_messages(messages, warnings=warnings).workouts

    assert workout.sport is Sport.RUNNING
    assert workout.n_points == 5
    assert warnings.of_kind(WarningKind.DATA_QUALITY_ISSUE)


def test_nothing_to_read():
    with pytest.raises(exceptions.MissingRequiredFieldError):
        fit.read_messages([msg('file_id', type='activity')])


def test_devices():
    messages = [
        msg('file_id', manufacturer=1, product=3113, serial_number=123456),
        msg('device_info', device_index='creator', software_version=12.5),
        msg('device_info', device_index=1, antplus_device_type='heart_rate',
            manufacturer='garmin'),
        msg('device_info', device_index=2, device_type=11,
            manufacturer=9999, software_version=310),
        lap(START, 1), session('cycling', START, 1)]

    workout, = fit.read_messages(messages).workouts
    watch, hrm, pm = workout.devices

    assert watch.manufacturer == 'garmin'
    assert watch.product == 'Product #3113'
    assert watch.serial_number == '123456'
    assert watch.software_version == '12.50'
    assert hrm.device_type == 'heart_rate_monitor'
    assert pm.device_type == 'power_meter'
    assert pm.manufacturer == 'manufacturer #9999'
    assert pm.software_version == '3.10'
    assert workout.device is watch


def test_decoder_failure():
    with pytest.raises(exceptions.ReadError):
        fit.read(b'definitely not a FIT file')


def test_custom_decoder():
    class Canned:
        def decode(self, data):
            return [lap(START, 1), session('rowing', START, 1)]

    workout, = fit.read(b'', decoder=Canned()).workouts
    assert workout.sport is Sport.ROWING


@pytest.mark.parametrize('sport, sub_sport, expected', [
    (1, None, Sport.RUNNING),
    ('cycling', None, Sport.CYCLING),
    (3, None, Sport.TRANSITION),
    (5, 17, Sport.SWIMMING),
    ('training', 'strength_training', Sport.STRENGTH_TRAINING),
    ('fitness_equipment', 'indoor_rowing', Sport.ROWING),
    (4, None, Sport.CARDIO),
    (0, 43, Sport.YOGA),
    (0, None, Sport.OTHER),
    (99, 99, Sport.OTHER),
])
def test_sport_mapping(sport, sub_sport, expected):
    assert fit.map_sport(sport, sub_sport) is expected
