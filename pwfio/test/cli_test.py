#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import pytest
import yaml

from pwfio._util.cli import parse


HISTORY = """\
history_version: 2
exported_at: '2024-05-04T12:00:00Z'
workouts:
  - started_at: '2024-05-04T07:00:00Z'
    sport: running
    exercises:
      - name: Easy run
        sets:
          - duration_sec: 3
            telemetry:
              time_series:
                timestamps: ['2024-05-04T07:00:00Z', '2024-05-04T07:00:01Z',
                             '2024-05-04T07:00:02Z']
                heart_rate: [120, 121, 122]
                latitude: [51.5, 51.5001, 51.5002]
                longitude: [-0.1, -0.1, -0.1]
"""


@pytest.fixture
def source(tmp_path):
    path = tmp_path / 'history.yaml'
    path.write_text(HISTORY, encoding='utf-8')
    return path


def test_convert(source, tmp_path, capsys):
    dest = tmp_path / 'run.gpx'
    assert parse(['convert', '--to', 'gpx', str(source), str(dest)]) == 0
    text = dest.read_text(encoding='utf-8')
    assert text.count('<trkpt') == 3
    assert capsys.readouterr().err == ''


def test_convert_to_stdout(source, capsys):
    code = parse(['convert', '--from', 'pwf', '--to', 'csv',
                  '--columns', 'heart_rate', str(source), '-'])
    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == 'workout_label,timestamp,elapsed_sec,heart_rate'
    assert len(lines) == 4


def test_summary_only_and_verbose(source, tmp_path, capsys):
    dest = tmp_path / 'out.yaml'
    code = parse(['convert', '--to', 'pwf', '--summary-only', '--verbose',
                  str(source), str(dest)])
    assert code == 0
    document = yaml.safe_load(dest.read_text(encoding='utf-8'))
    assert 'time_series' not in str(document)
    err = capsys.readouterr().err
    assert 'time-series-skipped' in err
    assert 'warning(s)' in err


def test_missing_source(tmp_path, capsys):
    code = parse(['convert', '--to', 'pwf', str(tmp_path / 'gone.fit'),
                  str(tmp_path / 'out.yaml')])
    assert code == 1
    assert 'gone.fit' in capsys.readouterr().err


def test_unknown_extension(tmp_path, capsys):
    path = tmp_path / 'notes.txt'
    path.write_text('hello')
    assert parse(['convert', '--to', 'pwf', str(path), '-']) == 1
    assert 'extension' in capsys.readouterr().err


def test_conversion_failure(tmp_path, capsys):
    path = tmp_path / 'broken.gpx'
    path.write_text('<gpx><trk>')
    assert parse(['convert', '--to', 'pwf', str(path), '-']) == 1
    assert 'error' in capsys.readouterr().err


def test_source_that_is_not_utf8(tmp_path, capsys):
    path = tmp_path / 'latin1.gpx'
    path.write_bytes(b'<gpx>\xff\xfe</gpx>')
    assert parse(['convert', '--to', 'pwf', str(path), '-']) == 1
    assert 'UTF-8' in capsys.readouterr().err


@pytest.mark.parametrize('argv', [
    ['convert', '--to', 'fit', 'a.yaml', 'b.fit'],
    ['convert', 'a.yaml', 'b.gpx'],
    ['convert', '--to', 'csv', '--columns', 'vo2max', 'a.yaml', 'b.csv'],
    [],
])
def test_usage_errors(argv):
    with pytest.raises(SystemExit) as info:
        parse(argv)
    assert info.value.code == 2
