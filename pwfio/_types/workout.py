#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The canonical, format-neutral workout model.

Every reader produces a `History` of these and every writer consumes one.
Anything a source didn't provide is None, never a zero stand-in.

    History
    └── Workout (1..n)
        ├── DeviceInfo (0..n)
        ├── Transition (0..n)
        └── Segment (1..n)
            ├── SwimSummary, PowerMetrics (optional)
            └── Lap (1..n)
                ├── TelemetryPoint (0..n, time ordered)
                └── PoolLength (0..n)

"""
from datetime import timedelta

from pwfio.tools import BoundingBox
from pwfio._types.sports import Sport


class _Record:
    """Plain slotted container with keyword construction."""
    __slots__ = ()

    def __repr__(self):
        shown = ('%s=%r' % (name, getattr(self, name))
                 for name in self.__slots__
                 if not isinstance(getattr(self, name), (list, BoundingBox))
                 and getattr(self, name) is not None)
        return '%s(%s)' % (type(self).__name__, ', '.join(shown))

    def _set_fields(self, fields, values):
        unknown = set(values) - set(fields)
        if unknown:
            raise TypeError('%s got unexpected field(s): %s' % (
                type(self).__name__, ', '.join(sorted(unknown))))
        for name in fields:
            setattr(self, name, values.get(name))


class TelemetryPoint(_Record):
    """One sensor/GPS sample. Only `timestamp` is required."""
    __slots__ = ('timestamp', 'latitude', 'longitude', 'altitude',
                 'heart_rate', 'power', 'cadence', 'temperature', 'speed',
                 'heading', 'distance')

    def __init__(self, timestamp, **fields):
        if timestamp is None:
            raise ValueError('a telemetry point needs a timestamp')
        self.timestamp = timestamp
        self._set_fields(self.__slots__[1:], fields)

    @property
    def has_position(self):
        return self.latitude is not None and self.longitude is not None


class PoolLength(_Record):
    __slots__ = ('stroke', 'stroke_count', 'duration', 'active', 'swolf',
                 'start_time')

    def __init__(self, *, stroke=None, stroke_count=None, duration=None,
                 active=True, swolf=None, start_time=None):
        self.stroke = stroke
        self.stroke_count = stroke_count
        self.duration = duration
        self.active = active
        self.swolf = swolf
        self.start_time = start_time


class SwimSummary(_Record):
    """Pool swim digest; `pool_length` is the bin label, e.g. "50 m"."""
    __slots__ = ('pool_length', 'nominal_length', 'unit', 'raw_length',
                 'total_lengths', 'active_lengths', 'swolf_avg', 'stroke')

    def __init__(self, **fields):
        self._set_fields(self.__slots__, fields)


class PowerMetrics(_Record):
    __slots__ = ('normalized_power', 'training_stress_score',
                 'intensity_factor', 'variability_index', 'total_work_kj',
                 'ftp', 'avg_power', 'max_power')

    def __init__(self, **fields):
        self._set_fields(self.__slots__, fields)

    @property
    def is_empty(self):
        return all(getattr(self, name) is None for name in self.__slots__)

    def fill_from(self, other):
        """Take values from `other` only where this one has none."""
        if other is None:
            return self
        for name in self.__slots__:
            if getattr(self, name) is None:
                setattr(self, name, getattr(other, name))
        return self


class DeviceInfo(_Record):
    __slots__ = ('manufacturer', 'product', 'serial_number',
                 'software_version', 'device_type')

    def __init__(self, **fields):
        self._set_fields(self.__slots__, fields)


class Transition(_Record):
    """The gap between two segments of a multi-sport workout."""
    __slots__ = ('from_sport', 'to_sport', 'start_time', 'duration',
                 'avg_heart_rate')

    def __init__(self, **fields):
        self._set_fields(self.__slots__, fields)


class Lap(_Record):
    """One recorded interval (or, for strength work, one set)."""
    __slots__ = ('start_time', 'duration', 'distance', 'avg_heart_rate',
                 'max_heart_rate', 'avg_cadence', 'avg_power', 'max_power',
                 'calories', 'total_ascent', 'total_descent', 'name',
                 'modality', 'reps', 'weight_kg', 'rpe', 'notes',
                 'points', 'lengths', 'bbox')

    def __init__(self, **fields):
        points = fields.pop('points', ())
        lengths = fields.pop('lengths', ())
        self._set_fields(self.__slots__[:-3], fields)
        self.points, self.lengths = [], list(lengths)
        self.bbox = BoundingBox()
        for point in points:
            self.add_point(point)

    def add_point(self, point):
        """Insert keeping time order; ties go after existing equals."""
        points = self.points
        i = len(points)
        while i and points[i - 1].timestamp > point.timestamp:
            i -= 1
        points.insert(i, point)
        self.bbox.extend(point.latitude, point.longitude)

    def add_length(self, length):
        self.lengths.append(length)

    @property
    def end_time(self):
        if self.start_time is not None and self.duration is not None:
            return self.start_time + timedelta(seconds=self.duration)
        if self.points:
            return self.points[-1].timestamp
        return None

    @property
    def is_strength(self):
        return self.reps is not None or self.weight_kg is not None


class Segment(_Record):
    """A contiguous block of a single sport."""
    __slots__ = ('sport', 'start_time', 'duration', 'distance',
                 'avg_heart_rate', 'max_heart_rate', 'avg_power', 'max_power',
                 'avg_cadence', 'calories', 'total_ascent', 'total_descent',
                 'name', 'swim', 'power_metrics', 'laps')

    def __init__(self, sport=Sport.OTHER, **fields):
        laps = fields.pop('laps', ())
        self.sport = sport
        self._set_fields(self.__slots__[1:-1], fields)
        self.laps = list(laps)

    def add_lap(self, lap):
        self.laps.append(lap)

    def ensure_lap(self):
        """Synthesise a single lap spanning the segment if there are none."""
        if not self.laps:
            self.laps.append(Lap(
                start_time=self.start_time, duration=self.duration,
                distance=self.distance, avg_heart_rate=self.avg_heart_rate,
                max_heart_rate=self.max_heart_rate,
                avg_cadence=self.avg_cadence, avg_power=self.avg_power,
                max_power=self.max_power, calories=self.calories))
        return self.laps

    def iter_points(self):
        for lap in self.laps:
            yield from lap.points

    @property
    def n_points(self):
        return sum(len(lap.points) for lap in self.laps)

    @property
    def lengths(self):
        return [length for lap in self.laps for length in lap.lengths]

    @property
    def bbox(self):
        box = BoundingBox()
        for lap in self.laps:
            box.merge(lap.bbox)
        return box

    @property
    def end_time(self):
        if self.start_time is not None and self.duration is not None:
            return self.start_time + timedelta(seconds=self.duration)
        ends = [lap.end_time for lap in self.laps if lap.end_time is not None]
        return max(ends) if ends else None


class Workout(_Record):
    __slots__ = ('start_time', 'end_time', 'duration', 'sport',
                 'is_multi_sport', 'title', 'notes', 'devices', 'segments',
                 'transitions')

    def __init__(self, *, start_time, end_time=None, duration=None,
                 sport=Sport.OTHER, is_multi_sport=False, title=None,
                 notes=None, devices=(), segments=(), transitions=()):
        self.start_time = start_time
        self.end_time = end_time
        self.duration = duration
        self.sport = sport
        self.is_multi_sport = is_multi_sport
        self.title = title
        self.notes = notes
        self.devices = list(devices)
        self.segments = list(segments)
        self.transitions = list(transitions)

    def add_segment(self, segment):
        self.segments.append(segment)

    @property
    def device(self):
        """The recording device (the first one listed), if known."""
        return self.devices[0] if self.devices else None

    @property
    def laps(self):
        return [lap for segment in self.segments for lap in segment.laps]

    def iter_points(self):
        for segment in self.segments:
            yield from segment.iter_points()

    @property
    def n_points(self):
        return sum(segment.n_points for segment in self.segments)

    @property
    def bbox(self):
        box = BoundingBox()
        for segment in self.segments:
            box.merge(segment.bbox)
        return box

    def close(self):
        """Fill end time and duration from whichever of them is known."""
        if self.end_time is None:
            if self.duration is not None:
                self.end_time = self.start_time + timedelta(
                    seconds=self.duration)
            else:
                ends = [s.end_time for s in self.segments
                        if s.end_time is not None]
                self.end_time = max(ends) if ends else None
        if self.duration is None and self.end_time is not None:
            self.duration = (self.end_time - self.start_time).total_seconds()
        return self


class History(_Record):
    """What one conversion reads or writes: an ordered set of workouts."""
    __slots__ = ('workouts', 'exported_at', 'source_app',
                 'source_app_version', 'source_platform')

    def __init__(self, workouts=(), *, exported_at=None, source_app=None,
                 source_app_version=None, source_platform=None):
        self.workouts = list(workouts)
        self.exported_at = exported_at
        self.source_app = source_app
        self.source_app_version = source_app_version
        self.source_platform = source_platform

    def __iter__(self):
        return iter(self.workouts)

    def __len__(self):
        return len(self.workouts)
