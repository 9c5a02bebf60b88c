#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Translate decoded FIT messages into the workout model.

Messages arrive in file order. A device writes the children of a session
(records, then lengths, then the lap that closes them) before the session
message itself, so grouping is done purely by position: no global index
is assumed.

"""
from collections import Counter, OrderedDict
from datetime import timedelta
import logging

from pwfio import tools
from pwfio._types import (
    DeviceInfo, History, Lap, PoolLength, PowerMetrics, Segment, Sport,
    StrokeType, TelemetryPoint, Transition, Workout)
from pwfio._util import exceptions
from pwfio._util.diagnostics import WarningCollector
from pwfio._util.misc import (
    max_or_none, mean_or_none, sum_or_none, to_utc)
from pwfio.analysis import (
    PoolLengthBins, compute_power_metrics, is_multi_sport,
    segment_boundaries, summarize_lengths, swolf)
from pwfio.analysis import power
from pwfio.analysis.multisport import transition_neighbours
from pwfio.fit import _mappings
from pwfio.fit._decoding import DecodedMessage, FitparseDecoder


logger = logging.getLogger(__name__)

CHILD_MESSAGES = ('lap', 'record', 'length')

INVALID_SEMICIRCLES = 0x7FFFFFFF
NULL_ISLAND = 0.001     # degrees; positions this close to (0, 0) are no-fix

# Fields consumed for each message type; anything else is reported.
MAPPED_FIELDS = {
    'file_id': {'type', 'manufacturer', 'product', 'garmin_product',
                'serial_number', 'time_created', 'number', 'product_name'},
    'device_info': {'device_index', 'device_type', 'antplus_device_type',
                    'manufacturer', 'product', 'garmin_product',
                    'serial_number', 'software_version', 'product_name',
                    'source_type'},
    'session': {'start_time', 'total_elapsed_time', 'total_timer_time',
                'total_distance', 'avg_heart_rate', 'max_heart_rate',
                'avg_power', 'max_power', 'avg_cadence', 'total_calories',
                'total_ascent', 'total_descent', 'sport', 'sub_sport',
                'normalized_power', 'training_stress_score',
                'intensity_factor', 'threshold_power', 'total_work',
                'pool_length', 'pool_length_unit', 'first_lap_index',
                'num_laps', 'num_lengths', 'num_active_lengths',
                'sport_index'},
    'lap': {'start_time', 'total_elapsed_time', 'total_timer_time',
            'total_distance', 'avg_heart_rate', 'max_heart_rate',
            'avg_cadence', 'avg_power', 'max_power', 'total_calories',
            'total_ascent', 'total_descent', 'sport', 'sub_sport',
            'session_index', 'first_length_index', 'num_lengths',
            'num_active_lengths', 'lap_trigger'},
    'record': {'position_lat', 'position_long', 'altitude',
               'enhanced_altitude', 'heart_rate', 'power', 'cadence',
               'temperature', 'speed', 'enhanced_speed', 'distance',
               'heading'},
    'length': {'start_time', 'total_elapsed_time', 'total_timer_time',
               'total_strokes', 'swim_stroke', 'length_type'},
}

# Present on most messages; nothing to carry over.
HOUSEKEEPING_FIELDS = frozenset((
    'timestamp', 'message_index', 'event', 'event_type', 'event_group',
))

# Structural messages that need no warning when left unread.
QUIET_MESSAGES = frozenset((
    'activity', 'event', 'file_creator', 'field_description',
    'developer_data_id',
))


class SessionGroup:
    """A session message and the children written ahead of it."""
    __slots__ = ('session', 'index', 'children')

    def __init__(self, session, index, children=()):
        self.session, self.index = session, index
        self.children = list(children)

    @property
    def start(self):
        return to_utc(self.session.get('start_time')
                      or self.session.get('timestamp'))

    @property
    def end(self):
        start = self.start
        elapsed = (self.session.get('total_elapsed_time')
                   or self.session.get('total_timer_time'))
        if start is None or elapsed is None:
            return None
        return start + timedelta(seconds=float(elapsed))


# Entry points
# ------------
def read(data, *, decoder=None, **kwargs):
    """Raw FIT bytes --> `History` holding exactly one workout.

    Parameters
    ----------
    data : bytes
    decoder : object, optional
        Anything with a ``decode(bytes)`` method returning decoded
        messages. Defaults to `FitparseDecoder`.
    **kwargs
        Passed through to `read_messages`.

    Raises
    ------
    ReadError
        If the decoder fails.
    """
    decoder = decoder if decoder is not None else FitparseDecoder()
    messages = decoder.decode(data)
    return read_messages(messages, **kwargs)


def read_messages(messages, *, summary_only=False, ftp=None, pool_bins=None,
                  warnings=None):
    """Decoded messages --> `History` holding exactly one workout.

    Parameters
    ----------
    messages : iterable of DecodedMessage
    summary_only : bool, optional
        Keep lap and session summaries but drop per-record points.
    ftp : float, optional
        Functional threshold power, used where the device recorded none.
    pool_bins : PoolLengthBins, optional
    warnings : WarningCollector, optional

    Raises
    ------
    InvalidDataError
        If sessions and laps reference each other inconsistently.
    MissingRequiredFieldError
        If the workout's start time can't be established.
    """
    if warnings is None:
        warnings = WarningCollector()
    reader = _FitReader(summary_only=summary_only, ftp=ftp,
                        pool_bins=pool_bins or PoolLengthBins(),
                        warnings=warnings)
    return History([reader.read(messages)])


# The reader proper
# -----------------
class _FitReader:

    def __init__(self, *, summary_only, ftp, pool_bins, warnings):
        self.summary_only = summary_only
        self.ftp = ftp
        self.pool_bins = pool_bins
        self.warnings = warnings
        self.unmapped = OrderedDict()       # (mesg, field) --> count
        self.unsupported = Counter()

    def read(self, messages):
        groups, file_ids, device_infos, n_laps = self._group(messages)
        self._check_structure(groups, n_laps)

        sports = [self._sport(g.session) for g in groups]
        entries = [(sport, sport.is_transition) for sport in sports]
        segments = []
        for span in segment_boundaries(entries):
            parts = [self._segment(groups[i]) for i in span.indices]
            segments.append(parts[0] if len(parts) == 1
                            else self._merge(parts))

        transitions = [
            self._transition(groups[i], from_sport, to_sport)
            for i, from_sport, to_sport in transition_neighbours(entries)]

        start = min((g.start for g in groups if g.start is not None),
                    default=None)
        if start is None:
            start = self._fallback_start(groups, file_ids)
        if start is None:
            raise exceptions.MissingRequiredFieldError(
                'start_time', 'no session, lap or record carries a time')

        if not segments:    # nothing but transitions
            segments.append(Segment(Sport.OTHER, start_time=start))
        for segment in segments:
            segment.ensure_lap()

        ends = [g.end for g in groups if g.end is not None]
        sport = segments[0].sport
        workout = Workout(
            start_time=start,
            end_time=max(ends) if ends else None,
            sport=sport,
            is_multi_sport=is_multi_sport(entries),
            title='%s Workout' % sport.value.replace('-', ' ').title(),
            devices=self._devices(file_ids, device_infos),
            segments=segments,
            transitions=transitions,
        ).close()

        self._flush_warnings()
        logger.debug('read FIT workout: %d segment(s), %d point(s)',
                     len(workout.segments), workout.n_points)
        return workout

    # Grouping
    # --------
    def _group(self, messages):
        groups, pending = [], []
        file_ids, device_infos = [], []
        n_laps = 0

        for message in messages:
            name = message.name
            if name == 'session':
                groups.append(SessionGroup(message, len(groups), pending))
                pending = []
                self._note_unmapped(message)
            elif name in CHILD_MESSAGES:
                pending.append(message)
                n_laps += name == 'lap'
                self._note_unmapped(message)
            elif name == 'file_id':
                file_ids.append(message)
                self._note_unmapped(message)
            elif name == 'device_info':
                device_infos.append(message)
                self._note_unmapped(message)
            elif name not in QUIET_MESSAGES:
                self.unsupported[name] += 1

        if not groups:
            if not pending:
                raise exceptions.MissingRequiredFieldError(
                    'session', 'the file holds no activity data')
            self.warnings.data_quality_issue(
                'no session messages; summarising laps and records instead',
                'session')
            groups.append(SessionGroup(
                self._synthetic_session(pending), 0, pending))
        elif pending:
            self.warnings.data_quality_issue(
                '%d message(s) after the final session were attached to it'
                % len(pending), 'session[%d]' % (len(groups) - 1))
            groups[-1].children.extend(pending)

        self._redistribute(groups)
        return groups, file_ids, device_infos, n_laps

    def _redistribute(self, groups):
        """Share children out among back-to-back sessions by time."""
        i = 0
        while i < len(groups):
            j = i + 1
            while j < len(groups) and not groups[j].children:
                j += 1
            batch = groups[i:j]
            if len(batch) > 1:
                pooled = [c for g in batch for c in g.children]
                for g in batch:
                    g.children = []
                for child in pooled:
                    _owner(batch, _child_time(child)).children.append(child)
            i = j

    def _check_structure(self, groups, n_laps):
        n_sessions = len(groups)
        for group in groups:
            for child in group.children:
                index = child.get('session_index')
                if child.name == 'lap' and index is not None \
                        and not 0 <= int(index) < n_sessions:
                    raise exceptions.InvalidDataError(
                        'lap references session %d but there are only %d'
                        % (index, n_sessions))
            first = group.session.get('first_lap_index')
            count = group.session.get('num_laps')
            if first is not None and count is not None \
                    and int(first) + int(count) > n_laps:
                raise exceptions.InvalidDataError(
                    'session %d claims laps %d-%d but the file has %d'
                    % (group.index, first, int(first) + int(count) - 1,
                       n_laps))

    # Conversion
    # ----------
    def _segment(self, group):
        session, path = group.session, 'session[%d]' % group.index
        sport = self._sport(session)

        laps, all_points = [], []
        for lap_message, records, lengths in _lap_buckets(group.children):
            points = [p for p in (self._point(r) for r in records)
                      if p is not None]
            all_points.extend(points)
            laps.append(self._lap(lap_message, points, lengths, sport))

        segment = Segment(
            sport,
            start_time=group.start,
            duration=_seconds(session),
            distance=_float(session.get('total_distance')),
            avg_heart_rate=session.get('avg_heart_rate'),
            max_heart_rate=session.get('max_heart_rate'),
            avg_power=session.get('avg_power'),
            max_power=session.get('max_power'),
            avg_cadence=session.get('avg_cadence'),
            calories=session.get('total_calories'),
            total_ascent=session.get('total_ascent'),
            total_descent=session.get('total_descent'),
            laps=laps,
        )
        _fill_from_points(segment, all_points)

        if sport is Sport.SWIMMING:
            raw_pool = session.get('pool_length')
            segment.swim = summarize_lengths(
                segment.lengths,
                None if raw_pool is None else float(raw_pool),
                bins=self.pool_bins, warnings=self.warnings,
                path=path + '.pool_length')

        segment.power_metrics = self._power_metrics(session, all_points, path)

        if self.summary_only and all_points:
            self.warnings.time_series_skipped(
                '%d record(s) summarised but not kept' % len(all_points),
                path)
        return segment

    def _lap(self, message, points, lengths, sport):
        lap = Lap(points=() if self.summary_only else points)
        if message is not None:
            lap.start_time = to_utc(message.get('start_time'))
            lap.duration = _seconds(message)
            lap.distance = _float(message.get('total_distance'))
            lap.avg_heart_rate = message.get('avg_heart_rate')
            lap.max_heart_rate = message.get('max_heart_rate')
            lap.avg_cadence = message.get('avg_cadence')
            lap.avg_power = message.get('avg_power')
            lap.max_power = message.get('max_power')
            lap.calories = message.get('total_calories')
            lap.total_ascent = message.get('total_ascent')
            lap.total_descent = message.get('total_descent')
        elif points:
            lap.start_time = points[0].timestamp
            lap.duration = (points[-1].timestamp
                            - points[0].timestamp).total_seconds()
        _fill_from_points(lap, points)

        if sport is Sport.SWIMMING:
            for length in lengths:
                lap.add_length(self._length(length))
        elif lengths:
            self.warnings.data_quality_issue(
                '%d pool length(s) recorded outside a swim' % len(lengths),
                'length')
        return lap

    def _point(self, record):
        timestamp = to_utc(record.get('timestamp'))
        if timestamp is None:
            self.warnings.data_quality_issue('record without a timestamp',
                                             'record.timestamp')
            return None

        lat = _degrees(record.get('position_lat'))
        lon = _degrees(record.get('position_long'))
        if lat is not None and lon is not None \
                and abs(lat) < NULL_ISLAND and abs(lon) < NULL_ISLAND:
            lat = lon = None

        return TelemetryPoint(
            timestamp,
            latitude=lat,
            longitude=lon,
            altitude=_float(record.get('enhanced_altitude',
                                       record.get('altitude'))),
            heart_rate=record.get('heart_rate'),
            power=record.get('power'),
            cadence=record.get('cadence'),
            temperature=record.get('temperature'),
            speed=_float(record.get('enhanced_speed', record.get('speed'))),
            heading=_float(record.get('heading')),
            distance=_float(record.get('distance')),
        )

    def _length(self, message):
        duration = _seconds(message)
        strokes = message.get('total_strokes')
        length_type = _mappings.enum_name(message.get('length_type'),
                                          _mappings.LENGTH_TYPES)
        return PoolLength(
            stroke=self._stroke(message.get('swim_stroke')),
            stroke_count=strokes,
            duration=duration,
            active=length_type != 'idle',
            swolf=swolf(duration, strokes),
            start_time=to_utc(message.get('start_time')),
        )

    def _stroke(self, value):
        name = _mappings.enum_name(value, _mappings.SWIM_STROKE_CODES)
        if name is None:
            return None
        stroke = _mappings.SWIM_STROKES.get(name)
        if stroke is None:
            fallback = StrokeType.MIXED if name == 'im' else StrokeType.FREESTYLE
            self.warnings.value_clamped('length.swim_stroke', name,
                                        fallback.value)
            stroke = fallback
        return stroke

    def _power_metrics(self, session, points, path):
        threshold = session.get('threshold_power') or self.ftp
        total_work = session.get('total_work')
        reported = PowerMetrics(
            normalized_power=_float(session.get('normalized_power')),
            training_stress_score=_float(
                session.get('training_stress_score')),
            intensity_factor=_float(session.get('intensity_factor')),
            total_work_kj=(None if total_work is None
                           else float(total_work) / 1000),
            ftp=threshold,
            avg_power=_float(session.get('avg_power')),
            max_power=_float(session.get('max_power')),
        )
        computed = compute_power_metrics(points, ftp=threshold,
                                         warnings=self.warnings, path=path)
        device_np = reported.normalized_power
        metrics = reported.fill_from(computed)

        if device_np is not None:
            # Derived values follow the device's NP, not ours.
            timer = _float(session.get('total_timer_time')) or _seconds(session)
            if session.get('intensity_factor') is None:
                metrics.intensity_factor = power.intensity_factor(
                    device_np, threshold)
            if session.get('training_stress_score') is None:
                metrics.training_stress_score = power.training_stress_score(
                    device_np, threshold, timer)
            metrics.variability_index = power.variability_index(
                device_np, metrics.avg_power)
        return None if metrics.is_empty else metrics

    def _merge(self, segments):
        """Fold consecutive same-sport segments into the first."""
        first = segments[0]
        merged = Segment(
            first.sport,
            start_time=first.start_time,
            distance=sum_or_none(s.distance for s in segments),
            max_heart_rate=max_or_none(s.max_heart_rate for s in segments),
            max_power=max_or_none(s.max_power for s in segments),
            calories=sum_or_none(s.calories for s in segments),
            total_ascent=sum_or_none(s.total_ascent for s in segments),
            total_descent=sum_or_none(s.total_descent for s in segments),
            laps=[lap for s in segments for lap in s.laps],
        )
        ends = [s.end_time for s in segments if s.end_time is not None]
        if first.start_time is not None and ends:
            merged.duration = (max(ends) - first.start_time).total_seconds()
        for field in ('avg_heart_rate', 'avg_power', 'avg_cadence'):
            setattr(merged, field, _weighted_mean(segments, field))

        if merged.sport is Sport.SWIMMING:
            raw = next((s.swim.raw_length for s in segments
                        if s.swim is not None), None)
            merged.swim = summarize_lengths(
                merged.lengths, raw, bins=self.pool_bins,
                warnings=WarningCollector())    # already reported per session

        points = list(merged.iter_points())
        merged.power_metrics = self._merged_power_metrics(
            segments, points, merged.duration)
        return merged

    def _merged_power_metrics(self, segments, points, duration):
        """Pool each session's metrics, topping up from the joined series."""
        threshold = next((s.power_metrics.ftp for s in segments
                          if s.power_metrics and s.power_metrics.ftp),
                         None) or self.ftp
        computed = compute_power_metrics(
            points, ftp=threshold,
            warnings=WarningCollector())    # already reported per session
        if computed is None and not any(s.power_metrics for s in segments):
            return None

        each = [s.power_metrics or PowerMetrics() for s in segments]
        pooled_np = _pooled(segments, 'normalized_power', exponent=4)
        pooled_tss = _sum_all(m.training_stress_score for m in each)
        pooled = PowerMetrics(
            normalized_power=pooled_np,
            training_stress_score=pooled_tss,
            total_work_kj=_sum_all(m.total_work_kj for m in each),
            ftp=threshold,
            avg_power=_pooled(segments, 'avg_power'),
            max_power=max_or_none(m.max_power for m in each),
        )
        metrics = pooled.fill_from(computed)

        if pooled_np is not None:
            metrics.intensity_factor = power.intensity_factor(
                pooled_np, threshold)
            metrics.variability_index = power.variability_index(
                pooled_np, metrics.avg_power)
            if pooled_tss is None:
                metrics.training_stress_score = power.training_stress_score(
                    pooled_np, threshold, duration)
        return None if metrics.is_empty else metrics

    def _transition(self, group, from_sport, to_sport):
        return Transition(
            from_sport=from_sport,
            to_sport=to_sport,
            start_time=group.start,
            duration=_seconds(group.session),
            avg_heart_rate=group.session.get('avg_heart_rate'),
        )

    def _devices(self, file_ids, device_infos):
        devices = []
        for message in file_ids[:1]:
            devices.append(DeviceInfo(
                manufacturer=_mappings.map_manufacturer(
                    message.get('manufacturer')),
                product=_product(message),
                serial_number=_text(message.get('serial_number')),
            ))
        for message in device_infos:
            device_type = _mappings.map_device_type(
                message.get('antplus_device_type',
                            message.get('device_type')))
            index = message.get('device_index')
            if index in (0, 'creator') and devices:
                # the recording device, already known from file_id
                creator = devices[0]
                creator.software_version = _software_version(
                    message.get('software_version'))
                creator.device_type = creator.device_type or device_type
                continue
            if device_type is None:
                continue
            devices.append(DeviceInfo(
                manufacturer=_mappings.map_manufacturer(
                    message.get('manufacturer')),
                product=_product(message),
                serial_number=_text(message.get('serial_number')),
                software_version=_software_version(
                    message.get('software_version')),
                device_type=device_type,
            ))
        return devices

    # Helpers
    # -------
    def _sport(self, session):
        return _mappings.map_sport(session.get('sport'),
                                   session.get('sub_sport'))

    def _synthetic_session(self, children):
        laps = [c for c in children if c.name == 'lap']
        records = [c for c in children if c.name == 'record']
        fields = {}
        for source in laps[:1] + records[:1]:
            fields.setdefault('start_time', source.get('start_time')
                              or source.get('timestamp'))
        if laps:
            fields['sport'] = laps[0].get('sport')
            fields['sub_sport'] = laps[0].get('sub_sport')
        return DecodedMessage('session', fields)

    def _fallback_start(self, groups, file_ids):
        for group in groups:
            for child in group.children:
                when = _child_time(child)
                if when is not None:
                    return when
        for message in file_ids:
            if message.get('time_created') is not None:
                return to_utc(message.get('time_created'))
        return None

    def _note_unmapped(self, message):
        mapped = MAPPED_FIELDS.get(message.name, set())
        for field, value in message.fields.items():
            if value is None or field in mapped \
                    or field in HOUSEKEEPING_FIELDS:
                continue
            if field.startswith('unknown'):
                field = '<vendor fields>'
            key = (message.name, field)
            self.unmapped[key] = self.unmapped.get(key, 0) + 1

    def _flush_warnings(self):
        for (mesg, field), count in self.unmapped.items():
            self.warnings.missing_field(
                '%s.%s' % (mesg, field),
                'no destination in the workout model (%d message%s)'
                % (count, '' if count == 1 else 's'))
        for mesg, count in self.unsupported.items():
            self.warnings.unsupported_feature(
                "FIT '%s' messages (%d)" % (mesg, count), mesg)


# Module-level helpers
# --------------------
def _lap_buckets(children):
    """Yield (lap message or None, records, lengths) in order.

    Records and lengths belong to the lap message that follows them; any
    stragglers after the final lap are folded into it.
    """
    buckets, records, lengths = [], [], []
    for child in children:
        if child.name == 'lap':
            buckets.append([child, records, lengths])
            records, lengths = [], []
        elif child.name == 'record':
            records.append(child)
        else:
            lengths.append(child)
    if records or lengths:
        if buckets:
            buckets[-1][1].extend(records)
            buckets[-1][2].extend(lengths)
        else:
            buckets.append([None, records, lengths])
    return buckets


def _child_time(child):
    return to_utc(child.get('start_time') or child.get('timestamp'))


def _owner(groups, when):
    """The group whose time window holds `when` (else the latest started)."""
    if when is None:
        return groups[0]
    for group in groups:
        if group.start is not None and group.end is not None \
                and group.start <= when < group.end:
            return group
    started = [g for g in groups if g.start is not None and g.start <= when]
    return started[-1] if started else groups[0]


def _fill_from_points(target, points):
    """Aggregate from points only where the device reported nothing."""
    if not points:
        return
    fill = (
        ('avg_heart_rate', lambda: _rounded(mean_or_none(p.heart_rate for p in points))),
        ('max_heart_rate', lambda: max_or_none(p.heart_rate for p in points)),
        ('avg_power', lambda: _rounded(mean_or_none(p.power for p in points))),
        ('max_power', lambda: max_or_none(p.power for p in points)),
        ('avg_cadence', lambda: _rounded(mean_or_none(p.cadence for p in points))),
        ('distance', lambda: max_or_none(p.distance for p in points)),
    )
    for field, compute in fill:
        if getattr(target, field) is None:
            setattr(target, field, compute())


def _weighted_mean(segments, field):
    pairs = [(getattr(s, field), s.duration or 0) for s in segments
             if getattr(s, field) is not None]
    if not pairs:
        return None
    weight = sum(w for _, w in pairs)
    if not weight:
        return _rounded(mean_or_none(v for v, _ in pairs))
    return _rounded(sum(v * w for v, w in pairs) / weight)


def _pooled(segments, field, exponent=1):
    """Duration-weighted power mean of a per-segment power metric."""
    pairs = [(getattr(s.power_metrics, field, None), s.duration)
             for s in segments]
    if any(value is None or not weight for value, weight in pairs):
        return None
    total = sum(weight for _, weight in pairs)
    pooled = sum(value ** exponent * weight for value, weight in pairs) / total
    return float(pooled ** (1 / exponent))


def _sum_all(values):
    values = list(values)
    if not values or any(v is None for v in values):
        return None
    return sum(values)


def _rounded(value):
    return None if value is None else int(round(value))


def _seconds(message):
    value = message.get('total_elapsed_time', message.get('total_timer_time'))
    return None if value is None else float(value)


def _float(value):
    return None if value is None else float(value)


def _text(value):
    return None if value is None else str(value)


def _degrees(value):
    """Semicircles (ints) --> degrees; floats are taken as degrees already."""
    if value is None:
        return None
    if isinstance(value, int):
        if value == INVALID_SEMICIRCLES:
            return None
        return float(tools.semicircles_to_degrees(value))
    return float(value)


def _product(message):
    name = message.get('product_name')
    if name is not None:
        return str(name)
    product = message.get('garmin_product', message.get('product'))
    if product is None:
        return None
    if isinstance(product, int):
        return 'Product #%d' % product
    return str(product)


def _software_version(value):
    if value is None:
        return None
    if isinstance(value, int):      # raw, scaled by 100
        return '%d.%02d' % divmod(value, 100)
    return '%.2f' % float(value)
