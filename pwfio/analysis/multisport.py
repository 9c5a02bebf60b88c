#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Multi-sport segmentation.

Input is an ordered sequence of ``(sport, is_transition)`` pairs, one per
session of the source. Transitions never become segments, and
back-to-back sessions of the same sport with no transition between them
merge into one.

    >>> spans = segment_boundaries([('run', False), ('T1', True),
    ...                             ('bike', False)])
    >>> [span.sport for span in spans]
    ['run', 'bike']

"""


class SegmentSpan:
    """Which source entries make up one segment."""
    __slots__ = ('sport', 'indices', 'transitions_before')

    def __init__(self, sport, indices, transitions_before=()):
        self.sport = sport
        self.indices = list(indices)
        self.transitions_before = list(transitions_before)

    def __repr__(self):
        return 'SegmentSpan(%r, %r)' % (self.sport, self.indices)


def segment_boundaries(entries):
    """Group ``(sport, is_transition)`` pairs into segment spans."""
    spans, pending = [], []
    for i, (sport, is_transition) in enumerate(entries):
        if is_transition:
            pending.append(i)
        elif spans and spans[-1].sport == sport and not pending:
            spans[-1].indices.append(i)
        else:
            spans.append(SegmentSpan(sport, [i], pending))
            pending = []
    return spans


def transition_neighbours(entries):
    """Yield ``(index, from_sport, to_sport)`` for each transition entry.

    Either sport is None when the transition opens or closes the sequence.
    """
    entries = list(entries)
    for i, (_, is_transition) in enumerate(entries):
        if not is_transition:
            continue
        before = [s for s, t in entries[:i] if not t]
        after = [s for s, t in entries[i + 1:] if not t]
        yield (i, before[-1] if before else None, after[0] if after else None)


def is_multi_sport(entries):
    """At least two distinct sports once transitions are set aside."""
    return len({sport for sport, is_transition in entries
                if not is_transition}) >= 2


def detect_multi_sport(workout):
    """(Re)compute and set `workout.is_multi_sport` from its segments.

    Running this any number of times gives the same answer.
    """
    entries = [(segment.sport, segment.sport.is_transition)
               for segment in workout.segments]
    workout.is_multi_sport = is_multi_sport(entries)
    return workout.is_multi_sport
