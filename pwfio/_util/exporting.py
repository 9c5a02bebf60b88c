#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Bookkeeping shared by the writers of formats narrower than the model.

"""


def report_omissions(workout, path, warnings, *, fmt):
    """Warn about everything in `workout` the `fmt` writer drops.

    Strength sets, RPE, pool lengths, derived power metrics and transitions
    have nowhere to go in the GPS/lap formats.
    """
    laps = workout.laps
    n_strength = sum(1 for lap in laps if lap.is_strength)
    if n_strength:
        warnings.unsupported_feature(
            '%s has no place for strength sets (reps/weight); %d set(s) '
            'omitted' % (fmt, n_strength), path)
    if any(lap.rpe is not None for lap in laps):
        warnings.unsupported_feature(
            '%s has no place for RPE; omitted' % fmt, path)
    n_lengths = sum(len(lap.lengths) for lap in laps)
    if n_lengths:
        warnings.unsupported_feature(
            '%s has no place for pool lengths; %d length(s) omitted'
            % (fmt, n_lengths), path)
    if any(s.power_metrics is not None for s in workout.segments):
        warnings.unsupported_feature(
            '%s has no place for power metrics (NP/TSS/IF); omitted' % fmt,
            path)
    if workout.transitions:
        warnings.unsupported_feature(
            '%s has no place for transitions; %d omitted'
            % (fmt, len(workout.transitions)), path)
