#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Structural checks for PWF documents, history exports and plans alike.

Problems are reported, never raised: `validate` always returns a
`ValidationReport`, and it's up to the caller to decide what an error
means (see ``pwfio.conversion.convert``).

"""
from datetime import datetime
import logging
import re

import yaml

from pwfio._util.misc import to_utc


logger = logging.getLogger(__name__)

ERROR, WARNING = 'error', 'warning'

HISTORY_VERSIONS = (1, 2)
PLAN_VERSIONS = (1,)

MAX_TITLE = 80
MAX_GLOSSARY = 100
MAX_TERM = 50
MAX_DEFINITION = 500

TERM_CHARACTERS = re.compile(r"^[\w \-']*$")


class ValidationIssue:
    __slots__ = ('path', 'message', 'code', 'severity')

    def __init__(self, path, message, code=None, severity=ERROR):
        self.path = path
        self.message = message
        self.code = code
        self.severity = severity

    def __repr__(self):
        return 'ValidationIssue(%r, %r, code=%r, severity=%r)' % (
            self.path, self.message, self.code, self.severity)

    def __str__(self):
        code = '%s ' % self.code if self.code else ''
        return '%s%s: %s' % (code, self.path or '<document>', self.message)

    def as_dict(self):
        return {'path': self.path, 'message': self.message,
                'code': self.code, 'severity': self.severity}


class ValidationReport:
    """Errors make a document invalid; warnings don't."""

    def __init__(self, errors=(), warnings=()):
        self.errors = list(errors)
        self.warnings = list(warnings)

    @property
    def is_valid(self):
        return not self.errors

    @property
    def has_warnings(self):
        return bool(self.warnings)

    @property
    def issues(self):
        return self.errors + self.warnings

    def codes(self):
        return [issue.code for issue in self.issues if issue.code]

    def error(self, path, message, code=None):
        self.errors.append(ValidationIssue(path, message, code, ERROR))

    def warning(self, path, message, code=None):
        self.warnings.append(ValidationIssue(path, message, code, WARNING))

    def __repr__(self):
        return '<ValidationReport: %d error(s), %d warning(s)>' % (
            len(self.errors), len(self.warnings))


def validate(document):
    """Check a PWF document.

    Parameters
    ----------
    document : str, bytes or dict
        YAML text or an already-loaded mapping. Plans are recognised by
        their ``plan_version`` key, anything else is treated as a history.

    Returns
    -------
    ValidationReport
    """
    report = ValidationReport()
    if isinstance(document, (bytes, bytearray)):
        document = document.decode('utf-8')
    if isinstance(document, str):
        try:
            document = yaml.safe_load(document)
        except yaml.YAMLError as e:
            report.error('', str(e))
            return report
    if not isinstance(document, dict):
        report.error('', 'a PWF document must be a mapping')
        return report

    if 'plan_version' in document and 'history_version' not in document:
        _validate_plan(document, report)
    else:
        _validate_history(document, report)

    logger.debug('validated PWF document: %r', report)
    return report


def _validate_history(doc, report):
    version = doc.get('history_version')
    if version not in HISTORY_VERSIONS:
        report.error('history_version',
                     'Unsupported history_version: %s. Supported versions: %s.'
                     % (version, ', '.join(map(str, HISTORY_VERSIONS))),
                     'PWF-H001')
    if not doc.get('exported_at'):
        report.error('exported_at', 'exported_at timestamp is required',
                     'PWF-H002')

    for w, workout in enumerate(_entries(doc, 'workouts')):
        path = 'workouts[%d]' % w
        if not workout.get('date'):
            report.error(path + '.date', 'Workout date is required',
                         'PWF-H101')
        exercises = _entries(workout, 'exercises')
        if not exercises:
            report.warning(path + '.exercises', 'Workout has no exercises',
                           'PWF-H102')
        for e, exercise in enumerate(exercises):
            _validate_exercise(exercise, '%s.exercises[%d]' % (path, e),
                               report)

    for r, record in enumerate(_entries(doc, 'personal_records')):
        path = 'personal_records[%d]' % r
        if not record.get('exercise_name'):
            report.error(path + '.exercise_name',
                         'Personal record must have exercise_name',
                         'PWF-H401')
        if not record.get('achieved_at'):
            report.error(path + '.achieved_at',
                         'Personal record must have achieved_at date',
                         'PWF-H402')

    for m, measurement in enumerate(_entries(doc, 'body_measurements')):
        path = 'body_measurements[%d]' % m
        if not measurement.get('date'):
            report.error(path + '.date', 'Body measurement must have date',
                         'PWF-H501')
        values = ('weight_kg', 'weight_lb', 'body_fat_percent',
                  'measurements')
        if all(measurement.get(key) is None for key in values):
            report.warning(path,
                           'Body measurement entry has no recorded values',
                           'PWF-H502')


def _validate_exercise(exercise, path, report):
    if not exercise.get('name'):
        report.error(path + '.name', 'Exercise name is required', 'PWF-H201')
    sets = _entries(exercise, 'sets')
    if not sets:
        report.warning(path + '.sets', 'Exercise has no recorded sets',
                       'PWF-H202')

    for s, entry in enumerate(sets):
        set_path = '%s.sets[%d]' % (path, s)
        metrics = ('reps', 'weight_kg', 'weight_lb', 'duration_sec',
                   'distance_meters')
        if all(entry.get(key) is None for key in metrics):
            report.warning(set_path, 'Set has no recorded metrics '
                           '(reps, weight, duration, or distance)', 'PWF-H301')
        rpe, rir = entry.get('rpe'), entry.get('rir')
        if _is_number(rpe) and not 0 <= rpe <= 10:
            report.warning(set_path + '.rpe',
                           'RPE should be between 0 and 10, got %s' % rpe,
                           'PWF-H302')
        if _is_number(rir) and rir > 10:
            report.warning(set_path + '.rir',
                           'RIR typically ranges 0-10, got %s' % rir,
                           'PWF-H303')
        if rpe is not None and rir is not None:
            report.warning(set_path, 'Both RPE and RIR are set. Typically '
                           'only one should be used.', 'PWF-H304')


def _validate_plan(doc, report):
    version = doc.get('plan_version')
    if version not in PLAN_VERSIONS:
        report.error('plan_version',
                     'Unsupported plan_version: %s. Only version 1 is '
                     'supported.' % version)

    meta = doc.get('meta')
    if isinstance(meta, dict):
        _validate_plan_meta(meta, report)
    else:
        report.warning('meta', 'Missing meta section - plan will have no title')

    glossary = doc.get('glossary')
    if not isinstance(glossary, dict):
        glossary = {}
    if len(glossary) > MAX_GLOSSARY:
        report.error('glossary', 'Glossary has %d entries but maximum is %d'
                     % (len(glossary), MAX_GLOSSARY), 'PWF-P006')
    for term, definition in glossary.items():
        term = str(term)
        definition = '' if definition is None else str(definition)
        path = 'glossary.%s' % term
        if not 1 <= len(term) <= MAX_TERM:
            report.error(path, "Term '%s' must be 1-%d characters"
                         % (term, MAX_TERM), 'PWF-P007')
        if not TERM_CHARACTERS.match(term) or '_' in term:
            report.error(path, "Term '%s' contains invalid characters (use "
                         "alphanumeric, space, -, or ')" % term, 'PWF-P008')
        if not definition:
            report.error(path, "Definition for '%s' cannot be empty" % term,
                         'PWF-P009')
        if len(definition) > MAX_DEFINITION:
            report.error(path, "Definition for '%s' exceeds %d characters "
                         "(%d chars)" % (term, MAX_DEFINITION, len(definition)),
                         'PWF-P010')

    cycle = doc.get('cycle')
    days = cycle.get('days') if isinstance(cycle, dict) else None
    if not days:
        report.error('cycle.days', 'Must have at least 1 day')


def _validate_plan_meta(meta, report):
    title = meta.get('title')
    if not title:
        report.error('meta.title', 'title cannot be empty')
    elif len(str(title)) > MAX_TITLE:
        report.error('meta.title', 'title exceeds %d characters (%d chars)'
                     % (MAX_TITLE, len(str(title))))

    activated = _datetime(meta, 'activated_at', 'PWF-P001', report)
    completed = _datetime(meta, 'completed_at', 'PWF-P002', report)

    status = meta.get('status')
    if status == 'active' and meta.get('activated_at') is None:
        report.warning('meta.activated_at', "Plan status is 'active' but "
                       'activated_at timestamp is missing', 'PWF-P003')
    if status == 'completed' and meta.get('completed_at') is None:
        report.warning('meta.completed_at', "Plan status is 'completed' but "
                       'completed_at timestamp is missing', 'PWF-P004')
    if activated is not None and completed is not None \
            and not activated < completed:
        report.error('meta', 'activated_at must be before completed_at',
                     'PWF-P005')


def _datetime(meta, key, code, report):
    """Parse ``meta[key]`` as an ISO 8601 date-time, reporting if it isn't."""
    value = meta.get(key)
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_utc(value)
    try:
        if 'T' not in str(value):
            raise ValueError(value)
        return to_utc(str(value))
    except ValueError:
        report.error('meta.%s' % key,
                     'Invalid ISO 8601 datetime format: %s' % value, code)
        return None


def _entries(mapping, key):
    """The mappings listed under `key` (non-mappings are skipped)."""
    return [entry for entry in mapping.get(key) or ()
            if isinstance(entry, dict)]


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)
