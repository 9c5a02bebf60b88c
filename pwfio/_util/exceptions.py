#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Exceptions for this package.

Structural problems with a source or destination raise one of these;
content-completeness problems become warnings instead (see
``pwfio._util.diagnostics``).

"""


class PWFIOError(Exception):
    """Base exception."""
    _default_message = ''

    def __init__(self, message=None):
        super().__init__(message if message else self._default_message)


class ReadError(PWFIOError):
    """The source could not be decoded or parsed."""
    _default_message = 'failed to read the source data'


class InvalidFileError(ReadError):
    def __init__(self, fmt):
        determiner = 'an' if fmt[0] in ('aeiou' + 's') else 'a'  # grammar
        message = "this doesn't look like %s %s file!" % (determiner, fmt)
        super().__init__(message)


class InvalidDataError(PWFIOError):
    """The source is structurally inconsistent."""
    _default_message = 'the source data is structurally inconsistent'


class ValidationError(PWFIOError):
    """The produced document was rejected by the validator."""

    def __init__(self, report, message=None):
        self.report = report
        if message is None:
            errors = getattr(report, 'errors', ())
            message = 'document failed validation with %d error(s)' % len(errors)
            if errors:
                message += ': ' + '; '.join(str(e) for e in errors)
        super().__init__(message)


class SerializationError(PWFIOError):
    """A writer failed to produce its output."""
    _default_message = 'failed to serialize the workout data'


class UnsupportedFormatError(PWFIOError):
    def __init__(self, source=None, target=None, message=None):
        self.source, self.target = source, target
        if message is None:
            if target is None:
                message = '%r is not a supported format' % source
            else:
                message = 'conversion from %s to %s is not supported' % (
                    source, target)
        super().__init__(message)


class MissingRequiredFieldError(PWFIOError):
    def __init__(self, field, context=None):
        self.field = field
        message = 'required field {!r} is missing'.format(field)
        if context:
            message += ' ({!s})'.format(context)
        super().__init__(message)


# Only ever raised at the command line boundary
# ---------------------------------------------
class ConversionIOError(PWFIOError):
    def __init__(self, path, reason):
        self.path = path
        super().__init__('{!s}: {!s}'.format(path, reason))
