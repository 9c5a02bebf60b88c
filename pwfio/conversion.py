#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
One call from source data to target data: import, optionally validate,
export, and hand back everything that was learnt along the way.

"""
from enum import Enum
import logging
from os.path import splitext
from types import MappingProxyType

from pwfio import csv, fit, gpx, pwf, tcx
from pwfio._util import exceptions
from pwfio._util.diagnostics import WarningCollector
from pwfio._util.misc import decode_text


logger = logging.getLogger(__name__)


class Format(Enum):
    FIT = 'fit'
    TCX = 'tcx'
    GPX = 'gpx'
    PWF = 'pwf'
    CSV = 'csv'

    @classmethod
    def parse(cls, value):
        """A `Format` or its (case-insensitive) name --> `Format`.

        Raises
        ------
        UnsupportedFormatError
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower().lstrip('.'))
        except ValueError:
            raise exceptions.UnsupportedFormatError(value) from None


EXTENSIONS = MappingProxyType({
    'fit': Format.FIT,
    'tcx': Format.TCX,
    'gpx': Format.GPX,
    'pwf': Format.PWF,
    'yaml': Format.PWF,
    'yml': Format.PWF,
    'csv': Format.CSV,
})

# format --> (function, keyword options it understands)
IMPORTERS = MappingProxyType({
    Format.FIT: (fit.read, ('summary_only', 'ftp', 'pool_bins', 'decoder')),
    Format.TCX: (tcx.read, ('summary_only', 'ftp')),
    Format.GPX: (gpx.read, ('summary_only', 'ftp')),
    Format.PWF: (pwf.read, ('summary_only', 'ftp', 'pool_bins')),
})
EXPORTERS = MappingProxyType({
    Format.TCX: (tcx.write, ()),
    Format.GPX: (gpx.write, ()),
    Format.PWF: (pwf.write, ('summary_only',)),
    Format.CSV: (csv.write, ('columns', 'include_metadata')),
})

BINARY_FORMATS = frozenset((Format.FIT,))


class ConversionResult:
    """What `convert` produced.

    Attributes
    ----------
    payload : str
        The exported document.
    warnings : WarningCollector
        Everything that didn't survive the trip intact, in order.
    history : History
        The intermediate workout model.
    validation : ValidationReport or None
        Only for PWF output that was validated.
    """
    __slots__ = ('payload', 'warnings', 'history', 'validation')

    def __init__(self, payload, warnings, history, validation=None):
        self.payload = payload
        self.warnings = warnings
        self.history = history
        self.validation = validation

    def __repr__(self):
        return '<ConversionResult: %d workout(s), %d warning(s)>' % (
            len(self.history), len(self.warnings))


def detect_format(file_path):
    """Guess a file's format from its extension.

    Raises
    ------
    UnsupportedFormatError
        If the extension isn't one we know.
    """
    ext = splitext(str(file_path))[-1][1:].lower()   # drop the period
    try:
        return EXTENSIONS[ext]
    except KeyError:
        raise exceptions.UnsupportedFormatError(
            message='cannot tell the format of %s from its extension'
                    % file_path) from None


def convert(data, source, target, *, summary_only=False, ftp=None,
            pool_bins=None, decoder=None, columns=csv.DEFAULT_COLUMNS,
            include_metadata=False, validate=True):
    """Convert workout data from one format to another.

    Parameters
    ----------
    data : bytes or str
        The source document (FIT data must be bytes).
    source, target : Format or str
        E.g. ``'fit'`` and ``Format.PWF``.
    summary_only : bool, optional
        Skip time series, keeping summaries.
    ftp : float, optional
        Functional threshold power in watts, for power metrics when the
        source doesn't carry one.
    pool_bins : PoolLengthBins, optional
    decoder : object, optional
        FIT decoder, see ``pwfio.fit.read``.
    columns : iterable of str, optional
        CSV column groups.
    include_metadata : bool, optional
        CSV metadata header.
    validate : bool, optional
        Check PWF output before handing it back.

    Returns
    -------
    ConversionResult

    Raises
    ------
    UnsupportedFormatError
        For unknown formats and pairs with no importer or exporter
        (anything to FIT, anything from CSV).
    ReadError
        If text formats arrive as bytes that aren't UTF-8.
    ValidationError
        If validated PWF output has errors.
    PWFIOError
        Whatever the importer or exporter raised.
    """
    source, target = Format.parse(source), Format.parse(target)
    if source not in IMPORTERS or target not in EXPORTERS:
        raise exceptions.UnsupportedFormatError(source.value, target.value)

    if source not in BINARY_FORMATS:
        data = decode_text(data, '%s source' % source.value.upper())

    options = {
        'summary_only': summary_only,
        'ftp': ftp,
        'pool_bins': pool_bins,
        'decoder': decoder,
        'columns': columns,
        'include_metadata': include_metadata,
    }
    warnings = WarningCollector()

    read, accepted = IMPORTERS[source]
    history = read(data, warnings=warnings,
                   **{key: options[key] for key in accepted})

    write, accepted = EXPORTERS[target]
    payload = write(history, warnings=warnings,
                    **{key: options[key] for key in accepted})

    report = None
    if target is Format.PWF and validate:
        report = pwf.validate(payload)
        if not report.is_valid:
            raise exceptions.ValidationError(report)

    logger.debug('converted %s --> %s: %d workout(s), %d warning(s)',
                 source.value, target.value, len(history), len(warnings))
    return ConversionResult(payload, warnings, history, report)
