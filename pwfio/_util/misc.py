#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
General utilities to be used internally.

"""
from datetime import date, datetime, timedelta
import numbers

import pytz

from pwfio._util import exceptions


TZ_UTC = pytz.utc

# Device timestamps count seconds from this epoch.
DATETIME_1990 = datetime(year=1989, month=12, day=31, tzinfo=TZ_UTC)

DATETIME_FMT = '%Y-%m-%dT%H:%M:%SZ'
DATETIME_FMT_WITH_FRAC = '%Y-%m-%dT%H:%M:%S.%fZ'
DATE_FMT = '%Y-%m-%d'


def to_utc(value):
    """Coerce a timestamp-ish value to an aware UTC datetime.

    Accepts aware or naive (assumed UTC) datetimes, dates, ISO 8601 strings
    and integer seconds since the device epoch. Returns None for None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return TZ_UTC.localize(value)
        return value.astimezone(TZ_UTC)
    if isinstance(value, date):
        return TZ_UTC.localize(datetime(value.year, value.month, value.day))
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return DATETIME_1990 + timedelta(seconds=float(value))
    if isinstance(value, str):
        return parse_timestamp(value)
    raise TypeError('cannot interpret %r as a timestamp' % (value,))


def parse_timestamp(text):
    """ISO 8601 text --> aware UTC datetime.

    Raises
    ------
    ValueError
        If `text` isn't recognisable as a timestamp.
    """
    text = text.strip()
    for fmt in (DATETIME_FMT, DATETIME_FMT_WITH_FRAC):
        try:
            return TZ_UTC.localize(datetime.strptime(text, fmt))
        except ValueError:
            pass
    try:
        return TZ_UTC.localize(datetime.strptime(text, DATE_FMT))
    except ValueError:
        pass

    # Offsets other than Z
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    parsed = datetime.fromisoformat(text)
    return to_utc(parsed)


def format_timestamp(value):
    """Aware datetime --> ISO 8601 text with a trailing 'Z'."""
    if value is None:
        return None
    value = to_utc(value)
    if value.microsecond:
        frac = ('%06d' % value.microsecond).rstrip('0')
        return value.strftime('%Y-%m-%dT%H:%M:%S.') + frac + 'Z'
    return value.strftime(DATETIME_FMT)


def total_seconds(start, end):
    if start is None or end is None:
        return None
    return (end - start).total_seconds()


def mean_or_none(values):
    values = [v for v in values if v is not None]
    if not values:
        return None
    return sum(values) / len(values)


def max_or_none(values):
    values = [v for v in values if v is not None]
    return max(values) if values else None


def sum_or_none(values):
    values = [v for v in values if v is not None]
    return sum(values) if values else None


def to_float(text):
    """Lenient float conversion for text pulled out of documents."""
    if text is None:
        return None
    try:
        return float(text)
    except (TypeError, ValueError):
        return None


def to_int(text):
    value = to_float(text)
    return None if value is None else int(round(value))


def decode_text(data, what='source'):
    """UTF-8 bytes --> str; text is passed through.

    Raises
    ------
    ReadError
        If the bytes aren't UTF-8.
    """
    if not isinstance(data, (bytes, bytearray)):
        return data
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError as e:
        raise exceptions.ReadError(
            '%s is not UTF-8 text: %s' % (what, e)) from e
