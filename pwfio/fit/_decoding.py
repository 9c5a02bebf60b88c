#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The seam between raw FIT bytes and the importer.

Anything with a ``decode(data) -> sequence of DecodedMessage`` method that
raises `ReadError` on failure will do as a decoder. `FitparseDecoder`, the
default, leans on python-fitparse [1]_ for the protocol itself.

.. [1] https://github.com/dtcooper/python-fitparse

"""
import io
import logging

import fitparse

from pwfio._util import exceptions


logger = logging.getLogger(__name__)


class DecodedMessage:
    """A message type tag plus its field name --> value mapping."""
    __slots__ = ('name', 'fields')

    def __init__(self, name, fields=None):
        self.name = name
        self.fields = dict(fields or {})

    def get(self, key, default=None):
        value = self.fields.get(key)
        return default if value is None else value

    def __contains__(self, key):
        return self.fields.get(key) is not None

    def __repr__(self):
        return 'DecodedMessage(%r, %r)' % (self.name, self.fields)


class FitparseDecoder:

    def __init__(self, *, check_crc=True):
        self.check_crc = check_crc

    def decode(self, data):
        """Bytes --> list of `DecodedMessage`.

        Enumerated fields come back as profile names (e.g. 'running'),
        timestamps as naive UTC datetimes and positions as semicircles.

        Raises
        ------
        ReadError
        """
        if isinstance(data, str):
            raise exceptions.ReadError('FIT data must be bytes, not text')
        try:
            fitfile = fitparse.FitFile(io.BytesIO(data),
                                       check_crc=self.check_crc)
            messages = [
                DecodedMessage(message.name,
                               {field.name: field.value for field in message})
                for message in fitfile.get_messages()]
        except fitparse.FitParseError as e:
            raise exceptions.ReadError('could not decode FIT data: %s' % e) from e

        logger.debug('decoded %d FIT messages', len(messages))
        return messages
