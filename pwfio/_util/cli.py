#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
parse is installed as an executable console_script with this package.

    $ pwfio convert --to pwf ride.fit ride.yaml --verbose

"""
from argparse import ArgumentParser
import logging
import sys

from pwfio import __version__
from pwfio.conversion import EXPORTERS, IMPORTERS, convert, detect_format
from pwfio.csv import DEFAULT_COLUMNS, resolve_columns
from pwfio._util import exceptions
from pwfio._util.console import printd


SOURCE_FORMATS = tuple(fmt.value for fmt in IMPORTERS)
TARGET_FORMATS = tuple(fmt.value for fmt in EXPORTERS)


def build_parser():
    parser = ArgumentParser(prog='pwfio',
                            description='convert fitness activity files')
    parser.add_argument('--version', action='version',
                        version='%(prog)s ' + __version__)
    commands = parser.add_subparsers(dest='command', metavar='command')
    commands.required = True

    sub = commands.add_parser('convert', help='convert SOURCE into DEST')
    sub.add_argument('source',
                     type=str,
                     metavar='SOURCE',
                     help='file to read')
    sub.add_argument('dest',
                     type=str,
                     metavar='DEST',
                     help="file to write ('-' for stdout)")
    sub.add_argument('--from',
                     dest='source_format',
                     default=None,
                     choices=SOURCE_FORMATS,
                     help='optional; format of SOURCE (default: from its '
                          'extension)')
    sub.add_argument('--to',
                     dest='target_format',
                     required=True,
                     choices=TARGET_FORMATS,
                     help='format of DEST')
    sub.add_argument('--summary-only',
                     action='store_true',
                     help='skip time series, keeping summaries')
    sub.add_argument('--verbose', '-v',
                     action='store_true',
                     help='print conversion warnings')
    sub.add_argument('--ftp',
                     type=float,
                     metavar='WATTS',
                     default=None,
                     help='functional threshold power for power metrics')
    sub.add_argument('--columns',
                     type=str,
                     default=','.join(DEFAULT_COLUMNS),
                     help='csv only; comma separated column groups '
                          '(default: %(default)s)')
    sub.add_argument('--metadata',
                     action='store_true',
                     help='csv only; write a metadata header')
    sub.add_argument('--debug',
                     action='store_true',
                     help='log debugging output to stderr')
    return parser


def parse(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(levelname)s %(name)s: %(message)s')

    columns = [c.strip() for c in args.columns.split(',') if c.strip()]
    try:
        resolve_columns(columns)
    except ValueError as e:
        parser.error(str(e))

    try:
        source_format = args.source_format or detect_format(args.source)
        data = _read(args.source)
        result = convert(data, source_format, args.target_format,
                         summary_only=args.summary_only, ftp=args.ftp,
                         columns=columns, include_metadata=args.metadata)
        _write(args.dest, result.payload)
    except exceptions.PWFIOError as e:
        printd('error: %s' % e, 'fail', 'bold', file=sys.stderr)
        return 1

    if args.verbose:
        for warning in result.warnings:
            printd('warning: %s' % warning, 'warning', file=sys.stderr)
        printd('%d warning(s)' % len(result.warnings), 'bold',
               file=sys.stderr)
    return 0


def _read(file_path):
    try:
        with open(file_path, 'rb') as f:
            return f.read()
    except OSError as e:
        raise exceptions.ConversionIOError(file_path, e.strerror or e) from e


def _write(file_path, payload):
    if file_path == '-':
        sys.stdout.write(payload)
        return
    try:
        with open(file_path, 'w', encoding='utf-8', newline='') as f:
            f.write(payload)
    except OSError as e:
        raise exceptions.ConversionIOError(file_path, e.strerror or e) from e


if __name__ == '__main__':
    sys.exit(parse())
