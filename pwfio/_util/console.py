#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Prettified console output for the command line tool.

"""
import sys


TEXT_DECORATIONS = {
    'header': '\033[95m',
    'blue': '\033[94m',
    'green': '\033[92m',
    'warning': '\033[93m',
    'fail': '\033[91m',
    'bold': '\033[1m',
    'underline': '\033[4m',
    'end': '\033[0m',
}


def supports_color(stream):
    isatty = getattr(stream, 'isatty', None)
    return bool(isatty is not None and isatty())


def decorate(text, *decorations):
    """Return a text string with ANSI escape codes pre- and appended.

    Parameters
    ----------
    text : str
        Text to be decorated.
    *decorations : str
        Keys of `TEXT_DECORATIONS`, e.g. 'warning' or 'bold'.
    """
    decors = ''.join(TEXT_DECORATIONS[d] for d in decorations)
    end = TEXT_DECORATIONS['end']
    return decors + text + end


def printd(text, *decorations, file=None, **kwargs):
    """Print decorated, or plain when `file` isn't a terminal."""
    if file is None:
        file = sys.stdout
    if decorations and supports_color(file):
        text = decorate(text, *decorations)
    print(text, file=file, **kwargs)
