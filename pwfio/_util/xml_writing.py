#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The writing counterpart of `xml_reading`.

"""
from xml.etree import ElementTree

from pwfio._util import exceptions


def qualify(namespace, tag):
    return '{%s}%s' % (namespace, tag) if namespace else tag


def sub_text(parent, tag, value, *, fmt=None):
    """Append ``<tag>value</tag>`` to `parent`, unless value is None."""
    if value is None:
        return None
    element = ElementTree.SubElement(parent, tag)
    element.text = fmt(value) if fmt is not None else str(value)
    return element


def format_number(value, places=None):
    """Plain decimal text, without trailing noise like '50.0'."""
    if places is not None:
        value = round(value, places)
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def serialize(root, namespaces=()):
    """Element tree --> UTF-8 text, with an XML declaration.

    Parameters
    ----------
    root : Element
    namespaces : iterable of (prefix, uri)
        Prefixes to use in place of the generated ``ns0`` style ones.

    Raises
    ------
    SerializationError
    """
    try:
        for prefix, uri in namespaces:
            ElementTree.register_namespace(prefix, uri)
        tree = ElementTree.ElementTree(root)
        ElementTree.indent(tree, space='  ')
        body = ElementTree.tostring(root, encoding='unicode')
    except (TypeError, ValueError) as e:
        raise exceptions.SerializationError(
            'could not serialize XML: %s' % e) from e
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + body + '\n'
