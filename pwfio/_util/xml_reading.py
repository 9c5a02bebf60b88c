#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Some useful functions for parsing XML file types.

Note we need to name this `xml_reading` so as not to clobber the standard
library package.

"""
import io
from xml.etree.ElementTree import iterparse, ParseError

from pwfio._util import exceptions


def gen_nodes(source, node_names, *, with_root=False):
    """Efficiently iterate over specific nodes of an XML document.

    Parameters
    ----------
    source : str, bytes or file-like
        The document itself. Text and bytes are wrapped in a buffer; the
        core never touches the file system.
    node_names : tuple of str
        Namespace-free tag names to yield (on their closing tag).
    with_root : bool, optional
        Yield the root element first.

    Raises
    ------
    ReadError
        If the document is not well-formed XML.

    http://effbot.org/zone/element-iterparse.htm
    """
    if isinstance(source, str):
        source = io.BytesIO(source.encode('utf-8'))
    elif isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)

    try:
        context = iter(iterparse(source, events=('start', 'end')))
        event, root = next(context)  # get the root element

        if with_root:
            yield root

        for event, element in context:
            if event == 'end' and sans_ns(element.tag) in node_names:
                yield element
                root.clear()
    except (ParseError, StopIteration) as e:
        raise exceptions.ReadError('malformed XML: %s' % e) from e


def sans_ns(tag):
    """Remove the namespace prefix from a tag."""
    return tag.split('}')[-1]


def recursive_text_extract(node):
    """Flatten the leaf text of `node` into a dict keyed by bare tag name.

    Intermediate elements (``Position``, ``Extensions``) are descended
    into; if a tag repeats, the last one wins.
    """
    result = {}
    for child in node:
        if len(child):
            result.update(recursive_text_extract(child))
        elif child.text is not None and child.text.strip():
            result[sans_ns(child.tag)] = child.text.strip()
    return result


def find_child(node, name):
    """First direct child with the bare tag `name`, or None."""
    for child in node:
        if sans_ns(child.tag) == name:
            return child
    return None


def find_children(node, name):
    return [child for child in node if sans_ns(child.tag) == name]


def child_text(node, name):
    child = find_child(node, name)
    if child is None or child.text is None:
        return None
    return child.text.strip() or None
