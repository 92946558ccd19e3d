"""SOAP envelope helpers.

The Vitodata service only needs a tiny subset of SOAP: a fixed envelope
around a hand-written body, and responses whose interesting part lives at
``Body/<Action>Response/<Action>Result``. Namespaces vary between actions
(some responses even declare per-action namespaces), so parsing strips them
and matches on local names only.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterable
from typing import Any
from xml.sax.saxutils import escape

from .exceptions import VitotrolXMLError

ENVELOPE_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<soap:Envelope xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"'
    ' xmlns:xsd="http://www.w3.org/2001/XMLSchema"'
    ' xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/"'
    ' xmlns="http://www.e-controlnet.de/services/vii/">\n'
    "<soap:Body>\n"
)
ENVELOPE_FOOTER = "\n</soap:Body>\n</soap:Envelope>"


def build_envelope(body: str) -> str:
    """Wrap an action body in the SOAP envelope."""
    return f"{ENVELOPE_HEADER}{body}{ENVELOPE_FOOTER}"


def xml_text(value: Any) -> str:
    """Escape a value for use as element text."""
    return escape(str(value))


def build_element(tag: str, value: Any) -> str:
    """Render ``<tag>value</tag>`` with the value escaped."""
    return f"<{tag}>{xml_text(value)}</{tag}>"


def build_device_body(action: str, device_id: int, location_id: int, inner: str) -> str:
    """Wrap a device-scoped body with the device and location identifiers."""
    return (
        f"<{action}>\n"
        f"<GeraetId>{device_id}</GeraetId>\n"
        f"<AnlageId>{location_id}</AnlageId>\n"
        f"{inner}\n"
        f"</{action}>"
    )


def build_id_list(attr_ids: Iterable[int]) -> str:
    """Render a ``<DatenpunktIds>`` list."""
    ids = "".join(f"<int>{int(attr_id)}</int>" for attr_id in attr_ids)
    return f"<DatenpunktIds>{ids}</DatenpunktIds>"


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def strip_namespaces(root: ET.Element) -> ET.Element:
    """Replace every qualified tag by its local name, in place."""
    for elem in root.iter():
        if isinstance(elem.tag, str):
            elem.tag = _local_name(elem.tag)
    return root


def parse_response(raw: bytes | str, action: str) -> ET.Element:
    """Parse a response and return its ``<Action>Result`` element.

    Args:
        raw: Raw response body
        action: SOAP action name, e.g. ``"GetData"``

    Returns:
        The result element, namespaces stripped

    Raises:
        VitotrolXMLError: If the body is not XML or lacks the result element
    """
    try:
        root = ET.fromstring(raw)
    except ET.ParseError as err:
        raise VitotrolXMLError(f"{action}: malformed XML response: {err}") from err

    strip_namespaces(root)
    result = root.find(f"Body/{action}Response/{action}Result")
    if result is None:
        raise VitotrolXMLError(f"{action}: no {action}Result element in response")
    return result


def leaf_dict(elem: ET.Element) -> dict[str, str]:
    """Map the text of each leaf child by tag; empty elements give ``""``."""
    return {child.tag: child.text or "" for child in elem if len(child) == 0}


def find_text(elem: ET.Element, path: str, default: str = "") -> str:
    """Text of the element at ``path``, stripped, or ``default``."""
    found = elem.find(path)
    if found is None or found.text is None:
        return default
    return found.text.strip()
