"""Escaping and attribute value encoding for TipTap XML.

Attribute values are written single-quoted so JSON-encoded objects (full of
double quotes) stay readable:

    <textStyle color='#FF0000'>red</textStyle>
    <image size='{"w":10,"h":20}' />

Reading an attribute back is heuristic: a value that looks like a JSON object
or array is decoded, everything else stays a string. A string attribute that
happens to look like ``{...}`` therefore comes back as structured data.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Mapping

_TEXT_ESCAPES = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&apos;",
    "\r": "&#13;",
})

# Double quotes stay literal inside single-quoted values. Tab, newline and
# carriage return become character references.
_ATTR_ESCAPES = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "'": "&apos;",
    "\t": "&#9;",
    "\n": "&#10;",
    "\r": "&#13;",
})

_NAME_RE = re.compile(r"[^\W\d][\w.\-]*")
_INT_RE = re.compile(r"-?(?:0|[1-9]\d*)")
_FLOAT_RE = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")


def escape_text(text: str) -> str:
    """Escape text content for use between tags.

    Carriage returns become ``&#13;`` so CRLF text survives a round trip.
    """
    return text.translate(_TEXT_ESCAPES)


def escape_attr(value: str) -> str:
    """Escape a value for use inside a single-quoted attribute."""
    return value.translate(_ATTR_ESCAPES)


def is_xml_name(name: str) -> bool:
    """True when ``name`` can be used as an element or attribute name.

    Namespace prefixes are not accepted: a colon would need a declaration.
    """
    return isinstance(name, str) and _NAME_RE.fullmatch(name) is not None


def format_attr_value(value: Any) -> str:
    """Stringify an attribute value.

    Objects and arrays are JSON-encoded; scalars use their JSON spelling
    (``true``, ``null``, ``2`` rather than ``2.0``).
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def attrs_to_xml(attrs: Mapping[str, Any] | None) -> str:
    """Render an attribute map as `` key='value'`` pairs (empty for no attrs)."""
    if not attrs:
        return ""
    return "".join(
        f" {key}='{escape_attr(format_attr_value(value))}'"
        for key, value in attrs.items()
    )


def _looks_structured(text: str) -> bool:
    return (text.startswith("{") and text.endswith("}")) or (
        text.startswith("[") and text.endswith("]")
    )


def _coerce_scalar(raw: str) -> Any:
    if raw == "true":
        return True
    if raw == "false":
        return False
    if _INT_RE.fullmatch(raw):
        return int(raw)
    if _FLOAT_RE.fullmatch(raw):
        return float(raw)
    return raw


def parse_attr_value(raw: str, *, coerce_scalars: bool = False) -> Any:
    """Decode one attribute value read from XML.

    Values that look like a JSON object or array are decoded when they parse;
    otherwise the raw string is returned unchanged. With ``coerce_scalars``
    the literals ``true``/``false`` and plain numbers are typed as well.
    """
    stripped = raw.strip()
    if _looks_structured(stripped):
        try:
            return json.loads(stripped)
        except ValueError:
            return raw
    if coerce_scalars:
        return _coerce_scalar(raw)
    return raw


def attrs_from_xml(attrib: Mapping[str, str], *, coerce_scalars: bool = False) -> dict[str, Any]:
    """Decode every value of a parsed attribute map, keeping its order."""
    return {
        key: parse_attr_value(value, coerce_scalars=coerce_scalars)
        for key, value in attrib.items()
    }
