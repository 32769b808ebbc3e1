"""Converters between TipTap JSON document trees and semantic XML."""

from .codec import (
    attrs_from_xml,
    attrs_to_xml,
    escape_attr,
    escape_text,
    format_attr_value,
    is_xml_name,
    parse_attr_value,
)
from .parser import XmlElement, convert_generic, parse, parse_generic
from .serializer import node_to_xml, serialize
from .validators import validate_json_syntax, validate_xml_syntax

__all__ = [
    "XmlElement",
    "attrs_from_xml",
    "attrs_to_xml",
    "convert_generic",
    "escape_attr",
    "escape_text",
    "format_attr_value",
    "is_xml_name",
    "node_to_xml",
    "parse",
    "parse_attr_value",
    "parse_generic",
    "serialize",
    "validate_json_syntax",
    "validate_xml_syntax",
]
