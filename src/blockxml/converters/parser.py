"""Convert semantic TipTap XML back to a JSON document tree.

Pure function: parse(xml_str) -> document

Parsing happens in two steps:

1. ``parse_generic`` reads the text with ElementTree into a neutral,
   order-preserving tree of ``XmlElement`` objects whose ``children`` mix
   strings (character data) and elements exactly as they appear.
2. ``convert_generic`` walks that tree and applies the mapping:
   - whitespace-only character data is layout and is dropped
   - other character data becomes a text node carrying the marks
     accumulated from enclosing mark wrappers (outermost first)
   - an element named after a registered mark contributes a mark instead
     of a node: ``<bold><italic>x</italic></bold>`` reads back as one text
     node with marks ``[bold, italic]``
   - any other element becomes a node; ``content`` is omitted when nothing
     survives inside it
   - top-level ``<doc>`` wrappers are unwrapped

Attribute values that look like JSON objects or arrays are decoded (see
``codec.parse_attr_value``). Both steps iterate with explicit stacks.
"""

from __future__ import annotations

import copy
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple, Union
from xml.parsers.expat import ErrorString

from blockxml.config import DEFAULT_OPTIONS, ConverterOptions
from blockxml.converters.codec import attrs_from_xml
from blockxml.model import DOC_TYPE, TEXT_TYPE, Document, Mark, Node, empty_document
from blockxml.utils.errors import ConversionError, XmlSyntaxError
from blockxml.utils.logging import ContextKeys, LoggerFactory

logger = LoggerFactory.get_logger("parser")

# Synthetic root so fragments with several top-level elements parse
_ROOT_TAG = "blockxml-fragment"
_ROOT_OPEN = f"<{_ROOT_TAG}>"
_ROOT_CLOSE = f"</{_ROOT_TAG}>"

_XML_DECLARATION_RE = re.compile(r"^\ufeff?\s*<\?xml\b.*?\?>", re.DOTALL)


@dataclass
class XmlElement:
    """One element of the generic parse tree."""

    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    children: List[Union["XmlElement", str]] = field(default_factory=list)


XmlItem = Union[XmlElement, str]


def _blank_declaration(xml_str: str) -> str:
    """Replace a leading XML declaration with spaces, keeping line/column positions."""
    match = _XML_DECLARATION_RE.match(xml_str)
    if not match:
        return xml_str
    blanked = re.sub(r"[^\n]", " ", match.group(0))
    return blanked + xml_str[match.end():]


def _syntax_error(exc: ET.ParseError) -> XmlSyntaxError:
    line, column = exc.position
    if line == 1:
        column -= len(_ROOT_OPEN)
    column = max(column, 0) + 1
    reason = ErrorString(exc.code) if getattr(exc, "code", None) else str(exc)
    return XmlSyntaxError(
        f"{reason}: line {line}, column {column}",
        line=line,
        column=column,
    )


def parse_generic(xml_str: str) -> list[XmlItem]:
    """Parse XML text into an ordered list of top-level strings and elements.

    Raises:
        XmlSyntaxError: The text is not well-formed XML.
    """
    wrapped = f"{_ROOT_OPEN}{_blank_declaration(xml_str)}{_ROOT_CLOSE}"
    try:
        root = ET.fromstring(wrapped)
    except ET.ParseError as exc:
        raise _syntax_error(exc) from exc

    top = XmlElement(root.tag)
    stack: list[Tuple[ET.Element, XmlElement]] = [(root, top)]
    while stack:
        src, dest = stack.pop()
        if src.text:
            dest.children.append(src.text)
        for src_child in src:
            dest_child = XmlElement(src_child.tag, dict(src_child.attrib))
            dest.children.append(dest_child)
            stack.append((src_child, dest_child))
            if src_child.tail:
                dest.children.append(src_child.tail)

    return top.children


def _is_whitespace_only(text: str) -> bool:
    return not text or text.isspace()


def _tag_of(element: XmlElement) -> str:
    tag = element.tag
    if not isinstance(tag, str) or not tag:
        raise ConversionError(
            "Element has no tag name",
            operation="parse",
            help_text="The generic parse tree is malformed; every element needs a tag",
        )
    return tag


# (item, marks accumulated from enclosing wrappers, output list, top level?)
_Work = Tuple[XmlItem, Tuple[Mark, ...], List[Node], bool]


def _convert_items(
    items: Sequence[XmlItem],
    options: ConverterOptions,
    doc_attrs: dict[str, Any],
) -> list[Node]:
    content: list[Node] = []
    filled: list[Tuple[Node, List[Node]]] = []
    stack: list[_Work] = [(item, (), content, True) for item in reversed(items)]

    while stack:
        item, marks, target, top_level = stack.pop()

        if isinstance(item, str):
            if _is_whitespace_only(item):
                continue
            text_node: Node = {"type": TEXT_TYPE, "text": item}
            if marks:
                text_node["marks"] = copy.deepcopy(list(marks))
            target.append(text_node)
            continue

        if not isinstance(item, XmlElement):
            raise ConversionError(
                f"Unexpected item in parse tree: {type(item).__name__}",
                operation="parse",
            )

        tag = _tag_of(item)
        attrs = attrs_from_xml(item.attrs, coerce_scalars=options.coerce_scalars)

        if top_level and tag == options.doc_tag:
            if attrs and not doc_attrs:
                doc_attrs.update(attrs)
            stack.extend((child, (), target, True) for child in reversed(item.children))
            continue

        if options.is_mark(tag):
            mark: Mark = {"type": tag}
            if attrs:
                mark["attrs"] = attrs
            nested = marks + (mark,)
            stack.extend((child, nested, target, False) for child in reversed(item.children))
            continue

        node: Node = {"type": tag}
        if attrs:
            node["attrs"] = attrs
        target.append(node)
        children: list[Node] = []
        filled.append((node, children))
        # Marks do not reach into a regular element's own content
        stack.extend((child, (), children, False) for child in reversed(item.children))

    for node, children in filled:
        if children:
            node["content"] = children

    return content


def convert_generic(
    items: Sequence[XmlItem],
    options: Optional[ConverterOptions] = None,
) -> Document:
    """Apply the semantic mapping to an already-parsed generic tree.

    Raises:
        ConversionError: An element has no usable tag name.
    """
    options = options or DEFAULT_OPTIONS
    doc_attrs: dict[str, Any] = {}
    content = _convert_items(items, options, doc_attrs)

    doc: Document = {"type": DOC_TYPE}
    if doc_attrs:
        doc["attrs"] = doc_attrs
    if content:
        doc["content"] = content
    return doc


def parse(xml_str: str, options: Optional[ConverterOptions] = None) -> Document:
    """Convert TipTap XML to a document tree.

    The ``<doc>`` wrapper is optional: with or without it the same content is
    produced. Empty input yields an empty document.

    Args:
        xml_str: TipTap XML content.
        options: Converter options; defaults to the built-in mark registry.

    Raises:
        XmlSyntaxError: The text is not well-formed XML.
        ConversionError: The parse tree cannot be mapped to nodes.
    """
    if not xml_str or not xml_str.strip():
        return empty_document()

    items = parse_generic(xml_str)
    doc = convert_generic(items, options)
    logger.debug(
        "Parsed document",
        lazy_context=lambda: {
            ContextKeys.INPUT_LENGTH: len(xml_str),
            "top_level_nodes": len(doc.get("content", [])),
        },
    )
    return doc
