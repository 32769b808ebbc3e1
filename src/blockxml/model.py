"""TipTap/ProseMirror document tree types and JSON text helpers.

Trees are plain dicts and lists so they go through ``json`` untouched:

    {"type": "doc", "content": [
        {"type": "paragraph", "content": [
            {"type": "text", "text": "Hello", "marks": [{"type": "bold"}]}
        ]}
    ]}
"""

from __future__ import annotations

import json
from typing import Any, List, TypedDict

from blockxml.utils.errors import ConversionError, JsonSyntaxError

DOC_TYPE = "doc"
TEXT_TYPE = "text"

# Inline formatting marks recognised by default. Anything else is a node.
MARK_TYPES = frozenset({
    "bold",
    "italic",
    "strike",
    "underline",
    "code",
    "link",
    "textStyle",
    "highlight",
    "subscript",
    "superscript",
})


class _Typed(TypedDict):
    type: str


class Mark(_Typed, total=False):
    attrs: dict[str, Any]


class Node(_Typed, total=False):
    attrs: dict[str, Any]
    content: List["Node"]
    text: str
    marks: List[Mark]


class Document(_Typed, total=False):
    attrs: dict[str, Any]
    content: List[Node]


def is_text_node(node: Any) -> bool:
    """True for ``{"type": "text"}`` nodes; a missing ``text`` reads as empty."""
    return isinstance(node, dict) and node.get("type") == TEXT_TYPE


def empty_document() -> Document:
    """Return a fresh empty document."""
    return {"type": DOC_TYPE, "content": []}


def load_document(json_text: str) -> Document:
    """Parse JSON text into a document tree.

    Only the shape needed to convert is checked: the top level must be an
    object with a string ``type``. Whether node types are legal inside their
    parents is not this module's concern.

    Raises:
        JsonSyntaxError: The text is not valid JSON.
        ConversionError: The JSON value is not a node object.
    """
    try:
        value = json.loads(json_text)
    except json.JSONDecodeError as exc:
        raise JsonSyntaxError(str(exc), line=exc.lineno, column=exc.colno) from exc

    if not isinstance(value, dict):
        raise ConversionError(
            f"Expected a JSON object at the top level, got {type(value).__name__}",
            operation="load_document",
        )
    if not isinstance(value.get("type"), str) or not value["type"]:
        raise ConversionError(
            "Top-level JSON object has no 'type'",
            operation="load_document",
            path="$",
        )
    return value  # type: ignore[return-value]


def dump_document(doc: Document, indent: int | None = 2) -> str:
    """Render a document tree as JSON text (two-space indent by default)."""
    return json.dumps(doc, indent=indent, ensure_ascii=False)
