"""Convert a TipTap JSON document tree to semantic XML.

Pure function: serialize(doc) -> xml_str

Node types become tag names and attrs become single-quoted attributes. Text
nodes are emitted as escaped character data wrapped in one element per mark,
the first mark outermost:

    {"type": "text", "text": "x", "marks": [{"type": "bold"}, {"type": "italic"}]}
    -> <bold><italic>x</italic></bold>

The ``doc`` root is never written; its children are joined with newlines.
Elements whose children are all non-text nodes are laid out one child per
line with an extra indentation level. That whitespace is layout only and the
parser drops it. Elements holding any text are written inline so their
character data survives untouched.

The traversal uses an explicit stack, so deeply nested trees cannot exhaust
the interpreter's recursion limit.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple, Union

from blockxml.config import DEFAULT_OPTIONS, ConverterOptions
from blockxml.converters.codec import attrs_to_xml, escape_text, is_xml_name
from blockxml.model import TEXT_TYPE, Document, Mark, Node, is_text_node
from blockxml.utils.errors import ConversionError
from blockxml.utils.logging import ContextKeys, LoggerFactory

logger = LoggerFactory.get_logger("serializer")

# Position of a node as (parent position, index); None is the root.
_Trail = Optional[Tuple[Any, int]]
# A pending unit of work: a literal chunk, or (node, depth, position).
_Work = Union[str, Tuple[Any, int, _Trail]]

_NAME_HELP = "Use letters, digits, '_', '-' and '.', starting with a letter or '_'"


def serialize(doc: Document, options: Optional[ConverterOptions] = None) -> str:
    """Convert a document tree to TipTap XML without the ``doc`` wrapper.

    Args:
        doc: Document tree (``{"type": "doc", "content": [...]}``).
        options: Converter options; defaults to the built-in mark registry.

    Returns:
        XML string, or ``""`` when the document has no content.

    Raises:
        ConversionError: A node or mark is missing its ``type`` or has
            malformed ``content``/``text``.
    """
    options = options or DEFAULT_OPTIONS
    if not isinstance(doc, dict):
        raise ConversionError(
            f"Expected a document object, got {type(doc).__name__}",
            operation="serialize",
            path="$",
        )

    content = _children(doc, None)
    if not content:
        return ""

    xml = "\n".join(
        _render(node, options, 0, (None, index))
        for index, node in enumerate(content)
    )
    logger.debug(
        "Serialized document",
        lazy_context=lambda: {
            "top_level_nodes": len(content),
            ContextKeys.OUTPUT_LENGTH: len(xml),
        },
    )
    return xml


def node_to_xml(
    node: Node,
    options: Optional[ConverterOptions] = None,
    depth: int = 0,
) -> str:
    """Convert a single node (and its subtree) to XML at ``depth`` indentation."""
    return _render(node, options or DEFAULT_OPTIONS, depth, None)


def _format_trail(trail: _Trail, suffix: str = "") -> str:
    indexes: list[int] = []
    while trail is not None:
        trail, index = trail
        indexes.append(index)
    return "$" + "".join(f".content[{i}]" for i in reversed(indexes)) + suffix


def _node_type(node: Any, trail: _Trail, suffix: str = "") -> str:
    if not isinstance(node, dict):
        path = _format_trail(trail, suffix)
        raise ConversionError(
            f"Expected a node object at {path}, got {type(node).__name__}",
            operation="serialize",
            path=path,
        )
    node_type = node.get("type")
    if not isinstance(node_type, str) or not node_type:
        path = _format_trail(trail, suffix)
        raise ConversionError(
            f"Node at {path} has no type",
            operation="serialize",
            path=path,
        )
    if not is_xml_name(node_type):
        path = _format_trail(trail, suffix)
        raise ConversionError(
            f"Type {node_type!r} at {path} is not a valid XML element name",
            operation="serialize",
            node_type=node_type,
            path=path,
            help_text=_NAME_HELP,
        )
    return node_type


def _children(node: dict, trail: _Trail) -> Sequence[Any]:
    content = node.get("content")
    if content is None:
        return ()
    if not isinstance(content, list):
        path = _format_trail(trail)
        raise ConversionError(
            f"'content' at {path} must be a list",
            operation="serialize",
            node_type=node.get("type"),
            path=path,
        )
    return content


def _attrs_xml(holder: dict, trail: _Trail, suffix: str = "") -> str:
    attrs = holder.get("attrs")
    if attrs is None:
        return ""
    if not isinstance(attrs, dict):
        path = _format_trail(trail, f"{suffix}.attrs")
        raise ConversionError(
            f"'attrs' at {path} must be an object, got {type(attrs).__name__}",
            operation="serialize",
            node_type=holder.get("type"),
            path=path,
            help_text="Attributes are a JSON object of name/value pairs",
        )
    for key in attrs:
        if not is_xml_name(key):
            path = _format_trail(trail, f"{suffix}.attrs")
            raise ConversionError(
                f"Attribute name {key!r} at {path} is not a valid XML name",
                operation="serialize",
                node_type=holder.get("type"),
                path=path,
                help_text=_NAME_HELP,
            )
    return attrs_to_xml(attrs)


def _marks(node: Node, trail: _Trail) -> Sequence[Any]:
    marks = node.get("marks")
    if marks is None:
        return ()
    if not isinstance(marks, list):
        path = _format_trail(trail, ".marks")
        raise ConversionError(
            f"'marks' at {path} must be a list, got {type(marks).__name__}",
            operation="serialize",
            node_type=TEXT_TYPE,
            path=path,
        )
    return marks


def _render_text(node: Node, options: ConverterOptions, trail: _Trail) -> str:
    text = node.get("text", "")
    if not isinstance(text, str):
        path = _format_trail(trail)
        raise ConversionError(
            f"Text node at {path} has non-string text",
            operation="serialize",
            node_type=TEXT_TYPE,
            path=path,
        )

    result = escape_text(text)
    marks: Sequence[Mark] = _marks(node, trail)
    # Last mark is innermost
    for index in range(len(marks) - 1, -1, -1):
        mark = marks[index]
        suffix = f".marks[{index}]"
        mark_type = _node_type(mark, trail, suffix)
        if not options.is_mark(mark_type):
            logger.debug(
                "Mark type outside the registry will read back as a node",
                extra_context={"mark_type": mark_type},
            )
        result = f"<{mark_type}{_attrs_xml(mark, trail, suffix)}>{result}</{mark_type}>"
    return result


def _render(root: Node, options: ConverterOptions, depth: int, trail: _Trail) -> str:
    parts: list[str] = []
    stack: list[_Work] = [(root, depth, trail)]

    while stack:
        item = stack.pop()
        if isinstance(item, str):
            parts.append(item)
            continue

        node, level, node_trail = item
        node_type = _node_type(node, node_trail)
        if node_type == TEXT_TYPE:
            parts.append(_render_text(node, options, node_trail))
            continue

        indent = options.indent * level
        open_tag = f"<{node_type}{_attrs_xml(node, node_trail)}"
        children = _children(node, node_trail)

        if not children:
            parts.append(f"{indent}{open_tag} />")
            continue

        if any(is_text_node(child) for child in children):
            # Inline content: no layout whitespace may be introduced
            parts.append(f"{indent}{open_tag}>")
            stack.append(f"</{node_type}>")
            for index in range(len(children) - 1, -1, -1):
                stack.append((children[index], 0, (node_trail, index)))
            continue

        parts.append(f"{indent}{open_tag}>\n")
        stack.append(f"\n{indent}</{node_type}>")
        for index in range(len(children) - 1, -1, -1):
            stack.append((children[index], level + 1, (node_trail, index)))
            if index:
                stack.append("\n")

    return "".join(parts)
