"""Cheap well-formedness checks for live feedback.

Each validator parses and discards the result, returning ``None`` for valid
input or one printable message. They never raise for string input and do not
attempt recovery or report more than the first problem.
"""

from __future__ import annotations

import json
from typing import Optional

from blockxml.converters.parser import parse_generic
from blockxml.utils.errors import XmlSyntaxError
from blockxml.utils.logging import LoggerFactory

logger = LoggerFactory.get_logger("validators")


def validate_json_syntax(text: str) -> Optional[str]:
    """Return ``None`` if ``text`` is valid JSON, else the parser's message."""
    try:
        json.loads(text)
    except json.JSONDecodeError as exc:
        logger.debug("JSON syntax check failed", extra_context={"reason": exc.msg})
        return str(exc)
    except (TypeError, ValueError) as exc:
        return str(exc) or "Invalid JSON"
    return None


def validate_xml_syntax(text: str) -> Optional[str]:
    """Return ``None`` if ``text`` is a well-formed XML fragment, else a message.

    Uses the same parse step as the converter, so several top-level elements
    and a missing ``<doc>`` wrapper are fine.
    """
    try:
        parse_generic(text)
    except XmlSyntaxError as exc:
        logger.debug("XML syntax check failed", extra_context={"reason": exc.message})
        return exc.message
    except (TypeError, ValueError) as exc:
        return str(exc) or "Invalid XML"
    return None
