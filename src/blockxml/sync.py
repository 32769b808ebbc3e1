"""Two-buffer JSON/XML synchronization.

A ``DocumentSync`` keeps a JSON buffer and an XML buffer in step. Editing one
side converts it into the other; if the edited text is not valid, or the
conversion fails, the other side keeps its last good value and the error is
recorded for display. A broken conversion is never propagated.

Scheduling (debounce, which panel has focus) is left to the caller: every
``edit_*`` call is one synchronous sync attempt.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from blockxml.config import DEFAULT_OPTIONS, ConverterOptions
from blockxml.converters import parse, serialize, validate_json_syntax, validate_xml_syntax
from blockxml.model import dump_document, empty_document, load_document
from blockxml.utils.errors import BlockXmlError
from blockxml.utils.logging import ContextKeys, LoggerFactory

logger = LoggerFactory.get_logger("sync")


class SyncDirection(str, Enum):
    JSON_TO_XML = "json_to_xml"
    XML_TO_JSON = "xml_to_json"


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one edit."""

    direction: SyncDirection
    synced: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class SyncStatus:
    """What a status bar should show."""

    ok: bool
    message: str
    json_valid: bool
    xml_valid: bool


class DocumentSync:
    """Holds both buffers and applies edits to them.

    Instances are not thread-safe; the converters they call are.
    """

    def __init__(self, options: Optional[ConverterOptions] = None) -> None:
        self.options = options or DEFAULT_OPTIONS
        self.json_text = dump_document(empty_document())
        self.xml_text = ""
        self.json_error: Optional[str] = None
        self.xml_error: Optional[str] = None
        self.conversion_error: Optional[str] = None

    def edit_json(self, text: str) -> SyncResult:
        """Replace the JSON buffer and, when possible, regenerate the XML."""
        self.json_text = text
        self.json_error = validate_json_syntax(text)
        if self.json_error:
            return SyncResult(SyncDirection.JSON_TO_XML, False, self.json_error)

        try:
            xml = serialize(load_document(text), self.options)
        except BlockXmlError as exc:
            return self._conversion_failed(SyncDirection.JSON_TO_XML, exc)

        self.xml_text = xml
        self.xml_error = None
        self.conversion_error = None
        logger.debug(
            "Synced JSON to XML",
            extra_context={
                ContextKeys.DIRECTION: SyncDirection.JSON_TO_XML.value,
                ContextKeys.OUTPUT_LENGTH: len(xml),
            },
        )
        return SyncResult(SyncDirection.JSON_TO_XML, True)

    def edit_xml(self, text: str) -> SyncResult:
        """Replace the XML buffer and, when possible, regenerate the JSON."""
        self.xml_text = text
        self.xml_error = validate_xml_syntax(text)
        if self.xml_error:
            return SyncResult(SyncDirection.XML_TO_JSON, False, self.xml_error)

        try:
            json_text = dump_document(parse(text, self.options))
        except BlockXmlError as exc:
            return self._conversion_failed(SyncDirection.XML_TO_JSON, exc)

        self.json_text = json_text
        self.json_error = None
        self.conversion_error = None
        logger.debug(
            "Synced XML to JSON",
            extra_context={
                ContextKeys.DIRECTION: SyncDirection.XML_TO_JSON.value,
                ContextKeys.OUTPUT_LENGTH: len(json_text),
            },
        )
        return SyncResult(SyncDirection.XML_TO_JSON, True)

    def _conversion_failed(self, direction: SyncDirection, exc: BlockXmlError) -> SyncResult:
        self.conversion_error = exc.get_user_message()
        logger.warning(
            "Conversion failed; keeping previous output",
            extra_context={
                ContextKeys.DIRECTION: direction.value,
                **exc.get_context_for_logging(),
            },
        )
        return SyncResult(direction, False, self.conversion_error)

    def status(self) -> SyncStatus:
        """Summarize the session: conversion errors win over syntax errors."""
        json_valid = self.json_error is None
        xml_valid = self.xml_error is None

        if self.conversion_error:
            message = f"Conversion: {self.conversion_error}"
        elif not json_valid:
            message = f"JSON: {self.json_error}"
        elif not xml_valid:
            message = f"XML: {self.xml_error}"
        else:
            message = "Valid, synced"

        return SyncStatus(
            ok=not self.conversion_error and json_valid and xml_valid,
            message=message,
            json_valid=json_valid,
            xml_valid=xml_valid,
        )
