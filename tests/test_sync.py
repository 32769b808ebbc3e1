"""Tests for the two-buffer JSON/XML synchronization session."""

from __future__ import annotations

import json

from blockxml.config import ConverterOptions
from blockxml.model import dump_document, empty_document
from blockxml.sync import DocumentSync, SyncDirection

HELLO_JSON = '{"type":"doc","content":[{"type":"paragraph","content":[{"type":"text","text":"Hello"}]}]}'
HELLO_XML = "<paragraph>Hello</paragraph>"


def test_initial_state() -> None:
    sync = DocumentSync()
    assert sync.json_text == dump_document(empty_document())
    assert sync.xml_text == ""
    assert sync.status().ok


def test_json_edit_updates_xml() -> None:
    sync = DocumentSync()
    result = sync.edit_json(HELLO_JSON)
    assert result.synced
    assert result.direction is SyncDirection.JSON_TO_XML
    assert sync.xml_text == HELLO_XML


def test_xml_edit_updates_json() -> None:
    sync = DocumentSync()
    result = sync.edit_xml(HELLO_XML)
    assert result.synced
    assert json.loads(sync.json_text) == json.loads(HELLO_JSON)
    assert sync.json_text.startswith('{\n  "type": "doc"')


def test_invalid_json_keeps_previous_xml() -> None:
    sync = DocumentSync()
    sync.edit_json(HELLO_JSON)

    result = sync.edit_json('{"type": "doc", "content": [')

    assert not result.synced
    assert result.error
    assert sync.json_text == '{"type": "doc", "content": ['
    assert sync.xml_text == HELLO_XML
    status = sync.status()
    assert not status.ok
    assert not status.json_valid
    assert status.message.startswith("JSON:")


def test_invalid_xml_keeps_previous_json() -> None:
    sync = DocumentSync()
    sync.edit_xml(HELLO_XML)
    previous_json = sync.json_text

    result = sync.edit_xml("<paragraph>Hello")

    assert not result.synced
    assert sync.json_text == previous_json
    assert sync.status().message.startswith("XML:")


def test_conversion_error_keeps_previous_xml() -> None:
    sync = DocumentSync()
    sync.edit_json(HELLO_JSON)

    result = sync.edit_json('{"type": "doc", "content": [{"content": []}]}')

    assert not result.synced
    assert sync.conversion_error
    assert sync.xml_text == HELLO_XML
    assert sync.status().message.startswith("Conversion:")


def test_malformed_attrs_and_marks_keep_previous_xml() -> None:
    sync = DocumentSync()
    sync.edit_json(HELLO_JSON)

    for bad in [
        '{"type":"doc","content":[{"type":"paragraph","attrs":"big"}]}',
        '{"type":"doc","content":[{"type":"paragraph","content":'
        '[{"type":"text","text":"x","marks":{"type":"bold"}}]}]}',
    ]:
        result = sync.edit_json(bad)
        assert not result.synced
        assert sync.xml_text == HELLO_XML
        assert sync.status().message.startswith("Conversion:")


def test_non_object_json_is_a_conversion_error() -> None:
    sync = DocumentSync()
    result = sync.edit_json("[1, 2, 3]")
    assert not result.synced
    assert sync.conversion_error
    assert sync.xml_text == ""


def test_recovery_clears_errors() -> None:
    sync = DocumentSync()
    sync.edit_json("{broken")
    sync.edit_json(HELLO_JSON)
    assert sync.status().ok
    assert sync.status().message == "Valid, synced"
    assert sync.xml_text == HELLO_XML


def test_conversion_error_outranks_syntax_error_in_status() -> None:
    sync = DocumentSync()
    sync.edit_json("[1]")
    sync.edit_xml("<broken")
    assert sync.status().message.startswith("Conversion:")
    assert not sync.status().xml_valid


def test_session_uses_its_options() -> None:
    sync = DocumentSync(ConverterOptions(mark_types=frozenset({"em"})))
    sync.edit_xml("<paragraph><em>x</em></paragraph>")
    doc = json.loads(sync.json_text)
    assert doc["content"][0]["content"][0]["marks"] == [{"type": "em"}]


def test_round_trip_through_both_buffers() -> None:
    sync = DocumentSync()
    sync.edit_json(HELLO_JSON)
    sync.edit_xml(sync.xml_text)
    assert json.loads(sync.json_text) == json.loads(HELLO_JSON)
