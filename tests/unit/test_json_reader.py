"""Tests for JSON import and export."""

import json

import pytest

from heartbeat.core.importer.json_reader import (
    export_json,
    node_from_dict,
    node_to_dict,
    parse_document_data,
    parse_json,
)
from heartbeat.errors import DocumentParseError
from heartbeat.models.node import CHECKLIST_TYPE, Node, NodeStyle


def test_json_round_trip_preserves_everything(tree: Node) -> None:
    rich = Node(
        id="root",
        text="Root",
        children=(
            *tree.children,
            Node(id="t", text="todo", type=CHECKLIST_TYPE, checked=True, style=NodeStyle(text_color="red")),
        ),
    )
    assert parse_json(export_json(rich)) == rich


def test_empty_style_survives_round_trip() -> None:
    node = Node(id="root", text="R", style=NodeStyle())
    assert node_to_dict(node)["style"] == {}
    assert parse_json(export_json(node)) == node


def test_unset_fields_are_omitted() -> None:
    assert node_to_dict(Node(id="n", text="plain")) == {"id": "n", "text": "plain", "children": []}


def test_collapsed_flag_is_written(tree: Node) -> None:
    data = json.loads(export_json(tree))
    archive = data["children"][2]
    assert archive["collapsed"] is True
    assert "collapsed" not in data["children"][0]


def test_missing_optional_fields_get_defaults() -> None:
    node = node_from_dict({"id": "root", "text": "Root"})
    assert node == Node(id="root", text="Root")


def test_checklist_pairing_is_normalised() -> None:
    item = node_from_dict({"id": "n", "text": "x", "type": CHECKLIST_TYPE})
    assert item.checked is False
    plain = node_from_dict({"id": "n", "text": "x", "checked": True})
    assert plain.checked is None


def test_invalid_json_raises_parse_error() -> None:
    with pytest.raises(DocumentParseError, match="Invalid JSON"):
        parse_json("{not json")


def test_non_object_raises_parse_error() -> None:
    with pytest.raises(DocumentParseError):
        parse_json("[1, 2, 3]")


def test_node_without_id_raises_parse_error() -> None:
    with pytest.raises(DocumentParseError, match="Malformed"):
        parse_document_data({"text": "no id", "children": []})


def test_malformed_child_raises_parse_error() -> None:
    with pytest.raises(DocumentParseError):
        parse_document_data({"id": "root", "text": "R", "children": ["not a node"]})
