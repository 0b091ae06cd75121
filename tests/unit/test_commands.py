"""Tests for slash-command decoding."""

from heartbeat.core.tree.commands import SlashCommand, apply_text, parse_slash_command
from heartbeat.models.node import CHECKLIST_TYPE, Node


def test_parse_known_command_splits_remaining_text() -> None:
    assert parse_slash_command("/check buy milk") == SlashCommand(name="check", text="buy milk")


def test_parse_bare_command_leaves_empty_text() -> None:
    assert parse_slash_command("/text") == SlashCommand(name="text", text="")


def test_unknown_command_is_literal_text() -> None:
    assert parse_slash_command("/unknown thing") is None
    assert parse_slash_command("a/check b") is None
    assert parse_slash_command("/checkmate") is None


def test_apply_check_makes_unchecked_checklist_item() -> None:
    node = apply_text(Node(id="n", text=""), "/check buy milk")
    assert node.text == "buy milk"
    assert node.type == CHECKLIST_TYPE
    assert node.checked is False


def test_apply_check_keeps_existing_checked_state() -> None:
    done = Node(id="n", text="old", type=CHECKLIST_TYPE, checked=True)
    assert apply_text(done, "/check new").checked is True


def test_apply_text_command_reverts_to_plain() -> None:
    done = Node(id="n", text="old", type=CHECKLIST_TYPE, checked=True)
    node = apply_text(done, "/text plain again")
    assert node.text == "plain again"
    assert node.type is None
    assert node.checked is None


def test_apply_plain_text_keeps_type() -> None:
    item = Node(id="n", text="old", type=CHECKLIST_TYPE, checked=False)
    node = apply_text(item, "renamed")
    assert node.text == "renamed"
    assert node.is_checklist
