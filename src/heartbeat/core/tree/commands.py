"""Slash commands typed at the start of a node's text.

Decoding is kept apart from the structural operations: ``edit_text`` asks this
module what a committed text means and applies the result. New commands are
added to ``SLASH_COMMANDS`` without touching add/delete/move.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, replace

from heartbeat.models.node import CHECKLIST_TYPE, Node

_COMMAND_RE = re.compile(r"^/(?P<name>[a-z]+)(?:\s+|$)(?P<rest>.*)$", re.DOTALL)


@dataclass(frozen=True)
class SlashCommand:
    """A recognised command token and the text that followed it."""

    name: str
    text: str


def _as_checklist(node: Node) -> Node:
    if node.is_checklist:
        return node
    return replace(node, type=CHECKLIST_TYPE, checked=False)


def _as_text(node: Node) -> Node:
    return replace(node, type=None, checked=None)


SLASH_COMMANDS: dict[str, Callable[[Node], Node]] = {
    "check": _as_checklist,
    "text": _as_text,
}


def parse_slash_command(text: str) -> SlashCommand | None:
    """Split a leading ``/command`` off ``text``.

    Returns None when the text does not start with a registered command, in
    which case the text is stored literally.
    """
    m = _COMMAND_RE.match(text)
    if m is None or m.group("name") not in SLASH_COMMANDS:
        return None
    return SlashCommand(name=m.group("name"), text=m.group("rest"))


def apply_text(node: Node, text: str) -> Node:
    """Return ``node`` with ``text`` committed, honouring a leading slash command."""
    command = parse_slash_command(text)
    if command is None:
        return replace(node, text=text)
    return SLASH_COMMANDS[command.name](replace(node, text=command.text))
