"""Tab-indented plain text: one line per node, one tab per level.

The format carries text and hierarchy only. Ids are regenerated on import and
collapse state, checklist type and style are lost.

Backslashes, tabs and line breaks inside node text are written as ``\\\\``,
``\\t``, ``\\n`` and ``\\r`` so they cannot be mistaken for indentation or a
new line.
"""

import io
import re
from dataclasses import dataclass, field

from heartbeat.config import ROOT_ID
from heartbeat.core.tree.navigation import walk
from heartbeat.core.tree.operations import generate_id
from heartbeat.errors import DocumentParseError
from heartbeat.models.node import Node

_ESCAPES = {"\\": "\\\\", "\t": "\\t", "\n": "\\n", "\r": "\\r"}
_UNESCAPES = {"\\": "\\", "t": "\t", "n": "\n", "r": "\r"}
_ESCAPE_RE = re.compile(r"[\\\t\n\r]")
_UNESCAPE_RE = re.compile(r"\\([\\tnr])")


def _escape(text: str) -> str:
    return _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group()], text)


def _unescape(text: str) -> str:
    return _UNESCAPE_RE.sub(lambda m: _UNESCAPES[m.group(1)], text)


def render_tab_text(tree: Node) -> str:
    """Export every node (collapsed or not) as a tab-indented line."""
    out = io.StringIO()
    for node, depth in walk(tree):
        out.write("\t" * depth + _escape(node.text) + "\n")
    return out.getvalue()


@dataclass
class _Draft:
    """Mutable node under construction; frozen into a Node at the end."""

    text: str
    depth: int
    children: list["_Draft"] = field(default_factory=list)

    def freeze(self, node_id: str) -> Node:
        return Node(
            id=node_id,
            text=self.text,
            children=tuple(c.freeze(generate_id()) for c in self.children),
        )


def parse_tab_text(text: str, *, root_id: str = ROOT_ID) -> Node:
    """Rebuild a tree from tab-indented text.

    The first line is the root, even when it is empty. After it, each line's
    leading tab count is its depth and its parent is the nearest preceding
    line with a strictly smaller depth. A line made only of tabs is a node
    with empty text; completely empty lines are ignored.

    Raises:
        DocumentParseError: if there is no content, the first line is indented,
            or more than one line sits at depth zero.
    """
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    root: _Draft | None = None
    stack: list[_Draft] = []

    for lineno, raw in enumerate(lines, start=1):
        line = raw.removesuffix("\r")
        if root is not None and not line:
            continue
        content = line.lstrip("\t")
        depth = len(line) - len(content)
        draft = _Draft(text=_unescape(content), depth=depth)

        if root is None:
            if depth != 0:
                msg = f"Line {lineno}: the first line must not be indented"
                raise DocumentParseError(msg)
            root = draft
            stack = [draft]
            continue
        if depth == 0:
            msg = f"Line {lineno}: a document has exactly one top-level line"
            raise DocumentParseError(msg)

        while stack[-1].depth >= depth:
            stack.pop()
        stack[-1].children.append(draft)
        stack.append(draft)

    if root is None:
        msg = "No content to import"
        raise DocumentParseError(msg)
    return root.freeze(root_id)
