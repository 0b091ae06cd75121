"""Render node subtrees as markdown."""

import io

from heartbeat.core.tree.navigation import walk
from heartbeat.core.tree.operations import find_by_id
from heartbeat.models.node import Node


def render_subtree_as_markdown(
    tree: Node,
    *,
    node_id: str | None = None,
    max_depth: int | None = None,
    checkboxes: bool = False,
) -> str:
    """Render a node and its descendants as an indented bullet list.

    Args:
        tree: Root of the outline.
        node_id: The node to start rendering from (default: the root).
        max_depth: Max levels below the start node to include (None = unlimited).
        checkboxes: Render checklist items as ``- [ ]`` / ``- [x]``.

    Returns:
        Markdown string, one ``- text`` bullet per node, two spaces per level.
    """
    start = tree if node_id is None else find_by_id(tree, node_id)
    if start is None:
        return ""

    out = io.StringIO()
    for node, depth in walk(start):
        if max_depth is not None and depth > max_depth:
            continue
        indent = "  " * depth

        prefix = "- "
        if checkboxes and node.is_checklist:
            prefix = "- [x] " if node.checked else "- [ ] "

        # Continuation lines of multi-line text stay inside the bullet
        lines = node.text.split("\n")
        out.write(f"{indent}{prefix}{lines[0]}\n")
        for line in lines[1:]:
            out.write(f"{indent}  {line}\n")

        # Truncation indicator when children are cut off by max_depth
        if max_depth is not None and depth == max_depth and node.children:
            count = len(node.children)
            noun = "child" if count == 1 else "children"
            out.write(f"{indent}  - ... ({count} more {noun}, id={node.id})\n")

    return out.getvalue()
