"""Structural operations over immutable outline trees.

Every operation takes a tree (its root node) and returns a new tree. Only the
nodes on the path from the root to the changed node are rebuilt; all other
subtrees are shared with the input. When an operation cannot apply (unknown
id, invalid target) it returns the input tree object itself, so callers detect
a no-op with ``result is tree``. Deleting the root is the one precondition
that raises.
"""

import uuid
from collections.abc import Callable, Iterator
from dataclasses import dataclass, replace

from loguru import logger

from heartbeat.core.tree.commands import apply_text
from heartbeat.errors import RootDeletionError
from heartbeat.models.node import CHECKLIST_TYPE, Node, NodeAttributes, NodeStyle


@dataclass(frozen=True)
class Location:
    """A node together with its parent and its index among the parent's children."""

    node: Node
    parent: Node | None
    index: int


def generate_id() -> str:
    """Return a fresh opaque node id."""
    return uuid.uuid4().hex[:12]


def iter_nodes(tree: Node) -> Iterator[Node]:
    """Yield every node in pre-order, including collapsed subtrees."""
    stack = [tree]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def find_by_id(tree: Node, node_id: str) -> Node | None:
    """Depth-first lookup of a node by id."""
    for node in iter_nodes(tree):
        if node.id == node_id:
            return node
    return None


def locate(tree: Node, node_id: str) -> Location | None:
    """Find a node and its parent. The root has no parent and index 0."""
    if tree.id == node_id:
        return Location(node=tree, parent=None, index=0)
    for node in iter_nodes(tree):
        for i, child in enumerate(node.children):
            if child.id == node_id:
                return Location(node=child, parent=node, index=i)
    return None


def _update(tree: Node, node_id: str, fn: Callable[[Node], Node]) -> Node:
    """Rebuild the path to ``node_id`` with ``fn`` applied to that node.

    Returns ``tree`` itself when the id is absent or ``fn`` changed nothing.
    """
    if tree.id == node_id:
        return fn(tree)
    for i, child in enumerate(tree.children):
        new_child = _update(child, node_id, fn)
        if new_child is not child:
            return replace(tree, children=(*tree.children[:i], new_child, *tree.children[i + 1 :]))
    return tree


def _clamp(index: int, size: int) -> int:
    if index < 0:
        return size
    return min(index, size)


def insert_node(tree: Node, parent_id: str, index: int, node: Node) -> Node:
    """Insert ``node`` (and its subtree) under ``parent_id`` at ``index``.

    A negative or too-large index appends. No-op if the parent is missing or if
    an id of the inserted subtree is already used in the tree.
    """
    existing = {n.id for n in iter_nodes(tree)}
    clashes = [n.id for n in iter_nodes(node) if n.id in existing]
    if clashes:
        logger.warning("Refusing insert: ids already in tree: {}", clashes[:5])
        return tree

    def _insert(parent: Node) -> Node:
        pos = _clamp(index, len(parent.children))
        return replace(parent, children=(*parent.children[:pos], node, *parent.children[pos:]))

    return _update(tree, parent_id, _insert)


def add_child(tree: Node, parent_id: str, node: Node) -> Node:
    """Append ``node`` as the last child of ``parent_id``."""
    return insert_node(tree, parent_id, -1, node)


def add_sibling(tree: Node, reference_id: str, node: Node) -> Node:
    """Insert ``node`` right after ``reference_id`` in its parent's children."""
    loc = locate(tree, reference_id)
    if loc is None or loc.parent is None:
        return tree
    return insert_node(tree, loc.parent.id, loc.index + 1, node)


def _detach(tree: Node, parent_id: str, node_id: str) -> Node:
    def _remove(parent: Node) -> Node:
        return replace(parent, children=tuple(c for c in parent.children if c.id != node_id))

    return _update(tree, parent_id, _remove)


def delete_node(tree: Node, node_id: str) -> Node:
    """Remove a node and its whole subtree.

    Raises:
        RootDeletionError: if ``node_id`` is the root.
    """
    if node_id == tree.id:
        raise RootDeletionError(node_id)
    loc = locate(tree, node_id)
    if loc is None or loc.parent is None:
        return tree
    return _detach(tree, loc.parent.id, node_id)


def edit_text(tree: Node, node_id: str, new_text: str) -> Node:
    """Replace a node's text; a leading slash command may also change its type."""
    return _update(tree, node_id, lambda n: _unless_same(n, apply_text(n, new_text)))


def _unless_same(old: Node, new: Node) -> Node:
    return old if new == old else new


def update_attributes(tree: Node, node_id: str, attrs: NodeAttributes) -> Node:
    """Overwrite the non-structural fields of a node."""
    return _update(tree, node_id, lambda n: _unless_same(n, n.with_attributes(attrs)))


def move_node(tree: Node, node_id: str, new_parent_id: str, new_index: int) -> Node:
    """Detach a node and re-insert it under ``new_parent_id`` at ``new_index``.

    ``new_index`` counts positions after the node has been detached. Moving
    the root, moving onto a missing parent, or moving a node under itself or
    one of its descendants is rejected.
    """
    loc = locate(tree, node_id)
    if loc is None or loc.parent is None:
        return tree
    if find_by_id(loc.node, new_parent_id) is not None:
        logger.warning("Refusing move of {} under its own subtree ({})", node_id, new_parent_id)
        return tree
    if find_by_id(tree, new_parent_id) is None:
        return tree

    detached = _detach(tree, loc.parent.id, node_id)
    moved = insert_node(detached, new_parent_id, new_index, loc.node)
    if moved is detached:
        return tree
    if moved == tree:
        return tree
    return moved


def toggle_collapsed(tree: Node, node_id: str) -> Node:
    return _update(tree, node_id, lambda n: replace(n, collapsed=not n.collapsed))


def set_collapsed(tree: Node, node_id: str, collapsed: bool) -> Node:
    return _update(
        tree, node_id, lambda n: n if n.collapsed == collapsed else replace(n, collapsed=collapsed)
    )


def set_style(tree: Node, node_id: str, style: NodeStyle | None) -> Node:
    """Set (or with None, clear) a node's presentation style."""
    return _update(tree, node_id, lambda n: n if n.style == style else replace(n, style=style))


def toggle_checklist(tree: Node, node_id: str) -> Node:
    """Turn a node into an unchecked checklist item, or a checklist item back into text."""

    def _toggle(n: Node) -> Node:
        if n.is_checklist:
            return replace(n, type=None, checked=None)
        return replace(n, type=CHECKLIST_TYPE, checked=False)

    return _update(tree, node_id, _toggle)


def toggle_checked(tree: Node, node_id: str) -> Node:
    """Flip the checkbox of a checklist item. No-op for plain nodes."""
    return _update(
        tree, node_id, lambda n: replace(n, checked=not n.checked) if n.is_checklist else n
    )


def indent(tree: Node, node_id: str) -> Node:
    """Make a node the last child of its preceding sibling (Tab)."""
    loc = locate(tree, node_id)
    if loc is None or loc.parent is None or loc.index == 0:
        return tree
    previous = loc.parent.children[loc.index - 1]
    return move_node(tree, node_id, previous.id, len(previous.children))


def outdent(tree: Node, node_id: str) -> Node:
    """Make a node the next sibling of its parent (Shift+Tab)."""
    loc = locate(tree, node_id)
    if loc is None or loc.parent is None or loc.parent.id == tree.id:
        return tree
    parent_loc = locate(tree, loc.parent.id)
    if parent_loc is None or parent_loc.parent is None:
        return tree
    return move_node(tree, node_id, parent_loc.parent.id, parent_loc.index + 1)


def with_fresh_ids(node: Node) -> Node:
    """Deep copy of a subtree with a newly generated id at every level."""
    return replace(
        node,
        id=generate_id(),
        children=tuple(with_fresh_ids(c) for c in node.children),
    )
