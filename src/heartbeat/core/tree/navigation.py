"""Tree navigation: flattening, breadcrumbs, siblings, zoom."""

from collections.abc import Iterator

from heartbeat.core.tree.operations import find_by_id, locate
from heartbeat.models.node import Breadcrumb, Node, ZoomView


def flatten(tree: Node) -> list[Node]:
    """Pre-order list of visible nodes; children of collapsed nodes are skipped.

    The order equals top-to-bottom on-screen order.
    """
    result: list[Node] = []
    stack = [tree]
    while stack:
        node = stack.pop()
        result.append(node)
        if not node.collapsed:
            stack.extend(reversed(node.children))
    return result


def walk(tree: Node) -> Iterator[tuple[Node, int]]:
    """Yield ``(node, depth)`` pairs in pre-order, ignoring collapse."""
    stack: list[tuple[Node, int]] = [(tree, 0)]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        stack.extend((c, depth + 1) for c in reversed(node.children))


def path_to(tree: Node, node_id: str) -> list[Node]:
    """Nodes from the root down to ``node_id`` (inclusive); empty if not found."""
    if tree.id == node_id:
        return [tree]
    for child in tree.children:
        sub = path_to(child, node_id)
        if sub:
            return [tree, *sub]
    return []


def get_breadcrumbs(tree: Node, node_id: str) -> tuple[Breadcrumb, ...]:
    """Get ancestor breadcrumbs for a node.

    Returns breadcrumbs in order from root to immediate parent (excludes the node itself).
    """
    ancestors = path_to(tree, node_id)[:-1]
    return tuple(
        Breadcrumb(node_id=n.id, text=n.text, depth=depth) for depth, n in enumerate(ancestors)
    )


def zoom_scope(tree: Node, node_id: str) -> ZoomView | None:
    """Present the subtree rooted at ``node_id`` with its breadcrumbs.

    The tree itself is not altered.
    """
    node = find_by_id(tree, node_id)
    if node is None:
        return None
    return ZoomView(node=node, breadcrumbs=get_breadcrumbs(tree, node_id))


def get_siblings(
    tree: Node, node_id: str, *, count: int = 3
) -> tuple[tuple[Node, ...], tuple[Node, ...]]:
    """Get siblings before and after a node.

    Returns (siblings_before, siblings_after) tuples.
    """
    loc = locate(tree, node_id)
    if loc is None or loc.parent is None:
        return (), ()
    siblings = loc.parent.children
    return (
        siblings[max(0, loc.index - count) : loc.index],
        siblings[loc.index + 1 : loc.index + 1 + count],
    )


def get_children(tree: Node, parent_id: str, *, limit: int = 50) -> tuple[Node, ...]:
    """Get direct children of a node, in sibling order."""
    parent = find_by_id(tree, parent_id)
    if parent is None:
        return ()
    return parent.children[:limit]


def step(tree: Node, node_id: str, offset: int) -> str:
    """Id of the visible node ``offset`` rows away from ``node_id`` (arrow keys).

    Clamped at both ends. An id that is not visible maps to the first row.
    """
    visible = flatten(tree)
    ids = [n.id for n in visible]
    if node_id not in ids:
        return ids[0]
    idx = ids.index(node_id) + offset
    return ids[max(0, min(idx, len(ids) - 1))]
