"""Copy, cut and paste of whole subtrees."""

from dataclasses import dataclass
from typing import Literal

from heartbeat.core.tree.navigation import path_to
from heartbeat.core.tree.operations import (
    Location,
    delete_node,
    find_by_id,
    insert_node,
    iter_nodes,
    locate,
    with_fresh_ids,
)
from heartbeat.models.node import Node

ClipboardOperation = Literal["copy", "cut"]


@dataclass(frozen=True)
class Clipboard:
    """Copied subtrees, in document order, and how they were taken."""

    nodes: tuple[Node, ...]
    operation: ClipboardOperation


@dataclass(frozen=True)
class CutResult:
    tree: Node
    clipboard: Clipboard | None
    removed: tuple[Location, ...]


@dataclass(frozen=True)
class PasteResult:
    tree: Node
    pasted: tuple[Node, ...]
    clipboard: Clipboard | None


def top_level_ids(tree: Node, node_ids: list[str] | tuple[str, ...]) -> list[str]:
    """Selected ids in document order, without ids nested under another selected id.

    Unknown ids and the root are ignored; copying a subtree already includes
    its descendants. Collapsed subtrees are searched too, since a node may be
    collapsed away after it was selected.
    """
    wanted = set(node_ids) - {tree.id}
    result: list[str] = []
    for node in iter_nodes(tree):
        if node.id not in wanted:
            continue
        ancestors = {n.id for n in path_to(tree, node.id)[:-1]}
        if ancestors & wanted:
            continue
        result.append(node.id)
    return result


def copy_nodes(tree: Node, node_ids: list[str] | tuple[str, ...]) -> Clipboard | None:
    """Deep-copy the selected subtrees with fresh ids. None when nothing copyable is selected."""
    ids = top_level_ids(tree, node_ids)
    if not ids:
        return None
    copies = []
    for node_id in ids:
        node = find_by_id(tree, node_id)
        if node is not None:
            copies.append(with_fresh_ids(node))
    return Clipboard(nodes=tuple(copies), operation="copy")


def cut_nodes(tree: Node, node_ids: list[str] | tuple[str, ...]) -> CutResult:
    """Copy the selected subtrees, then delete the originals immediately.

    ``removed`` holds each original as located right before its own deletion,
    in deletion order.
    """
    clipboard = copy_nodes(tree, node_ids)
    if clipboard is None:
        return CutResult(tree=tree, clipboard=None, removed=())
    removed: list[Location] = []
    for node_id in top_level_ids(tree, node_ids):
        loc = locate(tree, node_id)
        if loc is None:
            continue
        tree = delete_node(tree, node_id)
        removed.append(loc)
    return CutResult(
        tree=tree,
        clipboard=Clipboard(nodes=clipboard.nodes, operation="cut"),
        removed=tuple(removed),
    )


def paste(tree: Node, clipboard: Clipboard, target_id: str, *, as_children: bool = False) -> PasteResult:
    """Insert the clipboard contents after ``target_id`` or as its last children.

    Pasting after the root is not possible, so it pastes as children there.
    Each paste inserts fresh ids, so a copy can be pasted repeatedly. The
    clipboard survives a copy-paste and is emptied by a cut-paste.
    """
    loc = locate(tree, target_id)
    if loc is None:
        return PasteResult(tree=tree, pasted=(), clipboard=clipboard)

    if as_children or loc.parent is None:
        parent_id, index = loc.node.id, len(loc.node.children)
    else:
        parent_id, index = loc.parent.id, loc.index + 1

    pasted: list[Node] = []
    for node in clipboard.nodes:
        fresh = with_fresh_ids(node)
        tree = insert_node(tree, parent_id, index, fresh)
        pasted.append(fresh)
        index += 1

    remaining = None if clipboard.operation == "cut" else clipboard
    return PasteResult(tree=tree, pasted=tuple(pasted), clipboard=remaining)
