"""Selection state: single, range and multi select over the visible outline."""

from dataclasses import dataclass
from enum import Enum

from heartbeat.core.tree.navigation import flatten
from heartbeat.core.tree.operations import find_by_id
from heartbeat.models.node import Node


class SelectionMode(Enum):
    SINGLE = "single"
    RANGE = "range"
    MULTI = "multi"


@dataclass(frozen=True)
class Selection:
    """Selected node ids (in selection order) and the anchor of the last plain/toggle select."""

    ids: tuple[str, ...]
    anchor: str
    mode: SelectionMode = SelectionMode.SINGLE

    @property
    def target(self) -> str:
        """The node single-node commands act on."""
        return self.anchor

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.ids


def select(node_id: str) -> Selection:
    """Plain click: the selection becomes just ``node_id``."""
    return Selection(ids=(node_id,), anchor=node_id, mode=SelectionMode.SINGLE)


def extend_range(selection: Selection, tree: Node, node_id: str) -> Selection:
    """Shift-click: select every visible node between the anchor and ``node_id``.

    The span is taken from the current flattened order, so collapsing or
    expanding between two calls changes the result. The anchor is kept. When
    the anchor or the target is not visible, this degrades to a plain select.
    """
    ids = [n.id for n in flatten(tree)]
    if node_id not in ids:
        return selection
    if selection.anchor not in ids:
        return select(node_id)
    a, b = ids.index(selection.anchor), ids.index(node_id)
    lo, hi = min(a, b), max(a, b)
    return Selection(ids=tuple(ids[lo : hi + 1]), anchor=selection.anchor, mode=SelectionMode.RANGE)


def toggle(selection: Selection, node_id: str) -> Selection:
    """Ctrl/Cmd-click: add or remove ``node_id`` without touching the others."""
    if node_id in selection.ids:
        remaining = tuple(i for i in selection.ids if i != node_id)
        if not remaining:
            return selection
        anchor = selection.anchor if selection.anchor in remaining else remaining[-1]
        return Selection(ids=remaining, anchor=anchor, mode=SelectionMode.MULTI)
    return Selection(ids=(*selection.ids, node_id), anchor=node_id, mode=SelectionMode.MULTI)


def prune(selection: Selection, tree: Node, *, fallback: str | None = None) -> Selection:
    """Drop ids that no longer exist in ``tree``.

    If nothing survives, select ``fallback`` (default: the root).
    """
    alive = tuple(i for i in selection.ids if find_by_id(tree, i) is not None)
    if len(alive) == len(selection.ids):
        return selection
    if not alive:
        target = fallback if fallback is not None and find_by_id(tree, fallback) else tree.id
        return select(target)
    anchor = selection.anchor if selection.anchor in alive else alive[-1]
    mode = SelectionMode.SINGLE if len(alive) == 1 else selection.mode
    return Selection(ids=alive, anchor=anchor, mode=mode)
