"""History records: operations carrying enough data to be inverted."""

from dataclasses import dataclass

from heartbeat.models.node import Node, NodeAttributes


@dataclass(frozen=True)
class AddOperation:
    """A node (with its subtree) was inserted. Inverse: delete it."""

    node_id: str
    parent_id: str
    index: int
    data: Node


@dataclass(frozen=True)
class DeleteOperation:
    """A node (with its subtree) was removed. Inverse: re-insert at index."""

    node_id: str
    parent_id: str
    index: int
    data: Node


@dataclass(frozen=True)
class EditOperation:
    """Non-structural fields of a node changed. Inverse: restore ``old``."""

    node_id: str
    old: NodeAttributes
    new: NodeAttributes

    @property
    def old_text(self) -> str:
        return self.old.text

    @property
    def new_text(self) -> str:
        return self.new.text


@dataclass(frozen=True)
class MoveOperation:
    """A node was re-parented or reordered. Inverse: move it back."""

    node_id: str
    old_parent_id: str
    new_parent_id: str
    old_index: int
    new_index: int


Operation = AddOperation | DeleteOperation | EditOperation | MoveOperation


@dataclass(frozen=True)
class HistoryEntry:
    """A recorded operation."""

    operation: Operation
    timestamp: float
    group_id: str | None = None


@dataclass(frozen=True)
class HistoryStep:
    """Entries popped together by one undo or redo, in application order."""

    entries: tuple[HistoryEntry, ...]

    @property
    def group_id(self) -> str | None:
        return self.entries[0].group_id if self.entries else None


@dataclass(frozen=True)
class HistoryState:
    """Snapshot of the history stacks for display."""

    undo_depth: int
    redo_depth: int
    can_undo: bool
    can_redo: bool
