"""Apply recorded operations, forwards or inverted, to a tree."""

from heartbeat.core.tree.operations import delete_node, insert_node, move_node, update_attributes
from heartbeat.models.history import (
    AddOperation,
    DeleteOperation,
    EditOperation,
    HistoryStep,
    MoveOperation,
    Operation,
)
from heartbeat.models.node import Node


def apply_forward(tree: Node, op: Operation) -> Node:
    """Re-apply an operation (redo)."""
    if isinstance(op, AddOperation):
        return insert_node(tree, op.parent_id, op.index, op.data)
    if isinstance(op, DeleteOperation):
        return delete_node(tree, op.node_id)
    if isinstance(op, EditOperation):
        return update_attributes(tree, op.node_id, op.new)
    if isinstance(op, MoveOperation):
        return move_node(tree, op.node_id, op.new_parent_id, op.new_index)
    msg = f"Unknown operation: {op!r}"
    raise TypeError(msg)


def apply_inverse(tree: Node, op: Operation) -> Node:
    """Undo an operation."""
    if isinstance(op, AddOperation):
        return delete_node(tree, op.node_id)
    if isinstance(op, DeleteOperation):
        # Back at the original position, not appended
        return insert_node(tree, op.parent_id, op.index, op.data)
    if isinstance(op, EditOperation):
        return update_attributes(tree, op.node_id, op.old)
    if isinstance(op, MoveOperation):
        return move_node(tree, op.node_id, op.old_parent_id, op.old_index)
    msg = f"Unknown operation: {op!r}"
    raise TypeError(msg)


def undo_step(tree: Node, step: HistoryStep) -> Node:
    for entry in step.entries:
        tree = apply_inverse(tree, entry.operation)
    return tree


def redo_step(tree: Node, step: HistoryStep) -> Node:
    for entry in step.entries:
        tree = apply_forward(tree, entry.operation)
    return tree
