"""Editing session: one document with selection, edit mode, history and autosave.

Commands arrive one at a time (keystrokes, CLI calls, MCP tool calls). Each
structural command applies a pure tree operation, records what is needed to
invert it, and hands the new snapshot to the autosaver. While a node's text is
being edited, every other command is ignored.
"""

import functools
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

from loguru import logger

from heartbeat.config import DEFAULT_HISTORY_SIZE, ROOT_ID
from heartbeat.core.history.manager import HistoryManager
from heartbeat.core.history.replay import redo_step, undo_step
from heartbeat.core.importer.json_reader import export_json, parse_json
from heartbeat.core.importer.tab_text import parse_tab_text, render_tab_text
from heartbeat.core.search.searcher import search_with_context
from heartbeat.core.selection.clipboard import Clipboard, copy_nodes, cut_nodes, paste, top_level_ids
from heartbeat.core.selection.model import Selection, extend_range, prune, select, toggle
from heartbeat.core.tree import operations as ops
from heartbeat.core.tree.commands import apply_text
from heartbeat.core.tree.markdown import render_subtree_as_markdown
from heartbeat.core.tree.navigation import flatten, get_breadcrumbs, step, zoom_scope
from heartbeat.errors import DocumentParseError, HeartbeatError
from heartbeat.models.history import (
    AddOperation,
    DeleteOperation,
    EditOperation,
    MoveOperation,
    Operation,
)
from heartbeat.models.node import Breadcrumb, Document, Node, NodeStyle, SearchResult, ZoomView
from heartbeat.protocols import DocumentStoreProtocol
from heartbeat.store.autosave import Autosaver
from heartbeat.store.documents import default_document, document_payload, load_document

NEW_CHILD_TEXT = "New Child"
NEW_SIBLING_TEXT = "New Sibling"

F = TypeVar("F", bound=Callable[..., Any])


class EditMode(Enum):
    COMMAND = "command"
    EDIT = "edit"


class ExportFormat(str, Enum):
    JSON = "json"
    MARKDOWN = "markdown"
    TEXT = "text"


def _ignored_while_editing(result: Any = False) -> Callable[[F], F]:
    """Make a command return ``result`` untouched while a node is being edited."""

    def decorator(method: F) -> F:
        @functools.wraps(method)
        def wrapper(self: "OutlineEditor", *args: Any, **kwargs: Any) -> Any:
            if self.mode is EditMode.EDIT:
                logger.debug("Ignoring {} while editing", method.__name__)
                return result
            return method(self, *args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


class OutlineEditor:
    """An outline document open for editing."""

    def __init__(
        self,
        document: Document,
        *,
        history: HistoryManager | None = None,
        autosaver: Autosaver | None = None,
    ) -> None:
        self.key = document.key
        self._tree = document.root
        self.history = history if history is not None else HistoryManager()
        self.autosaver = autosaver
        self.selection: Selection = select(self._tree.id)
        self.mode = EditMode.COMMAND
        self.edit_buffer = ""
        self.zoom_id: str | None = None
        self.clipboard: Clipboard | None = None

    @classmethod
    def open(
        cls,
        store: DocumentStoreProtocol,
        key: str,
        *,
        fallback: Callable[[str], Document] = default_document,
        history_size: int = DEFAULT_HISTORY_SIZE,
        autosave: bool = True,
    ) -> "OutlineEditor":
        """Load ``key`` from ``store`` (or the fallback document) and save changes back to it."""
        document = load_document(store, key, fallback=fallback)
        return cls(
            document,
            history=HistoryManager(history_size),
            autosaver=Autosaver(store) if autosave else None,
        )

    # --- State ---

    @property
    def tree(self) -> Node:
        return self._tree

    @property
    def document(self) -> Document:
        return Document(key=self.key, root=self._tree)

    @property
    def target(self) -> str:
        return self.selection.target

    @property
    def has_unsaved_changes(self) -> bool:
        return self.autosaver is not None and self.autosaver.has_unsaved_changes

    def node(self, node_id: str) -> Node | None:
        return ops.find_by_id(self._tree, node_id)

    def save(self) -> None:
        """Schedule a save of the current state."""
        if self.autosaver is not None:
            self.autosaver.schedule(self.key, document_payload(self.document))

    def flush(self) -> bool:
        """Wait for pending saves. True when everything reached the store."""
        if self.autosaver is None:
            return True
        return self.autosaver.flush()

    def close(self) -> None:
        if self.autosaver is not None:
            self.autosaver.close()

    def _set_tree(self, tree: Node) -> None:
        self._tree = tree
        self.selection = prune(self.selection, tree)
        if self.zoom_id is not None and ops.find_by_id(tree, self.zoom_id) is None:
            self.zoom_id = None
        self.save()

    def _commit(self, tree: Node, operations: list[Operation]) -> bool:
        """Record ``operations`` as one undo step and make ``tree`` current."""
        if tree is self._tree or not operations:
            return False
        with self.history.group():
            for op in operations:
                self.history.push(op)
        self._set_tree(tree)
        return True

    # --- Recording helpers ---

    @staticmethod
    def _added(tree: Node, node_id: str) -> AddOperation:
        parent_id, index, node = _child_location(tree, node_id)
        return AddOperation(node_id=node_id, parent_id=parent_id, index=index, data=node)

    @staticmethod
    def _moved(before: Node, after: Node, node_id: str) -> MoveOperation:
        old_parent_id, old_index, _ = _child_location(before, node_id)
        new_parent_id, new_index, _ = _child_location(after, node_id)
        return MoveOperation(
            node_id=node_id,
            old_parent_id=old_parent_id,
            new_parent_id=new_parent_id,
            old_index=old_index,
            new_index=new_index,
        )

    @staticmethod
    def _edited(before: Node, after: Node, node_id: str) -> EditOperation | None:
        """The edit turning ``node_id`` in ``before`` into its state in ``after``."""
        old = ops.find_by_id(before, node_id)
        new = ops.find_by_id(after, node_id)
        if old is None or new is None or after is before:
            return None
        return EditOperation(node_id=node_id, old=old.attributes, new=new.attributes)

    def _apply_edit(self, node_id: str | None, fn: Callable[[Node, str], Node]) -> bool:
        """Apply a non-structural change and record it as an edit."""
        node_id = node_id or self.target
        tree = fn(self._tree, node_id)
        op = self._edited(self._tree, tree, node_id)
        if op is None:
            return False
        return self._commit(tree, [op])

    def _apply_move(self, node_id: str, fn: Callable[[Node], Node]) -> bool:
        tree = fn(self._tree)
        if tree is self._tree:
            return False
        return self._commit(tree, [self._moved(self._tree, tree, node_id)])

    # --- Selection & navigation ---

    @property
    def scope_root(self) -> Node:
        """The zoomed-into node, or the whole tree."""
        view = self.zoom_view()
        return view.node if view is not None else self._tree

    def zoom_view(self) -> ZoomView | None:
        """The zoomed-into subtree with its breadcrumbs, or None when not zoomed."""
        if self.zoom_id is None:
            return None
        return zoom_scope(self._tree, self.zoom_id)

    def visible_nodes(self) -> list[Node]:
        """Nodes on screen, top to bottom."""
        return flatten(self.scope_root)

    @_ignored_while_editing()
    def select(self, node_id: str) -> bool:
        if ops.find_by_id(self.scope_root, node_id) is None:
            return False
        self.selection = select(node_id)
        return True

    @_ignored_while_editing()
    def extend_selection(self, node_id: str) -> bool:
        new = extend_range(self.selection, self.scope_root, node_id)
        changed = new != self.selection
        self.selection = new
        return changed

    @_ignored_while_editing()
    def toggle_selection(self, node_id: str) -> bool:
        if ops.find_by_id(self.scope_root, node_id) is None:
            return False
        new = toggle(self.selection, node_id)
        changed = new != self.selection
        self.selection = new
        return changed

    @_ignored_while_editing()
    def select_next(self) -> bool:
        return self.select(step(self.scope_root, self.target, 1))

    @_ignored_while_editing()
    def select_previous(self) -> bool:
        return self.select(step(self.scope_root, self.target, -1))

    @_ignored_while_editing()
    def zoom_in(self, node_id: str | None = None) -> bool:
        node_id = node_id or self.target
        if ops.find_by_id(self._tree, node_id) is None:
            return False
        self.zoom_id = None if node_id == self._tree.id else node_id
        self.selection = select(node_id)
        return True

    @_ignored_while_editing()
    def zoom_out(self) -> bool:
        """Zoom to the parent of the current zoom node."""
        if self.zoom_id is None:
            return False
        crumbs = get_breadcrumbs(self._tree, self.zoom_id)
        parent = crumbs[-1].node_id if crumbs else self._tree.id
        return self.zoom_in(parent)

    def breadcrumbs(self) -> tuple[Breadcrumb, ...]:
        """Ancestors of the zoom node, root first, for display above the zoomed view."""
        view = self.zoom_view()
        return view.breadcrumbs if view is not None else ()

    def search(self, query: str, *, limit: int | None = None) -> list[SearchResult]:
        return search_with_context(self._tree, query, limit=limit)

    # --- Structure ---

    @_ignored_while_editing(None)
    def add_child(self, text: str = NEW_CHILD_TEXT, *, parent_id: str | None = None) -> str | None:
        """Append a new node under ``parent_id`` (default: the selection). Returns its id."""
        new = apply_text(Node(id=ops.generate_id(), text=""), text)
        tree = ops.add_child(self._tree, parent_id or self.target, new)
        if tree is self._tree:
            return None
        self._commit(tree, [self._added(tree, new.id)])
        return new.id

    @_ignored_while_editing(None)
    def add_sibling(self, text: str = NEW_SIBLING_TEXT, *, after_id: str | None = None) -> str | None:
        """Insert a new node after ``after_id`` (default: the selection). Returns its id."""
        new = apply_text(Node(id=ops.generate_id(), text=""), text)
        tree = ops.add_sibling(self._tree, after_id or self.target, new)
        if tree is self._tree:
            return None
        self._commit(tree, [self._added(tree, new.id)])
        return new.id

    @_ignored_while_editing()
    def delete(self, node_id: str | None = None) -> bool:
        """Delete one node, or the whole selection when no id is given.

        The root is never deleted. Afterwards the previous sibling, the next
        sibling or the parent of the last deleted node is selected.
        """
        ids = [node_id] if node_id else list(self.selection.ids)
        if self._tree.id in ids:
            logger.warning("The root node cannot be deleted")
            ids = [i for i in ids if i != self._tree.id]
        tree = self._tree
        operations: list[DeleteOperation] = []
        for i in top_level_ids(tree, ids):
            loc = ops.locate(tree, i)
            if loc is None or loc.parent is None:
                continue
            tree = ops.delete_node(tree, i)
            operations.append(
                DeleteOperation(node_id=i, parent_id=loc.parent.id, index=loc.index, data=loc.node)
            )
        if not self._commit(tree, list(operations)):
            return False
        last = operations[-1]
        parent = ops.find_by_id(tree, last.parent_id)
        if parent is not None:
            if last.index > 0 and last.index - 1 < len(parent.children):
                self.selection = select(parent.children[last.index - 1].id)
            elif last.index < len(parent.children):
                self.selection = select(parent.children[last.index].id)
            else:
                self.selection = select(parent.id)
        return True

    @_ignored_while_editing()
    def move(self, node_id: str, new_parent_id: str, index: int = -1) -> bool:
        """Move a node under ``new_parent_id`` at ``index`` (-1 = last)."""
        return self._apply_move(node_id, lambda t: ops.move_node(t, node_id, new_parent_id, index))

    @_ignored_while_editing()
    def indent(self, node_id: str | None = None) -> bool:
        node_id = node_id or self.target
        return self._apply_move(node_id, lambda t: ops.indent(t, node_id))

    @_ignored_while_editing()
    def outdent(self, node_id: str | None = None) -> bool:
        node_id = node_id or self.target
        return self._apply_move(node_id, lambda t: ops.outdent(t, node_id))

    # --- Node fields ---

    @_ignored_while_editing()
    def edit_text(self, node_id: str, text: str) -> bool:
        """Commit new text to a node directly, outside the edit-mode flow."""
        return self._apply_edit(node_id, lambda t, i: ops.edit_text(t, i, text))

    @_ignored_while_editing()
    def toggle_collapsed(self, node_id: str | None = None) -> bool:
        return self._apply_edit(node_id, ops.toggle_collapsed)

    @_ignored_while_editing()
    def set_collapsed(self, collapsed: bool, node_id: str | None = None) -> bool:
        return self._apply_edit(node_id, lambda t, i: ops.set_collapsed(t, i, collapsed))

    @_ignored_while_editing()
    def set_style(self, style: NodeStyle | None, node_id: str | None = None) -> bool:
        return self._apply_edit(node_id, lambda t, i: ops.set_style(t, i, style))

    @_ignored_while_editing()
    def toggle_checklist(self, node_id: str | None = None) -> bool:
        return self._apply_edit(node_id, ops.toggle_checklist)

    @_ignored_while_editing()
    def toggle_checked(self, node_id: str | None = None) -> bool:
        return self._apply_edit(node_id, ops.toggle_checked)

    # --- Edit mode ---

    @_ignored_while_editing()
    def begin_edit(self) -> bool:
        """Enter edit mode on the selected node, seeding the buffer with its text."""
        node = ops.find_by_id(self._tree, self.target)
        if node is None:
            return False
        self.mode = EditMode.EDIT
        self.edit_buffer = node.text
        return True

    def set_edit_buffer(self, text: str) -> bool:
        if self.mode is not EditMode.EDIT:
            return False
        self.edit_buffer = text
        return True

    def confirm_edit(self, *, open_sibling: bool = False) -> bool:
        """Commit the buffer to the node and return to command mode.

        With ``open_sibling`` (Enter), a new sibling is added after the node
        and opened in edit mode; text change and new sibling undo together.
        """
        if self.mode is not EditMode.EDIT:
            return False
        node_id = self.target
        tree = ops.edit_text(self._tree, node_id, self.edit_buffer)
        operations: list[Operation] = []
        edited = self._edited(self._tree, tree, node_id)
        if edited is not None:
            operations.append(edited)

        sibling: Node | None = None
        if open_sibling and node_id != self._tree.id:
            sibling = Node(id=ops.generate_id(), text=NEW_SIBLING_TEXT)
            with_sibling = ops.add_sibling(tree, node_id, sibling)
            if with_sibling is not tree:
                tree = with_sibling
                operations.append(self._added(tree, sibling.id))
            else:
                sibling = None

        self.mode = EditMode.COMMAND
        self.edit_buffer = ""
        self._commit(tree, operations)

        if sibling is not None:
            self.selection = select(sibling.id)
            self.mode = EditMode.EDIT
            self.edit_buffer = sibling.text
        return True

    def cancel_edit(self) -> bool:
        """Leave edit mode, discarding the buffer."""
        if self.mode is not EditMode.EDIT:
            return False
        self.mode = EditMode.COMMAND
        self.edit_buffer = ""
        return True

    # --- History ---

    @_ignored_while_editing()
    def undo(self) -> bool:
        step_ = self.history.undo()
        if step_ is None:
            return False
        self._set_tree(undo_step(self._tree, step_))
        return True

    @_ignored_while_editing()
    def redo(self) -> bool:
        step_ = self.history.redo()
        if step_ is None:
            return False
        self._set_tree(redo_step(self._tree, step_))
        return True

    # --- Clipboard ---

    @_ignored_while_editing()
    def copy(self) -> bool:
        clipboard = copy_nodes(self._tree, self.selection.ids)
        if clipboard is None:
            return False
        self.clipboard = clipboard
        return True

    @_ignored_while_editing()
    def cut(self) -> bool:
        """Copy the selection and delete the originals right away."""
        result = cut_nodes(self._tree, self.selection.ids)
        if result.clipboard is None:
            return False
        operations: list[Operation] = [
            DeleteOperation(node_id=loc.node.id, parent_id=loc.parent.id, index=loc.index, data=loc.node)
            for loc in result.removed
            if loc.parent is not None
        ]
        fallback = result.removed[0].parent.id if result.removed[0].parent else None
        self.clipboard = result.clipboard
        self._commit(result.tree, operations)
        self.selection = prune(self.selection, self._tree, fallback=fallback)
        return True

    @_ignored_while_editing()
    def paste(self, *, as_children: bool = False) -> bool:
        if self.clipboard is None:
            return False
        result = paste(self._tree, self.clipboard, self.target, as_children=as_children)
        if not result.pasted:
            return False
        operations: list[Operation] = [self._added(result.tree, n.id) for n in result.pasted]
        self.clipboard = result.clipboard
        self._commit(result.tree, operations)
        self.selection = select(result.pasted[-1].id)
        return True

    # --- Import / export ---

    def export(self, fmt: ExportFormat = ExportFormat.JSON, *, node_id: str | None = None) -> str:
        start = self._tree if node_id is None else ops.find_by_id(self._tree, node_id)
        if start is None:
            return ""
        if fmt is ExportFormat.MARKDOWN:
            return render_subtree_as_markdown(start)
        if fmt is ExportFormat.TEXT:
            return render_tab_text(start)
        return export_json(start)

    @_ignored_while_editing()
    def import_document(self, text: str, fmt: ExportFormat = ExportFormat.JSON) -> bool:
        """Replace the whole document with imported content.

        All-or-nothing: on DocumentParseError the current document is kept.
        History is cleared, since the import cannot be undone step by step.

        Raises:
            DocumentParseError: if ``text`` is not a well-formed document.
        """
        if fmt is ExportFormat.TEXT:
            root = parse_tab_text(text, root_id=ROOT_ID)
        elif fmt is ExportFormat.JSON:
            root = parse_json(text)
        else:
            msg = f"Cannot import {fmt.value}"
            raise DocumentParseError(msg)
        root = _checked_import(root)

        self.history.clear()
        self.clipboard = None
        self.zoom_id = None
        self.selection = select(root.id)
        self._set_tree(root)
        logger.info("Imported {} nodes into {}", sum(1 for _ in ops.iter_nodes(root)), self.key)
        return True


def _checked_import(root: Node) -> Node:
    """Enforce the tree invariants on imported content: reserved root id, unique ids."""
    seen: set[str] = set()
    for node in ops.iter_nodes(root):
        if node.id in seen:
            msg = f"Duplicate node id {node.id!r} in import"
            raise DocumentParseError(msg)
        seen.add(node.id)
    if root.id == ROOT_ID:
        return root
    if ROOT_ID in seen:
        msg = f"Imported root is {root.id!r} but a descendant uses the reserved id {ROOT_ID!r}"
        raise DocumentParseError(msg)
    return Node(
        id=ROOT_ID,
        text=root.text,
        children=root.children,
        collapsed=root.collapsed,
        type=root.type,
        checked=root.checked,
        style=root.style,
    )


def _child_location(tree: Node, node_id: str) -> tuple[str, int, Node]:
    """Parent id, index and node of a non-root node that must be in ``tree``."""
    loc = ops.locate(tree, node_id)
    if loc is None or loc.parent is None:
        msg = f"Node {node_id!r} has no parent in the current tree"
        raise HeartbeatError(msg)
    return loc.parent.id, loc.index, loc.node
