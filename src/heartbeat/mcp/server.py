"""MCP server exposing outline search, reading and editing tools."""

import asyncio
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from heartbeat.config import API_URL, DEFAULT_DOCUMENT_KEY, resolve_data_directory
from heartbeat.core.tree.markdown import render_subtree_as_markdown
from heartbeat.core.tree.navigation import get_breadcrumbs, get_children, get_siblings
from heartbeat.core.tree.operations import find_by_id
from heartbeat.editor import OutlineEditor
from heartbeat.models.node import Node
from heartbeat.protocols import DocumentStoreProtocol
from heartbeat.store.documents import fallback_for
from heartbeat.store.file_store import FileStore
from heartbeat.store.http_store import HttpStore


def _breadcrumbs_str(editor: OutlineEditor, node_id: str) -> str:
    crumbs = get_breadcrumbs(editor.tree, node_id)
    return " > ".join(c.text[:40] for c in crumbs) if crumbs else ""


def _node_summary(node: Node) -> dict[str, Any]:
    entry: dict[str, Any] = {"id": node.id, "text": node.text[:80], "child_count": len(node.children)}
    if node.is_checklist:
        entry["checked"] = node.checked
    return entry


def _history(editor: OutlineEditor) -> dict[str, Any]:
    state = editor.history.state()
    return {"can_undo": state.can_undo, "can_redo": state.can_redo}


# --- Core functions (testable without MCP context) ---


def heartbeat_search(
    editor: OutlineEditor,
    *,
    query: str = "",
    include_breadcrumbs: bool = True,
    limit: int = 20,
) -> dict[str, Any]:
    """Search node text (case-insensitive substring).

    Args:
        query: Search text.
        include_breadcrumbs: Include ancestor chain in results.
        limit: Max results (1-50, default 20).
    """
    if not query.strip():
        return {"error": "No search query provided.", "results": [], "count": 0}

    limit = max(1, min(limit, 50))
    results = editor.search(query, limit=limit)

    serialized = []
    for r in results:
        entry: dict[str, Any] = {
            "node_id": r.node.id,
            "text": r.node.text[:120],
            "snippet": r.snippet,
        }
        if include_breadcrumbs:
            entry["breadcrumbs"] = " > ".join(c.text[:40] for c in r.breadcrumbs)
        serialized.append(entry)
    return {"results": serialized, "count": len(serialized)}


def heartbeat_read_node(
    editor: OutlineEditor,
    *,
    node_id: str = "root",
    max_depth: int | None = None,
) -> dict[str, Any]:
    """Read a node and its subtree as markdown.

    Args:
        node_id: Node ID to read (default: the root).
        max_depth: Max depth levels to include (None = unlimited).
    """
    md = render_subtree_as_markdown(editor.tree, node_id=node_id, max_depth=max_depth, checkboxes=True)
    if not md:
        return {"error": f"Node '{node_id}' not found."}
    return {
        "content": md,
        "node_id": node_id,
        "breadcrumbs": _breadcrumbs_str(editor, node_id),
    }


def heartbeat_get_node_context(
    editor: OutlineEditor,
    *,
    node_id: str,
    sibling_count: int = 3,
    child_limit: int = 20,
) -> dict[str, Any]:
    """Get a node with breadcrumbs, siblings, and children."""
    node = find_by_id(editor.tree, node_id)
    if node is None:
        return {"error": f"Node '{node_id}' not found."}
    before, after = get_siblings(editor.tree, node_id, count=sibling_count)
    return {
        "node": _node_summary(node),
        "breadcrumbs": _breadcrumbs_str(editor, node_id),
        "siblings_before": [_node_summary(s) for s in before],
        "siblings_after": [_node_summary(s) for s in after],
        "children": [_node_summary(c) for c in get_children(editor.tree, node_id, limit=child_limit)],
    }


def heartbeat_add_node(
    editor: OutlineEditor,
    *,
    parent_id: str,
    text: str,
    index: int = -1,
) -> dict[str, Any]:
    """Add a new node under a parent.

    Text starting with a slash command (``/check``, ``/text``) sets the node type.

    Args:
        parent_id: Parent node ID.
        text: Text of the new node.
        index: Position among siblings (-1 = last).
    """
    if find_by_id(editor.tree, parent_id) is None:
        return {"error": f"Parent '{parent_id}' not found."}
    # One undo step for the add and its placement.
    with editor.history.group():
        new_id = editor.add_child(text, parent_id=parent_id)
        if new_id is None:
            return {"error": "Node could not be added."}
        if index >= 0:
            editor.move(new_id, parent_id, index)
    node = find_by_id(editor.tree, new_id)
    if node is None:
        return {"error": "Node could not be added."}
    return {"node_id": new_id, "text": node.text, "type": node.type, **_history(editor)}


def heartbeat_edit_node(
    editor: OutlineEditor,
    *,
    node_id: str,
    text: str | None = None,
    checked: bool | None = None,
    collapsed: bool | None = None,
) -> dict[str, Any]:
    """Edit a node's text, checked state or collapsed state.

    Args:
        node_id: Node ID to edit.
        text: New text (slash commands apply).
        checked: New checked state; turns the node into a checklist item if needed.
        collapsed: New collapsed state.
    """
    node = find_by_id(editor.tree, node_id)
    if node is None:
        return {"error": f"Node '{node_id}' not found."}

    with editor.history.group():
        if text is not None:
            editor.edit_text(node_id, text)
        if checked is not None:
            current = find_by_id(editor.tree, node_id)
            if current is not None and not current.is_checklist:
                editor.toggle_checklist(node_id)
            current = find_by_id(editor.tree, node_id)
            if current is not None and current.checked != checked:
                editor.toggle_checked(node_id)
        if collapsed is not None:
            editor.set_collapsed(collapsed, node_id)

    updated = find_by_id(editor.tree, node_id)
    if updated is None:
        return {"error": f"Node '{node_id}' not found."}
    return {
        "node_id": node_id,
        "changed": updated != node,
        "text": updated.text,
        "type": updated.type,
        "checked": updated.checked,
        "collapsed": updated.collapsed,
        **_history(editor),
    }


def heartbeat_delete_node(editor: OutlineEditor, *, node_id: str) -> dict[str, Any]:
    """Delete a node and its whole subtree."""
    if node_id == editor.tree.id:
        return {"error": "The root node cannot be deleted."}
    if find_by_id(editor.tree, node_id) is None:
        return {"error": f"Node '{node_id}' not found."}
    editor.delete(node_id)
    return {"node_id": node_id, "deleted": True, **_history(editor)}


def heartbeat_move_node(
    editor: OutlineEditor,
    *,
    node_id: str,
    new_parent_id: str,
    index: int = -1,
) -> dict[str, Any]:
    """Move a node (with its subtree) under another parent.

    Args:
        node_id: Node to move.
        new_parent_id: Destination parent.
        index: Position among the destination's children (-1 = last).
    """
    for i in (node_id, new_parent_id):
        if find_by_id(editor.tree, i) is None:
            return {"error": f"Node '{i}' not found."}
    moved = editor.move(node_id, new_parent_id, index)
    if not moved:
        return {
            "error": "Move rejected: the root cannot move, and a node cannot move into its own subtree.",
            "moved": False,
        }
    return {"node_id": node_id, "moved": True, **_history(editor)}


def heartbeat_undo(editor: OutlineEditor) -> dict[str, Any]:
    """Undo the last change (a grouped change undoes as one)."""
    return {"undone": editor.undo(), **_history(editor)}


def heartbeat_redo(editor: OutlineEditor) -> dict[str, Any]:
    """Redo the last undone change."""
    return {"redone": editor.redo(), **_history(editor)}


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    editor: OutlineEditor
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


def _resolve_store() -> DocumentStoreProtocol:
    url = os.environ.get("HEARTBEAT_API_URL") or API_URL
    if url:
        return HttpStore(url)
    return FileStore(resolve_data_directory())


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Open the document on startup, flush pending saves on shutdown."""
    key = os.environ.get("HEARTBEAT_DOCUMENT") or DEFAULT_DOCUMENT_KEY
    editor = OutlineEditor.open(_resolve_store(), key, fallback=fallback_for(key))
    logger.info("Serving document {}", key)
    try:
        yield ServerContext(editor=editor)
    finally:
        editor.close()


mcp_server = FastMCP(
    "heartbeat",
    instructions="""\
Heartbeat is a tree-structured outliner: one document, a root node, and nested
child nodes. Search results show matching nodes; read a node to see its subtree.

## Tips
- Read the root with max_depth=2 for a table of contents.
- Use node ids from search or read results as parent_id / node_id.
- Every edit can be reverted with heartbeat_undo_tool.
- Text starting with /check makes a checklist item; /text makes plain text again.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def heartbeat_search_tool(
    ctx: Context,
    query: str = "",
    include_breadcrumbs: bool = True,
    limit: int = 20,
) -> dict[str, Any]:
    """Search the outline for nodes whose text contains the query.

    Matching is a case-insensitive substring match. Results only contain the
    matched node's own text; call heartbeat_read_node_tool on a result's
    node_id to see its children.

    Args:
        query: Search text.
        include_breadcrumbs: Include ancestor chain in results.
        limit: Max results (1-50, default 20).
    """
    return heartbeat_search(
        _ctx(ctx).editor, query=query, include_breadcrumbs=include_breadcrumbs, limit=limit
    )


@mcp_server.tool()
async def heartbeat_read_node_tool(
    ctx: Context,
    node_id: str = "root",
    max_depth: int | None = None,
) -> dict[str, Any]:
    """Read a node and its subtree as markdown.

    Args:
        node_id: Node ID to read (default: the root).
        max_depth: Max depth levels (None = unlimited).
    """
    return heartbeat_read_node(_ctx(ctx).editor, node_id=node_id, max_depth=max_depth)


@mcp_server.tool()
async def heartbeat_get_node_context_tool(
    ctx: Context,
    node_id: str,
    sibling_count: int = 3,
    child_limit: int = 20,
) -> dict[str, Any]:
    """Get a node with its breadcrumbs, siblings and children.

    Args:
        node_id: Node ID.
        sibling_count: Siblings before/after to include.
        child_limit: Max direct children to show.
    """
    return heartbeat_get_node_context(
        _ctx(ctx).editor, node_id=node_id, sibling_count=sibling_count, child_limit=child_limit
    )


@mcp_server.tool()
async def heartbeat_add_node_tool(
    ctx: Context,
    parent_id: str,
    text: str,
    index: int = -1,
) -> dict[str, Any]:
    """Add a new node under a parent.

    Args:
        parent_id: Parent node ID ("root" for top level).
        text: Text of the new node.
        index: Position among siblings (-1 = last).
    """
    server = _ctx(ctx)
    async with server.lock:
        return heartbeat_add_node(server.editor, parent_id=parent_id, text=text, index=index)


@mcp_server.tool()
async def heartbeat_edit_node_tool(
    ctx: Context,
    node_id: str,
    text: str | None = None,
    checked: bool | None = None,
    collapsed: bool | None = None,
) -> dict[str, Any]:
    """Edit a node's text, checked state or collapsed state.

    Args:
        node_id: Node ID to edit.
        text: New text.
        checked: New checked state.
        collapsed: New collapsed state.
    """
    server = _ctx(ctx)
    async with server.lock:
        return heartbeat_edit_node(
            server.editor, node_id=node_id, text=text, checked=checked, collapsed=collapsed
        )


@mcp_server.tool()
async def heartbeat_delete_node_tool(ctx: Context, node_id: str) -> dict[str, Any]:
    """Delete a node and all of its children. Can be undone.

    Args:
        node_id: Node ID to delete (the root cannot be deleted).
    """
    server = _ctx(ctx)
    async with server.lock:
        return heartbeat_delete_node(server.editor, node_id=node_id)


@mcp_server.tool()
async def heartbeat_move_node_tool(
    ctx: Context,
    node_id: str,
    new_parent_id: str,
    index: int = -1,
) -> dict[str, Any]:
    """Move a node under a new parent.

    Args:
        node_id: Node to move.
        new_parent_id: Destination parent node ID.
        index: Position among the destination's children (-1 = last).
    """
    server = _ctx(ctx)
    async with server.lock:
        return heartbeat_move_node(server.editor, node_id=node_id, new_parent_id=new_parent_id, index=index)


@mcp_server.tool()
async def heartbeat_undo_tool(ctx: Context) -> dict[str, Any]:
    """Undo the most recent change."""
    server = _ctx(ctx)
    async with server.lock:
        return heartbeat_undo(server.editor)


@mcp_server.tool()
async def heartbeat_redo_tool(ctx: Context) -> dict[str, Any]:
    """Redo the most recently undone change."""
    server = _ctx(ctx)
    async with server.lock:
        return heartbeat_redo(server.editor)


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from heartbeat.logging_config import configure_logging

    configure_logging(verbose=False)
    mcp_server.run(transport="stdio")
