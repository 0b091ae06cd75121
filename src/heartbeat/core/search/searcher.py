"""Case-insensitive text search over an outline."""

import re

from heartbeat.core.tree.navigation import flatten, get_breadcrumbs, walk
from heartbeat.core.tree.operations import find_by_id
from heartbeat.models.node import Node, SearchResult

_SNIPPET_CONTEXT = 32


def _candidates(tree: Node, include_collapsed: bool) -> list[Node]:
    if include_collapsed:
        return [n for n, _depth in walk(tree)]
    return flatten(tree)


def search_nodes(
    tree: Node,
    query: str,
    *,
    below: str | None = None,
    include_collapsed: bool = False,
) -> list[Node]:
    """Find nodes whose text contains ``query``, ignoring case.

    Args:
        tree: Root of the outline.
        query: Substring to look for. An empty or blank query matches nothing.
        below: Restrict to the subtree rooted at this node id.
        include_collapsed: Also search inside collapsed subtrees.

    Returns:
        Matching nodes in flattened (on-screen) order.
    """
    if not query.strip():
        return []
    needle = query.casefold()

    scope: Node | None = tree
    if below is not None:
        scope = find_by_id(tree, below)
        if scope is None:
            return []

    return [n for n in _candidates(scope, include_collapsed) if needle in n.text.casefold()]


def make_snippet(text: str, query: str) -> str:
    """Excerpt of ``text`` around the first match of ``query``, with the match in ``**``."""
    m = re.search(re.escape(query), text, flags=re.IGNORECASE) if query.strip() else None
    if m is None:
        return text[: _SNIPPET_CONTEXT * 2]
    start = max(0, m.start() - _SNIPPET_CONTEXT)
    end = min(len(text), m.end() + _SNIPPET_CONTEXT)
    prefix = "..." if start > 0 else ""
    suffix = "..." if end < len(text) else ""
    return f"{prefix}{text[start:m.start()]}**{m.group(0)}**{text[m.end():end]}{suffix}"


def search_with_context(
    tree: Node,
    query: str,
    *,
    below: str | None = None,
    include_collapsed: bool = False,
    limit: int | None = None,
) -> list[SearchResult]:
    """Search and attach the breadcrumb path and a highlighted snippet to each hit."""
    hits = search_nodes(tree, query, below=below, include_collapsed=include_collapsed)
    if limit is not None:
        hits = hits[:limit]
    return [
        SearchResult(
            node=n,
            breadcrumbs=get_breadcrumbs(tree, n.id),
            snippet=make_snippet(n.text, query),
        )
        for n in hits
    ]
