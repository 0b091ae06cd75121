"""Convert outline trees to and from their stored JSON form."""

import json
from typing import Any

from heartbeat.errors import DocumentParseError
from heartbeat.models.node import CHECKLIST_TYPE, Node, NodeStyle


def node_to_dict(node: Node) -> dict[str, Any]:
    """Serialize a node and its subtree. Unset optional fields are omitted."""
    data: dict[str, Any] = {
        "id": node.id,
        "text": node.text,
        "children": [node_to_dict(c) for c in node.children],
    }
    if node.collapsed:
        data["collapsed"] = True
    if node.type is not None:
        data["type"] = node.type
    if node.checked is not None:
        data["checked"] = node.checked
    if node.style is not None:
        data["style"] = node.style.to_dict()
    return data


def node_from_dict(data: dict[str, Any]) -> Node:
    """Build a node tree from stored data.

    The structure is trusted; only the checklist pairing is normalised so the
    node invariants hold (a checklist item without a state is unchecked, a
    state on a plain node is dropped).
    """
    node_type = data.get("type")
    checked = data.get("checked")
    if node_type == CHECKLIST_TYPE:
        checked = bool(checked)
    else:
        checked = None
    style = data.get("style")
    return Node(
        id=str(data["id"]),
        text=str(data.get("text", "")),
        children=tuple(node_from_dict(c) for c in data.get("children", [])),
        collapsed=bool(data.get("collapsed", False)),
        type=node_type,
        checked=checked,
        style=NodeStyle.from_dict(style) if style is not None else None,
    )


def parse_document_data(data: Any) -> Node:
    """Parse an already-decoded JSON value into a root node.

    Raises:
        DocumentParseError: if the value is not a node object.
    """
    if not isinstance(data, dict):
        msg = f"Expected a JSON object for the root node, got {type(data).__name__}"
        raise DocumentParseError(msg)
    try:
        return node_from_dict(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        msg = f"Malformed node data: {e!r}"
        raise DocumentParseError(msg) from e
    except RecursionError as e:
        msg = "Document nesting is too deep"
        raise DocumentParseError(msg) from e


def parse_json(text: str) -> Node:
    """Parse exported JSON text back into a tree (all-or-nothing)."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON: {e}"
        raise DocumentParseError(msg) from e
    return parse_document_data(data)


def export_json(tree: Node, *, indent: int | None = 2) -> str:
    """Full structural export: id, text, children, collapsed, type, checked, style."""
    return json.dumps(node_to_dict(tree), indent=indent, ensure_ascii=False)
