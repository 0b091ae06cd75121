"""Domain models for outline documents."""

from dataclasses import dataclass, field, replace
from typing import Any

CHECKLIST_TYPE = "check"

# Style keys as they appear in stored documents.
_STYLE_KEYS: dict[str, str] = {
    "background_color": "backgroundColor",
    "text_color": "textColor",
    "font_size": "fontSize",
    "font_weight": "fontWeight",
    "font_style": "fontStyle",
    "border_color": "borderColor",
    "border_width": "borderWidth",
    "border_radius": "borderRadius",
    "padding": "padding",
}


@dataclass(frozen=True)
class NodeStyle:
    """Presentation attributes of a node. No structural meaning."""

    background_color: str | None = None
    text_color: str | None = None
    font_size: int | None = None
    font_weight: str | None = None
    font_style: str | None = None
    border_color: str | None = None
    border_width: int | None = None
    border_radius: int | None = None
    padding: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            stored: getattr(self, attr)
            for attr, stored in _STYLE_KEYS.items()
            if getattr(self, attr) is not None
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NodeStyle":
        return cls(**{attr: data.get(stored) for attr, stored in _STYLE_KEYS.items()})


@dataclass(frozen=True)
class NodeAttributes:
    """The non-structural fields of a node, used to record and restore edits."""

    text: str
    collapsed: bool = False
    type: str | None = None
    checked: bool | None = None
    style: NodeStyle | None = None


@dataclass(frozen=True)
class Node:
    """A single node in an outline tree.

    Nodes are immutable; tree operations return new trees that share every
    subtree they did not touch.
    """

    id: str
    text: str
    children: tuple["Node", ...] = ()
    collapsed: bool = False
    type: str | None = None
    checked: bool | None = None
    style: NodeStyle | None = None

    def __post_init__(self) -> None:
        if self.type == CHECKLIST_TYPE and self.checked is None:
            msg = f"Checklist node {self.id!r} needs a checked state"
            raise ValueError(msg)
        if self.type != CHECKLIST_TYPE and self.checked is not None:
            msg = f"Node {self.id!r} has a checked state but is not a checklist item"
            raise ValueError(msg)

    @property
    def is_checklist(self) -> bool:
        return self.type == CHECKLIST_TYPE

    @property
    def attributes(self) -> NodeAttributes:
        return NodeAttributes(
            text=self.text,
            collapsed=self.collapsed,
            type=self.type,
            checked=self.checked,
            style=self.style,
        )

    def with_attributes(self, attrs: NodeAttributes) -> "Node":
        return replace(
            self,
            text=attrs.text,
            collapsed=attrs.collapsed,
            type=attrs.type,
            checked=attrs.checked,
            style=attrs.style,
        )


@dataclass(frozen=True)
class Document:
    """An outline document: a root node stored under a document key."""

    key: str
    root: Node


@dataclass(frozen=True)
class Breadcrumb:
    """A single ancestor in a breadcrumb trail."""

    node_id: str
    text: str
    depth: int


@dataclass(frozen=True)
class SearchResult:
    """A search hit with context."""

    node: Node
    breadcrumbs: tuple[Breadcrumb, ...] = ()
    snippet: str = ""


@dataclass(frozen=True)
class ZoomView:
    """A subtree presented on its own, with the path back to the root."""

    node: Node
    breadcrumbs: tuple[Breadcrumb, ...] = field(default_factory=tuple)
