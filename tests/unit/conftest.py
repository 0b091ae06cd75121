"""Shared test fixtures."""

import pytest

from heartbeat.editor import OutlineEditor
from heartbeat.models.node import Document, Node
from tests.unit.fakes import MemoryStore


def make_tree() -> Node:
    """A small outline:

    root "Root"
      a  "Groceries"
        a1 "buy milk"
        a2 "Buy eggs"
      b  "Work"
      c  "Archive" (collapsed)
        c1 "buy a boat"
    """
    return Node(
        id="root",
        text="Root",
        children=(
            Node(
                id="a",
                text="Groceries",
                children=(
                    Node(id="a1", text="buy milk"),
                    Node(id="a2", text="Buy eggs"),
                ),
            ),
            Node(id="b", text="Work"),
            Node(
                id="c",
                text="Archive",
                collapsed=True,
                children=(Node(id="c1", text="buy a boat"),),
            ),
        ),
    )


@pytest.fixture
def tree() -> Node:
    return make_tree()


@pytest.fixture
def editor() -> OutlineEditor:
    """An editor over the sample outline, without autosave."""
    return OutlineEditor(Document(key="test", root=make_tree()))


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()
