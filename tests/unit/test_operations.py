"""Tests for structural tree operations."""

import pytest

from heartbeat.core.tree.operations import (
    add_child,
    add_sibling,
    delete_node,
    edit_text,
    find_by_id,
    indent,
    insert_node,
    iter_nodes,
    locate,
    move_node,
    outdent,
    set_collapsed,
    set_style,
    toggle_checked,
    toggle_checklist,
    toggle_collapsed,
    with_fresh_ids,
)
from heartbeat.errors import RootDeletionError
from heartbeat.models.node import CHECKLIST_TYPE, Node, NodeStyle


def _ids(tree: Node) -> list[str]:
    return [n.id for n in iter_nodes(tree)]


def _child_ids(tree: Node, node_id: str) -> list[str]:
    node = find_by_id(tree, node_id)
    assert node is not None
    return [c.id for c in node.children]


def test_find_by_id_reaches_collapsed_subtrees(tree: Node) -> None:
    found = find_by_id(tree, "c1")
    assert found is not None
    assert found.text == "buy a boat"
    assert find_by_id(tree, "missing") is None


def test_locate_reports_parent_and_index(tree: Node) -> None:
    loc = locate(tree, "a2")
    assert loc is not None
    assert loc.parent is not None
    assert loc.parent.id == "a"
    assert loc.index == 1

    root_loc = locate(tree, "root")
    assert root_loc is not None
    assert root_loc.parent is None


def test_add_child_appends_and_shares_untouched_subtrees(tree: Node) -> None:
    new = add_child(tree, "a", Node(id="a3", text="bread"))

    assert _child_ids(new, "a") == ["a1", "a2", "a3"]
    # Only the path root -> a was rebuilt
    assert new.children[1] is tree.children[1]
    assert new.children[2] is tree.children[2]
    # The input is untouched
    assert _child_ids(tree, "a") == ["a1", "a2"]


def test_add_sibling_inserts_right_after(tree: Node) -> None:
    new = add_sibling(tree, "a1", Node(id="x", text="x"))
    assert _child_ids(new, "a") == ["a1", "x", "a2"]


def test_add_sibling_of_root_is_noop(tree: Node) -> None:
    assert add_sibling(tree, "root", Node(id="x", text="x")) is tree


def test_insert_with_duplicate_id_is_noop(tree: Node) -> None:
    assert insert_node(tree, "root", 0, Node(id="b", text="dup")) is tree


def test_insert_under_missing_parent_is_noop(tree: Node) -> None:
    assert insert_node(tree, "missing", 0, Node(id="x", text="x")) is tree


def test_insert_index_is_clamped(tree: Node) -> None:
    new = insert_node(tree, "root", 99, Node(id="x", text="x"))
    assert _child_ids(new, "root") == ["a", "b", "c", "x"]


def test_delete_removes_whole_subtree(tree: Node) -> None:
    new = delete_node(tree, "a")
    remaining = set(_ids(new))
    assert not {"a", "a1", "a2"} & remaining
    assert remaining == {"root", "b", "c", "c1"}


def test_delete_root_raises(tree: Node) -> None:
    with pytest.raises(RootDeletionError):
        delete_node(tree, "root")


def test_delete_missing_node_is_noop(tree: Node) -> None:
    assert delete_node(tree, "missing") is tree


def test_add_then_delete_restores_tree(tree: Node) -> None:
    added = add_child(tree, "b", Node(id="b1", text="report"))
    assert delete_node(added, "b1") == tree


def test_root_a_b_scenario() -> None:
    tree = Node(id="root", text="R")
    tree = add_child(tree, "root", Node(id="a", text="A"))
    assert _child_ids(tree, "root") == ["a"]
    tree = add_sibling(tree, "a", Node(id="b", text="B"))
    assert _child_ids(tree, "root") == ["a", "b"]
    tree = delete_node(tree, "a")
    assert _child_ids(tree, "root") == ["b"]


def test_edit_text_changes_only_text(tree: Node) -> None:
    new = edit_text(tree, "b", "Office")
    node = find_by_id(new, "b")
    assert node is not None
    assert node.text == "Office"
    assert node.id == "b"


def test_edit_text_with_same_text_is_noop(tree: Node) -> None:
    assert edit_text(tree, "b", "Work") is tree


def test_edit_text_applies_slash_command(tree: Node) -> None:
    new = edit_text(tree, "b", "/check Work")
    node = find_by_id(new, "b")
    assert node is not None
    assert node.text == "Work"
    assert node.type == CHECKLIST_TYPE
    assert node.checked is False


def test_move_to_other_parent(tree: Node) -> None:
    new = move_node(tree, "a2", "b", 0)
    assert _child_ids(new, "a") == ["a1"]
    assert _child_ids(new, "b") == ["a2"]


def test_move_reorders_within_parent(tree: Node) -> None:
    new = move_node(tree, "a", "root", 2)
    assert _child_ids(new, "root") == ["b", "c", "a"]


def test_move_into_own_subtree_is_rejected(tree: Node) -> None:
    assert move_node(tree, "a", "a1", 0) is tree
    assert move_node(tree, "a", "a", 0) is tree


def test_move_root_is_rejected(tree: Node) -> None:
    assert move_node(tree, "root", "a", 0) is tree


def test_move_to_missing_parent_is_rejected(tree: Node) -> None:
    assert move_node(tree, "a1", "missing", 0) is tree


def test_move_to_same_position_is_noop(tree: Node) -> None:
    assert move_node(tree, "a1", "a", 0) is tree


def test_toggle_collapsed(tree: Node) -> None:
    new = toggle_collapsed(tree, "a")
    node = find_by_id(new, "a")
    assert node is not None
    assert node.collapsed


def test_set_collapsed_is_noop_when_already_in_state(tree: Node) -> None:
    assert set_collapsed(tree, "c", True) is tree
    expanded = set_collapsed(tree, "c", False)
    node = find_by_id(expanded, "c")
    assert node is not None
    assert not node.collapsed


def test_toggle_checklist_and_checked(tree: Node) -> None:
    as_item = toggle_checklist(tree, "b")
    checked = toggle_checked(as_item, "b")
    node = find_by_id(checked, "b")
    assert node is not None
    assert node.is_checklist
    assert node.checked is True

    back = toggle_checklist(checked, "b")
    plain = find_by_id(back, "b")
    assert plain is not None
    assert plain.type is None
    assert plain.checked is None


def test_toggle_checked_on_plain_node_is_noop(tree: Node) -> None:
    assert toggle_checked(tree, "b") is tree


def test_set_style(tree: Node) -> None:
    style = NodeStyle(text_color="red")
    new = set_style(tree, "b", style)
    node = find_by_id(new, "b")
    assert node is not None
    assert node.style == style
    assert set_style(new, "b", style) is new


def test_indent_makes_last_child_of_previous_sibling(tree: Node) -> None:
    new = indent(tree, "b")
    assert _child_ids(new, "root") == ["a", "c"]
    assert _child_ids(new, "a") == ["a1", "a2", "b"]


def test_indent_first_child_is_noop(tree: Node) -> None:
    assert indent(tree, "a") is tree


def test_outdent_places_after_parent(tree: Node) -> None:
    new = outdent(tree, "a1")
    assert _child_ids(new, "root") == ["a", "a1", "b", "c"]
    assert _child_ids(new, "a") == ["a2"]


def test_outdent_top_level_is_noop(tree: Node) -> None:
    assert outdent(tree, "b") is tree


def test_with_fresh_ids_regenerates_every_id(tree: Node) -> None:
    original = find_by_id(tree, "a")
    assert original is not None
    copy = with_fresh_ids(original)
    assert not set(_ids(copy)) & set(_ids(original))
    assert [n.text for n in iter_nodes(copy)] == [n.text for n in iter_nodes(original)]
