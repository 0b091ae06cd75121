"""Tests for the heartbeat CLI."""

import json
from collections.abc import Iterator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from heartbeat.cli import app
from heartbeat.core.importer.json_reader import node_to_dict
from heartbeat.logging_config import configure_logging
from heartbeat.models.node import Node
from heartbeat.store.file_store import FileStore

runner = CliRunner()


@pytest.fixture(autouse=True)
def _local_store_only(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Never talk to a remote API, and restore logging after each CLI run."""
    monkeypatch.setattr("heartbeat.cli.API_URL", None)
    yield
    configure_logging()


@pytest.fixture
def data_dir(tmp_path: Path, tree: Node) -> Path:
    """A data directory holding the sample outline as document 'notes'."""
    datadir = tmp_path / "data"
    FileStore(datadir).save("notes", node_to_dict(tree))
    return datadir


def _stored(data_dir: Path) -> dict:
    return json.loads((data_dir / "notes.json").read_text())


def _run(data_dir: Path, *args: str):  # type: ignore[no-untyped-def]
    return runner.invoke(app, [*args, "--data-dir", str(data_dir), "--document", "notes"])


def test_show_renders_markdown(data_dir: Path) -> None:
    result = _run(data_dir, "show")
    assert result.exit_code == 0
    assert "- Root\n  - Groceries\n    - buy milk\n" in result.output


def test_show_with_max_depth(data_dir: Path) -> None:
    result = _run(data_dir, "show", "a", "--max-depth", "0")
    assert result.exit_code == 0
    assert "- Groceries" in result.output
    assert "2 more children" in result.output


def test_show_unknown_node_fails(data_dir: Path) -> None:
    result = _run(data_dir, "show", "missing")
    assert result.exit_code == 1
    assert "not found" in result.output


def test_show_demo_document_without_stored_data(tmp_path: Path) -> None:
    result = runner.invoke(app, ["show", "--data-dir", str(tmp_path), "--document", "demo"])
    assert result.exit_code == 0
    assert "Joke Video Creation" in result.output


def test_search_json_output(data_dir: Path) -> None:
    result = _run(data_dir, "search", "BUY", "--json")
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert [r["node_id"] for r in data["results"]] == ["a1", "a2"]
    assert data["results"][0]["path"] == ["Root", "Groceries"]


def test_add_saves_new_node(data_dir: Path) -> None:
    result = _run(data_dir, "add", "/check Call mom", "--parent", "b")
    assert result.exit_code == 0
    work = _stored(data_dir)["children"][1]
    assert work["children"][0]["text"] == "Call mom"
    assert work["children"][0]["type"] == "check"


def test_add_under_missing_parent_fails(data_dir: Path) -> None:
    result = _run(data_dir, "add", "x", "--parent", "missing")
    assert result.exit_code == 1


def test_edit_saves_text(data_dir: Path) -> None:
    result = _run(data_dir, "edit", "b", "Office")
    assert result.exit_code == 0
    assert "Updated." in result.output
    assert _stored(data_dir)["children"][1]["text"] == "Office"


def test_delete_removes_subtree(data_dir: Path) -> None:
    result = _run(data_dir, "delete", "a")
    assert result.exit_code == 0
    assert [c["id"] for c in _stored(data_dir)["children"]] == ["b", "c"]


def test_delete_root_fails(data_dir: Path) -> None:
    result = _run(data_dir, "delete", "root")
    assert result.exit_code == 1
    assert len(_stored(data_dir)["children"]) == 3


def test_move_into_own_subtree_fails(data_dir: Path) -> None:
    result = _run(data_dir, "move", "a", "a1")
    assert result.exit_code == 1


def test_move_reparents(data_dir: Path) -> None:
    result = _run(data_dir, "move", "a2", "b", "--index", "0")
    assert result.exit_code == 0
    assert _stored(data_dir)["children"][1]["children"][0]["id"] == "a2"


def test_export_to_file(data_dir: Path, tmp_path: Path) -> None:
    out = tmp_path / "notes.txt"
    result = _run(data_dir, "export", "--format", "text", "--output", str(out))
    assert result.exit_code == 0
    assert out.read_text().startswith("Root\n\tGroceries\n")


def test_import_tab_text(data_dir: Path, tmp_path: Path) -> None:
    source = tmp_path / "outline.txt"
    source.write_text("Plan\n\tStep 1\n\tStep 2\n")
    result = _run(data_dir, "import", str(source), "--format", "text")
    assert result.exit_code == 0
    stored = _stored(data_dir)
    assert stored["id"] == "root"
    assert [c["text"] for c in stored["children"]] == ["Step 1", "Step 2"]


def test_invalid_import_leaves_document(data_dir: Path, tmp_path: Path) -> None:
    before = _stored(data_dir)
    source = tmp_path / "broken.json"
    source.write_text("{broken")
    result = _run(data_dir, "import", str(source))
    assert result.exit_code == 1
    assert _stored(data_dir) == before


def test_verbose_flag_is_accepted(data_dir: Path) -> None:
    result = runner.invoke(
        app, ["--verbose", "show", "--data-dir", str(data_dir), "--document", "notes"]
    )
    assert result.exit_code == 0
