"""Tests for FileStore, a directory of JSON documents."""

import json
from pathlib import Path

import pytest

from heartbeat.errors import PersistenceError
from heartbeat.store.file_store import FileStore

DOC = {"id": "root", "text": "Root", "children": [{"id": "a", "text": "A", "children": []}]}


def test_init_creates_missing_directory(tmp_path: Path) -> None:
    datadir = tmp_path / "data"
    store = FileStore(datadir)

    assert datadir.is_dir()
    assert store.datadir == str(datadir.resolve())


def test_init_without_create_raises_for_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="not found"):
        FileStore(tmp_path / "missing", create=False)


def test_load_missing_key_returns_none(tmp_path: Path) -> None:
    assert FileStore(tmp_path).load("nothing") is None


def test_save_then_load(tmp_path: Path) -> None:
    store = FileStore(tmp_path)
    store.save("user_example.com", DOC)

    assert store.load("user_example.com") == DOC
    assert json.loads((tmp_path / "user_example.com.json").read_text()) == DOC
    assert not list(tmp_path.glob("*.tmp"))


def test_unchanged_save_is_skipped(tmp_path: Path) -> None:
    store = FileStore(tmp_path)
    store.save("doc", DOC)
    store.save("doc", DOC)

    assert store.num_written == 1
    assert store.num_same == 1


def test_dry_run_writes_nothing(tmp_path: Path) -> None:
    store = FileStore(tmp_path, dry_run=True)
    store.save("doc", DOC)

    assert not (tmp_path / "doc.json").exists()
    assert store.num_written == 0


@pytest.mark.parametrize("key", ["../escape", ".hidden", "a/b", "", "with space"])
def test_invalid_keys_are_rejected(tmp_path: Path, key: str) -> None:
    with pytest.raises(ValueError, match="Invalid document key"):
        FileStore(tmp_path).path_for(key)


def test_corrupt_file_raises_persistence_error(tmp_path: Path) -> None:
    (tmp_path / "doc.json").write_text("{not json")
    with pytest.raises(PersistenceError, match="not valid JSON"):
        FileStore(tmp_path).load("doc")


def test_non_object_file_raises_persistence_error(tmp_path: Path) -> None:
    (tmp_path / "doc.json").write_text("[1, 2]")
    with pytest.raises(PersistenceError, match="not a JSON object"):
        FileStore(tmp_path).load("doc")


def test_keys_lists_documents(tmp_path: Path) -> None:
    store = FileStore(tmp_path)
    store.save("b", DOC)
    store.save("a", DOC)
    assert store.keys() == ["a", "b"]
