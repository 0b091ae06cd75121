"""Tests for document loading, fallbacks and storage keys."""

from pathlib import Path

import pytest

from heartbeat.config import document_key_for_user, resolve_data_directory
from heartbeat.core.tree.operations import iter_nodes
from heartbeat.errors import DocumentParseError
from heartbeat.store.documents import (
    default_document,
    demo_document,
    document_payload,
    fallback_for,
    load_document,
)
from tests.unit.fakes import MemoryStore


def test_demo_document_has_unique_ids() -> None:
    doc = demo_document()
    ids = [n.id for n in iter_nodes(doc.root)]
    assert doc.root.id == "root"
    assert doc.root.text == "Joke Video Creation"
    assert len(ids) == len(set(ids)) == 10


def test_fallback_depends_on_key() -> None:
    assert fallback_for("demo") is demo_document
    assert fallback_for("someone_example.com") is default_document


def test_load_document_returns_fallback_for_missing_key(memory_store: MemoryStore) -> None:
    doc = load_document(memory_store, "new", fallback=demo_document)
    assert doc.key == "new"
    assert doc.root.text == "Joke Video Creation"


def test_load_document_round_trips_payload(memory_store: MemoryStore) -> None:
    original = demo_document("demo")
    memory_store.save("demo", document_payload(original))
    assert load_document(memory_store, "demo") == original


def test_load_document_rejects_malformed_blob() -> None:
    store = MemoryStore({"bad": {"text": "no id"}})
    with pytest.raises(DocumentParseError):
        load_document(store, "bad")


def test_document_key_for_user() -> None:
    assert document_key_for_user("Jane.Doe@Example.com ") == "jane.doe_example.com"


def test_data_directory_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HEARTBEAT_DATA_DIR", str(tmp_path))
    assert resolve_data_directory() == tmp_path


def test_data_directory_prefers_existing_candidate(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("HEARTBEAT_DATA_DIR", raising=False)
    existing = tmp_path / "second"
    existing.mkdir()
    monkeypatch.setattr("heartbeat.config.DATA_DIRECTORIES", [tmp_path / "first", existing])
    assert resolve_data_directory() == existing
