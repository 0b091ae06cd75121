"""Heartbeat: a keyboard-driven outliner with undo history and pluggable storage."""

from heartbeat.editor import EditMode, ExportFormat, OutlineEditor
from heartbeat.errors import DocumentParseError, HeartbeatError, PersistenceError, RootDeletionError
from heartbeat.models.node import Document, Node, NodeStyle
from heartbeat.protocols import DocumentStoreProtocol
from heartbeat.store.file_store import FileStore
from heartbeat.store.http_store import HttpStore

__all__ = [
    "Document",
    "DocumentParseError",
    "DocumentStoreProtocol",
    "EditMode",
    "ExportFormat",
    "FileStore",
    "HeartbeatError",
    "HttpStore",
    "Node",
    "NodeStyle",
    "OutlineEditor",
    "PersistenceError",
    "RootDeletionError",
]
