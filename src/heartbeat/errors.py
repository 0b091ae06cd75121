"""Exceptions raised by the outline core and its storage adapters."""


class HeartbeatError(Exception):
    """Base class for outline errors."""


class RootDeletionError(HeartbeatError):
    """Raised when an operation tries to delete the document root."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Cannot delete the root node {node_id!r}")
        self.node_id = node_id


class DocumentParseError(HeartbeatError):
    """Raised when an import payload is not a well-formed document."""


class PersistenceError(HeartbeatError):
    """Raised when the document store is unreachable or rejects a request."""
