"""Protocols for dependency injection in the outline editor."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DocumentStoreProtocol(Protocol):
    """Protocol for key-value document stores (get/put of JSON blobs)."""

    def load(self, key: str) -> dict[str, Any] | None:
        """Return the stored blob for ``key``, or None if nothing is stored."""
        ...

    def save(self, key: str, data: dict[str, Any]) -> None:
        """Overwrite the blob for ``key``. Raises PersistenceError on failure."""
        ...
