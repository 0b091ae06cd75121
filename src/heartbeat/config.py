"""Configuration constants for heartbeat."""

import os
from pathlib import Path

# Reserved id of every document's root node.
ROOT_ID: str = "root"

# Undo stack capacity; the oldest entry is evicted beyond this.
DEFAULT_HISTORY_SIZE: int = 100

# Background saves: attempts after the first failure, and the first backoff delay (seconds).
SAVE_MAX_RETRIES: int = 3
SAVE_BASE_DELAY: float = 0.5

# HTTP timeout for the remote document store (seconds).
HTTP_TIMEOUT: float = 10.0

DEFAULT_DOCUMENT_KEY: str = os.environ.get("HEARTBEAT_DOCUMENT", "demo")

# Remote flat-file API. When unset, documents are kept in a local data directory.
API_URL: str | None = os.environ.get("HEARTBEAT_API_URL") or None

# Directory with documents. First directory which is found is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/heartbeat").expanduser(),
    Path("~/.heartbeat").expanduser(),
    Path("~/.config/heartbeat").expanduser(),
]


def resolve_data_directory() -> Path:
    """Return the data directory: $HEARTBEAT_DATA_DIR, else the first existing candidate.

    Falls back to the first candidate when none exists yet.
    """
    env_dir = os.environ.get("HEARTBEAT_DATA_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DATA_DIRECTORIES[0]


def document_key_for_user(email: str) -> str:
    """Derive the storage key of a user's document from their email."""
    return email.strip().lower().replace("@", "_")
