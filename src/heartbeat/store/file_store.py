"""Document store backed by a directory of JSON files."""

import json
import logging
import re
from pathlib import Path
from typing import Any

from heartbeat.errors import PersistenceError

_KEY_RE = re.compile(r"^[A-Za-z0-9._@+-]+$")


class FileStore:
    """Keep each document as ``<key>.json`` in a data directory.

    - Do not rewrite files whose contents did not change.
    - Refuse keys that would escape the data directory.
    """

    def __init__(self, datadir: str | Path, *, dry_run: bool = False, create: bool = True) -> None:
        self.datadir = str(Path(datadir).expanduser().resolve())
        self.dry_run = dry_run
        self.logger = logging.getLogger("store")

        if not Path(self.datadir).is_dir():
            if create and not dry_run:
                Path(self.datadir).mkdir(parents=True, exist_ok=True)
            elif not dry_run:
                msg = f"Data directory {self.datadir!r} not found"
                raise ValueError(msg)

        self.logger.debug(f"File store ready, datadir {self.datadir!r}, dry_run {dry_run!r}")
        self.num_same = 0
        self.num_written = 0

    def path_for(self, key: str) -> Path:
        """Absolute path of the file holding ``key``."""
        if not _KEY_RE.match(key) or key.startswith("."):
            msg = f"Invalid document key: {key!r}"
            raise ValueError(msg)
        fname = str(Path(self.datadir) / f"{key}.json")
        if not fname.startswith(self.datadir + "/"):
            msg = f"Path escapes datadir: {fname!r}"
            raise ValueError(msg)
        return Path(fname)

    def load(self, key: str) -> dict[str, Any] | None:
        """Read the blob for ``key``.

        Returns:
            The decoded document, or None if the file is not found (or holds null).
            Raises PersistenceError on unreadable or malformed files.
        """
        path = self.path_for(key)
        try:
            contents = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            msg = f"Cannot read {str(path)!r}: {e}"
            raise PersistenceError(msg) from e
        try:
            data = json.loads(contents)
        except json.JSONDecodeError as e:
            msg = f"Stored document {key!r} is not valid JSON: {e}"
            raise PersistenceError(msg) from e
        if data is not None and not isinstance(data, dict):
            msg = f"Stored document {key!r} is not a JSON object"
            raise PersistenceError(msg)
        return data

    def save(self, key: str, data: dict[str, Any]) -> None:
        """Write the blob for ``key``, skipping the write if nothing changed."""
        path = self.path_for(key)
        contents = json.dumps(data, sort_keys=True, indent=2, ensure_ascii=False) + "\n"

        action = "create"
        try:
            if path.read_text(encoding="utf-8") == contents:
                self.num_same += 1
                return
            action = "update"
        except (FileNotFoundError, UnicodeDecodeError):
            pass

        if self.dry_run:
            self.logger.info(f"dry-run: would {action} {str(path)!r}")
            return

        self.logger.debug(f"Writing ({action}) {str(path)!r}")
        tmp = path.with_suffix(".json.tmp")
        try:
            tmp.write_text(contents, encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            msg = f"Cannot write {str(path)!r}: {e}"
            raise PersistenceError(msg) from e
        self.num_written += 1

    def keys(self) -> list[str]:
        """Keys of all stored documents, sorted."""
        return sorted(p.stem for p in Path(self.datadir).glob("*.json"))
