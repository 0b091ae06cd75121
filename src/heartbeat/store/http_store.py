"""Document store client for the flat-file JSON HTTP API."""

import json
import logging
from typing import Any

import requests

from heartbeat.config import HTTP_TIMEOUT
from heartbeat.errors import PersistenceError


class HttpStore:
    """Load and save documents through the remote API.

    ``GET <url>?action=get&filename=<key>`` returns the stored document or
    ``null``; ``POST <url>`` with form fields ``filename`` and ``data``
    overwrites it.
    """

    def __init__(self, url: str, *, timeout: float = HTTP_TIMEOUT) -> None:
        self.url = url
        self.timeout = timeout
        self.sess = requests.Session()
        self.logger = logging.getLogger("store")
        self.logger.debug(f"HTTP store ready: {url!r}")

    def _json(self, r: requests.Response, what: str) -> Any:
        try:
            r.raise_for_status()
        except requests.HTTPError as e:
            msg = f"{what} failed: HTTP {r.status_code}"
            raise PersistenceError(msg) from e
        try:
            rv = r.json()
        except ValueError as e:
            msg = f"{what} failed: response is not JSON"
            raise PersistenceError(msg) from e
        if isinstance(rv, dict) and rv.get("error"):
            msg = f"{what} failed: {rv['error']!r}"
            raise PersistenceError(msg)
        return rv

    def load(self, key: str) -> dict[str, Any] | None:
        """Fetch the document for ``key``; None when the API has nothing stored."""
        self.logger.debug(f"Loading {key!r}")
        try:
            r = self.sess.get(
                self.url, params={"action": "get", "filename": key}, timeout=self.timeout
            )
        except requests.RequestException as e:
            msg = f"Load of {key!r} failed: {e}"
            raise PersistenceError(msg) from e
        rv = self._json(r, f"Load of {key!r}")
        if rv is None:
            return None
        if not isinstance(rv, dict):
            msg = f"Load of {key!r} failed: expected an object, got {type(rv).__name__}"
            raise PersistenceError(msg)
        # The API tags documents of free accounts; it is not part of the tree.
        rv.pop("is_public", None)
        return rv

    def save(self, key: str, data: dict[str, Any]) -> None:
        """Overwrite the document for ``key``."""
        self.logger.debug(f"Saving {key!r}")
        try:
            r = self.sess.post(
                self.url,
                data={"filename": key, "data": json.dumps(data, separators=(",", ":"))},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            msg = f"Save of {key!r} failed: {e}"
            raise PersistenceError(msg) from e
        rv = self._json(r, f"Save of {key!r}")
        if not (isinstance(rv, dict) and rv.get("success")):
            msg = f"Save of {key!r} failed: unexpected response {rv!r}"
            raise PersistenceError(msg)
