"""Write-through background saving with retry."""

import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from loguru import logger

from heartbeat.config import SAVE_BASE_DELAY, SAVE_MAX_RETRIES
from heartbeat.errors import PersistenceError
from heartbeat.protocols import DocumentStoreProtocol


class Autosaver:
    """Save every committed change without blocking the editor.

    Saves run on a single worker thread, so they reach the store in the order
    they were scheduled. A failed save is retried with exponential backoff;
    when the retries run out the error is logged and kept in ``last_error``,
    and ``has_unsaved_changes`` stays True until a later save succeeds.
    """

    def __init__(
        self,
        store: DocumentStoreProtocol,
        *,
        max_retries: int = SAVE_MAX_RETRIES,
        base_delay: float = SAVE_BASE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._sleep = sleep
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="autosave")
        self._lock = threading.Lock()
        self._futures: list[Future[bool]] = []
        self._scheduled = 0
        self._saved = 0
        self.last_error: PersistenceError | None = None

    @property
    def has_unsaved_changes(self) -> bool:
        """True while the latest scheduled state has not reached the store."""
        with self._lock:
            return self._saved < self._scheduled

    def schedule(self, key: str, data: dict[str, Any]) -> Future[bool]:
        """Queue a save of ``data`` under ``key``. Returns immediately."""
        with self._lock:
            self._scheduled += 1
            seq = self._scheduled
            self._futures = [f for f in self._futures if not f.done()]
            future = self._executor.submit(self._save, seq, key, data)
            self._futures.append(future)
        return future

    def _save(self, seq: int, key: str, data: dict[str, Any]) -> bool:
        delay = self.base_delay
        for attempt in range(self.max_retries + 1):
            try:
                self.store.save(key, data)
            except PersistenceError as e:
                self.last_error = e
                if attempt == self.max_retries:
                    logger.error("Giving up saving {} after {} attempts: {}", key, attempt + 1, e)
                    return False
                logger.warning("Save of {} failed ({}), retrying in {:.1f}s", key, e, delay)
                self._sleep(delay)
                delay *= 2
                continue
            with self._lock:
                self._saved = max(self._saved, seq)
            self.last_error = None
            logger.debug("Saved {} (change #{})", key, seq)
            return True
        return False

    def flush(self, timeout: float | None = None) -> bool:
        """Wait for every queued save. True if the latest state is stored."""
        with self._lock:
            pending = list(self._futures)
        for future in pending:
            future.result(timeout=timeout)
        return not self.has_unsaved_changes

    def close(self) -> None:
        self.flush()
        self._executor.shutdown(wait=True)
