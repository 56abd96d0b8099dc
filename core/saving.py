from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, Optional, TypeVar, Union

from core.config import SAVE_WORKERS
from core.errors import SaveInProgress

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SaveCoordinator:
    """Runs encode+write jobs off the UI thread, at most one per file."""

    def __init__(self, max_workers: int = SAVE_WORKERS):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="save")
        self._lock = threading.Lock()
        self._pending: Dict[Path, Future] = {}

    @staticmethod
    def _key(path: Union[str, Path]) -> Path:
        return Path(path).resolve()

    def submit(self, path: Union[str, Path], job: Callable[[], T]) -> "Future[T]":
        key = self._key(path)
        with self._lock:
            running = self._pending.get(key)
            if running is not None and not running.done():
                raise SaveInProgress(f"{key.name} is still being saved.")
            future = self._executor.submit(job)
            self._pending[key] = future
        future.add_done_callback(lambda f, k=key: self._forget(k, f))
        logger.debug("Queued save for %s", key)
        return future

    def _forget(self, key: Path, future: Future) -> None:
        with self._lock:
            if self._pending.get(key) is future:
                del self._pending[key]

    def is_saving(self, path: Union[str, Path]) -> bool:
        with self._lock:
            f = self._pending.get(self._key(path))
        return f is not None and not f.done()

    def wait_for(self, path: Union[str, Path], timeout: Optional[float] = None) -> None:
        """Block until any in-flight save for ``path`` has finished (errors are the submitter's)."""
        with self._lock:
            f = self._pending.get(self._key(path))
        if f is not None:
            f.exception(timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
