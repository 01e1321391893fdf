"""Per-instance reentrancy lock."""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from .errors import ReentrantCall

logger = logging.getLogger(__name__)


class ReentrancyGuard:
    """Rejects a second entry while the first is still running. Never blocks."""

    def __init__(self, owner: str) -> None:
        self._owner = owner
        self._lock = threading.Lock()

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            logger.warning("Reentrant call into %s rejected.", self._owner)
            raise ReentrantCall(f"Reentrant call into {self._owner} rejected.")
        try:
            yield
        finally:
            self._lock.release()
