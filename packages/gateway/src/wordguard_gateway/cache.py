"""
Single-slot TTL cache for the sensitive word list.
"""

import logging
import threading
import time
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WordCache(Generic[T]):
    """
    Holds one cached value with an expiry.

    Writers call ``invalidate()``; the next ``get()`` repopulates the slot
    through the loader. The lock only guards the slot fields, never the load,
    and a load that raced with an invalidation is returned but not stored.
    """

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._value: Optional[T] = None
        self._expires_at = 0.0
        self._generation = 0

    def get(self, loader: Callable[[], T]) -> T:
        """Return the cached value, loading and storing it when expired."""
        with self._lock:
            if self._value is not None and self._clock() < self._expires_at:
                logger.debug("Sensitive words loaded from cache")
                return self._value
            generation = self._generation

        value = loader()

        with self._lock:
            if generation == self._generation:
                self._value = value
                self._expires_at = self._clock() + self.ttl_seconds
        return value

    def invalidate(self) -> None:
        with self._lock:
            self._value = None
            self._expires_at = 0.0
            self._generation += 1
