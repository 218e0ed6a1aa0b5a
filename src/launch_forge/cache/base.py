"""Build record storage with TTL and LRU eviction.

Provides :class:`BuildStore` (abstract base) and :class:`InMemoryBuildStore`
(default implementation backed by :class:`collections.OrderedDict`).
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Callable

import structlog

from launch_forge.pipeline.models import BuildRecord

logger = structlog.get_logger(__name__)


class BuildStore(ABC):
    """Where the service keeps build records between polls.

    Subclass this to plug in Redis or any other shared backend.
    """

    @abstractmethod
    async def get(self, build_id: str) -> BuildRecord | None:
        """Return the record, or ``None`` when unknown or expired."""

    @abstractmethod
    async def put(self, record: BuildRecord) -> None:
        """Insert or replace the record for ``record.build_id``."""

    @abstractmethod
    async def delete(self, build_id: str) -> bool:
        """Remove a record. Returns ``True`` when something was removed."""

    @abstractmethod
    async def purge_expired(self) -> int:
        """Drop expired records and return how many were dropped."""


class InMemoryBuildStore(BuildStore):
    """Process-local store with a TTL that starts when a build finishes.

    Running builds never expire and are never evicted. Once a build reaches
    a terminal state it stays readable for ``ttl_seconds``; when more than
    ``max_size`` records are held, the least recently used finished records
    are evicted first.

    Args:
        ttl_seconds: How long a finished build stays readable (default 24 h).
        max_size: Soft capacity; only finished records count as evictable.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float = 24 * 60 * 60,
        max_size: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_size = max_size
        self._clock = clock
        # build_id -> (expires_at, record); expires_at is None while running.
        self._store: OrderedDict[str, tuple[float | None, BuildRecord]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._store)

    async def get(self, build_id: str) -> BuildRecord | None:
        entry = self._store.get(build_id)
        if entry is None:
            return None
        expires_at, record = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._store[build_id]
            return None
        self._store.move_to_end(build_id)
        return record

    async def put(self, record: BuildRecord) -> None:
        previous = self._store.pop(record.build_id, None)
        expires_at: float | None = None
        if record.finished:
            # Keep the original deadline when a finished record is re-saved.
            if previous is not None and previous[0] is not None:
                expires_at = previous[0]
            else:
                expires_at = self._clock() + self._ttl
        self._store[record.build_id] = (expires_at, record)
        self._evict()

    async def delete(self, build_id: str) -> bool:
        return self._store.pop(build_id, None) is not None

    async def purge_expired(self) -> int:
        now = self._clock()
        expired = [
            build_id
            for build_id, (expires_at, _) in self._store.items()
            if expires_at is not None and now >= expires_at
        ]
        for build_id in expired:
            del self._store[build_id]
        if expired:
            logger.info("builds_purged", count=len(expired))
        return len(expired)

    def _evict(self) -> None:
        overflow = len(self._store) - self._max_size
        if overflow <= 0:
            return
        evictable = [bid for bid, (expires_at, _) in self._store.items() if expires_at is not None]
        for build_id in evictable[:overflow]:
            del self._store[build_id]
            logger.debug("build_evicted", build_id=build_id)
