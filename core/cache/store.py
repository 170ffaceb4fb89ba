"""Bounded key/value cache stores.

Two policies share one base class:

- ``PersistentLRUCacheStore`` mirrors its entries to a JSON file and evicts the least recently
  accessed entries once the capacity is exceeded. Disk writes happen in the background after
  every mutation.
- ``EphemeralFIFOCacheStore`` lives in memory only and, once the capacity is exceeded, drops the
  oldest inserted entries in one batch down to a fraction of the capacity.

All mutations are serialized with an ``asyncio.Lock``. Stores never share entries.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Final

from models.cache_models import CacheEntry, CacheStatistics, PersistedCacheEntry
from utils.file_utils import FileUtils, InvalidJsonFileError
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable
    from pathlib import Path

__all__: list[str] = [
    "CacheStore",
    "EphemeralFIFOCacheStore",
    "PersistentLRUCacheStore",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

FIFO_EVICTION_TARGET_RATIO: Final[float] = 0.8


class CacheStore(ABC):
    """Bounded mapping from cache key to ``CacheEntry``.

    Subclasses decide the eviction order and whether touching an entry changes it.

    Args:
        name (str): Store name used in logs and statistics.
        max_size (int): Capacity before eviction. Must be positive.
        clock (Callable[[], float]): Source of epoch-second timestamps.

    Raises:
        ValueError: If ``max_size`` is not positive.
    """

    def __init__(self, name: str, max_size: int, *, clock: Callable[[], float] = time.time) -> None:
        if max_size <= 0:
            msg: str = f"Cache size must be positive: {max_size}"
            raise ValueError(msg)
        self.name: str = name
        self.max_size: int = max_size
        self._clock: Callable[[], float] = clock
        self._entries: dict[str, CacheEntry[str]] = {}
        self._lock: asyncio.Lock = asyncio.Lock()
        self._is_initialized: bool = False

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    async def component_load(self) -> None:
        self._is_initialized = True
        logger.info("%s cache '%s' initialized (max_size=%d)", self.__class__.__name__, self.name, self.max_size)

    async def component_teardown(self) -> None:
        self._is_initialized = False
        logger.info("%s cache '%s' torn down", self.__class__.__name__, self.name)

    def size(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    async def get(self, key: str) -> str | None:
        """Return the cached value without changing its bookkeeping."""
        async with self._lock:
            entry: CacheEntry[str] | None = self._entries.get(key)
            return entry.value if entry is not None else None

    async def get_entry(self, key: str) -> CacheEntry[str] | None:
        """Return a copy of the entry, including its bookkeeping."""
        async with self._lock:
            entry: CacheEntry[str] | None = self._entries.get(key)
            if entry is None:
                return None
            return CacheEntry(
                value=entry.value,
                created_at=entry.created_at,
                access_count=entry.access_count,
                last_accessed_at=entry.last_accessed_at,
            )

    async def touch(self, key: str) -> bool:
        """Record a cache hit.

        Returns:
            bool: False if the key is not cached.
        """
        async with self._lock:
            entry: CacheEntry[str] | None = self._entries.get(key)
            if entry is None:
                return False
            entry.touch(self._clock())
            self._on_touch_locked(key)
            self._on_mutation_locked()
            return True

    async def put(self, key: str, value: str) -> None:
        """Insert or replace an entry, then evict if the capacity is exceeded."""
        async with self._lock:
            now: float = self._clock()
            # Re-inserting moves the key to the end of the insertion order.
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(value=value, created_at=now, access_count=1, last_accessed_at=now)
            if len(self._entries) > self.max_size:
                evicted: list[str] = self._evict_locked()
                logger.debug("Cache '%s' evicted %d entries", self.name, len(evicted))
            self._on_mutation_locked()
        logger.debug("Cache '%s' stored key: %s", self.name, StringUtils.preview(key))

    async def clear(self) -> int:
        """Remove every entry.

        Returns:
            int: Number of entries removed.
        """
        async with self._lock:
            count: int = len(self._entries)
            self._entries.clear()
            self._on_mutation_locked()
        logger.info("Cache '%s' cleared (%d entries)", self.name, count)
        return count

    def statistics(self) -> CacheStatistics:
        entries: list[CacheEntry[str]] = list(self._entries.values())
        created: list[float] = [e.created_at for e in entries]
        return CacheStatistics(
            name=self.name,
            total_entries=len(entries),
            max_size=self.max_size,
            total_hits=sum(e.access_count - 1 for e in entries),
            oldest_entry=min(created) if created else None,
            newest_entry=max(created) if created else None,
            estimated_bytes=sum(
                len(k.encode("utf-8")) + len(e.value.encode("utf-8")) for k, e in self._entries.items()
            ),
        )

    def keys(self) -> list[str]:
        return list(self._entries)

    @abstractmethod
    def _evict_locked(self) -> list[str]:
        """Remove entries until the store is back within its bounds. Called with the lock held.

        Returns:
            list[str]: Removed keys.
        """
        raise NotImplementedError

    def _on_touch_locked(self, key: str) -> None:
        """Hook called after a hit. Called with the lock held."""

    def _on_mutation_locked(self) -> None:
        """Hook called after any change. Called with the lock held."""


class EphemeralFIFOCacheStore(CacheStore):
    """In-memory store evicting in insertion order, regardless of access.

    When the capacity is exceeded, the oldest entries are dropped until the store holds
    ``FIFO_EVICTION_TARGET_RATIO`` of its capacity.
    """

    def _evict_locked(self) -> list[str]:
        target: int = max(1, int(self.max_size * FIFO_EVICTION_TARGET_RATIO))
        excess: int = len(self._entries) - target
        evicted: list[str] = list(self._entries)[:excess]
        for key in evicted:
            del self._entries[key]
        return evicted


class PersistentLRUCacheStore(CacheStore):
    """Store mirrored to a JSON file, evicting the least recently accessed entries.

    The file maps each key to ``{"result", "timestamp", "accessCount", "lastAccessed"}``.
    Every mutation schedules a background rewrite; callers never wait for the disk, and a failed
    write is logged and retried on the next mutation.

    Args:
        name (str): Store name used in logs and statistics.
        max_size (int): Capacity before eviction.
        file_path (Path): JSON file backing the store.
        clock (Callable[[], float]): Source of epoch-second timestamps.
    """

    def __init__(
        self, name: str, max_size: int, file_path: Path, *, clock: Callable[[], float] = time.time
    ) -> None:
        super().__init__(name, max_size, clock=clock)
        self.file_path: Path = file_path
        self._dirty: bool = False
        self._save_task: asyncio.Task[None] | None = None

    async def component_load(self) -> None:
        await self.load()
        await super().component_load()

    async def component_teardown(self) -> None:
        await self.flush()
        await super().component_teardown()

    async def load(self) -> int:
        """Replace the in-memory entries with the file contents.

        A missing file yields an empty cache. An unreadable or malformed file also yields an empty
        cache, with a warning; malformed individual entries are skipped.

        Returns:
            int: Number of entries loaded.
        """
        try:
            raw: Any = await asyncio.to_thread(FileUtils.read_json, self.file_path)
        except FileNotFoundError:
            logger.info("Cache file not found, starting empty: %s", self.file_path)
            raw = {}
        except InvalidJsonFileError as err:
            logger.warning("Cache file is unreadable, starting empty: %s", err)
            raw = {}

        if not isinstance(raw, dict):
            logger.warning("Cache file does not contain an object, starting empty: %s", self.file_path)
            raw = {}

        loaded: list[tuple[str, CacheEntry[str]]] = []
        skipped: int = 0
        for key, value in raw.items():
            try:
                entry: CacheEntry[str] = PersistedCacheEntry.from_dict(value, infer_missing=True).to_entry()
            except (KeyError, TypeError, ValueError, AttributeError):
                skipped += 1
                continue
            if not isinstance(entry.value, str):
                skipped += 1
                continue
            loaded.append((key, entry))
        if skipped:
            logger.warning("Skipped %d malformed cache entries in %s", skipped, self.file_path)

        loaded.sort(key=lambda item: item[1].last_accessed_at)
        async with self._lock:
            self._entries = dict(loaded)
            evicted: list[str] = self._evict_locked() if len(self._entries) > self.max_size else []
            if evicted:
                self._on_mutation_locked()
        logger.info("Cache '%s' loaded %d entries from %s", self.name, len(self._entries), self.file_path)
        return len(self._entries)

    async def flush(self) -> None:
        """Wait until every scheduled write has reached the disk (or failed)."""
        while self._save_task is not None and not self._save_task.done():
            await asyncio.shield(self._save_task)

    def _evict_locked(self) -> list[str]:
        excess: int = len(self._entries) - self.max_size
        if excess <= 0:
            return []
        # sorted() is stable, so ties keep insertion order, which touch() keeps in recency order
        ordered: list[str] = sorted(self._entries, key=lambda k: self._entries[k].last_accessed_at)
        evicted: list[str] = ordered[:excess]
        for key in evicted:
            del self._entries[key]
        return evicted

    def _on_touch_locked(self, key: str) -> None:
        self._entries[key] = self._entries.pop(key)

    def _on_mutation_locked(self) -> None:
        self._dirty = True
        if self._save_task is None or self._save_task.done():
            self._save_task = asyncio.get_running_loop().create_task(self._save_loop())

    async def _save_loop(self) -> None:
        while self._dirty:
            async with self._lock:
                self._dirty = False
                snapshot: dict[str, dict[str, Any]] = {
                    key: PersistedCacheEntry.from_entry(entry).to_dict() for key, entry in self._entries.items()
                }
            try:
                await asyncio.to_thread(FileUtils.write_json_atomic, self.file_path, snapshot)
            except OSError as err:
                logger.error("Failed to write cache file %s: %s", self.file_path, err)
                return
            logger.debug("Cache '%s' saved %d entries", self.name, len(snapshot))
