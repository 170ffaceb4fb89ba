"""Models for cache data.

Defines the cache entry shared by both cache stores and the statistics they report.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Generic, TypeVar

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

__all__: list[str] = [
    "CacheEntry",
    "CacheStatistics",
    "PersistedCacheEntry",
]

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """Cached value with its access bookkeeping.

    Times are epoch seconds taken from the owning store's clock.

    Attributes:
        value (V): Cached result.
        created_at (float): Time of the first successful computation.
        access_count (int): Number of times the entry was produced or served (at least 1).
        last_accessed_at (float): Time of the most recent put or hit.
    """

    value: V
    created_at: float
    access_count: int = 1
    last_accessed_at: float = 0.0

    def __post_init__(self) -> None:
        if self.last_accessed_at == 0.0:
            self.last_accessed_at = self.created_at

    def touch(self, now: float) -> None:
        self.access_count += 1
        self.last_accessed_at = now


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class PersistedCacheEntry(DataClassJsonMixin):
    """On-disk form of a translation cache entry.

    Serialized as ``{"result", "timestamp", "accessCount", "lastAccessed"}``.
    """

    result: str
    timestamp: float
    access_count: int = 1
    last_accessed: float = 0.0

    @classmethod
    def from_entry(cls, entry: CacheEntry[str]) -> PersistedCacheEntry:
        return cls(
            result=entry.value,
            timestamp=entry.created_at,
            access_count=entry.access_count,
            last_accessed=entry.last_accessed_at,
        )

    def to_entry(self) -> CacheEntry[str]:
        return CacheEntry(
            value=self.result,
            created_at=self.timestamp,
            access_count=max(1, self.access_count),
            last_accessed_at=self.last_accessed or self.timestamp,
        )


@dataclass
class CacheStatistics:
    """Cache usage statistics.

    Attributes:
        name (str): Store name.
        total_entries (int): Number of entries currently held.
        max_size (int): Capacity before eviction.
        total_hits (int): Sum of access counts beyond the first production of each entry.
        oldest_entry (float | None): Creation time of the oldest entry.
        newest_entry (float | None): Creation time of the newest entry.
        estimated_bytes (int): Rough memory estimate of the stored values.
    """

    name: str = ""
    total_entries: int = 0
    max_size: int = 0
    total_hits: int = 0
    oldest_entry: float | None = None
    newest_entry: float | None = None
    estimated_bytes: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
