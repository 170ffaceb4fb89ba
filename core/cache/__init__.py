"""Caching and request coordination package.

Provides the bounded cache stores, the cacheability policy and the single-flight coordinator.
"""

from __future__ import annotations

from core.cache.inflight_manager import InFlightManager, InFlightTimeoutError, Lease, RequestCancelledError
from core.cache.policy import is_cacheable
from core.cache.store import CacheStore, EphemeralFIFOCacheStore, PersistentLRUCacheStore

__all__: list[str] = [
    "CacheStore",
    "EphemeralFIFOCacheStore",
    "InFlightManager",
    "InFlightTimeoutError",
    "Lease",
    "PersistentLRUCacheStore",
    "RequestCancelledError",
    "is_cacheable",
]
