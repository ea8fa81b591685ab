"""TTL-bounded key/value cache with least-recently-used eviction.

Two independent limits apply to every entry:
- capacity: inserting past ``max_size`` evicts the least recently used entry
- TTL: an entry older than its ttl is treated as absent on read and removed

``CacheService.get`` never returns an expired or evicted value.

Storage is pluggable through ``CacheStore`` so a shared backing store can
replace the in-process ``MemoryStore`` without touching callers.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Pattern, Union

from .settings import CACHE_DEFAULT_TTL, CACHE_MAX_SIZE

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Cache keys
# ---------------------------------------------------------------------------


def component_key(file_id: str, component_id: str) -> str:
    return f"component:{file_id}:{component_id}"


def component_list_key(file_id: str) -> str:
    return f"components:{file_id}"


def design_tokens_key(file_id: str) -> str:
    return f"tokens:{file_id}"


def component_spec_key(file_id: str, component_id: str) -> str:
    return f"spec:{file_id}:{component_id}"


def file_metadata_key(file_id: str) -> str:
    return f"file:{file_id}:meta"


def file_styles_key(file_id: str) -> str:
    return f"file:{file_id}:styles"


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


@dataclass
class CacheEntry:
    data: Any
    timestamp: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


class CacheStore(ABC):
    """Backing storage for CacheService. Implementations enforce capacity."""

    @abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry (marking it recently used) or None."""

    @abstractmethod
    def set(self, key: str, entry: CacheEntry) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    @abstractmethod
    def keys(self) -> List[str]:
        ...

    @abstractmethod
    def __len__(self) -> int:
        ...


class MemoryStore(CacheStore):
    """In-process LRU store backed by an OrderedDict (oldest first)."""

    def __init__(self, max_size: int = CACHE_MAX_SIZE):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()

    def get(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is not None:
            self._entries.move_to_end(key)
        return entry

    def set(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"MemoryStore: evicted key={evicted} (max_size={self.max_size})")

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def __len__(self) -> int:
        return len(self._entries)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CacheService:
    """Thread-safe cache front-end with lazy TTL expiry.

    Args:
        store: Backing store. Defaults to a MemoryStore of ``max_size``.
        max_size: Capacity of the default store.
        default_ttl: TTL in seconds when ``set`` is called without one.
        clock: Monotonic time source in seconds (injectable for tests).
    """

    def __init__(
        self,
        store: Optional[CacheStore] = None,
        max_size: int = CACHE_MAX_SIZE,
        default_ttl: float = CACHE_DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store = store if store is not None else MemoryStore(max_size)
        self._max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock
        self._lock = threading.RLock()

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._store.delete(key)
            logger.debug(f"CacheService: expired key={key}")
            return None
        return entry

    def get(self, key: str) -> Any:
        with self._lock:
            entry = self._live_entry(key)
            return entry.data if entry is not None else None

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        entry = CacheEntry(
            data=value,
            timestamp=self._clock(),
            ttl=ttl if ttl is not None else self.default_ttl,
        )
        with self._lock:
            self._store.set(key, entry)

    def has(self, key: str) -> bool:
        with self._lock:
            return self._live_entry(key) is not None

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.delete(key)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def invalidate_pattern(self, pattern: Union[str, Pattern[str]]) -> int:
        """Delete every key matching ``pattern`` (searched anywhere in the key)."""
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        with self._lock:
            doomed = [key for key in self._store.keys() if regex.search(key)]
            for key in doomed:
                self._store.delete(key)
        if doomed:
            logger.info(f"CacheService: invalidated {len(doomed)} keys matching {regex.pattern!r}")
        return len(doomed)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            max_size = getattr(self._store, "max_size", self._max_size)
            return {"size": len(self._store), "max_size": max_size}
