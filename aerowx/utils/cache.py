import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    created_at: float


class TTLCache(Generic[V]):
    """
    In-memory cache with a fixed TTL and a bounded number of entries.

    Staleness is checked lazily on read. When the bound is exceeded the
    oldest inserted entry is evicted; reading does not refresh position.
    """

    def __init__(
        self,
        ttl_seconds: float = 600,
        max_entries: Optional[int] = 50,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._store: "OrderedDict[str, CacheEntry[V]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[V]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if self._clock() - entry.created_at >= self.ttl_seconds:
                del self._store[key]
                return None
            return entry.value

    def set(self, key: str, value: V) -> None:
        entry = CacheEntry(value=value, created_at=self._clock())
        with self._lock:
            self._store.pop(key, None)
            self._store[key] = entry
            if self.max_entries is not None:
                while len(self._store) > self.max_entries:
                    self._store.popitem(last=False)

    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __contains__(self, key: Any) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
