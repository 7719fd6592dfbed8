"""In-memory name cache where each entry has its own TTL."""

import threading
import time
from typing import Callable, Dict, List, Literal, Optional, Tuple, Union

from dweb.dns.config import MEMORY_CACHE_DEFAULT_TTL
from dweb.dns.model import CacheEntry

CachedValue = Union[str, Literal[False]]


class MemoryCache:
    """
    Thread-safe in-memory cache of name to key mappings.

    Values are either a key or False for a cached miss. Expiry is lazy: an entry
    past its TTL reads as absent and is dropped on the next access. There is no
    bound on the number of entries.
    """

    def __init__(
        self,
        ttl: int = MEMORY_CACHE_DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = ttl
        self._clock = clock
        self._store: Dict[str, Tuple[float, CachedValue]] = {}
        self._lock = threading.RLock()

    def get(self, name: str) -> Optional[CachedValue]:
        """
        Look up a name.

        Returns:
            The cached key, False for a cached miss, or None if the name was never
            cached or its entry has expired.
        """
        now = self._clock()
        with self._lock:
            entry = self._store.get(name)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= now:
                del self._store[name]
                return None
            return value

    def set(self, name: str, value: CachedValue, ttl: Optional[int] = None) -> None:
        """Store a key (or False for a miss) for ttl seconds."""
        if ttl is None:
            ttl = self._default_ttl
        expires_at = self._clock() + ttl
        with self._lock:
            # Re-insert so list() reflects write order.
            self._store.pop(name, None)
            self._store[name] = (expires_at, value)

    def list(self) -> List[CacheEntry]:
        """Snapshot of live entries in write order."""
        now = self._clock()
        with self._lock:
            return [
                CacheEntry(name=name, key=value, expires_at=expires_at)
                for name, (expires_at, value) in self._store.items()
                if expires_at > now
            ]

    def flush(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        return len(self.list())
