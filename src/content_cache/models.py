"""Data models for the content cache."""

import threading
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CachePolicy:
    """Which directions of cache traffic are allowed.

    Disabling the cache from configuration turns off reads only, so every
    page is fetched again but the cache stays warm for later runs.

    Attributes:
        read: Serve records from the cache
        write: Store fetched records in the cache
    """
    read: bool = True
    write: bool = True

    @classmethod
    def from_cache_disabled(cls, cache_disabled: bool) -> 'CachePolicy':
        """Map the cache_disabled configuration flag to a policy."""
        return cls(read=not cache_disabled, write=True)


@dataclass
class CacheStats:
    """Thread-safe counters for cache traffic during one open/close cycle."""
    hits: int = 0
    misses: int = 0
    corrupt: int = 0
    writes: int = 0
    write_failures: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def increment(self, counter: str) -> None:
        with self._lock:
            setattr(self, counter, getattr(self, counter) + 1)
