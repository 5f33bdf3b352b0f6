"""Typed exception hierarchy for content cache errors.

The cache is purely an optimization: corrupt entries and failed writes are
raised internally and absorbed by ContentCache, never surfaced to callers.
Only misuse of the cache lifecycle propagates.
"""

from src.confluence_client.errors import BookGenError


class CacheError(BookGenError):
    """Base exception for cache errors.

    Attributes:
        cache_path: Path to the cache file or directory
        message: Error description
    """

    def __init__(self, cache_path: str, message: str):
        super().__init__(f"Cache error at {cache_path}: {message}")
        self.cache_path = cache_path
        self.message = message


class CacheCorruptError(CacheError):
    """Raised when a cache entry exists but cannot be trusted."""
    pass


class CacheWriteError(CacheError):
    """Raised when a cache entry cannot be written."""
    pass


class CacheClosedError(CacheError):
    """Raised when the cache is used outside its open/close lifecycle."""

    def __init__(self, cache_path: str):
        super().__init__(cache_path, "cache is not open")
