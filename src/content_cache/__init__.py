"""Durable cache of fetched page records.

The cache lets repeated runs skip the remote source for pages already
fetched. It is an optimization only: its failures never abort a load.
"""

from .content_cache import ContentCache
from .models import CachePolicy, CacheStats
from .errors import CacheError, CacheCorruptError, CacheWriteError, CacheClosedError

__all__ = [
    'ContentCache',
    'CachePolicy',
    'CacheStats',
    'CacheError',
    'CacheCorruptError',
    'CacheWriteError',
    'CacheClosedError',
]
