"""On-disk cache of fetched page records.

This module provides the ContentCache class, which persists page records
between runs so that loading a book does not hit the remote source for
pages it has already seen.
"""

import hashlib
import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from src.page_graph.models import PageRecord
from .errors import CacheClosedError, CacheCorruptError, CacheError, CacheWriteError
from .models import CachePolicy, CacheStats

logger = logging.getLogger(__name__)

CACHE_FORMAT_VERSION = 1


class ContentCache:
    """Durable key-value store of PageRecords keyed by canonical page id.

    Each entry is a single JSON file holding the record and a checksum of
    it, so that truncated or tampered entries are detected and treated as
    cache misses:

        .book-cache/
          2cab1ed2b7a44584b56b0d3ca9b80185.json
          {"format": 1, "page_id": "...", "cached_at": "...",
           "checksum": "<sha256>", "record": {...}}

    Entries are written to a temp file in the cache directory and renamed
    into place, so readers and concurrent writers of the same key never see
    a partially written entry.

    The cache has an explicit lifecycle: open() before the first book loads,
    close() after all books complete. It can also be used as a context
    manager.

    Example:
        >>> with ContentCache(".book-cache", CachePolicy(read=False)) as cache:
        ...     record = cache.get("123456")  # always None, reads disabled
        ...     cache.put("123456", fetched_record)  # still written
    """

    def __init__(self, cache_dir: str, policy: Optional[CachePolicy] = None):
        """Initialize the cache.

        Args:
            cache_dir: Cache directory (created on open)
            policy: Read/write policy (default: read and write)
        """
        self.cache_dir = os.path.abspath(cache_dir)
        self.policy = policy or CachePolicy()
        self.stats = CacheStats()
        self._is_open = False

    @property
    def is_open(self) -> bool:
        return self._is_open

    def open(self) -> 'ContentCache':
        """Create the cache directory and start a new statistics cycle.

        Raises:
            CacheError: If the cache directory cannot be created
        """
        try:
            os.makedirs(self.cache_dir, exist_ok=True)
        except OSError as e:
            raise CacheError(
                cache_path=self.cache_dir,
                message=f"Failed to create cache directory: {e}",
            )
        self.stats = CacheStats()
        self._is_open = True
        logger.debug(
            f"Cache opened at {self.cache_dir} "
            f"(read={self.policy.read}, write={self.policy.write})"
        )
        return self

    def close(self) -> None:
        """Close the cache and log its statistics.

        Every write is already durable when put() returns, so there is
        nothing left to flush.
        """
        if not self._is_open:
            return
        self._is_open = False
        logger.info(
            f"Cache closed: {self.stats.hits} hits, {self.stats.misses} misses, "
            f"{self.stats.corrupt} corrupt, {self.stats.writes} writes, "
            f"{self.stats.write_failures} failed writes"
        )

    def __enter__(self) -> 'ContentCache':
        return self.open()

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def _ensure_open(self) -> None:
        if not self._is_open:
            raise CacheClosedError(self.cache_dir)

    def _entry_path(self, page_id: str) -> str:
        return os.path.join(self.cache_dir, f"{page_id}.json")

    @staticmethod
    def _checksum(record_dict: Dict[str, Any]) -> str:
        canonical = json.dumps(record_dict, sort_keys=True, ensure_ascii=False)
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def get(self, page_id: str) -> Optional[PageRecord]:
        """Return the cached record for page_id, or None on a miss.

        A miss is reported when reads are disabled by the policy, when no
        entry exists, and when the entry is corrupt.

        Raises:
            CacheClosedError: If the cache is not open
        """
        self._ensure_open()

        if not self.policy.read:
            self.stats.increment("misses")
            return None

        entry_path = self._entry_path(page_id)
        if not os.path.exists(entry_path):
            logger.debug(f"Cache miss: no entry for page {page_id}")
            self.stats.increment("misses")
            return None

        try:
            record = self._read_entry(entry_path, page_id)
        except CacheCorruptError as e:
            logger.warning(f"Ignoring corrupt cache entry for page {page_id}: {e}")
            self.stats.increment("corrupt")
            self.stats.increment("misses")
            return None

        logger.debug(f"Cache hit: page {page_id}")
        self.stats.increment("hits")
        return record

    def _read_entry(self, entry_path: str, page_id: str) -> PageRecord:
        """Load and verify one entry.

        Raises:
            CacheCorruptError: If the entry cannot be read or fails verification
        """
        try:
            with open(entry_path, "r", encoding="utf-8") as f:
                envelope = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CacheCorruptError(entry_path, f"Failed to read or parse entry: {e}")

        if not isinstance(envelope, dict):
            raise CacheCorruptError(entry_path, "Entry is not a JSON object")
        if envelope.get("format") != CACHE_FORMAT_VERSION:
            raise CacheCorruptError(entry_path, f"Unsupported format {envelope.get('format')!r}")
        if envelope.get("page_id") != page_id:
            raise CacheCorruptError(entry_path, f"Entry belongs to page {envelope.get('page_id')!r}")

        record_dict = envelope.get("record")
        if not isinstance(record_dict, dict) or envelope.get("checksum") != self._checksum(record_dict):
            raise CacheCorruptError(entry_path, "Checksum mismatch")

        try:
            return PageRecord.from_dict(record_dict)
        except (KeyError, TypeError, ValueError) as e:
            raise CacheCorruptError(entry_path, f"Invalid record: {e}")

    def put(self, page_id: str, record: PageRecord) -> bool:
        """Store record under page_id, replacing any previous entry.

        Write failures are logged and absorbed.

        Returns:
            True if the entry was written, False if writes are disabled or failed

        Raises:
            CacheClosedError: If the cache is not open
        """
        self._ensure_open()

        if not self.policy.write:
            return False

        try:
            self._write_entry(page_id, record)
        except CacheWriteError as e:
            logger.error(f"Failed to cache page {page_id}: {e}")
            self.stats.increment("write_failures")
            return False

        logger.debug(f"Cached page {page_id} v{record.version}")
        self.stats.increment("writes")
        return True

    def _write_entry(self, page_id: str, record: PageRecord) -> None:
        """Atomically write one entry.

        Raises:
            CacheWriteError: If the entry cannot be written
        """
        record_dict = record.to_dict()
        envelope = {
            "format": CACHE_FORMAT_VERSION,
            "page_id": page_id,
            "cached_at": datetime.now().isoformat(),
            "checksum": self._checksum(record_dict),
            "record": record_dict,
        }
        entry_path = self._entry_path(page_id)

        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=self.cache_dir, prefix=f".{page_id}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(envelope, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, entry_path)
            tmp_path = None
        except (OSError, TypeError, ValueError) as e:
            raise CacheWriteError(cache_path=entry_path, message=f"Failed to write entry: {e}")
        finally:
            if tmp_path is not None:
                try:
                    os.remove(tmp_path)
                except OSError as e:
                    logger.debug(f"Failed to remove temp file {tmp_path}: {e}")

    def invalidate(self, page_id: str) -> bool:
        """Delete the entry for page_id.

        Returns:
            True if an entry was deleted
        """
        entry_path = Path(self._entry_path(page_id))
        try:
            entry_path.unlink()
        except FileNotFoundError:
            logger.debug(f"No cache entry found for page {page_id}")
            return False
        except OSError as e:
            logger.warning(f"Failed to delete cache file {entry_path}: {e}")
            return False
        logger.info(f"Invalidated cache entry for page {page_id}")
        return True

    def clear_all(self) -> int:
        """Delete every cache entry.

        Returns:
            Number of entries deleted
        """
        deleted_count = 0
        for file_path in Path(self.cache_dir).glob("*.json"):
            try:
                file_path.unlink()
                deleted_count += 1
            except OSError as e:
                logger.warning(f"Failed to delete cache file {file_path}: {e}")

        logger.info(f"Cleared cache: deleted {deleted_count} entries")
        return deleted_count
