"""Breadth-first loader for the remote page graph.

The remote page graph is not guaranteed to be acyclic: pages link back to
their ancestors, and one page can be nested or linked from several places.
The loader therefore tracks visited page ids explicitly instead of relying
on the shape of the graph to terminate.
"""

import dataclasses
import logging
from collections import deque
from typing import TYPE_CHECKING, Deque, Optional, Set

from src.confluence_client.errors import RemoteError
from .models import PageGraph, PageRecord, PageSource
from .page_id import normalize_page_id

if TYPE_CHECKING:
    from src.content_cache.content_cache import ContentCache

logger = logging.getLogger(__name__)


class GraphLoader:
    """Builds a PageGraph by traversing the remote page graph from a root.

    Each page is resolved through the content cache first and the remote
    source second; fetched pages are written back to the cache before the
    traversal continues.

    Failure policy: by default any RemoteError aborts the load and no graph
    is returned. With tolerate_missing=True a page that cannot be fetched is
    left out of the graph, together with any pages only reachable through
    it, and its id is recorded in graph.stats.missing. A failure to fetch
    the root page always aborts.

    Example:
        >>> loader = GraphLoader(fetcher, cache)
        >>> graph = loader.load("2cab1ed2b7a44584b56b0d3ca9b80185")
        >>> len(graph)
        42
    """

    def __init__(
        self,
        source: PageSource,
        cache: Optional['ContentCache'] = None,
        tolerate_missing: bool = False
    ):
        """Initialize the loader.

        Args:
            source: Remote page source used on cache misses
            cache: Open content cache, or None to always fetch
            tolerate_missing: Leave unfetchable pages out instead of aborting
        """
        self._source = source
        self._cache = cache
        self._tolerate_missing = tolerate_missing

    def load(self, root_page_id: str) -> PageGraph:
        """Load every page reachable from root_page_id.

        Args:
            root_page_id: Root page id, in any spelling normalize_page_id accepts

        Returns:
            PageGraph holding each reachable, successfully fetched page once

        Raises:
            NormalizationError: If the root id or any referenced id is malformed
            RemoteError: If a page cannot be fetched and failures are not tolerated
        """
        root_id = normalize_page_id(root_page_id)
        graph = PageGraph(root_id)

        visited: Set[str] = set()
        queue: Deque[str] = deque([root_id])

        while queue:
            page_id = queue.popleft()
            if page_id in visited:
                continue
            visited.add(page_id)

            try:
                record = self._resolve(page_id, graph)
            except RemoteError as e:
                if not self._tolerate_missing or page_id == root_id:
                    logger.error(f"Failed to load page {page_id}: {e}")
                    raise
                logger.warning(f"Skipping page {page_id} and its subtree: {e}")
                graph.stats.missing.append(page_id)
                continue

            graph.add(page_id, record)
            queue.extend(record.references)

        logger.info(
            f"Loaded {len(graph)} pages from root {root_id} "
            f"({graph.stats.fetched} fetched, {graph.stats.cache_hits} cached"
            + (f", {len(graph.stats.missing)} missing)" if graph.stats.missing else ")")
        )
        return graph

    def _resolve(self, page_id: str, graph: PageGraph) -> PageRecord:
        """Return the record for page_id from the cache or the remote source."""
        if self._cache is not None:
            cached = self._cache.get(page_id)
            if cached is not None:
                graph.stats.cache_hits += 1
                return cached

        record = self._canonicalize(page_id, self._source.fetch(page_id))
        graph.stats.fetched += 1
        logger.debug(f"Fetched page {page_id} ('{record.title}')")

        if self._cache is not None:
            self._cache.put(page_id, record)
        return record

    @staticmethod
    def _canonicalize(page_id: str, record: PageRecord) -> PageRecord:
        """Key the record by the requested id and normalize its references.

        The source may report the page under an alias spelling of its id;
        the requested id is the one the graph and the cache use.
        """
        return dataclasses.replace(
            record,
            page_id=page_id,
            blocks=tuple(record.blocks),
            child_ids=tuple(normalize_page_id(ref) for ref in record.child_ids),
            link_ids=tuple(normalize_page_id(ref) for ref in record.link_ids),
        )
