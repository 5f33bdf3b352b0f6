"""Loading of books: page graph traversal and tree building per book.

Books are independent of each other, so several can load in parallel. The
traversal of any one book stays sequential. All books share one content
cache handle; its writes are atomic per entry, so two books reaching the
same page at once at worst fetch it twice.
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING, List, Optional

from src.page_graph.graph_loader import GraphLoader
from src.page_graph.models import PageSource
from src.page_graph.tree_builder import build_page_tree
from .models import Book, BookLoadResult

if TYPE_CHECKING:
    from src.content_cache.content_cache import ContentCache

logger = logging.getLogger(__name__)

# CPUs left free for other programs
RESERVED_CPUS = 2


def default_worker_count(cpu_count: Optional[int] = None) -> int:
    """Number of parallel book loads: CPU count minus a reserve, at least 1."""
    if cpu_count is None:
        cpu_count = os.cpu_count() or 1
    return max(1, cpu_count - RESERVED_CPUS)


class BookLoader:
    """Loads books from a page source through a shared content cache.

    Example:
        >>> with ContentCache(".book-cache") as cache:
        ...     loader = BookLoader(fetcher, cache)
        ...     results = loader.load_books(books)
    """

    def __init__(
        self,
        source: PageSource,
        cache: Optional['ContentCache'] = None,
        tolerate_missing: bool = False
    ):
        self._source = source
        self._cache = cache
        self._tolerate_missing = tolerate_missing

    def load_book(self, book: Book) -> Book:
        """Load the page graph and page tree of one book.

        The book's graph and root_page are only set once both steps have
        succeeded, so a failed load leaves the book untouched.

        Raises:
            RemoteError: If a page cannot be fetched and failures are not tolerated
            NormalizationError: If a page id is malformed
        """
        loader = GraphLoader(self._source, self._cache, tolerate_missing=self._tolerate_missing)
        graph = loader.load(book.root_page_id)
        root_page = build_page_tree(graph)

        book.graph = graph
        book.root_page = root_page
        logger.info(f"Loaded {len(graph)} pages for book {book.title}")
        return book

    def load_books(self, books: List[Book], max_workers: Optional[int] = None) -> List[BookLoadResult]:
        """Load several books in parallel.

        A failure in one book is recorded in its result and does not stop
        or affect the others.

        Args:
            books: Books to load
            max_workers: Parallel loads (default: default_worker_count())

        Returns:
            One BookLoadResult per book, in the order of books
        """
        if not books:
            return []

        workers = min(max_workers or default_worker_count(), len(books))
        logger.info(f"Loading {len(books)} books with {workers} workers")

        results = {}
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self._timed_load, book): book
                for book in books
            }
            for future in as_completed(futures):
                result = future.result()
                results[id(result.book)] = result
                if result.ok:
                    logger.info(f"  ✓ {result.book.title} ({result.seconds:.1f}s)")
                else:
                    logger.error(f"  ✗ {result.book.title}: {result.error}")

        return [results[id(book)] for book in books]

    def _timed_load(self, book: Book) -> BookLoadResult:
        start = time.monotonic()
        try:
            self.load_book(book)
        except Exception as e:
            return BookLoadResult(book=book, error=e, seconds=time.monotonic() - start)
        return BookLoadResult(book=book, seconds=time.monotonic() - start)
