"""Data models for books and generator configuration.

A Book is constructed from configuration, populated by the graph loader and
tree builder during the load phase, and only read by the site assembler
afterwards.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from src.asset_pipeline.asset_pipeline import ExcludePredicate, exclude_substrings
from src.content_cache.models import CachePolicy
from src.page_graph.models import Page, PageGraph
from .url_safe import make_url_safe

# Default syntax-highlighting language for code samples, by lowercased book title
DEFAULT_LANGS = {
    'go': 'go',
    'android': 'java',
    'ios': 'ObjectiveC',
    'microsoft sql server': 'sql',
    'node.js': 'javascript',
    'mysql': 'sql',
    '.net framework': 'c#',
}


@dataclass
class Book:
    """The top-level unit of generation: one page tree rendered as one book.

    Attributes:
        title: Short title (e.g., "Go")
        dir: Output directory name for the book
        root_page_id: Page id of the book's root page
        title_long: Long title (e.g., "Essential Go"), defaults to title
        graph: Loaded PageGraph (None until loaded)
        root_page: Root of the page tree (None until loaded)
    """
    title: str
    dir: str
    root_page_id: str
    title_long: str = ""
    graph: Optional[PageGraph] = None
    root_page: Optional[Page] = None

    def __post_init__(self):
        if not self.title_long:
            self.title_long = self.title

    @property
    def title_safe(self) -> str:
        return make_url_safe(self.title)

    @property
    def default_lang(self) -> str:
        key = self.title.lower()
        return DEFAULT_LANGS.get(key, key)

    @property
    def is_loaded(self) -> bool:
        return self.root_page is not None


@dataclass
class BookLoadResult:
    """Outcome of loading one book.

    Attributes:
        book: The book that was loaded
        error: The exception that aborted the load, None on success
        seconds: Wall-clock load duration
    """
    book: Book
    error: Optional[BaseException] = None
    seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class GenConfig:
    """Generator configuration loaded from books.yaml.

    Attributes:
        books: Books to generate
        cache_dir: Directory of the content cache
        cache_disabled: Force fetching every page; fetched pages are still cached
        output_dir: Root of the generated site
        tolerate_missing_pages: Leave unfetchable pages out instead of aborting a book
        asset_exclude_patterns: File name substrings excluded from asset staging
        static_files: Files staged under content-addressed names
        covers_dir: Directory copied recursively into the output (None to skip)
        max_workers: Parallel book loads (None for CPU count minus 2, at least 1)
    """
    books: List[Book] = field(default_factory=list)
    cache_dir: str = ".book-cache"
    cache_disabled: bool = False
    output_dir: str = "www"
    tolerate_missing_pages: bool = False
    asset_exclude_patterns: List[str] = field(default_factory=lambda: ['@2x'])
    static_files: List[str] = field(default_factory=list)
    covers_dir: Optional[str] = None
    max_workers: Optional[int] = None

    @property
    def cache_policy(self) -> CachePolicy:
        return CachePolicy.from_cache_disabled(self.cache_disabled)

    @property
    def exclude_predicate(self) -> ExcludePredicate:
        return exclude_substrings(self.asset_exclude_patterns)
