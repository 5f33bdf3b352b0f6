"""Page graph loading and page tree construction.

This package traverses the remote page graph from a root page into a
deduplicated PageGraph, then turns that graph into a rooted tree of Page
nodes for the site assembler.
"""

from .errors import PageGraphError, NormalizationError, DuplicatePageError
from .models import PageRecord, PageGraph, Page, PageSource, LoadStats
from .page_id import normalize_page_id, is_valid_page_id
from .graph_loader import GraphLoader
from .tree_builder import TreeBuilder, build_page_tree, iter_pages, visit_pages, find_page

__all__ = [
    'PageGraphError',
    'NormalizationError',
    'DuplicatePageError',
    'PageRecord',
    'PageGraph',
    'Page',
    'PageSource',
    'LoadStats',
    'normalize_page_id',
    'is_valid_page_id',
    'GraphLoader',
    'TreeBuilder',
    'build_page_tree',
    'iter_pages',
    'visit_pages',
    'find_page',
]
