"""Page tree construction from a completed PageGraph.

The tree is built in a second pass over the already deduplicated graph.
Every page id is materialized as a Page exactly once. When a page is
reachable from several parents, the first parent to discover it owns it;
discovery runs breadth-first from the root, visiting each page's references
in the page's own order. Later occurrences, such as second parents and links
back to ancestors, become cross references to the same node. A link from a
page to itself is not a reference at all and leaves no trace in the tree.
"""

import logging
from collections import deque
from typing import Callable, Dict, Iterator, Optional

from .errors import PageGraphError
from .models import Page, PageGraph
from .page_id import normalize_page_id

logger = logging.getLogger(__name__)


class TreeBuilder:
    """Builds the rooted Page tree for a PageGraph.

    Example:
        >>> root = TreeBuilder(graph).build()
        >>> [child.title for child in root.children]
        ['Getting started', 'Basic types']
    """

    def __init__(self, graph: PageGraph):
        self._graph = graph
        self._nodes: Dict[str, Page] = {}

    def build(self) -> Page:
        """Materialize the tree.

        Returns:
            The root Page

        Raises:
            PageGraphError: If the graph does not contain its root page
        """
        root_record = self._graph.get(self._graph.root_id)
        if root_record is None:
            raise PageGraphError(f"Root page {self._graph.root_id} is not in the page graph")

        root = Page(root_record)
        self._nodes = {root.page_id: root}
        queue = deque([root])

        while queue:
            node = queue.popleft()
            for ref in node.record.references:
                existing = self._nodes.get(ref)
                if existing is not None:
                    node.add_cross_reference(existing)
                    continue

                record = self._graph.get(ref)
                if record is None:
                    logger.debug(f"Page {node.page_id} references unloaded page {ref}")
                    continue

                child = Page(record)
                self._nodes[ref] = child
                node.adopt(child)
                queue.append(child)

        logger.debug(f"Built page tree with {len(self._nodes)} pages from root {root.page_id}")
        return root

    @property
    def nodes(self) -> Dict[str, Page]:
        """Page nodes by page id, after build()."""
        return dict(self._nodes)


def build_page_tree(graph: PageGraph) -> Page:
    """Build the Page tree for graph and return its root."""
    return TreeBuilder(graph).build()


def iter_pages(root: Page) -> Iterator[Page]:
    """Breadth-first iteration over the owned pages of a tree, each page once."""
    processed = set()
    to_process = deque([root])
    while to_process:
        page = to_process.popleft()
        if page.page_id in processed:
            continue
        processed.add(page.page_id)
        to_process.extend(page.children)
        yield page


def visit_pages(root: Page, on_page: Callable[[Page], bool]) -> int:
    """Call on_page for each page in breadth-first order until it returns False.

    Returns:
        Number of pages visited
    """
    visited = 0
    for page in iter_pages(root):
        visited += 1
        if not on_page(page):
            break
    return visited


def find_page(root: Page, page_id: str) -> Optional[Page]:
    """Find the page with the given id (any accepted spelling) in a tree."""
    wanted = normalize_page_id(page_id)
    for page in iter_pages(root):
        if page.page_id == wanted:
            return page
    return None
