"""Integration tests: Confluence payloads through the fetcher, cache and tree builder.

The atlassian client is mocked at the APIWrapper boundary so the storage
body parsing, id normalization, caching and tree building all run for real.
"""

from unittest.mock import MagicMock

import pytest

from src.books.book_loader import BookLoader
from src.books.models import Book
from src.confluence_client.page_fetcher import ConfluencePageFetcher
from src.content_cache.content_cache import ContentCache
from src.page_graph.tree_builder import find_page, iter_pages

pytestmark = pytest.mark.integration


def _page(page_id, title, body=""):
    return {
        'id': page_id,
        'title': title,
        'space': {'key': 'GO'},
        'version': {'number': 1, 'when': '2024-01-15T10:30:00.000Z'},
        'body': {'storage': {'value': body}},
    }


PAGES = {
    '100': _page('100', 'Essential Go'),
    '101': _page('101', 'Getting started',
                 '<p>Next: <a href="/wiki/spaces/GO/pages/102/Basic+types">types</a></p>'),
    '102': _page('102', 'Basic types',
                 '<p>Back to <a href="/wiki/spaces/GO/pages/100/Essential+Go">the start</a></p>'),
    '103': _page('103', 'Linked only'),
    '104': _page('104', 'Appendix',
                 '<ac:link><ri:page ri:content-id="103" /></ac:link>'),
}

CHILDREN = {
    '100': [{'id': '101'}, {'id': '104'}],
    '101': [{'id': '102'}],
}


@pytest.fixture
def api():
    api = MagicMock()
    api.get_page_by_id.side_effect = lambda page_id, expand=None: PAGES[page_id]
    api.get_page_children.side_effect = lambda page_id: CHILDREN.get(page_id, [])
    api.base_url.return_value = 'https://acme.atlassian.net/wiki'
    return api


class TestLoadBookFromConfluence:
    """End-to-end load of a small Confluence space."""

    def test_builds_tree_and_fills_cache(self, api, tmp_path):
        book = Book(title="Go", dir="go", root_page_id="100")

        with ContentCache(str(tmp_path)) as cache:
            results = BookLoader(ConfluencePageFetcher(api), cache).load_books([book], max_workers=1)

        assert results[0].ok, results[0].error
        root = book.root_page
        assert [page.title for page in iter_pages(root)] == [
            'Essential Go', 'Getting started', 'Appendix', 'Basic types', 'Linked only',
        ]
        assert find_page(root, '103').parent.page_id == '104'
        assert find_page(root, '102').cross_references == [root]
        assert len(list(tmp_path.glob('*.json'))) == 5
        assert api.get_page_by_id.call_count == 5

    def test_reload_uses_cache(self, api, tmp_path):
        book = Book(title="Go", dir="go", root_page_id="100")
        with ContentCache(str(tmp_path)) as cache:
            BookLoader(ConfluencePageFetcher(api), cache).load_book(book)
        api.get_page_by_id.reset_mock()

        reloaded = Book(title="Go", dir="go", root_page_id="100")
        with ContentCache(str(tmp_path)) as cache:
            BookLoader(ConfluencePageFetcher(api), cache).load_book(reloaded)

        api.get_page_by_id.assert_not_called()
        assert reloaded.graph == book.graph
        assert reloaded.graph.stats.cache_hits == 5
