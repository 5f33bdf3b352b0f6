"""Unit tests for books.book_loader module."""

import threading
from unittest.mock import patch

import pytest

from src.books.book_loader import BookLoader, default_worker_count
from src.books.models import Book
from src.confluence_client.errors import PageNotFoundError
from src.content_cache.content_cache import ContentCache
from tests.helpers.fake_source import FakePageSource, make_record


@pytest.fixture
def source():
    """Two independent books plus a page shared by both."""
    return FakePageSource({
        "a0": make_record("a0", children=["a1", "cc"]),
        "a1": make_record("a1"),
        "b0": make_record("b0", children=["b1", "cc"]),
        "b1": make_record("b1"),
        "cc": make_record("cc"),
    })


class TestDefaultWorkerCount:
    """Test cases for default_worker_count."""

    @pytest.mark.parametrize("cpus, expected", [(1, 1), (2, 1), (3, 1), (8, 6)])
    def test_leaves_two_cpus_free(self, cpus, expected):
        assert default_worker_count(cpus) == expected

    @patch('src.books.book_loader.os.cpu_count', return_value=None)
    def test_unknown_cpu_count(self, mock_cpu_count):
        assert default_worker_count() == 1


class TestLoadBook:
    """Test cases for BookLoader.load_book."""

    def test_sets_graph_and_tree(self, source):
        book = Book(title="Alpha", dir="alpha", root_page_id="a0")

        BookLoader(source).load_book(book)

        assert book.is_loaded
        assert len(book.graph) == 3
        assert [child.page_id for child in book.root_page.children] == ["a1", "cc"]

    def test_failed_load_leaves_book_untouched(self, source):
        book = Book(title="Missing", dir="missing", root_page_id="ff")

        with pytest.raises(PageNotFoundError):
            BookLoader(source).load_book(book)

        assert book.graph is None
        assert book.root_page is None


class TestLoadBooks:
    """Test cases for BookLoader.load_books."""

    def test_results_in_input_order(self, source):
        books = [
            Book(title="Beta", dir="beta", root_page_id="b0"),
            Book(title="Alpha", dir="alpha", root_page_id="a0"),
        ]

        results = BookLoader(source).load_books(books, max_workers=2)

        assert [result.book.title for result in results] == ["Beta", "Alpha"]
        assert all(result.ok for result in results)
        assert all(result.seconds >= 0 for result in results)

    def test_failure_isolated_to_one_book(self, source):
        """A failing book does not affect the others."""
        books = [
            Book(title="Alpha", dir="alpha", root_page_id="a0"),
            Book(title="Broken", dir="broken", root_page_id="ff"),
            Book(title="Beta", dir="beta", root_page_id="b0"),
        ]

        results = BookLoader(source).load_books(books, max_workers=3)

        assert [result.ok for result in results] == [True, False, True]
        assert isinstance(results[1].error, PageNotFoundError)
        assert books[0].is_loaded and books[2].is_loaded
        assert not books[1].is_loaded

    def test_books_load_in_parallel(self):
        """Two books are in flight at the same time."""
        both_started = threading.Barrier(2, timeout=5)

        class BlockingSource(FakePageSource):
            def fetch(self, page_id):
                if page_id in ("a0", "b0"):
                    both_started.wait()
                return super().fetch(page_id)

        source = BlockingSource({"a0": make_record("a0"), "b0": make_record("b0")})
        books = [
            Book(title="Alpha", dir="alpha", root_page_id="a0"),
            Book(title="Beta", dir="beta", root_page_id="b0"),
        ]

        results = BookLoader(source).load_books(books, max_workers=2)

        assert all(result.ok for result in results)

    def test_shared_cache_across_books(self, source, tmp_path):
        """Books share one cache; a shared page is cached once and read back."""
        books = [
            Book(title="Alpha", dir="alpha", root_page_id="a0"),
            Book(title="Beta", dir="beta", root_page_id="b0"),
        ]

        with ContentCache(str(tmp_path)) as cache:
            BookLoader(source, cache).load_books(books, max_workers=1)

        assert source.fetch_count("cc") == 1
        assert books[1].graph.stats.cache_hits == 1

    def test_no_books(self, source):
        assert BookLoader(source).load_books([]) == []

    def test_tolerant_loader_records_missing(self):
        source = FakePageSource({"a0": make_record("a0", children=["dd"])})
        book = Book(title="Alpha", dir="alpha", root_page_id="a0")

        results = BookLoader(source, tolerate_missing=True).load_books([book], max_workers=1)

        assert results[0].ok
        assert book.graph.stats.missing == ["dd"]
