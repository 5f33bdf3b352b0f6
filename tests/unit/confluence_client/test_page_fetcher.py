"""Unit tests for confluence_client.page_fetcher module."""

import copy
import logging
from unittest.mock import MagicMock

import pytest

from src.confluence_client.errors import MalformedResponseError, PageNotFoundError
from src.confluence_client.page_fetcher import (
    PAGE_EXPAND,
    ConfluencePageFetcher,
    parse_storage_body,
)
from tests.fixtures.sample_pages import SAMPLE_CHILDREN, SAMPLE_PAGE


@pytest.fixture
def api():
    api = MagicMock()
    api.get_page_by_id.return_value = copy.deepcopy(SAMPLE_PAGE)
    api.get_page_children.return_value = copy.deepcopy(SAMPLE_CHILDREN)
    api.base_url.return_value = "https://acme.atlassian.net/wiki"
    return api


class TestConfluencePageFetcher:
    """Test cases for ConfluencePageFetcher.fetch."""

    def test_builds_record_from_payload(self, api):
        """Metadata, children and links are mapped onto the record."""
        record = ConfluencePageFetcher(api).fetch("100001")

        assert record.page_id == "100001"
        assert record.title == "Getting started"
        assert record.version == 7
        assert record.last_modified == "2024-01-15T10:30:00.000Z"
        assert record.space_key == "GO"
        assert record.child_ids == ("100002", "100003")
        assert record.link_ids == ("200002", "200003")
        assert len(record.blocks) == 4
        api.get_page_by_id.assert_called_once_with(page_id="100001", expand=PAGE_EXPAND)
        api.get_page_children.assert_called_once_with("100001")

    def test_page_without_body(self, api):
        """Pages without a storage body have no blocks and no links."""
        del api.get_page_by_id.return_value['body']
        api.get_page_children.return_value = []

        record = ConfluencePageFetcher(api).fetch("100001")

        assert record.blocks == ()
        assert record.link_ids == ()
        assert record.child_ids == ()

    def test_missing_title_defaults(self, api):
        api.get_page_by_id.return_value['title'] = None

        assert ConfluencePageFetcher(api).fetch("100001").title == "Untitled Page"

    def test_payload_without_id_is_malformed(self, api):
        del api.get_page_by_id.return_value['id']

        with pytest.raises(MalformedResponseError) as exc_info:
            ConfluencePageFetcher(api).fetch("100001")

        assert exc_info.value.page_id == "100001"

    def test_child_without_id_is_malformed(self, api):
        api.get_page_children.return_value = [{'title': 'Orphan'}]

        with pytest.raises(MalformedResponseError):
            ConfluencePageFetcher(api).fetch("100001")

    def test_non_confluence_id_is_not_found(self, api):
        """Ids the REST API cannot address are reported as missing pages."""
        api.get_page_by_id.side_effect = ValueError("Invalid page_id format")

        with pytest.raises(PageNotFoundError):
            ConfluencePageFetcher(api).fetch("2cab1ed2b7a44584b56b0d3ca9b80185")


class TestParseStorageBody:
    """Test cases for parse_storage_body."""

    def test_empty_body(self):
        assert parse_storage_body("") == ((), ())
        assert parse_storage_body("   \n") == ((), ())

    def test_blocks_are_top_level_nodes(self):
        """Top-level elements become blocks; blank text between them is dropped."""
        blocks, _ = parse_storage_body("<h1>Title</h1>\n\n<p>One</p><p>Two</p>")

        assert blocks == ("<h1>Title</h1>", "<p>One</p>", "<p>Two</p>")

    def test_links_deduplicated_in_document_order(self):
        _, links = parse_storage_body(
            '<p><a href="/wiki/spaces/GO/pages/300/B">b</a>'
            '<a href="/wiki/spaces/GO/pages/200/A">a</a>'
            '<a href="/wiki/pages/viewpage.action?pageId=300">b again</a></p>'
        )

        assert links == ("300", "200")

    def test_external_and_anchor_links_ignored(self):
        _, links = parse_storage_body(
            '<p><a href="https://golang.org/doc">Go</a><a href="#section">jump</a></p>'
        )

        assert links == ()

    def test_pages_links_to_other_hosts_ignored(self):
        """A /pages/ path on another site is not a Confluence page link."""
        _, links = parse_storage_body(
            '<p><a href="https://www.example.com/pages/2024">news</a>'
            '<a href="https://blog.example.org/pages/cafe">blog</a>'
            '<a href="https://ACME.atlassian.net/wiki/spaces/GO/pages/300/B">b</a></p>',
            base_url="https://acme.atlassian.net/wiki",
        )

        assert links == ("300",)

    def test_absolute_links_need_base_url(self):
        """Without a base URL only relative page links are trusted."""
        _, links = parse_storage_body(
            '<a href="https://acme.atlassian.net/wiki/spaces/GO/pages/300/B">b</a>'
            '<a href="/wiki/spaces/GO/pages/200/A">a</a>'
        )

        assert links == ("200",)

    def test_external_pages_link_does_not_abort_fetch(self, api):
        """A page body linking to another site's /pages/ URL still loads."""
        api.get_page_by_id.return_value['body']['storage']['value'] = (
            '<p><a href="https://blog.example.org/pages/cafe">blog</a></p>'
        )

        record = ConfluencePageFetcher(api).fetch("100001")

        assert record.link_ids == ()

    def test_explicit_base_url_skips_credentials_lookup(self, api):
        record = ConfluencePageFetcher(api, base_url="https://acme.atlassian.net/wiki").fetch("100001")

        assert record.link_ids == ("200002", "200003")
        api.base_url.assert_not_called()

    def test_page_macro_links(self, caplog):
        """<ri:page> references with a content id are links; title-only ones are logged."""
        with caplog.at_level(logging.DEBUG, logger="src.confluence_client.page_fetcher"):
            _, links = parse_storage_body(
                '<ac:link><ri:page ri:content-id="12345" /></ac:link>'
                '<ac:link><ri:page ri:content-title="By title only" /></ac:link>'
            )

        assert links == ("12345",)
        assert "By title only" in caplog.text
