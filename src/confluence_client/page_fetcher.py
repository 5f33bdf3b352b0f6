"""Remote fetcher turning Confluence pages into PageRecords.

One fetch costs two API calls: the page itself (metadata and storage format
body) and its direct children. Inline links to other pages are extracted
from the storage body, so pages that are only linked, never nested, are
reachable too.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup, NavigableString, Tag

from src.page_graph.errors import NormalizationError
from src.page_graph.models import PageRecord
from src.page_graph.page_id import normalize_page_id
from .api_wrapper import APIWrapper
from .errors import MalformedResponseError, PageNotFoundError

logger = logging.getLogger(__name__)

PAGE_EXPAND = "version,space,body.storage"


class ConfluencePageFetcher:
    """Fetches single pages from Confluence as PageRecords.

    Example:
        >>> fetcher = ConfluencePageFetcher(APIWrapper(Authenticator()))
        >>> record = fetcher.fetch("123456")
        >>> record.child_ids
        ('123457', '123458')
    """

    def __init__(self, api: APIWrapper, base_url: Optional[str] = None):
        """Initialize the fetcher.

        Args:
            api: Confluence API wrapper
            base_url: Confluence instance URL; absolute links to other hosts are
                not page links (default: the URL from the API credentials)
        """
        self._api = api
        self._base_url = base_url

    def fetch(self, page_id: str) -> PageRecord:
        """Fetch one page with its content blocks and referenced page ids.

        Args:
            page_id: Canonical page id

        Returns:
            PageRecord for the page

        Raises:
            PageNotFoundError: If the page doesn't exist or the id is not a Confluence id
            MalformedResponseError: If the API payload lacks required fields
            APIUnreachableError: If API is unreachable
            APIAccessError: If API access fails after retries
            InvalidCredentialsError: If credentials are invalid
        """
        logger.debug(f"Confluence API: GET /content/{page_id}?expand={PAGE_EXPAND}")
        try:
            page_data = self._api.get_page_by_id(page_id=page_id, expand=PAGE_EXPAND)
            children_data = self._api.get_page_children(page_id)
        except ValueError as e:
            logger.error(f"Page id {page_id} is not a Confluence page id: {e}")
            raise PageNotFoundError(page_id=page_id) from e

        return self._build_record(page_id, page_data, children_data)

    def _get_base_url(self) -> str:
        if self._base_url is None:
            self._base_url = self._api.base_url()
        return self._base_url

    def _build_record(
        self,
        page_id: str,
        page_data: Dict[str, Any],
        children_data: List[Dict[str, Any]]
    ) -> PageRecord:
        if not isinstance(page_data, dict) or not page_data.get('id'):
            raise MalformedResponseError(page_id, "page data missing 'id' field")

        version_info = page_data.get('version') or {}
        body_storage = (page_data.get('body') or {}).get('storage') or {}
        blocks, link_ids = parse_storage_body(
            body_storage.get('value', ''), base_url=self._get_base_url()
        )

        child_ids = []
        for child in children_data:
            if not isinstance(child, dict) or not child.get('id'):
                raise MalformedResponseError(page_id, "child entry missing 'id' field")
            child_ids.append(normalize_page_id(child['id']))

        record = PageRecord(
            page_id=normalize_page_id(page_data['id']),
            title=page_data.get('title') or 'Untitled Page',
            blocks=blocks,
            child_ids=tuple(child_ids),
            link_ids=link_ids,
            version=version_info.get('number', 1),
            last_modified=version_info.get('when', ''),
            space_key=(page_data.get('space') or {}).get('key', ''),
        )

        logger.debug(
            f"Fetched page {record.page_id} ('{record.title}'): "
            f"{len(record.blocks)} blocks, {len(record.child_ids)} children, "
            f"{len(record.link_ids)} links"
        )
        return record


def parse_storage_body(
    xhtml: str,
    base_url: Optional[str] = None
) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """Split a storage format body into content blocks and linked page ids.

    Blocks are the top-level fragments of the body in document order, with
    whitespace-only text dropped. Link ids come from <a href> pointing at
    Confluence pages and from <ri:page ri:content-id="..."> references, in
    document order, deduplicated.

    An <a href> is a page link only if it is relative or points at the host
    of base_url. Without base_url, only relative hrefs qualify.

    Args:
        xhtml: Confluence storage format (XHTML) body
        base_url: Confluence instance URL

    Returns:
        Tuple of (blocks, link_ids)
    """
    if not xhtml or not xhtml.strip():
        return (), ()

    soup = BeautifulSoup(xhtml, 'html.parser')

    blocks = []
    for node in soup.contents:
        if isinstance(node, NavigableString):
            text = str(node).strip()
            if text:
                blocks.append(text)
        elif isinstance(node, Tag):
            blocks.append(str(node))

    confluence_host = urlparse(base_url).netloc.lower() if base_url else None

    link_ids: List[str] = []
    for tag in soup.find_all(['a', 'ri:page']):
        raw_id = _linked_page_id(tag, confluence_host)
        if raw_id is None:
            continue
        try:
            linked_id = normalize_page_id(raw_id)
        except NormalizationError:
            logger.debug(f"Ignoring link without a page id: {raw_id}")
            continue
        if linked_id not in link_ids:
            link_ids.append(linked_id)

    return tuple(blocks), tuple(link_ids)


def _linked_page_id(tag: Tag, confluence_host: Optional[str]) -> Optional[str]:
    if tag.name == 'ri:page':
        content_id = tag.get('ri:content-id')
        if content_id is None:
            # Title-only references need a title lookup we don't do
            logger.debug(
                f"Ignoring page link without a content id: "
                f"title={tag.get('ri:content-title')!r} space={tag.get('ri:space-key')!r}"
            )
        return content_id

    href = tag.get('href', '')
    if '/pages/' not in href and 'pageId=' not in href:
        return None

    parsed = urlparse(href)
    if parsed.scheme or parsed.netloc:
        if confluence_host is None or parsed.netloc.lower() != confluence_host:
            logger.debug(f"Ignoring link to another site: {href}")
            return None
    return href
