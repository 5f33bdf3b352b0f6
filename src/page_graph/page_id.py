"""Normalization of remote page identifiers.

The remote source may spell one page id in several ways: a bare id, an id
with separators (dashed UUIDs, grouped digits) or a full page URL. All of
them reduce to one canonical form: a lowercase string of hex digits.

Normalization is idempotent, since a canonical id is already free of
separators, URL parts and uppercase letters.

Examples:
    >>> normalize_page_id("2CAB1ED2-B7A4-4584-B56B-0D3CA9B80185")
    '2cab1ed2b7a44584b56b0d3ca9b80185'
    >>> normalize_page_id("https://acme.atlassian.net/wiki/spaces/GO/pages/123456/Intro")
    '123456'
"""

import re
from urllib.parse import urlparse, parse_qs

from .errors import NormalizationError

# /pages/<id> path segment in Confluence page URLs
PAGES_PATH_PATTERN = re.compile(r'/pages/(?:viewpage\.action/)?([0-9A-Za-z-]+)')

UUID_TAIL_PATTERN = re.compile(
    r'([0-9a-fA-F]{8}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{12})$'
)

SEPARATOR_PATTERN = re.compile(r'[\s_-]+')

CANONICAL_PATTERN = re.compile(r'^[0-9a-f]+$')


def normalize_page_id(raw_id: str) -> str:
    """Reduce a raw page identifier or page URL to its canonical form.

    Args:
        raw_id: Page id as found in configuration, API payloads or links

    Returns:
        The canonical page id

    Raises:
        NormalizationError: If raw_id is empty or has no valid canonical form
    """
    if raw_id is None:
        raise NormalizationError(str(raw_id), "page id is missing")

    value = str(raw_id).strip()
    if not value:
        raise NormalizationError(value, "page id is empty")

    if '://' in value or value.startswith('/'):
        value = _id_from_url(value)

    canonical = SEPARATOR_PATTERN.sub('', value).lower()
    if not CANONICAL_PATTERN.match(canonical):
        raise NormalizationError(raw_id, "page id must contain only hex digits and separators")
    return canonical


def is_valid_page_id(raw_id: str) -> bool:
    """Return True if raw_id normalizes without error."""
    try:
        normalize_page_id(raw_id)
    except NormalizationError:
        return False
    return True


def _id_from_url(url: str) -> str:
    parsed = urlparse(url)

    query_ids = parse_qs(parsed.query).get('pageId')
    if query_ids:
        return query_ids[0]

    match = PAGES_PATH_PATTERN.search(parsed.path)
    if match:
        return match.group(1)

    # Notion style: the id is the tail of the last path segment ("Title-<id>")
    last_segment = parsed.path.rstrip('/').rsplit('/', 1)[-1]
    uuid_match = UUID_TAIL_PATTERN.search(last_segment)
    if uuid_match:
        return uuid_match.group(1)
    tail = last_segment.rsplit('-', 1)[-1]
    if tail:
        return tail

    raise NormalizationError(url, "URL does not contain a page id")
