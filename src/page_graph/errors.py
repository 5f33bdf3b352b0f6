"""Typed exception hierarchy for page graph errors."""

from src.confluence_client.errors import BookGenError


class PageGraphError(BookGenError):
    """Base exception for page graph errors."""
    pass


class NormalizationError(PageGraphError):
    """Raised when a raw page identifier cannot be normalized.

    A malformed identifier means the remote source violated our assumptions
    about its identifiers, so this error is always fatal.
    """

    def __init__(self, raw_id: str, reason: str):
        super().__init__(f"Cannot normalize page id {raw_id!r}: {reason}")
        self.raw_id = raw_id
        self.reason = reason


class DuplicatePageError(PageGraphError):
    """Raised when a page id is inserted into a PageGraph twice."""

    def __init__(self, page_id: str):
        super().__init__(f"Page {page_id} is already present in the page graph")
        self.page_id = page_id
