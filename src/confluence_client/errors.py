"""Typed exception hierarchy for remote page source errors.

This module defines the base exception of the book generator and every error
the remote page source can raise. All remote failures inherit from RemoteError
so the graph loader can apply a single failure policy to them.
"""

from typing import Optional


class BookGenError(Exception):
    """Base exception for all book generator errors.

    Use this to catch any application-level error from the generator.
    """
    pass


class RemoteError(BookGenError):
    """Base exception for failures fetching a page from the remote source."""
    pass


class InvalidCredentialsError(RemoteError):
    """Raised when API credentials are invalid or authentication fails."""

    def __init__(self, user: str, endpoint: str):
        super().__init__(
            f"API key is invalid (user: {user}, endpoint: {endpoint})"
        )
        self.user = user
        self.endpoint = endpoint


class PageNotFoundError(RemoteError):
    """Raised when a requested page does not exist."""

    def __init__(self, page_id: str):
        super().__init__(f"Page {page_id} not found")
        self.page_id = page_id


class APIUnreachableError(RemoteError):
    """Raised when the Confluence API is not available or unreachable."""

    def __init__(self, endpoint: str):
        super().__init__(f"API is not available at {endpoint}")
        self.endpoint = endpoint


class APIAccessError(RemoteError):
    """Raised when API access fails after retries or due to access restrictions."""

    def __init__(self, message: str = "Confluence API failure (after 3 retries)"):
        super().__init__(message)


class MalformedResponseError(RemoteError):
    """Raised when the API returns a page payload we cannot interpret."""

    def __init__(self, page_id: str, reason: Optional[str] = None):
        message = f"Malformed response for page {page_id}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.page_id = page_id
        self.reason = reason
