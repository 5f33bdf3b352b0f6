"""Confluence client used as the remote page source.

This package wraps the Confluence REST API for read-only access and turns
Confluence pages into PageRecords for the graph loader.
"""

from .errors import (
    BookGenError,
    RemoteError,
    InvalidCredentialsError,
    PageNotFoundError,
    APIUnreachableError,
    APIAccessError,
    MalformedResponseError,
)

__all__ = [
    'BookGenError',
    'RemoteError',
    'InvalidCredentialsError',
    'PageNotFoundError',
    'APIUnreachableError',
    'APIAccessError',
    'MalformedResponseError',
]
