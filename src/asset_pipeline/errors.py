"""Typed exception hierarchy for asset pipeline errors."""

from typing import Optional

from src.confluence_client.errors import BookGenError


class AssetPipelineError(BookGenError):
    """Base exception for asset pipeline errors."""
    pass


class CopyError(AssetPipelineError):
    """Raised when an asset cannot be fingerprinted or copied.

    A missing asset breaks the generated site, so this error is fatal.
    """

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Asset operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason
