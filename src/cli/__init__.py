"""Command-line interface for the book generator.

This package provides the `gen-books` CLI tool that loads books from
Confluence through the content cache and stages static assets.
"""

from .generate_command import GenerateCommand
from .models import ExitCode

__all__ = [
    'GenerateCommand',
    'ExitCode',
]
