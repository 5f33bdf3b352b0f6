"""Test helper modules.

This package provides utilities for unit and integration testing:
- fake_source: In-memory page sources and record builders
"""

from .fake_source import FakePageSource, FailingPageSource, make_record

__all__ = [
    'FakePageSource',
    'FailingPageSource',
    'make_record',
]
