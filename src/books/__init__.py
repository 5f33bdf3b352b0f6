"""Books: configuration, models and parallel loading of page trees."""

from .models import Book, BookLoadResult, GenConfig
from .errors import BookError, ConfigError, FilesystemError
from .config_loader import ConfigLoader
from .book_loader import BookLoader, default_worker_count
from .url_safe import URLSafeConverter, make_url_safe

__all__ = [
    'Book',
    'BookLoadResult',
    'GenConfig',
    'BookError',
    'ConfigError',
    'FilesystemError',
    'ConfigLoader',
    'BookLoader',
    'default_worker_count',
    'URLSafeConverter',
    'make_url_safe',
]
