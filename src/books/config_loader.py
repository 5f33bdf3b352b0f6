"""YAML configuration loading and validation.

Configuration file structure:

    books:
      - title: "Go"
        title_long: "Essential Go"
        dir: "go"
        root_page_id: "2cab1ed2b7a44584b56b0d3ca9b80185"
    cache_dir: ".book-cache"
    cache_disabled: false
    output_dir: "www"
    tolerate_missing_pages: false
    asset_exclude_patterns: ["@2x"]
    static_files: ["main.css", "app.js", "favicon.ico"]
    covers_dir: "covers"
    max_workers: null
"""

import os
from typing import Any, Dict, List

import yaml

from src.page_graph.errors import NormalizationError
from src.page_graph.page_id import normalize_page_id
from .errors import ConfigError, FilesystemError
from .models import Book, GenConfig


class ConfigLoader:
    """Handles configuration file loading, validation, and saving."""

    REQUIRED_TOP_LEVEL_FIELDS = {'books'}

    REQUIRED_BOOK_FIELDS = {'title', 'dir', 'root_page_id'}

    DEFAULTS = {
        'cache_dir': '.book-cache',
        'cache_disabled': False,
        'output_dir': 'www',
        'tolerate_missing_pages': False,
        'asset_exclude_patterns': ['@2x'],
        'static_files': [],
        'covers_dir': None,
        'max_workers': None,
    }

    @classmethod
    def load(cls, config_path: str) -> GenConfig:
        """Load and parse configuration from a YAML file.

        Raises:
            FilesystemError: If file cannot be read
            ConfigError: If configuration is invalid or malformed
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise FilesystemError(config_path, 'read', 'Configuration file not found')
        except PermissionError:
            raise FilesystemError(config_path, 'read', 'Permission denied')
        except OSError as e:
            raise FilesystemError(config_path, 'read', str(e))

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            raise ConfigError("Configuration file is empty")

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def save(cls, config_path: str, config: GenConfig) -> None:
        """Save configuration to a YAML file.

        Raises:
            FilesystemError: If file cannot be written
        """
        books_list = []
        for book in config.books:
            book_dict = {
                'title': book.title,
                'dir': book.dir,
                'root_page_id': book.root_page_id,
            }
            if book.title_long != book.title:
                book_dict['title_long'] = book.title_long
            books_list.append(book_dict)

        config_dict = {
            'books': books_list,
            'cache_dir': config.cache_dir,
            'cache_disabled': config.cache_disabled,
            'output_dir': config.output_dir,
            'tolerate_missing_pages': config.tolerate_missing_pages,
            'asset_exclude_patterns': list(config.asset_exclude_patterns),
            'static_files': list(config.static_files),
            'covers_dir': config.covers_dir,
            'max_workers': config.max_workers,
        }

        yaml_str = yaml.safe_dump(
            config_dict,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        config_dir = os.path.dirname(config_path)
        try:
            if config_dir:
                os.makedirs(config_dir, exist_ok=True)
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except PermissionError:
            raise FilesystemError(config_path, 'write', 'Permission denied')
        except OSError as e:
            raise FilesystemError(config_path, 'write', str(e))

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> GenConfig:
        missing_fields = cls.REQUIRED_TOP_LEVEL_FIELDS - set(config_dict.keys())
        if missing_fields:
            raise ConfigError(
                f"Missing required fields: {', '.join(sorted(missing_fields))}"
            )

        books_raw = config_dict.get('books')
        if not isinstance(books_raw, list):
            raise ConfigError("Field 'books' must be a list", 'books')
        if not books_raw:
            raise ConfigError("At least one book configuration is required", 'books')

        books = [cls._parse_book(i, book_dict) for i, book_dict in enumerate(books_raw)]

        dirs = [book.dir for book in books]
        duplicates = sorted({d for d in dirs if dirs.count(d) > 1})
        if duplicates:
            raise ConfigError(f"Duplicate book dir(s): {', '.join(duplicates)}", 'books')

        values = {key: config_dict.get(key, default) for key, default in cls.DEFAULTS.items()}

        try:
            cache_dir = str(values['cache_dir'])
            output_dir = str(values['output_dir'])
            cache_disabled = bool(values['cache_disabled'])
            tolerate_missing_pages = bool(values['tolerate_missing_pages'])
            covers_dir = None if values['covers_dir'] is None else str(values['covers_dir'])
            max_workers = None if values['max_workers'] is None else int(values['max_workers'])
        except (ValueError, TypeError) as e:
            raise ConfigError(f"Invalid field type for optional field: {str(e)}")

        if max_workers is not None and max_workers < 1:
            raise ConfigError(
                f"Field 'max_workers' must be at least 1, got {max_workers}",
                'max_workers'
            )

        return GenConfig(
            books=books,
            cache_dir=cache_dir,
            cache_disabled=cache_disabled,
            output_dir=output_dir,
            tolerate_missing_pages=tolerate_missing_pages,
            asset_exclude_patterns=cls._string_list(values, 'asset_exclude_patterns'),
            static_files=cls._string_list(values, 'static_files'),
            covers_dir=covers_dir,
            max_workers=max_workers,
        )

    @classmethod
    def _parse_book(cls, i: int, book_dict: Any) -> Book:
        if not isinstance(book_dict, dict):
            raise ConfigError(
                f"Book configuration at index {i} must be a dictionary",
                f'books[{i}]'
            )

        missing_book_fields = cls.REQUIRED_BOOK_FIELDS - set(book_dict.keys())
        if missing_book_fields:
            raise ConfigError(
                f"Missing required fields in book {i}: {', '.join(sorted(missing_book_fields))}",
                f'books[{i}]'
            )

        title = str(book_dict['title'] or '').strip()
        book_dir = str(book_dict['dir'] or '').strip()
        title_long = str(book_dict.get('title_long') or '').strip()
        for name, value in (('title', title), ('dir', book_dir)):
            if not value:
                raise ConfigError(
                    f"Field '{name}' in book {i} cannot be empty",
                    f'books[{i}].{name}'
                )

        try:
            root_page_id = normalize_page_id(book_dict['root_page_id'])
        except NormalizationError as e:
            raise ConfigError(str(e), f'books[{i}].root_page_id')

        return Book(
            title=title,
            dir=book_dir,
            root_page_id=root_page_id,
            title_long=title_long,
        )

    @staticmethod
    def _string_list(values: Dict[str, Any], name: str) -> List[str]:
        raw = values[name]
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise ConfigError(f"Field '{name}' must be a list", name)
        return [str(item) for item in raw]
