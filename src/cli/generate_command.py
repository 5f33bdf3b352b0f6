"""Generate command orchestration for CLI.

This module provides the GenerateCommand class that runs the load phase of
the book generator: it loads the configuration, opens the content cache,
loads every book's page tree in parallel, and stages static assets into the
output area for the site assembler.
"""

import logging
import os
from typing import Dict, List, Optional

from src.asset_pipeline.asset_pipeline import AssetPipeline
from src.asset_pipeline.errors import CopyError
from src.books.book_loader import BookLoader
from src.books.config_loader import ConfigLoader
from src.books.errors import ConfigError, FilesystemError
from src.books.models import BookLoadResult, GenConfig
from src.cli.models import ExitCode
from src.cli.output import OutputHandler
from src.confluence_client.api_wrapper import APIWrapper
from src.confluence_client.auth import Authenticator
from src.confluence_client.errors import (
    APIAccessError,
    APIUnreachableError,
    InvalidCredentialsError,
)
from src.confluence_client.page_fetcher import ConfluencePageFetcher
from src.content_cache.content_cache import ContentCache
from src.content_cache.errors import CacheError
from src.content_cache.models import CachePolicy
from src.page_graph.models import PageSource

logger = logging.getLogger(__name__)

# Staged (content-addressed) assets live here, relative to the output dir
STAGED_ASSETS_DIR = "s"

COVERS_OUTPUT_DIR = "covers"


class GenerateCommand:
    """Orchestrates the load phase for every configured book.

    The workflow:
        1. Load configuration
        2. Open the content cache (read policy from config and --no-cache)
        3. Load all books in parallel; a failed book does not affect others
        4. Stage static files and copy covers into the output area
        5. Close the cache and report a per-book summary

    Example:
        >>> cmd = GenerateCommand("books.yaml", output_handler=OutputHandler(verbosity=1))
        >>> exit_code = cmd.run(no_cache=False)
    """

    def __init__(
        self,
        config_path: str = "books.yaml",
        output_handler: Optional[OutputHandler] = None,
        source: Optional[PageSource] = None,
        authenticator: Optional[Authenticator] = None,
    ):
        """Initialize generate command with dependencies.

        Args:
            config_path: Path to configuration YAML file
            output_handler: OutputHandler for terminal output (optional)
            source: Page source (default: Confluence fetcher built from credentials)
            authenticator: Authenticator for Confluence API (optional)
        """
        self.config_path = config_path
        self.output_handler = output_handler or OutputHandler()
        self.source = source
        self.authenticator = authenticator
        self.results: List[BookLoadResult] = []
        self.manifest: Dict[str, str] = {}

    def run(
        self,
        no_cache: bool = False,
        tolerate_missing: bool = False,
        max_workers: Optional[int] = None,
    ) -> ExitCode:
        """Execute the load phase.

        Args:
            no_cache: Fetch every page even if cached (fetched pages are still cached)
            tolerate_missing: Skip pages that cannot be fetched instead of failing the book
            max_workers: Parallel book loads (overrides config)

        Returns:
            ExitCode indicating success or specific failure type
        """
        output = self.output_handler
        try:
            config = ConfigLoader.load(self.config_path)
        except (ConfigError, FilesystemError) as e:
            logger.error(f"Failed to load config: {e}")
            output.error(str(e))
            return ExitCode.GENERAL_ERROR

        policy = CachePolicy.from_cache_disabled(config.cache_disabled or no_cache)
        if not policy.read:
            output.info("Cache reads disabled: every page will be fetched")

        try:
            with ContentCache(config.cache_dir, policy) as cache:
                loader = BookLoader(
                    self._get_source(),
                    cache,
                    tolerate_missing=tolerate_missing or config.tolerate_missing_pages,
                )
                with output.spinner(f"Loading {len(config.books)} book(s)..."):
                    self.results = loader.load_books(
                        config.books,
                        max_workers=max_workers or config.max_workers,
                    )

            self.manifest = self._stage_assets(config)
            for src_path, staged_path in self.manifest.items():
                output.debug(f"Staged {src_path} -> {staged_path}")

        except CacheError as e:
            logger.error(f"Cache unavailable: {e}")
            output.error(str(e))
            return ExitCode.GENERAL_ERROR

        except CopyError as e:
            logger.error(f"Asset staging failed: {e}")
            output.error(str(e))
            return ExitCode.GENERAL_ERROR

        for result in self.results:
            if result.ok and result.book.graph.stats.missing:
                missing = sorted(result.book.graph.stats.missing)
                output.warning(
                    f"{result.book.title}: skipped {len(missing)} page(s) that could not be fetched: "
                    f"{', '.join(missing)}"
                )

        output.print_load_summary(self.results, staged_count=len(self.manifest))
        return self._exit_code(self.results)

    def _get_source(self) -> PageSource:
        if self.source is None:
            authenticator = self.authenticator or Authenticator()
            self.source = ConfluencePageFetcher(APIWrapper(authenticator))
        return self.source

    def _stage_assets(self, config: GenConfig) -> Dict[str, str]:
        """Stage static files and copy the covers directory.

        Raises:
            CopyError: If any asset cannot be staged
        """
        staged_dir = os.path.join(config.output_dir, STAGED_ASSETS_DIR)
        pipeline = AssetPipeline(staged_dir, exclude=config.exclude_predicate)

        if config.covers_dir:
            covers_out = os.path.join(config.output_dir, COVERS_OUTPUT_DIR)
            copied = pipeline.copy_tree(config.covers_dir, covers_out)
            logger.info(f"Copied {len(copied)} cover files to {covers_out}")

        return pipeline.stage_all(config.static_files)

    @staticmethod
    def _exit_code(results: List[BookLoadResult]) -> ExitCode:
        failed = [result for result in results if not result.ok]
        if not failed:
            return ExitCode.SUCCESS
        if len(failed) < len(results):
            return ExitCode.PARTIAL_FAILURE

        error = failed[0].error
        if isinstance(error, InvalidCredentialsError):
            return ExitCode.AUTH_ERROR
        if isinstance(error, (APIUnreachableError, APIAccessError)):
            return ExitCode.NETWORK_ERROR
        return ExitCode.GENERAL_ERROR
