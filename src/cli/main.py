"""Main CLI entry point for the gen-books command.

This module provides the Typer application that loads every configured
book from Confluence through the content cache and stages static assets
for the site assembler.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from src.cli.generate_command import GenerateCommand
from src.cli.models import ExitCode
from src.cli.output import OutputHandler

__version__ = "0.1.0"

app = typer.Typer(
    name="gen-books",
    help="""Generate static books from Confluence page trees.

QUICK START:
  gen-books                       # Load books from books.yaml (uses the cache)
  gen-books --no-cache            # Re-fetch every page, keep the cache warm
  gen-books --config site.yaml    # Use another configuration file""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=False,
)

logger = logging.getLogger(__name__)


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'src' namespace logger to avoid affecting third-party
    libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)

    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter("%(asctime)s [%(levelname)8s] %(message)s", datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"gen-books_{timestamp}.log"

        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt=date_format
        )
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


@app.command()
def main_command(
    config: str = typer.Option(
        "books.yaml",
        "--config",
        "-c",
        help="Path to the books configuration file",
        metavar="PATH",
    ),
    no_cache: bool = typer.Option(
        False,
        "--no-cache",
        help="Fetch every page even if cached (fetched pages are still written to the cache)",
    ),
    tolerate_missing: bool = typer.Option(
        False,
        "--tolerate-missing",
        help="Skip pages that cannot be fetched instead of failing the book",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Books loaded in parallel (default: CPU count minus 2)",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """Load every configured book from Confluence and stage static assets."""
    if version:
        typer.echo(f"gen-books version {__version__}")
        raise typer.Exit()

    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    try:
        command = GenerateCommand(config_path=config, output_handler=output)
        exit_code = command.run(
            no_cache=no_cache,
            tolerate_missing=tolerate_missing,
            max_workers=workers,
        )
    except Exception as e:
        logger.exception("Unexpected error during generation")
        output.error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    raise typer.Exit(exit_code)


def main() -> None:
    """Main entry point for the console script."""
    app()


if __name__ == "__main__":
    main()
