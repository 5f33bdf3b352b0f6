"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
colored status messages, spinners, and the per-book load summary. Supports
verbosity levels and the --no-color flag.
"""

from contextlib import contextmanager
from typing import Iterator, List

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner
from rich.table import Table

from src.books.models import BookLoadResult


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Operation completed")
        >>> with handler.spinner("Loading books..."):
        ...     pass
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        self.verbosity = verbosity
        self.console = Console(
            force_terminal=not no_color,
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        """Display success message in green."""
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        """Display error message in red."""
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        """Display warning message in yellow."""
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner while a single operation runs.

        Example:
            >>> with handler.spinner("Loading books..."):
            ...     pass
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10):
            yield

    def print_load_summary(self, results: List[BookLoadResult], staged_count: int = 0) -> None:
        """Display one row per book with page counts and cache usage.

        Args:
            results: Outcome of loading each book
            staged_count: Number of assets staged
        """
        table = Table(title="Load Summary", show_lines=False)
        table.add_column("Book")
        table.add_column("Pages", justify="right")
        table.add_column("Fetched", justify="right")
        table.add_column("Cached", justify="right")
        table.add_column("Missing", justify="right")
        table.add_column("Time", justify="right")

        for result in results:
            book = result.book
            if not result.ok:
                table.add_row(f"[red]{book.title}[/red]", "-", "-", "-", "-", f"{result.seconds:.1f}s")
                continue
            stats = book.graph.stats
            missing = str(len(stats.missing)) if stats.missing else "-"
            table.add_row(
                book.title,
                str(len(book.graph)),
                str(stats.fetched),
                str(stats.cache_hits),
                missing,
                f"{result.seconds:.1f}s",
            )

        self.console.print(table)
        if staged_count:
            self.console.print(f"  [blue]↓[/blue] Staged: {staged_count} asset(s)")

        failed = [result for result in results if not result.ok]
        if not results:
            self.console.print("\n[yellow]No books to load[/yellow]")
        elif failed:
            for result in failed:
                self.error(f"{result.book.title}: {result.error}")
            self.console.print(
                f"\n[red]{len(failed)} of {len(results)} book(s) failed to load[/red]"
            )
        else:
            self.console.print()
            self.success("All books loaded successfully")
