"""
Rich terminal output helpers for CLI.

Provides functions for printing stock tables, holdings and status
messages using the Rich library.
"""

from typing import Any

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from makerstock.core.models import Holding, StockItem, ViewState
from makerstock.inventory.view import group_by_case

# Console instance for all output
console = Console()

# At or below this count an item is shown as running low
LOW_STOCK_THRESHOLD = 2


def get_stock_style(stock: int) -> str:
    """Get Rich style string for a stock count."""
    if stock == 0:
        return "bold red"
    elif stock <= LOW_STOCK_THRESHOLD:
        return "yellow"
    return "green"


def print_stock(items: list[StockItem], state: ViewState | None = None) -> None:
    """Print live stock grouped by case.

    Args:
        items: Stock items to show.
        state: View state, used to label cached data.
    """
    if not items:
        print_info("No components found. Try a different search term.")
        return

    for case_name, case_items in group_by_case(items).items():
        table = Table(
            title=case_name,
            title_justify="left",
            title_style="bold",
            box=box.ROUNDED,
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("Component", style="cyan")
        table.add_column("Stock", justify="right")

        for item in case_items:
            label = str(item.stock) if item.in_stock else "out of stock"
            table.add_row(item.component, Text(label, style=get_stock_style(item.stock)))

        console.print(table)

    total = sum(item.stock for item in items)
    out = sum(1 for item in items if not item.in_stock)
    console.print(f"[bold]Summary:[/] {len(items)} components, {total} items in stock")
    if out:
        console.print(f"  [red]Out of stock:[/] {out}")

    if state == ViewState.SHOWING_STALE:
        console.print("[dim]Showing cached data; it could not be refreshed.[/]")


def print_names(title: str, names: list[str]) -> None:
    """Print a single-column list of names."""
    if not names:
        print_info(f"No {title.lower()} found.")
        return

    table = Table(title=title, box=box.SIMPLE, show_header=False)
    table.add_column(title)
    for name in names:
        table.add_row(name)
    console.print(table)


def print_holdings(user_id: str, holdings: list[Holding]) -> None:
    """Print the components a user has borrowed."""
    if not holdings:
        print_info(f"No active borrows found for {user_id}.")
        return

    table = Table(
        title=f"Borrowed by {user_id}",
        box=box.ROUNDED,
        header_style="bold cyan",
    )
    table.add_column("Component", style="cyan")
    table.add_column("Outstanding", justify="right")
    for holding in holdings:
        table.add_row(holding.component, str(holding.outstanding))
    console.print(table)


def print_cache_stats(stats: dict[str, Any]) -> None:
    """Print cache statistics."""
    console.print("\n[bold]Cache Statistics:[/]")
    if "db_path" in stats:
        console.print(f"  Database: {stats['db_path']}")
        console.print(f"  Size: {stats['db_size_bytes'] / 1024:.1f} KB")
    console.print(
        f"  Durable entries: {stats['durable_entries']} "
        f"({stats['durable_fresh']} fresh)"
    )
    if stats["keys"]:
        console.print("\n  Keys:")
        for key in stats["keys"]:
            console.print(f"    {key}")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[cyan]Info:[/] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/] {message}")
