"""
Main CLI entry point for makerstock.

Provides commands for browsing live stock, borrowing and returning
components, and managing the local cache.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click

from makerstock import __version__
from makerstock.cli.output import (
    print_cache_stats,
    print_error,
    print_holdings,
    print_info,
    print_names,
    print_stock,
    print_success,
    print_warning,
)
from makerstock.config import Settings
from makerstock.core.exceptions import CacheError, MakerStockError
from makerstock.core.models import OperationResult, ViewState
from makerstock.core.validation import validate_not_empty, validate_positive_int
from makerstock.inventory.client import InventoryClient
from makerstock.inventory.view import filter_stock
from makerstock.logging import configure_logging


def run_async(coro):
    """Run an async coroutine to completion."""
    return asyncio.run(coro)


def _client(ctx: click.Context) -> InventoryClient:
    return InventoryClient.from_settings(ctx.obj["settings"])


@click.group()
@click.version_option(version=__version__, prog_name="makerstock")
@click.option(
    "--backend-url",
    envvar="MAKERSTOCK_BACKEND_URL",
    help="Deployment URL of the inventory backend script.",
)
@click.option(
    "--sheets-api-key",
    envvar="MAKERSTOCK_SHEETS_API_KEY",
    help="API key for reading the stock sheet directly.",
)
@click.option(
    "--spreadsheet-id",
    envvar="MAKERSTOCK_SPREADSHEET_ID",
    help="ID of the inventory spreadsheet.",
)
@click.option(
    "--cache-path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="MAKERSTOCK_CACHE_PATH",
    help="Cache database file (default: ~/.makerstock/cache.db).",
)
@click.option(
    "--timeout",
    type=int,
    default=30,
    envvar="MAKERSTOCK_TIMEOUT",
    show_default=True,
    help="Request timeout in seconds.",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="warning",
    envvar="MAKERSTOCK_LOG_LEVEL",
    show_default=True,
    help="Log level for diagnostics on stderr.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    backend_url: Optional[str],
    sheets_api_key: Optional[str],
    spreadsheet_id: Optional[str],
    cache_path: Optional[Path],
    timeout: int,
    log_level: str,
) -> None:
    """makerstock - makerspace component inventory.

    Browse what is in stock, borrow components and return them.
    """
    configure_logging(log_level)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = Settings(
        backend_url=backend_url,
        sheets_api_key=sheets_api_key,
        spreadsheet_id=spreadsheet_id,
        cache_path=cache_path,
        timeout=timeout,
        log_level=log_level,
    )


@cli.command()
@click.option("--search", "-s", default="", help="Filter by component or case name.")
@click.option("--refresh", is_flag=True, help="Fetch from the network even if the cache is fresh.")
@click.pass_context
def stock(ctx: click.Context, search: str, refresh: bool) -> None:
    """Show live stock, grouped by case.

    Cached stock is shown straight away while a fresh copy is fetched;
    the table is printed again if the stock changed.

    \b
    Examples:
        makerstock stock              # All components
        makerstock stock -s servo     # Components or cases matching "servo"
        makerstock stock --refresh    # Skip the one-hour cache
    """

    async def show() -> None:
        async with _client(ctx) as client:
            async with client.live_stock_view(force=refresh) as view:
                shown = view.data
                if shown is not None:
                    print_stock(filter_stock(shown, search))
                    print_info("Refreshing...")
                state = await view.wait()

            if state == ViewState.FAILED:
                raise view.error
            if state == ViewState.SHOWING_STALE:
                print_warning("Could not refresh stock; showing cached data.")
            elif shown is None or view.data != shown:
                print_stock(filter_stock(view.data, search), state)
            else:
                print_info("Stock is up to date.")

    try:
        run_async(show())
    except MakerStockError as e:
        print_error(f"Failed to load stock: {e}")
        sys.exit(1)


@cli.command()
@click.pass_context
def cases(ctx: click.Context) -> None:
    """List storage cases."""

    async def fetch() -> list[str]:
        async with _client(ctx) as client:
            return await client.fetch_cases()

    try:
        print_names("Cases", run_async(fetch()))
    except MakerStockError as e:
        print_error(f"Failed to load cases: {e}")
        sys.exit(1)


@cli.command()
@click.argument("case")
@click.pass_context
def components(ctx: click.Context, case: str) -> None:
    """List the components stored in CASE."""

    async def fetch() -> list[str]:
        async with _client(ctx) as client:
            return await client.fetch_components_by_case(case)

    try:
        print_names(f"Components in {case}", run_async(fetch()))
    except MakerStockError as e:
        print_error(f"Failed to load components: {e}")
        sys.exit(1)


@cli.command()
@click.argument("user_id")
@click.pass_context
def holdings(ctx: click.Context, user_id: str) -> None:
    """Show what USER_ID currently has borrowed."""

    async def fetch():
        async with _client(ctx) as client:
            return await client.fetch_user_holdings(user_id)

    try:
        print_holdings(user_id, run_async(fetch()))
    except MakerStockError as e:
        print_error(f"Failed to fetch holdings: {e}")
        sys.exit(1)


@cli.command()
@click.argument("user_id")
@click.argument("case")
@click.argument("component")
@click.option("--quantity", "-q", type=int, default=1, show_default=True, help="How many to borrow.")
@click.option("--verify", is_flag=True, help="Check that USER_ID is checked in at the hub first.")
@click.pass_context
def borrow(
    ctx: click.Context,
    user_id: str,
    case: str,
    component: str,
    quantity: int,
    verify: bool,
) -> None:
    """Borrow QUANTITY of COMPONENT from CASE.

    \b
    Examples:
        makerstock borrow hub-042 "TSYS Case1" "MG996R Servo" -q 2
        makerstock borrow hub-042 "TSYS Case1" "SG90 Servo" --verify
    """

    async def submit() -> OperationResult:
        async with _client(ctx) as client:
            if verify:
                status = await client.verify_user(user_id)
                if not status.active:
                    return OperationResult(
                        success=False,
                        message=f"{status.name}, you are not checked in at the Hub. "
                        "Please check in first.",
                    )
                print_success(f"Welcome, {status.name}! You're checked in.")

            return await client.borrow_component(user_id, case, component, quantity)

    try:
        result = run_async(submit())
    except MakerStockError as e:
        print_error(str(e))
        sys.exit(1)

    if not result.success:
        print_error(result.message)
        sys.exit(1)
    print_success(result.message)


@cli.command(name="return")
@click.argument("user_id")
@click.argument("component")
@click.option("--quantity", "-q", type=int, default=1, show_default=True, help="How many to return.")
@click.pass_context
def return_(ctx: click.Context, user_id: str, component: str, quantity: int) -> None:
    """Return QUANTITY of COMPONENT borrowed by USER_ID.

    The user's holdings are checked first, so more than is outstanding
    is never sent.

    \b
    Examples:
        makerstock return hub-042 "MG996R Servo" -q 2
    """

    async def submit() -> OperationResult:
        user = validate_not_empty(user_id, "User ID")
        name = validate_not_empty(component, "Component")
        count = validate_positive_int(quantity, "Quantity")

        async with _client(ctx) as client:
            current = await client.fetch_user_holdings(user)
            held = next((h for h in current if h.component == name), None)
            if held is None:
                return OperationResult(
                    success=False,
                    message=f"No active borrow of {name} found for {user}.",
                )
            if count > held.outstanding:
                return OperationResult(
                    success=False,
                    message=f"You only have {held.outstanding} borrowed.",
                )

            return await client.return_component(user, name, count)

    try:
        result = run_async(submit())
    except MakerStockError as e:
        print_error(str(e))
        sys.exit(1)

    if not result.success:
        print_error(result.message)
        sys.exit(1)
    print_success(result.message)


@cli.command()
@click.option("--clear", is_flag=True, help="Clear all cached data.")
@click.option("--stats", is_flag=True, help="Show cache statistics.")
@click.option("--invalidate", type=str, help="Remove one key (e.g. 'getLiveStock').")
@click.pass_context
def cache(ctx: click.Context, clear: bool, stats: bool, invalidate: Optional[str]) -> None:
    """Manage the local cache.

    Cases, components and live stock are cached for one hour. Holdings
    are never cached.

    \b
    Examples:
        makerstock cache --stats                   # Show cache statistics
        makerstock cache --clear                   # Clear all cached data
        makerstock cache --invalidate getLiveStock # Forget cached stock
    """
    from makerstock.cache.sqlite import DurableStore
    from makerstock.cache.tiered import TieredCache

    try:
        cache_layer = TieredCache(DurableStore(ctx.obj["settings"].cache_path))
    except CacheError as e:
        print_error(str(e))
        sys.exit(1)

    if clear:
        cache_layer.invalidate()
        print_success("Cache cleared.")
    elif invalidate:
        cache_layer.invalidate(invalidate)
        print_success(f"Invalidated '{invalidate}'.")
    elif stats:
        print_cache_stats(cache_layer.stats())
        click.echo("\n  To refresh all data, use: makerstock cache --clear")
    else:
        # Show help if no option specified
        click.echo(ctx.get_help())


if __name__ == "__main__":
    cli()
