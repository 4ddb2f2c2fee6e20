"""CLI entry point for Shop Ledger."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from .analytics import Analytics
from .config import ConfigError, ConfigManager
from .data_store import create_data_store
from .errors import (
    DuplicateItemError,
    ItemNotFoundError,
    LedgerError,
    PersistenceError,
    ShopNotFoundError,
    StorageReadError,
    ValidationError,
)
from .helpers import current_month_year, format_currency, format_date
from .ledger import LedgerStore
from .migrate_to_sqlite import MigrationError, migrate
from .output_formatter import OutputFormatter
from .purchases import PurchaseProcessor
from .resolver import EntityResolver

app = typer.Typer(
    name="shop",
    help="Personal shopping diary: log purchases and see where the money goes",
    no_args_is_help=True,
)

# Global state for formatter and ledger (set by callback)
formatter: OutputFormatter = OutputFormatter()
config: ConfigManager | None = None
ledger: LedgerStore | None = None
analytics: Analytics | None = None
processor: PurchaseProcessor | None = None
data_dir_override: Path | None = None

ERROR_CODES: dict[type[LedgerError], str] = {
    ValidationError: "VALIDATION_ERROR",
    PersistenceError: "PERSISTENCE_ERROR",
    StorageReadError: "STORAGE_READ_ERROR",
    ItemNotFoundError: "ITEM_NOT_FOUND",
    ShopNotFoundError: "SHOP_NOT_FOUND",
    DuplicateItemError: "DUPLICATE_ITEM",
    MigrationError: "MIGRATION_ERROR",
    ConfigError: "CONFIG_ERROR",
}


def _fail(error: Exception) -> typer.Exit:
    """Report an error and build the exit to raise."""
    code = ERROR_CODES.get(type(error))
    if isinstance(error, PersistenceError):
        formatter.error(f"{error}. Nothing was saved, please try again.", error_code=code)
    else:
        formatter.error(str(error), error_code=code)
    return typer.Exit(code=1)


def _month_year(month: int | None, year: int | None) -> tuple[int, int]:
    current_month, current_year = current_month_year()
    return (
        month if month is not None else current_month,
        year if year is not None else current_year,
    )


def _parse_when(value: str | None) -> datetime:
    """Parse a user-supplied date; naive values are local time."""
    if not value:
        return datetime.now().astimezone()
    try:
        when = datetime.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid date '{value}'", field="date") from e
    return when if when.tzinfo else when.astimezone()


@app.callback()
def main(
    json_output: Annotated[
        bool, typer.Option("--json", help="Output as JSON for programmatic use")
    ] = False,
    data_dir: Annotated[Path | None, typer.Option("--data-dir", help="Data directory path")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
) -> None:
    """Shop Ledger CLI - track what you buy, where, and at what price."""
    global formatter, config, ledger, analytics, processor, data_dir_override

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )

    formatter = OutputFormatter(json_mode=json_output)
    try:
        config = ConfigManager()
    except ConfigError as e:
        raise _fail(e)
    formatter.currency_symbol = config.display.currency_symbol

    # CLI --data-dir overrides config, which overrides default
    data_dir_override = data_dir
    effective_data_dir = data_dir if data_dir else config.data.storage_dir
    store = create_data_store(backend=config.data.backend, data_dir=effective_data_dir)
    ledger = LedgerStore(store)
    ledger.load_all()
    analytics = Analytics(ledger, tz=config.display.tzinfo)
    processor = PurchaseProcessor(
        ledger,
        EntityResolver(
            default_category=config.defaults.category,
            default_unit=config.defaults.unit,
        ),
    )


@app.command()
def add(
    item: Annotated[str, typer.Argument(help="Item name")],
    price: Annotated[float, typer.Option("--price", "-p", help="Price per unit")],
    quantity: Annotated[float, typer.Option("--quantity", "-q", help="Quantity bought")] = 1,
    unit: Annotated[str | None, typer.Option("--unit", "-u", help="Unit of measure")] = None,
    shop: Annotated[str | None, typer.Option("--shop", "-s", help="Shop name")] = None,
    category: Annotated[
        str | None, typer.Option("--category", "-c", help="Category for a new item")
    ] = None,
    date: Annotated[
        str | None, typer.Option("--date", "-d", help="Purchase time (ISO 8601), default now")
    ] = None,
    total: Annotated[
        float | None, typer.Option("--total", help="Total paid, checked against price x qty")
    ] = None,
) -> None:
    """Record a purchase."""
    try:
        payload = {
            "date": _parse_when(date),
            "item": {"name": item, "category": category},
            "shop": {"name": shop} if shop else None,
            "price_per_unit": price,
            "quantity": quantity,
            "total_cost": total,
            "unit": unit,
        }
        transaction = processor.add_purchase(payload)  # type: ignore[union-attr]
        result = {
            "success": True,
            "message": f"Recorded {transaction.item_name}",
            "data": {"transaction": transaction.model_dump(mode="json")},
        }
        formatter.output(result, result["message"])
        stored = ledger.get_item(transaction.item_id)  # type: ignore[union-attr]
        if stored is not None and stored.last_purchased_date > transaction.date:
            formatter.warning(
                f"Purchase is older than the last one of {stored.name} "
                f"({format_date(stored.last_purchased_date)}); last price stays at "
                f"{format_currency(stored.last_price, formatter.currency_symbol)}"
            )
    except LedgerError as e:
        raise _fail(e)


@app.command()
def recent(
    limit: Annotated[int | None, typer.Option("--limit", "-n", help="Number of purchases")] = None,
) -> None:
    """Show the most recent purchases."""
    try:
        count = limit if limit is not None else config.display.recent_limit  # type: ignore[union-attr]
        transactions = analytics.recent_transactions(count)  # type: ignore[union-attr]
        formatter.output(
            {
                "success": True,
                "data": {"transactions": [t.model_dump(mode="json") for t in transactions]},
            }
        )
    except LedgerError as e:
        raise _fail(e)


@app.command()
def history(
    item_id: Annotated[str, typer.Argument(help="Item ID")],
) -> None:
    """Show every purchase of one item."""
    try:
        item = ledger.get_item(item_id)  # type: ignore[union-attr]
        if item is None:
            raise ItemNotFoundError(item_id)
        transactions = analytics.item_history(item_id)  # type: ignore[union-attr]
        formatter.output(
            {
                "success": True,
                "data": {
                    "item": item.model_dump(mode="json"),
                    "trend": analytics.item_trend(item_id).value,  # type: ignore[union-attr]
                    "stats": analytics.item_price_stats(item_id).model_dump(),  # type: ignore[union-attr]
                    "history": [t.model_dump(mode="json") for t in transactions],
                },
            }
        )
    except LedgerError as e:
        raise _fail(e)


@app.command()
def items(
    search: Annotated[str, typer.Option("--search", "-s", help="Filter by name")] = "",
) -> None:
    """List catalog items."""
    found = ledger.find_items(search)  # type: ignore[union-attr]
    formatter.output(
        {"success": True, "data": {"items": [i.model_dump(mode="json") for i in found]}}
    )


@app.command()
def shops() -> None:
    """Show purchases grouped by shop and day."""
    groups = analytics.shop_date_groups()  # type: ignore[union-attr]
    formatter.output(
        {"success": True, "data": {"shop_groups": [g.model_dump(mode="json") for g in groups]}}
    )


@app.command()
def session(
    shop: Annotated[str, typer.Argument(help="Shop name (\"Unknown Shop\" for none)")],
    day: Annotated[str, typer.Argument(help="Day (YYYY-MM-DD)")],
) -> None:
    """Show one shop visit."""
    try:
        result = analytics.shop_session(shop, day)  # type: ignore[union-attr]
        formatter.output({"success": True, "data": {"session": result.model_dump(mode="json")}})
    except LedgerError as e:
        raise _fail(e)


@app.command()
def month(
    month_number: Annotated[int | None, typer.Option("--month", "-m", help="Month (1-12)")] = None,
    year: Annotated[int | None, typer.Option("--year", "-y", help="Year")] = None,
) -> None:
    """Show a month's spending against the previous month."""
    try:
        m, y = _month_year(month_number, year)
        comparison = analytics.month_comparison(m, y)  # type: ignore[union-attr]
        recent_txns = analytics.recent_transactions(config.display.recent_limit)  # type: ignore[union-attr]
        formatter.output(
            {
                "success": True,
                "data": {
                    "month": comparison.model_dump(),
                    "recent": [t.model_dump(mode="json") for t in recent_txns],
                },
            }
        )
    except LedgerError as e:
        raise _fail(e)


@app.command(name="calendar")
def calendar_view(
    month_number: Annotated[int | None, typer.Option("--month", "-m", help="Month (1-12)")] = None,
    year: Annotated[int | None, typer.Option("--year", "-y", help="Year")] = None,
) -> None:
    """Show daily spending for a month."""
    try:
        m, y = _month_year(month_number, year)
        totals = analytics.daily_totals(m, y)  # type: ignore[union-attr]
        formatter.output(
            {
                "success": True,
                "data": {
                    "calendar": {
                        "month": m,
                        "year": y,
                        "daily_totals": {str(day): total for day, total in totals.items()},
                    }
                },
            }
        )
    except LedgerError as e:
        raise _fail(e)


@app.command()
def top(
    month_number: Annotated[int | None, typer.Option("--month", "-m", help="Month (1-12)")] = None,
    year: Annotated[int | None, typer.Option("--year", "-y", help="Year")] = None,
    limit: Annotated[int | None, typer.Option("--limit", "-n", help="Number of items")] = None,
    all_time: Annotated[bool, typer.Option("--all-time", help="Rank across all months")] = False,
) -> None:
    """Show the items you spent the most on."""
    try:
        n = limit if limit is not None else config.display.top_expenses_limit  # type: ignore[union-attr]
        if all_time:
            ranked = analytics.top_expenses(n=n)  # type: ignore[union-attr]
        else:
            m, y = _month_year(month_number, year)
            ranked = analytics.top_expenses(m, y, n=n)  # type: ignore[union-attr]
        formatter.output(
            {"success": True, "data": {"top_expenses": [e.model_dump() for e in ranked]}}
        )
    except LedgerError as e:
        raise _fail(e)


@app.command(name="delete-item")
def delete_item(
    item_id: Annotated[str, typer.Argument(help="Item ID to delete")],
) -> None:
    """Delete an item together with all of its purchases."""
    try:
        removed = ledger.delete_item(item_id)  # type: ignore[union-attr]
        formatter.success(
            f"Deleted item {item_id} and {len(removed)} purchases",
            {"removed_transactions": len(removed)},
        )
    except LedgerError as e:
        raise _fail(e)


@app.command(name="delete-shop")
def delete_shop(
    shop_id: Annotated[str, typer.Argument(help="Shop ID to delete")],
) -> None:
    """Delete a shop. Past purchases keep the shop name."""
    try:
        shop = ledger.delete_shop(shop_id)  # type: ignore[union-attr]
        formatter.success(f"Deleted shop {shop.name}", {"shop": shop.model_dump(mode="json")})
    except LedgerError as e:
        raise _fail(e)


@app.command(name="rename-item")
def rename_item(
    item_id: Annotated[str, typer.Argument(help="Item ID")],
    name: Annotated[str, typer.Argument(help="New name")],
) -> None:
    """Rename an item. Past purchases keep the name they were recorded with."""
    try:
        item = ledger.rename_item(item_id, name)  # type: ignore[union-attr]
        formatter.success(f"Renamed item to {item.name}", {"item": item.model_dump(mode="json")})
    except LedgerError as e:
        raise _fail(e)


@app.command(name="migrate")
def migrate_command(
    db_path: Annotated[Path | None, typer.Option("--db-path", help="SQLite database path")] = None,
    force: Annotated[bool, typer.Option("--force", help="Overwrite existing SQLite data")] = False,
) -> None:
    """Copy the JSON ledger into SQLite."""
    try:
        source_dir = data_dir_override or config.data.storage_dir  # type: ignore[union-attr]
        stats = migrate(data_dir=source_dir, db_path=db_path, force=force)
        formatter.output(
            {"success": True, "data": {"migration": stats}}, "Migration finished"
        )
    except LedgerError as e:
        raise _fail(e)


if __name__ == "__main__":
    app()
