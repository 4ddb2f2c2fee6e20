"""Output formatting for CLI and programmatic use."""

import calendar
import json
from typing import Any

from rich.console import Console
from rich.table import Table

from .data_store import JSONEncoder
from .helpers import format_currency, format_date

TREND_ICONS = {
    "increase": "[red]↑[/red]",
    "decrease": "[green]↓[/green]",
    "stable": "[dim]-[/dim]",
}


class OutputFormatter:
    """Formats output for both Rich terminal and JSON modes."""

    def __init__(self, json_mode: bool = False, currency_symbol: str = "₹"):
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
            currency_symbol: Symbol used for amounts in Rich mode
        """
        self.json_mode = json_mode
        self.currency_symbol = currency_symbol
        self.console = Console()

    def _money(self, amount: float) -> str:
        return format_currency(amount, self.currency_symbol)

    def output(self, data: dict[str, Any], message: str = "") -> None:
        """Output data in appropriate format.

        Args:
            data: Data to output
            message: Optional message for Rich mode
        """
        if self.json_mode:
            self._output_json(data)
        else:
            self._output_rich(data, message)

    def _output_json(self, data: dict[str, Any]) -> None:
        """Output as JSON to stdout."""
        print(json.dumps(data, cls=JSONEncoder, indent=2))

    def _output_rich(self, data: dict[str, Any], message: str) -> None:
        """Output with Rich formatting."""
        if message:
            self.console.print(f"[green]✓[/green] {message}")

        payload = data.get("data", {})
        if "transaction" in payload:
            self._render_transaction(payload)
        elif "history" in payload:
            self._render_history(payload)
        elif "transactions" in payload:
            self._render_transactions(payload["transactions"], "Recent Purchases")
        elif "items" in payload:
            self._render_items(payload)
        elif "shop_groups" in payload:
            self._render_shop_groups(payload)
        elif "session" in payload:
            self._render_session(payload)
        elif "month" in payload:
            self._render_month(payload)
        elif "calendar" in payload:
            self._render_calendar(payload)
        elif "top_expenses" in payload:
            self._render_top_expenses(payload)
        elif "migration" in payload:
            self._render_migration(payload)

    def _render_transaction(self, payload: dict) -> None:
        """Render a newly recorded transaction."""
        txn = payload["transaction"]
        self.console.print(
            f"  {txn['item_name']}: {txn['quantity']} {txn['unit']} x "
            f"{self._money(txn['price_per_unit'])} = [bold]{self._money(txn['total_cost'])}[/bold] "
            f"{TREND_ICONS.get(txn['price_trend'], '')}"
        )
        if txn.get("shop_name"):
            self.console.print(f"  Shop: {txn['shop_name']}")

    def _render_transactions(self, transactions: list[dict], title: str) -> None:
        """Render a list of transactions."""
        if not transactions:
            self.console.print("[dim]No purchases recorded[/dim]")
            return

        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("Date", style="dim")
        table.add_column("Item", style="cyan")
        table.add_column("Qty", justify="right", style="magenta")
        table.add_column("Price", justify="right")
        table.add_column("Total", justify="right")
        table.add_column("", justify="center")
        table.add_column("Shop", style="green")

        for txn in transactions:
            table.add_row(
                format_date(txn["date"]),
                txn["item_name"],
                f"{txn['quantity']} {txn['unit']}",
                self._money(txn["price_per_unit"]),
                self._money(txn["total_cost"]),
                TREND_ICONS.get(txn["price_trend"], ""),
                txn.get("shop_name") or "-",
            )

        self.console.print(table)

    def _render_history(self, payload: dict) -> None:
        """Render one item's purchase history with its price range."""
        item = payload["item"]
        stats = payload["stats"]

        self.console.print(f"\n[bold]{item['name']}[/bold] ({item['category']})")
        self.console.print(f"Last price: {self._money(item['last_price'])} / {item['unit']}")
        if stats["purchase_count"]:
            self.console.print(
                f"Range: {self._money(stats['min_price'])} - {self._money(stats['max_price'])}"
            )
            self.console.print(
                f"Total spent: {self._money(stats['total_spent'])} "
                f"over {stats['purchase_count']} purchases"
            )
        self._render_transactions(payload["history"], "Purchase History")

    def _render_items(self, payload: dict) -> None:
        """Render the item catalog."""
        items = payload["items"]
        if not items:
            self.console.print("[dim]No items found[/dim]")
            return

        table = Table(title="Items", show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim")
        table.add_column("Item", style="cyan")
        table.add_column("Category", style="yellow")
        table.add_column("Last price", justify="right")
        table.add_column("Last bought")

        for item in items:
            table.add_row(
                item["id"],
                item["name"],
                item["category"],
                f"{self._money(item['last_price'])} / {item['unit']}",
                format_date(item["last_purchased_date"]),
            )

        self.console.print(table)

    def _render_shop_groups(self, payload: dict) -> None:
        """Render purchases grouped by shop and day."""
        groups = payload["shop_groups"]
        if not groups:
            self.console.print("[dim]No purchases recorded[/dim]")
            return

        for group in groups:
            self.console.print(f"\n[bold green]{group['shop_name']}[/bold green]")
            for day in group["days"]:
                self.console.print(
                    f"  {format_date(day['day'])}: {len(day['transactions'])} items, "
                    f"{self._money(day['total'])}"
                )

    def _render_session(self, payload: dict) -> None:
        """Render one shop visit."""
        session = payload["session"]
        self.console.print(
            f"\n[bold]{session['shop_name']}[/bold] - {format_date(session['day'])}"
        )
        self._render_transactions(session["transactions"], "Purchases")
        self.console.print(f"Total: [bold]{self._money(session['total'])}[/bold]")

    def _render_month(self, payload: dict) -> None:
        """Render a month's total against the previous month."""
        month = payload["month"]
        label = f"{calendar.month_abbr[month['month']]} {month['year']}"
        prev_label = calendar.month_abbr[month["previous_month"]]

        self.console.print(f"\n[bold]Spent in {label}: {self._money(month['total'])}[/bold]")
        diff = month["difference"]
        color = "red" if diff > 0 else "green"
        self.console.print(
            f"{prev_label}: {self._money(month['previous_total'])} "
            f"([{color}]{diff:+.2f}, {month['percentage_change']:+d}%[/{color}])"
        )
        if payload.get("recent"):
            self._render_transactions(payload["recent"], "Recent Purchases")

    def _render_calendar(self, payload: dict) -> None:
        """Render daily totals as a month calendar."""
        cal = payload["calendar"]
        totals = {int(day): total for day, total in cal["daily_totals"].items()}

        table = Table(
            title=f"{calendar.month_name[cal['month']]} {cal['year']}",
            show_header=True,
            header_style="bold",
        )
        for name in ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"):
            table.add_column(name, justify="center")

        for week in calendar.monthcalendar(cal["year"], cal["month"]):
            cells = []
            for day in week:
                if day == 0:
                    cells.append("")
                elif day in totals:
                    cells.append(f"[bold cyan]{day}[/bold cyan]\n{totals[day]:.0f}")
                else:
                    cells.append(f"[dim]{day}[/dim]")
            table.add_row(*cells)

        self.console.print(table)

    def _render_top_expenses(self, payload: dict) -> None:
        """Render highest-spend items."""
        expenses = payload["top_expenses"]
        if not expenses:
            self.console.print("[dim]No data for this month yet.[/dim]")
            return

        table = Table(title="Top Expenses", show_header=True, header_style="bold")
        table.add_column("Item")
        table.add_column("Total", justify="right")
        for entry in expenses:
            table.add_row(entry["name"], self._money(entry["total"]))
        self.console.print(table)

    def _render_migration(self, payload: dict) -> None:
        """Render migration counts."""
        for name, count in payload["migration"].items():
            self.console.print(f"  {name}: {count}")

    def error(self, message: str, error_code: str | None = None) -> None:
        """Output error message.

        Args:
            message: Error message
            error_code: Optional error code
        """
        if self.json_mode:
            output = {"success": False, "error": message}
            if error_code:
                output["error_code"] = error_code
            print(json.dumps(output))
        else:
            self.console.print(f"[red]✗ Error:[/red] {message}")

    def success(self, message: str, data: dict | None = None) -> None:
        """Output success message.

        Args:
            message: Success message
            data: Optional data to include
        """
        if self.json_mode:
            output: dict[str, Any] = {"success": True, "message": message}
            if data:
                output["data"] = data
            print(json.dumps(output, cls=JSONEncoder))
        else:
            self.console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        """Output warning message.

        Args:
            message: Warning message
        """
        if self.json_mode:
            print(json.dumps({"warning": message}))
        else:
            self.console.print(f"[yellow]⚠[/yellow] {message}")
