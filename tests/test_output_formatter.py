"""Tests for output formatting."""

import json
import re
from datetime import date, datetime, time, timezone
from io import StringIO

import pytest
from rich.console import Console

from shop_ledger.data_store import JSONEncoder
from shop_ledger.models import Shop
from shop_ledger.output_formatter import OutputFormatter
from shop_ledger.seed import SEED_ITEMS, SEED_TRANSACTIONS


def strip_ansi(text: str) -> str:
    """Remove ANSI escape codes from text."""
    ansi_escape = re.compile(r"\x1b\[[0-9;]*m")
    return ansi_escape.sub("", text)


@pytest.fixture
def rich_formatter():
    """A Rich formatter writing to a buffer."""
    formatter = OutputFormatter(json_mode=False)
    formatter.console = Console(file=StringIO(), force_terminal=True, width=140)
    return formatter


def rendered(formatter: OutputFormatter) -> str:
    return strip_ansi(formatter.console.file.getvalue())


class TestJSONEncoder:
    """Tests for JSONEncoder."""

    def test_encode_datetime(self):
        """Datetime encoded as ISO format."""
        dt = datetime(2026, 1, 15, 10, 30, tzinfo=timezone.utc)
        result = json.dumps({"time": dt}, cls=JSONEncoder)
        assert "2026-01-15T10:30:00+00:00" in result

    def test_encode_date_and_time(self):
        result = json.dumps({"d": date(2026, 1, 15), "t": time(9, 30)}, cls=JSONEncoder)
        assert "2026-01-15" in result
        assert "09:30:00" in result

    def test_encode_model(self):
        result = json.loads(json.dumps({"shop": Shop(id="s1", name="Nilgiris")}, cls=JSONEncoder))
        assert result["shop"] == {"id": "s1", "name": "Nilgiris"}


class TestOutputFormatterJSON:
    """Tests for JSON output mode."""

    def test_json_mode_output(self, capsys):
        """JSON mode outputs valid JSON."""
        formatter = OutputFormatter(json_mode=True)
        formatter.output({"success": True, "data": {"test": "value"}})
        data = json.loads(capsys.readouterr().out)
        assert data["data"]["test"] == "value"

    def test_json_error(self, capsys):
        """JSON error output."""
        formatter = OutputFormatter(json_mode=True)
        formatter.error("Something went wrong", error_code="TEST_ERROR")
        data = json.loads(capsys.readouterr().out)
        assert data["success"] is False
        assert data["error"] == "Something went wrong"
        assert data["error_code"] == "TEST_ERROR"

    def test_json_success(self, capsys):
        """JSON success output."""
        formatter = OutputFormatter(json_mode=True)
        formatter.success("Deleted", data={"removed_transactions": 2})
        data = json.loads(capsys.readouterr().out)
        assert data["success"] is True
        assert data["data"]["removed_transactions"] == 2

    def test_json_warning(self, capsys):
        formatter = OutputFormatter(json_mode=True)
        formatter.warning("Careful")
        assert json.loads(capsys.readouterr().out) == {"warning": "Careful"}


class TestOutputFormatterRich:
    """Tests for Rich output mode."""

    def test_rich_error(self, rich_formatter):
        rich_formatter.error("Test error message")
        assert "Test error message" in rendered(rich_formatter)

    def test_transaction(self, rich_formatter):
        txn = SEED_TRANSACTIONS[5].model_copy(update={"shop_name": "Big Bazaar"})
        rich_formatter.output(
            {"success": True, "data": {"transaction": txn.model_dump(mode="json")}},
            "Recorded Milk",
        )
        output = rendered(rich_formatter)
        assert "Recorded Milk" in output
        assert "₹ 280.00" in output
        assert "↑" in output
        assert "Big Bazaar" in output

    def test_transactions_table(self, rich_formatter):
        rich_formatter.output(
            {
                "success": True,
                "data": {"transactions": [t.model_dump(mode="json") for t in SEED_TRANSACTIONS]},
            }
        )
        output = rendered(rich_formatter)
        assert "Recent Purchases" in output
        assert "Ponni Rice" in output
        assert "Feb 15, 2026" in output

    def test_empty_transactions(self, rich_formatter):
        rich_formatter.output({"success": True, "data": {"transactions": []}})
        assert "No purchases recorded" in rendered(rich_formatter)

    def test_items(self, rich_formatter):
        rich_formatter.output(
            {"success": True, "data": {"items": [i.model_dump(mode="json") for i in SEED_ITEMS]}}
        )
        output = rendered(rich_formatter)
        assert "Sunflower Oil" in output
        assert "Provisions" in output

    def test_month(self, rich_formatter):
        rich_formatter.output(
            {
                "success": True,
                "data": {
                    "month": {
                        "month": 2,
                        "year": 2026,
                        "total": 710,
                        "previous_month": 1,
                        "previous_year": 2026,
                        "previous_total": 859,
                        "difference": -149,
                        "percentage_change": -17,
                    },
                    "recent": [],
                },
            }
        )
        output = rendered(rich_formatter)
        assert "Spent in Feb 2026: ₹ 710.00" in output
        assert "-17%" in output

    def test_calendar(self, rich_formatter):
        rich_formatter.output(
            {
                "success": True,
                "data": {
                    "calendar": {"month": 1, "year": 2026, "daily_totals": {"20": 500.0}}
                },
            }
        )
        output = rendered(rich_formatter)
        assert "January 2026" in output
        assert "500" in output

    def test_top_expenses(self, rich_formatter):
        rich_formatter.output(
            {"success": True, "data": {"top_expenses": [{"name": "Ponni Rice", "total": 565}]}}
        )
        output = rendered(rich_formatter)
        assert "Top Expenses" in output
        assert "₹ 565.00" in output

    def test_top_expenses_empty(self, rich_formatter):
        rich_formatter.output({"success": True, "data": {"top_expenses": []}})
        assert "No data for this month yet." in rendered(rich_formatter)

    def test_shop_groups(self, rich_formatter):
        rich_formatter.output(
            {
                "success": True,
                "data": {
                    "shop_groups": [
                        {
                            "shop_name": "Big Bazaar",
                            "days": [
                                {
                                    "shop_name": "Big Bazaar",
                                    "day": "2026-02-20",
                                    "transactions": [],
                                    "total": 100.0,
                                }
                            ],
                        }
                    ]
                },
            }
        )
        output = rendered(rich_formatter)
        assert "Big Bazaar" in output
        assert "Feb 20, 2026" in output
        assert "₹ 100.00" in output
