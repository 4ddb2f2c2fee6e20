"""Derived views over the ledger: monthly totals, histories, groupings, rankings."""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime, tzinfo

from .errors import ValidationError
from .helpers import percentage_change, shift_month
from .ledger import LedgerStore
from .models import (
    UNKNOWN_SHOP,
    ExpenseTotal,
    ItemPriceStats,
    MonthComparison,
    PriceTrend,
    ShopDay,
    ShopGroup,
    Transaction,
)


def newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Sort by date descending; identical timestamps by ID descending."""
    return sorted(transactions, key=lambda t: (t.date, t.id), reverse=True)


class Analytics:
    """Computes every read-side view from one ledger snapshot per call.

    Nothing is cached: each method reads the ledger's current committed
    snapshot and derives its result from it. Calendar boundaries (months,
    days) are taken in the configured timezone.
    """

    def __init__(self, ledger: LedgerStore, tz: tzinfo | None = None):
        """Initialize analytics.

        Args:
            ledger: LedgerStore to read from
            tz: Timezone for calendar boundaries. Defaults to the system zone.
        """
        self.ledger = ledger
        self.tz = tz

    def _local(self, when: datetime) -> datetime:
        return when.astimezone(self.tz)

    def _local_day(self, when: datetime) -> date:
        return self._local(when).date()

    @staticmethod
    def _check_month(month: int, year: int) -> None:
        if not 1 <= month <= 12:
            raise ValidationError(f"Month must be between 1 and 12, got {month}", field="month")
        if year < 1:
            raise ValidationError(f"Invalid year {year}", field="year")

    def _month_transactions(
        self, transactions: Iterable[Transaction], month: int, year: int
    ) -> list[Transaction]:
        self._check_month(month, year)
        result = []
        for t in transactions:
            local = self._local(t.date)
            if local.month == month and local.year == year:
                result.append(t)
        return result

    # --- Totals ---

    def monthly_total(self, month: int, year: int) -> float:
        """Total spent in a calendar month.

        Args:
            month: 1-12
            year: Four-digit year

        Returns:
            Sum of total_cost, rounded to 2 decimals
        """
        transactions = self._month_transactions(self.ledger.transactions, month, year)
        return round(sum(t.total_cost for t in transactions), 2)

    def month_comparison(self, month: int, year: int) -> MonthComparison:
        """Compare a month's spending with the month before."""
        transactions = self.ledger.transactions
        prev_month, prev_year = shift_month(month, year, -1)
        total = round(
            sum(t.total_cost for t in self._month_transactions(transactions, month, year)), 2
        )
        previous = round(
            sum(
                t.total_cost
                for t in self._month_transactions(transactions, prev_month, prev_year)
            ),
            2,
        )
        return MonthComparison(
            month=month,
            year=year,
            total=total,
            previous_month=prev_month,
            previous_year=prev_year,
            previous_total=previous,
            difference=round(total - previous, 2),
            percentage_change=percentage_change(previous, total),
        )

    def daily_totals(self, month: int, year: int) -> dict[int, float]:
        """Spending per day of month.

        Days without transactions are absent rather than zero.
        """
        totals: dict[int, float] = defaultdict(float)
        for t in self._month_transactions(self.ledger.transactions, month, year):
            totals[self._local(t.date).day] += t.total_cost
        return {day: round(total, 2) for day, total in sorted(totals.items())}

    # --- Items ---

    def item_history(self, item_id: str) -> list[Transaction]:
        """All purchases of an item, most recent first."""
        return newest_first(t for t in self.ledger.transactions if t.item_id == item_id)

    def item_trend(self, item_id: str) -> PriceTrend:
        """Trend of the item's most recent purchase, STABLE if never bought."""
        history = self.item_history(item_id)
        if not history:
            return PriceTrend.STABLE
        return history[0].price_trend

    def item_price_stats(self, item_id: str) -> ItemPriceStats:
        """Lowest and highest price paid and total spent on an item."""
        history = self.item_history(item_id)
        if not history:
            return ItemPriceStats(item_id=item_id, purchase_count=0)
        prices = [t.price_per_unit for t in history]
        return ItemPriceStats(
            item_id=item_id,
            purchase_count=len(history),
            min_price=min(prices),
            max_price=max(prices),
            total_spent=round(sum(t.total_cost for t in history), 2),
        )

    def recent_transactions(self, limit: int = 5) -> list[Transaction]:
        """The most recent transactions across all items."""
        if limit < 0:
            raise ValidationError("Limit must not be negative", field="limit")
        return newest_first(self.ledger.transactions)[:limit]

    def top_expenses(
        self, month: int | None = None, year: int | None = None, n: int = 5
    ) -> list[ExpenseTotal]:
        """Items with the highest spend.

        Transactions are grouped by their recorded item name, so distinct
        items sharing a name are combined. Groups are ranked by total; equal
        totals keep the order in which their names are first met when
        walking the transactions newest first.

        Args:
            month: 1-12, or None together with year for all time
            year: Four-digit year
            n: Number of entries to return
        """
        if n < 0:
            raise ValidationError("Number of entries must not be negative", field="n")
        if month is None and year is None:
            transactions = list(self.ledger.transactions)
        elif month is None or year is None:
            raise ValidationError("Month and year must be given together", field="month")
        else:
            transactions = self._month_transactions(self.ledger.transactions, month, year)

        totals: dict[str, float] = {}
        for t in newest_first(transactions):
            label = t.item_name or t.item_id
            totals[label] = totals.get(label, 0.0) + t.total_cost

        ranked = sorted(totals.items(), key=lambda entry: entry[1], reverse=True)
        return [ExpenseTotal(name=name, total=round(total, 2)) for name, total in ranked[:n]]

    # --- Shops ---

    def shop_date_groups(self) -> list[ShopGroup]:
        """Transactions grouped by shop, then by calendar day.

        Days within a shop are newest first; shops are ordered by their
        newest day, then by name.
        """
        groups: dict[str, dict[date, list[Transaction]]] = defaultdict(lambda: defaultdict(list))
        for t in newest_first(self.ledger.transactions):
            groups[t.shop_name or UNKNOWN_SHOP][self._local_day(t.date)].append(t)

        result = []
        for shop_name, days in sorted(groups.items()):
            result.append(
                ShopGroup(
                    shop_name=shop_name,
                    days=[
                        ShopDay(
                            shop_name=shop_name,
                            day=day,
                            transactions=days[day],
                            total=round(sum(t.total_cost for t in days[day]), 2),
                        )
                        for day in sorted(days, reverse=True)
                    ],
                )
            )
        result.sort(key=lambda group: group.latest_day, reverse=True)
        return result

    def shop_session(self, shop_name: str | None, day: date | str) -> ShopDay:
        """One shop's transactions on one day.

        A blank shop name or "Unknown Shop" selects purchases without a shop.
        """
        if isinstance(day, str):
            try:
                day = date.fromisoformat(day)
            except ValueError as e:
                raise ValidationError(f"Invalid date '{day}'", field="day") from e
        name = (shop_name or "").strip() or UNKNOWN_SHOP

        session = [
            t
            for t in newest_first(self.ledger.transactions)
            if (t.shop_name or UNKNOWN_SHOP) == name and self._local_day(t.date) == day
        ]
        return ShopDay(
            shop_name=name,
            day=day,
            transactions=session,
            total=round(sum(t.total_cost for t in session), 2),
        )
