"""Tests for derived ledger views."""

from datetime import date, timedelta, timezone

import pytest

from shop_ledger.analytics import Analytics, newest_first
from shop_ledger.errors import ValidationError
from shop_ledger.models import PriceTrend
from shop_ledger.seed import SEED_TRANSACTIONS

IST = timezone(timedelta(hours=5, minutes=30))


def _buy(processor, name, price, quantity=1, when="2026-02-20T09:00:00Z", shop=None):
    payload = {"item": {"name": name}, "pricePerUnit": price, "quantity": quantity, "date": when}
    if shop:
        payload["shop"] = {"name": shop}
    return processor.add_purchase(payload)


class TestMonthlyTotals:
    """Tests for monthly totals and comparisons."""

    def test_seed_months(self, analytics):
        assert analytics.monthly_total(1, 2026) == 859
        assert analytics.monthly_total(2, 2026) == 710

    def test_empty_month(self, analytics):
        assert analytics.monthly_total(3, 2026) == 0

    def test_empty_ledger(self, empty_analytics):
        assert empty_analytics.monthly_total(2, 2026) == 0

    def test_invalid_month(self, analytics):
        with pytest.raises(ValidationError):
            analytics.monthly_total(13, 2026)
        with pytest.raises(ValidationError):
            analytics.monthly_total(0, 2026)

    def test_month_comparison(self, analytics):
        comparison = analytics.month_comparison(2, 2026)
        assert comparison.total == 710
        assert comparison.previous_month == 1
        assert comparison.previous_year == 2026
        assert comparison.previous_total == 859
        assert comparison.difference == -149
        assert comparison.percentage_change == -17

    def test_month_comparison_across_year(self, analytics):
        comparison = analytics.month_comparison(1, 2026)
        assert (comparison.previous_month, comparison.previous_year) == (12, 2025)
        assert comparison.previous_total == 0
        assert comparison.percentage_change == 0

    def test_months_partition_all_transactions(self, analytics, ledger):
        """Every transaction lands in exactly one month."""
        months = {(t.date.month, t.date.year) for t in ledger.transactions}
        total = sum(analytics.monthly_total(m, y) for m, y in months)
        assert total == pytest.approx(sum(t.total_cost for t in ledger.transactions))


class TestTimezones:
    """Tests for calendar boundaries in a configured timezone."""

    def test_month_boundary_follows_timezone(self, empty_ledger, empty_processor):
        _buy(empty_processor, "Milk", 100, when="2026-01-31T20:00:00Z")

        utc = Analytics(empty_ledger, tz=timezone.utc)
        ist = Analytics(empty_ledger, tz=IST)

        assert utc.monthly_total(1, 2026) == 100
        assert utc.monthly_total(2, 2026) == 0
        assert ist.monthly_total(1, 2026) == 0
        assert ist.monthly_total(2, 2026) == 100

    def test_daily_totals_follow_timezone(self, empty_ledger, empty_processor):
        _buy(empty_processor, "Milk", 100, when="2026-02-10T20:00:00Z")
        ist = Analytics(empty_ledger, tz=IST)
        assert ist.daily_totals(2, 2026) == {11: 100}


class TestDailyTotals:
    """Tests for per-day totals."""

    def test_seed_january(self, analytics):
        assert analytics.daily_totals(1, 2026) == {15: 275, 20: 500, 25: 84}

    def test_days_without_purchases_absent(self, analytics):
        totals = analytics.daily_totals(2, 2026)
        assert list(totals) == [5, 10, 15]
        assert 1 not in totals

    def test_sum_matches_monthly_total(self, analytics):
        assert sum(analytics.daily_totals(1, 2026).values()) == analytics.monthly_total(1, 2026)


class TestItemViews:
    """Tests for per-item history, trend and stats."""

    def test_history_newest_first(self, analytics):
        history = analytics.item_history("item_seed_3")
        assert [t.id for t in history] == ["txn_seed_6", "txn_seed_2"]

    def test_history_unknown_item(self, analytics):
        assert analytics.item_history("item_missing") == []

    def test_trend_is_latest_purchase(self, analytics, processor):
        assert analytics.item_trend("item_seed_3") == PriceTrend.INCREASE
        _buy(processor, "Milk", 25)
        assert analytics.item_trend("item_seed_3") == PriceTrend.DECREASE

    def test_trend_never_bought(self, analytics):
        assert analytics.item_trend("item_missing") == PriceTrend.STABLE

    def test_price_stats(self, analytics):
        stats = analytics.item_price_stats("item_seed_3")
        assert stats.purchase_count == 2
        assert stats.min_price == 26
        assert stats.max_price == 28
        assert stats.total_spent == 540

    def test_price_stats_never_bought(self, analytics):
        stats = analytics.item_price_stats("item_missing")
        assert stats.purchase_count == 0
        assert stats.min_price is None
        assert stats.total_spent == 0


class TestRecentTransactions:
    """Tests for the recent purchases view."""

    def test_recent(self, analytics):
        assert [t.id for t in analytics.recent_transactions(3)] == [
            "txn_seed_7",
            "txn_seed_6",
            "txn_seed_5",
        ]

    def test_default_limit(self, analytics):
        assert len(analytics.recent_transactions()) == 5

    def test_limit_larger_than_ledger(self, analytics):
        assert len(analytics.recent_transactions(50)) == 7

    def test_negative_limit(self, analytics):
        with pytest.raises(ValidationError):
            analytics.recent_transactions(-1)

    def test_same_timestamp_ordered_by_id(self):
        a, b = SEED_TRANSACTIONS[0], SEED_TRANSACTIONS[0].model_copy(update={"id": "txn_z"})
        assert [t.id for t in newest_first([a, b])] == ["txn_z", "txn_seed_1"]


class TestTopExpenses:
    """Tests for the top expenses ranking."""

    def test_all_time(self, analytics):
        ranked = analytics.top_expenses()
        assert [(e.name, e.total) for e in ranked] == [
            ("Ponni Rice", 565),
            ("Milk", 540),
            ("Toor Dal", 240),
            ("Sunflower Oil", 140),
            ("Sugar", 84),
        ]

    def test_single_month(self, analytics):
        ranked = analytics.top_expenses(1, 2026)
        assert [e.name for e in ranked] == ["Ponni Rice", "Milk", "Toor Dal", "Sugar"]

    def test_limit(self, analytics):
        assert len(analytics.top_expenses(n=2)) == 2

    def test_negative_limit(self, analytics):
        with pytest.raises(ValidationError):
            analytics.top_expenses(n=-1)

    def test_zero_limit(self, analytics):
        assert analytics.top_expenses(n=0) == []

    def test_month_without_year(self, analytics):
        with pytest.raises(ValidationError):
            analytics.top_expenses(month=1)

    def test_ties_keep_newest_first_order(self, empty_processor, empty_analytics):
        _buy(empty_processor, "Older", 100, when="2026-02-01T09:00:00Z")
        _buy(empty_processor, "Newer", 100, when="2026-02-02T09:00:00Z")
        _buy(empty_processor, "Small", 10, when="2026-02-03T09:00:00Z")

        ranked = empty_analytics.top_expenses(2, 2026)
        assert [e.name for e in ranked] == ["Newer", "Older", "Small"]

    def test_renamed_item_keeps_old_label(self, ledger, analytics, processor):
        """Totals group by the name recorded on each transaction."""
        ledger.rename_item("item_seed_3", "Cow Milk")
        _buy(processor, "Cow Milk", 30, quantity=1)

        names = {e.name: e.total for e in analytics.top_expenses()}
        assert names["Milk"] == 540
        assert names["Cow Milk"] == 30

    def test_empty(self, empty_analytics):
        assert empty_analytics.top_expenses(2, 2026) == []


class TestShopGroups:
    """Tests for shop and day grouping."""

    def test_seed_has_unknown_shop_only(self, analytics):
        groups = analytics.shop_date_groups()
        assert [g.shop_name for g in groups] == ["Unknown Shop"]
        days = groups[0].days
        assert days[0].day == date(2026, 2, 15)
        assert [d.day for d in days] == sorted((d.day for d in days), reverse=True)
        jan20 = next(d for d in days if d.day == date(2026, 1, 20))
        assert len(jan20.transactions) == 2
        assert jan20.total == 500

    def test_same_day_purchases_share_a_bucket(self, processor, analytics):
        _buy(processor, "Milk", 28, 2, when="2026-02-20T09:00:00Z", shop="Big Bazaar")
        _buy(processor, "Sugar", 44, 1, when="2026-02-20T18:00:00Z", shop="big bazaar")

        groups = analytics.shop_date_groups()
        big_bazaar = next(g for g in groups if g.shop_name == "Big Bazaar")
        assert len(big_bazaar.days) == 1
        assert len(big_bazaar.days[0].transactions) == 2
        assert big_bazaar.days[0].total == 100

    def test_shops_ordered_by_latest_day(self, processor, analytics):
        _buy(processor, "Milk", 26, when="2026-02-20T09:00:00Z", shop="Murugan Stores")
        _buy(processor, "Milk", 26, when="2026-02-20T10:00:00Z", shop="Big Bazaar")
        _buy(processor, "Milk", 26, when="2026-03-01T10:00:00Z", shop="Nilgiris")

        names = [g.shop_name for g in analytics.shop_date_groups()]
        assert names == ["Nilgiris", "Big Bazaar", "Murugan Stores", "Unknown Shop"]

    def test_groups_partition_transactions(self, processor, analytics, ledger):
        """Every transaction appears in exactly one shop day."""
        _buy(processor, "Milk", 26, shop="Big Bazaar")
        _buy(processor, "Paneer", 90, shop="Nilgiris")

        grouped = [
            t.id
            for group in analytics.shop_date_groups()
            for day in group.days
            for t in day.transactions
        ]
        assert sorted(grouped) == sorted(t.id for t in ledger.transactions)

    def test_empty(self, empty_analytics):
        assert empty_analytics.shop_date_groups() == []


class TestShopSession:
    """Tests for a single shop visit."""

    def test_unknown_shop_session(self, analytics):
        session = analytics.shop_session("Unknown Shop", "2026-01-20")
        assert {t.id for t in session.transactions} == {"txn_seed_2", "txn_seed_3"}
        assert session.total == 500

    def test_blank_name_means_unknown_shop(self, analytics):
        session = analytics.shop_session(" ", date(2026, 1, 20))
        assert session.shop_name == "Unknown Shop"
        assert len(session.transactions) == 2

    def test_named_shop(self, processor, analytics):
        _buy(processor, "Milk", 28, 2, when="2026-02-20T09:00:00Z", shop="Big Bazaar")
        session = analytics.shop_session("Big Bazaar", "2026-02-20")
        assert session.total == 56

    def test_no_purchases(self, analytics):
        session = analytics.shop_session("Big Bazaar", "2026-01-20")
        assert session.transactions == []
        assert session.total == 0

    def test_invalid_day(self, analytics):
        with pytest.raises(ValidationError):
            analytics.shop_session("Big Bazaar", "20/01/2026")
