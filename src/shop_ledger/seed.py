"""Example ledger written on first launch."""

from .models import Item, LedgerSnapshot, PriceTrend, Shop, Transaction

SEED_ITEMS = (
    Item(
        id="item_seed_1",
        name="Ponni Rice",
        unit="kg",
        last_price=55,
        last_purchased_date="2026-01-15",
        category="Provisions",
    ),
    Item(
        id="item_seed_2",
        name="Toor Dal",
        unit="kg",
        last_price=120,
        last_purchased_date="2026-01-20",
        category="Provisions",
    ),
    Item(
        id="item_seed_3",
        name="Milk",
        unit="ltr",
        last_price=26,
        last_purchased_date="2026-02-01",
        category="Dairy",
    ),
    Item(
        id="item_seed_4",
        name="Sunflower Oil",
        unit="ltr",
        last_price=140,
        last_purchased_date="2026-01-10",
        category="Provisions",
    ),
    Item(
        id="item_seed_5",
        name="Sugar",
        unit="kg",
        last_price=42,
        last_purchased_date="2026-01-25",
        category="Provisions",
    ),
)


def _txn(txn_id, item_id, item_name, price, quantity, unit, when, trend):
    return Transaction(
        id=txn_id,
        item_id=item_id,
        item_name=item_name,
        price_per_unit=price,
        quantity=quantity,
        total_cost=price * quantity,
        unit=unit,
        date=when,
        price_trend=trend,
    )


SEED_TRANSACTIONS = (
    _txn("txn_seed_1", "item_seed_1", "Ponni Rice", 55, 5, "kg",
         "2026-01-15T10:00:00.000Z", PriceTrend.STABLE),
    _txn("txn_seed_2", "item_seed_3", "Milk", 26, 10, "ltr",
         "2026-01-20T09:00:00.000Z", PriceTrend.STABLE),
    _txn("txn_seed_3", "item_seed_2", "Toor Dal", 120, 2, "kg",
         "2026-01-20T10:30:00.000Z", PriceTrend.STABLE),
    _txn("txn_seed_4", "item_seed_5", "Sugar", 42, 2, "kg",
         "2026-01-25T11:00:00.000Z", PriceTrend.STABLE),
    _txn("txn_seed_5", "item_seed_4", "Sunflower Oil", 140, 1, "ltr",
         "2026-02-05T10:00:00.000Z", PriceTrend.STABLE),
    _txn("txn_seed_6", "item_seed_3", "Milk", 28, 10, "ltr",
         "2026-02-10T09:00:00.000Z", PriceTrend.INCREASE),
    _txn("txn_seed_7", "item_seed_1", "Ponni Rice", 58, 5, "kg",
         "2026-02-15T10:00:00.000Z", PriceTrend.INCREASE),
)

SEED_SHOPS = (
    Shop(id="shop_seed_1", name="Murugan Stores"),
    Shop(id="shop_seed_2", name="Big Bazaar"),
)

SEED_SNAPSHOT = LedgerSnapshot(
    items=SEED_ITEMS,
    shops=SEED_SHOPS,
    transactions=SEED_TRANSACTIONS,
)

EMPTY_SNAPSHOT = LedgerSnapshot()
