"""Core data models for Shop Ledger."""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel

UNKNOWN_SHOP = "Unknown Shop"
DEFAULT_CATEGORY = "General"
DEFAULT_UNIT = "pcs"


def _parse_timestamp(value: Any) -> Any:
    """Accept ISO strings (with "Z", or date-only) and plain dates."""
    if isinstance(value, str):
        return datetime.fromisoformat(value.strip())
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, datetime.min.time())
    return value


def _ensure_aware(value: datetime) -> datetime:
    # Naive timestamps are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


Timestamp = Annotated[
    datetime, BeforeValidator(_parse_timestamp), AfterValidator(_ensure_aware)
]
Amount = Annotated[float, Field(ge=0, allow_inf_nan=False)]


class PriceTrend(str, Enum):
    """Price movement relative to the previous purchase of the same item."""

    INCREASE = "increase"
    DECREASE = "decrease"
    STABLE = "stable"


class LedgerModel(BaseModel):
    """Immutable record persisted with camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Item(LedgerModel):
    """A catalog entry for a purchasable good."""

    id: str
    name: str
    unit: str = DEFAULT_UNIT
    last_price: Amount = 0.0
    last_purchased_date: Timestamp
    category: str = DEFAULT_CATEGORY


class Shop(LedgerModel):
    """Where a purchase was made."""

    id: str
    name: str


class Transaction(LedgerModel):
    """A single purchase in the ledger."""

    id: str
    date: Timestamp
    item_id: str
    item_name: str
    shop_id: str | None = None
    shop_name: str | None = None
    price_per_unit: Amount
    quantity: Amount
    total_cost: Amount
    unit: str
    price_trend: PriceTrend = PriceTrend.STABLE


class LedgerSnapshot(LedgerModel):
    """Committed state of all three collections at one point in time."""

    items: tuple[Item, ...] = ()
    shops: tuple[Shop, ...] = ()
    transactions: tuple[Transaction, ...] = ()


class ItemRef(BaseModel):
    """Item reference from a purchase payload.

    The id is preferred when it matches an existing item; otherwise the
    name is matched case-insensitively.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    name: str
    category: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Item name must not be empty")
        return v

    @field_validator("id", "category")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v


class ShopRef(BaseModel):
    """Optional shop reference from a purchase payload."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    name: str | None = None

    @field_validator("id", "name")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v


class PurchasePayload(BaseModel):
    """Input for recording one purchase.

    Accepts both snake_case and camelCase keys. A supplied price_trend is
    accepted for compatibility but always recomputed.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str | None = None
    date: Timestamp = Field(default_factory=lambda: datetime.now(timezone.utc))
    item: ItemRef
    shop: ShopRef | None = None
    price_per_unit: Amount
    quantity: Amount
    total_cost: Amount | None = None
    unit: str | None = None
    price_trend: PriceTrend | None = None

    @field_validator("unit")
    @classmethod
    def blank_unit(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v


class ShopDay(BaseModel):
    """All transactions at one shop on one calendar day."""

    shop_name: str
    day: date
    transactions: list[Transaction] = Field(default_factory=list)
    total: float = 0.0


class ShopGroup(BaseModel):
    """A shop's sessions, newest day first."""

    shop_name: str
    days: list[ShopDay] = Field(default_factory=list)

    @property
    def latest_day(self) -> date | None:
        """Most recent day with a purchase at this shop."""
        if not self.days:
            return None
        return self.days[0].day


class ExpenseTotal(BaseModel):
    """Total spent on one item label."""

    name: str
    total: float


class MonthComparison(BaseModel):
    """Spending in a month against the month before it."""

    month: int
    year: int
    total: float
    previous_month: int
    previous_year: int
    previous_total: float
    difference: float
    percentage_change: int


class ItemPriceStats(BaseModel):
    """Price range and spend for one item."""

    item_id: str
    purchase_count: int
    min_price: float | None = None
    max_price: float | None = None
    total_spent: float = 0.0
