"""Item and shop resolution for incoming purchases."""

from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Generic, NamedTuple, TypeVar

from .helpers import generate_id
from .models import DEFAULT_CATEGORY, DEFAULT_UNIT, Item, ItemRef, Shop, ShopRef

T = TypeVar("T")


class Resolution(NamedTuple, Generic[T]):
    """Outcome of resolving a reference.

    collection is the input collection, with the new entity appended when
    one had to be created.
    """

    entity: T
    created: bool
    collection: tuple[T, ...]


def _match(records: Sequence, ref_id: str | None, name: str | None):
    """Find a record by id, falling back to a case-insensitive name match."""
    if ref_id:
        for record in records:
            if record.id == ref_id:
                return record
    if name:
        key = name.casefold()
        for record in records:
            if record.name.casefold() == key:
                return record
    return None


class EntityResolver:
    """Maps loosely specified item/shop references onto stored records.

    Resolution never mutates existing records and never persists anything:
    callers receive the matched record unchanged, or a new one appended to a
    copy of the collection.
    """

    def __init__(
        self,
        default_category: str = DEFAULT_CATEGORY,
        default_unit: str = DEFAULT_UNIT,
        id_factory: Callable[[str], str] = generate_id,
    ):
        self.default_category = default_category
        self.default_unit = default_unit
        self.id_factory = id_factory

    def find_item(self, items: Sequence[Item], ref: ItemRef) -> Item | None:
        """Look up an item by id, then by name."""
        return _match(items, ref.id, ref.name)

    def find_shop(self, shops: Sequence[Shop], ref: ShopRef) -> Shop | None:
        """Look up a shop by id, then by name."""
        return _match(shops, ref.id, ref.name)

    def resolve_item(
        self,
        items: Sequence[Item],
        ref: ItemRef,
        unit: str | None = None,
        when: datetime | None = None,
    ) -> Resolution[Item]:
        """Resolve an item reference, creating the item if needed.

        A dangling id does not create an item under that id; a new item
        always gets a fresh id.

        Args:
            items: Current item collection
            ref: Reference from the purchase payload
            unit: Unit for a newly created item
            when: Purchase date for a newly created item

        Returns:
            Resolution with the matched or created item
        """
        existing = self.find_item(items, ref)
        if existing is not None:
            return Resolution(existing, False, tuple(items))

        item = Item(
            id=self.id_factory("item"),
            name=ref.name,
            unit=unit or self.default_unit,
            last_price=0.0,
            last_purchased_date=when or datetime.now().astimezone(),
            category=ref.category or self.default_category,
        )
        return Resolution(item, True, (*items, item))

    def resolve_shop(self, shops: Sequence[Shop], ref: ShopRef) -> Resolution[Shop]:
        """Resolve a shop reference, creating the shop if needed.

        Raises:
            ValueError: If the reference has no name
        """
        if not ref.name:
            raise ValueError("Shop reference must have a name")

        existing = self.find_shop(shops, ref)
        if existing is not None:
            return Resolution(existing, False, tuple(shops))

        shop = Shop(id=self.id_factory("shop"), name=ref.name)
        return Resolution(shop, True, (*shops, shop))
