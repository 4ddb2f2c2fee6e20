"""Purchase ingestion: turns a purchase payload into a ledger transaction."""

import logging
from typing import Any

from pydantic import ValidationError as ModelValidationError

from .errors import ValidationError
from .helpers import classify_trend, generate_id
from .ledger import LedgerStore
from .models import PurchasePayload, Transaction
from .resolver import EntityResolver

logger = logging.getLogger(__name__)

# Tolerance when checking a client-supplied total against price * quantity
TOTAL_TOLERANCE = 0.005


def parse_payload(payload: PurchasePayload | dict[str, Any]) -> PurchasePayload:
    """Validate a raw payload.

    Raises:
        ValidationError: If required fields are missing or malformed
    """
    if isinstance(payload, PurchasePayload):
        return payload
    try:
        return PurchasePayload.model_validate(payload)
    except ModelValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ValidationError(f"Invalid purchase ({field}): {first['msg']}", field=field) from e


class PurchaseProcessor:
    """Records purchases against the ledger."""

    def __init__(self, ledger: LedgerStore, resolver: EntityResolver | None = None):
        """Initialize purchase processor.

        Args:
            ledger: LedgerStore to record purchases in
            resolver: EntityResolver for items and shops
        """
        self.ledger = ledger
        self.resolver = resolver or EntityResolver()

    def add_purchase(self, payload: PurchasePayload | dict[str, Any]) -> Transaction:
        """Record one purchase.

        Resolves (or creates) the item and shop, classifies the price trend
        against the item's previous price, updates the item and appends the
        transaction. Items and transactions are committed together; if the
        commit fails nothing changes.

        Args:
            payload: PurchasePayload or equivalent dict (camelCase or snake_case)

        Returns:
            The recorded Transaction

        Raises:
            ValidationError: If the payload is malformed
            PersistenceError: If the ledger could not be written
        """
        purchase = parse_payload(payload)
        total_cost = self._total_cost(purchase)

        with self.ledger.write_lock():
            snapshot = self.ledger.snapshot

            resolved = self.resolver.resolve_item(
                snapshot.items, purchase.item, unit=purchase.unit, when=purchase.date
            )
            item = resolved.entity
            previous_price = None if resolved.created else item.last_price
            trend = classify_trend(purchase.price_per_unit, previous_price)

            if resolved.created or purchase.date >= item.last_purchased_date:
                item = item.model_copy(
                    update={
                        "last_price": purchase.price_per_unit,
                        "last_purchased_date": purchase.date,
                        "unit": purchase.unit or item.unit,
                    }
                )
            else:
                logger.warning(
                    "Backdated purchase of %s on %s; keeping last price from %s",
                    item.name,
                    purchase.date.isoformat(),
                    item.last_purchased_date.isoformat(),
                )
            items = [item if i.id == item.id else i for i in resolved.collection]

            shops = None
            shop_id = shop_name = None
            if purchase.shop is not None and purchase.shop.name:
                shop_resolved = self.resolver.resolve_shop(snapshot.shops, purchase.shop)
                shop_id, shop_name = shop_resolved.entity.id, shop_resolved.entity.name
                if shop_resolved.created:
                    shops = shop_resolved.collection

            transaction = Transaction(
                id=purchase.id or generate_id("txn"),
                date=purchase.date,
                item_id=item.id,
                item_name=item.name,
                shop_id=shop_id,
                shop_name=shop_name,
                price_per_unit=purchase.price_per_unit,
                quantity=purchase.quantity,
                total_cost=total_cost,
                unit=purchase.unit or item.unit,
                price_trend=trend,
            )
            if any(t.id == transaction.id for t in snapshot.transactions):
                raise ValidationError(
                    f"Transaction with ID '{transaction.id}' already exists", field="id"
                )

            self.ledger.commit(
                items=items,
                transactions=[transaction, *snapshot.transactions],
                shops=shops,
            )

        logger.info(
            "Recorded %s x %s at %s (%s)",
            transaction.quantity,
            transaction.item_name,
            transaction.price_per_unit,
            transaction.price_trend.value,
        )
        return transaction

    @staticmethod
    def _total_cost(purchase: PurchasePayload) -> float:
        """Compute the total, rejecting a supplied total that disagrees."""
        total = round(purchase.price_per_unit * purchase.quantity, 2)
        if purchase.total_cost is not None and abs(purchase.total_cost - total) > TOTAL_TOLERANCE:
            raise ValidationError(
                f"Total cost {purchase.total_cost} does not match "
                f"{purchase.price_per_unit} x {purchase.quantity} = {total}",
                field="total_cost",
            )
        return total
