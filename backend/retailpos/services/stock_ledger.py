# Overview: Service-layer operations for the stock ledger; the only writer of Product.stock.

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import update

from ..extensions import db
from ..models import InventoryLogEntry, Product
from ..models.inventory import INVENTORY_ACTIONS, REFERENCE_TYPES
from .errors import InsufficientStockError, NotFoundError
from .session_service import ActorContext

"""
Stock ledger invariants (authoritative)

- Product.stock changes only through adjust(), one conditional UPDATE per call:
      UPDATE products SET stock = stock + :delta
      WHERE id = :id AND stock + :delta >= 0
  The database serializes competing updates on the same row, so two cashiers
  selling the last unit cannot both succeed.
- Every successful UPDATE appends exactly one InventoryLogEntry in the same
  unit of work, with quantity_after = quantity_before + quantity_change.
- adjust() never commits. The caller owns the transaction; a rollback undoes
  the stock change and the log row together.
"""


@dataclass(frozen=True)
class StockMovement:
    quantity_before: int
    quantity_after: int
    entry: InventoryLogEntry


def adjust(
    product_id: int,
    delta: int,
    action: str,
    reason: str | None,
    actor: ActorContext,
    *,
    reference_type: str | None = None,
    reference_id: int | None = None,
    cost_price_cents: int | None = None,
) -> StockMovement:
    """
    Apply a signed stock change and record it.

    Raises:
        NotFoundError: product does not exist
        InsufficientStockError: the change would take stock below zero
    """
    if action not in INVENTORY_ACTIONS:
        raise ValueError(f"unknown inventory action: {action}")
    if reference_type is not None and reference_type not in REFERENCE_TYPES:
        raise ValueError(f"unknown reference type: {reference_type}")
    if delta == 0:
        raise ValueError("delta must be non-zero")

    stmt = (
        update(Product)
        .where(Product.id == product_id, Product.stock + delta >= 0)
        .values(stock=Product.stock + delta, version_id=Product.version_id + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)

    if not result.rowcount:
        row = (
            db.session.query(Product.name, Product.stock)
            .filter(Product.id == product_id)
            .first()
        )
        if row is None:
            raise NotFoundError("Product not found", details={"product_id": product_id})
        raise InsufficientStockError(row.name, requested=-delta, available=row.stock)

    # Read back inside the same transaction; the row is now locked by us
    row = (
        db.session.query(Product.name, Product.sku, Product.stock)
        .filter(Product.id == product_id)
        .one()
    )
    after = row.stock
    before = after - delta

    entry = InventoryLogEntry(
        product_id=product_id,
        product_name=row.name,
        product_sku=row.sku,
        action=action,
        quantity_before=before,
        quantity_change=delta,
        quantity_after=after,
        reason=reason,
        reference_type=reference_type,
        reference_id=reference_id,
        cost_price_cents=cost_price_cents,
        performed_by_id=actor.actor_id,
        performed_by_name=actor.actor_name,
    )
    db.session.add(entry)
    db.session.flush()

    return StockMovement(quantity_before=before, quantity_after=after, entry=entry)
