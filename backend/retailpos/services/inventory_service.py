# Overview: Service-layer operations for manual inventory adjustments and inventory log queries.

"""
Manual stock adjustments

WHY: Receiving goods, write-offs and count corrections go through the same
ledger primitive as sales, so the inventory log is a complete history of
every stock change.

Direction by action:
- stock_in                                   -> +quantity
- stock_out, adjustment, damage, expired     -> -quantity

A reason is mandatory. The log row carries the cost price given with the
adjustment, or the product's current cost price when none is given.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import InventoryLogEntry, Product
from ..validation import AdjustmentRequest, validate_adjustment_request
from .audit_service import append_audit_entry
from .concurrency import begin_write_transaction, run_with_retry
from .errors import InsufficientStockError, PosError, TransactionFailedError
from .pagination import paginate
from .session_service import ActorContext
from .stock_ledger import StockMovement, adjust


INBOUND_ACTIONS = ("stock_in",)


def signed_delta(action: str, quantity: int) -> int:
    return quantity if action in INBOUND_ACTIONS else -quantity


def adjust_inventory(request: AdjustmentRequest, actor: ActorContext) -> StockMovement:
    """
    Apply one manual adjustment and commit.

    Returns the StockMovement (quantity_before, quantity_after).
    """
    validate_adjustment_request(request)
    delta = signed_delta(request.action, request.quantity)

    def _op() -> StockMovement:
        begin_write_transaction()
        cost_price_cents = request.cost_price_cents
        if cost_price_cents is None:
            cost_price_cents = (
                db.session.query(Product.cost_price_cents)
                .filter(Product.id == request.product_id)
                .scalar()
            )
        movement = adjust(
            request.product_id,
            delta,
            request.action,
            request.reason.strip(),
            actor,
            reference_type="adjustment",
            cost_price_cents=cost_price_cents,
        )
        append_audit_entry(
            actor=actor,
            action="stock_adjustment",
            entity="Product",
            entity_id=request.product_id,
            description=(
                f"{request.action}: {movement.entry.product_name} "
                f"{movement.quantity_before} -> {movement.quantity_after}"
            ),
            metadata={
                "action": request.action,
                "quantity_change": delta,
                "reason": request.reason.strip(),
            },
        )
        db.session.commit()
        return movement

    try:
        movement = run_with_retry(
            _op,
            attempts=current_app.config.get("SALE_RETRY_ATTEMPTS", 3),
            backoff_base=current_app.config.get("SALE_RETRY_BACKOFF", 0.1),
        )
    except InsufficientStockError as exc:
        db.session.rollback()
        current_app.logger.warning("Stock adjustment rejected: %s", exc.message)
        raise
    except PosError:
        db.session.rollback()
        raise
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to adjust inventory for product %s", request.product_id)
        raise TransactionFailedError("Failed to adjust inventory")

    current_app.logger.info(
        "Inventory %s product=%s %s -> %s by %s",
        request.action,
        request.product_id,
        movement.quantity_before,
        movement.quantity_after,
        actor.actor_id,
    )
    return movement


def list_inventory_logs(
    *,
    product_id: int | None = None,
    action: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> dict:
    """Inventory log rows, newest first. start/end are inclusive bounds."""
    query = db.session.query(InventoryLogEntry)
    if product_id is not None:
        query = query.filter(InventoryLogEntry.product_id == product_id)
    if action:
        query = query.filter(InventoryLogEntry.action == action)
    if start is not None:
        query = query.filter(InventoryLogEntry.created_at >= start)
    if end is not None:
        query = query.filter(InventoryLogEntry.created_at <= end)

    query = query.order_by(InventoryLogEntry.created_at.desc(), InventoryLogEntry.id.desc())
    rows, pagination = paginate(query, page, limit)
    return {"items": [row.to_dict() for row in rows], "pagination": pagination}
