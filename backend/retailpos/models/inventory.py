from __future__ import annotations

from ..extensions import db
from retailpos.time_utils import to_utc_z, utcnow


INVENTORY_ACTIONS = (
    "stock_in",
    "stock_out",
    "sale",
    "return",
    "adjustment",
    "purchase",
    "damage",
    "expired",
)

REFERENCE_TYPES = ("sale", "purchase", "adjustment")


class InventoryLogEntry(db.Model):
    """
    Append-only record of one stock movement.

    Invariant: quantity_after == quantity_before + quantity_change.
    Rows are written by services/stock_ledger.adjust() in the same transaction
    as the stock UPDATE they describe, and are never updated or deleted.
    """
    __tablename__ = "inventory_logs"
    __table_args__ = (
        db.CheckConstraint(
            "quantity_after = quantity_before + quantity_change",
            name="ck_inventory_logs_balanced",
        ),
        db.Index("ix_inventory_logs_product_created", "product_id", "created_at"),
        db.Index("ix_inventory_logs_action_created", "action", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    product_sku = db.Column(db.String(64), nullable=False)

    action = db.Column(db.String(32), nullable=False, index=True)

    quantity_before = db.Column(db.Integer, nullable=False)
    quantity_change = db.Column(db.Integer, nullable=False)
    quantity_after = db.Column(db.Integer, nullable=False)

    reason = db.Column(db.String(255), nullable=True)

    reference_type = db.Column(db.String(16), nullable=True)
    reference_id = db.Column(db.Integer, nullable=True, index=True)

    cost_price_cents = db.Column(db.Integer, nullable=True)

    performed_by_id = db.Column(db.String(64), nullable=False, index=True)
    performed_by_name = db.Column(db.String(255), nullable=False)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=db.func.now(),
        index=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "product_sku": self.product_sku,
            "action": self.action,
            "quantity_before": self.quantity_before,
            "quantity_change": self.quantity_change,
            "quantity_after": self.quantity_after,
            "reason": self.reason,
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "cost_price_cents": self.cost_price_cents,
            "performed_by_id": self.performed_by_id,
            "performed_by_name": self.performed_by_name,
            "created_at": to_utc_z(self.created_at),
        }
