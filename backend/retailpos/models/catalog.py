from __future__ import annotations

from ..extensions import db
from retailpos.time_utils import to_utc_z, utcnow


def _pct(value) -> float | None:
    return float(value) if value is not None else None


class Product(db.Model):
    """
    Product master data.

    STOCK DESIGN DECISION:
    Product.stock is a stored on-hand quantity, not a ledger sum.
    - It is only ever changed by services/stock_ledger.adjust(), which issues a
      single conditional UPDATE (stock + delta >= 0) per movement.
    - Every change has a matching InventoryLogEntry written in the same
      transaction, so the log can always reconstruct the history.
    - The CHECK constraint is a backstop; the conditional UPDATE is what keeps
      concurrent sales from overselling.

    DISCOUNT TYPE:
    discount_type='fixed' is accepted for catalog display, but sale lines
    always apply discount_percent as a percentage.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.UniqueConstraint("barcode", name="uq_products_barcode"),
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.Index("ix_products_category_status", "category", "status"),
        db.Index("ix_products_stock_reorder", "stock", "reorder_level"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False, index=True)
    sku = db.Column(db.String(64), nullable=False)
    barcode = db.Column(db.String(64), nullable=False)
    category = db.Column(db.String(128), nullable=False, index=True)
    brand = db.Column(db.String(128), nullable=True)
    description = db.Column(db.Text, nullable=True)

    # Authoritative storage in cents (frontend may only format for display)
    cost_price_cents = db.Column(db.Integer, nullable=False, default=0)
    selling_price_cents = db.Column(db.Integer, nullable=False, default=0)

    tax_percent = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    discount_percent = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    discount_type = db.Column(db.String(16), nullable=False, default="percentage")

    stock = db.Column(db.Integer, nullable=False, default=0)
    reorder_level = db.Column(db.Integer, nullable=False, default=10)
    unit = db.Column(db.String(16), nullable=False, default="pcs")

    status = db.Column(db.String(16), nullable=False, default="active", index=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} stock={self.stock}>"

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "barcode": self.barcode,
            "category": self.category,
            "brand": self.brand,
            "description": self.description,
            "cost_price_cents": self.cost_price_cents,
            "selling_price_cents": self.selling_price_cents,
            "tax_percent": _pct(self.tax_percent),
            "discount_percent": _pct(self.discount_percent),
            "discount_type": self.discount_type,
            "stock": self.stock,
            "reorder_level": self.reorder_level,
            "unit": self.unit,
            "status": self.status,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
