from __future__ import annotations

from ..extensions import db
from retailpos.time_utils import to_utc_z


class StoreSettings(db.Model):
    """
    Process-wide store configuration (single row).

    invoice_next_number is the durable invoice sequence. It is only advanced
    by services/invoice_service.next_invoice_number(), with an atomic
    UPDATE ... SET invoice_next_number = invoice_next_number + 1 inside the
    sale transaction, so an aborted sale never consumes a number.
    """
    __tablename__ = "store_settings"
    __table_args__ = (
        db.CheckConstraint("invoice_next_number >= 1", name="ck_store_settings_invoice_next_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    store_name = db.Column(db.String(255), nullable=False, default="My Store")
    store_address = db.Column(db.String(255), nullable=True)
    store_phone = db.Column(db.String(32), nullable=True)

    currency = db.Column(db.String(8), nullable=False, default="USD")
    currency_symbol = db.Column(db.String(8), nullable=False, default="$")

    invoice_prefix = db.Column(db.String(16), nullable=False, default="INV")
    invoice_next_number = db.Column(db.Integer, nullable=False, default=1)

    low_stock_threshold = db.Column(db.Integer, nullable=False, default=10)

    enable_loyalty = db.Column(db.Boolean, nullable=False, default=False)
    loyalty_points_per_currency = db.Column(db.Numeric(8, 2), nullable=False, default=1)

    receipt_footer = db.Column(db.String(255), nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_name": self.store_name,
            "store_address": self.store_address,
            "store_phone": self.store_phone,
            "currency": self.currency,
            "currency_symbol": self.currency_symbol,
            "invoice_prefix": self.invoice_prefix,
            "invoice_next_number": self.invoice_next_number,
            "low_stock_threshold": self.low_stock_threshold,
            "enable_loyalty": self.enable_loyalty,
            "loyalty_points_per_currency": float(self.loyalty_points_per_currency),
            "receipt_footer": self.receipt_footer,
            "updated_at": to_utc_z(self.updated_at),
        }
