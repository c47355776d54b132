# Overview: Service-layer operations for the product catalog; lookups, snapshots and product creation.

"""
Catalog Service

The sale coordinator never reads Product rows directly. It resolves a
ProductSnapshot through this module inside its own transaction, so the price,
percentages and status it freezes onto the sale line are the ones visible to
that transaction.

Stock is never written here. Initial stock on product creation is posted
through stock_ledger.adjust() so the inventory log stays complete.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product
from ..validation import ValidationError, require_percent, require_price_cents
from .errors import NotFoundError
from .pagination import paginate
from .session_service import ActorContext
from .stock_ledger import adjust


PRODUCT_STATUSES = ("active", "inactive")
DISCOUNT_TYPES = ("percentage", "fixed")


@dataclass(frozen=True)
class ProductSnapshot:
    id: int
    name: str
    sku: str
    barcode: str
    cost_price_cents: int
    selling_price_cents: int
    discount_percent: Decimal
    discount_type: str
    tax_percent: Decimal
    stock: int
    status: str

    @property
    def is_active(self) -> bool:
        return self.status == "active"


def snapshot_of(product: Product) -> ProductSnapshot:
    return ProductSnapshot(
        id=product.id,
        name=product.name,
        sku=product.sku,
        barcode=product.barcode,
        cost_price_cents=product.cost_price_cents or 0,
        selling_price_cents=product.selling_price_cents or 0,
        discount_percent=Decimal(product.discount_percent or 0),
        discount_type=product.discount_type,
        tax_percent=Decimal(product.tax_percent or 0),
        stock=product.stock,
        status=product.status,
    )


def find_by_id(product_id: int) -> ProductSnapshot:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found", details={"product_id": product_id})
    return snapshot_of(product)


def find_by_barcode(code: str) -> ProductSnapshot:
    code = (code or "").strip()
    product = db.session.query(Product).filter_by(barcode=code).first() if code else None
    if product is None:
        raise NotFoundError("Product not found", details={"barcode": code})
    return snapshot_of(product)


def find_by_sku(sku: str) -> ProductSnapshot:
    sku = (sku or "").strip().upper()
    product = db.session.query(Product).filter_by(sku=sku).first() if sku else None
    if product is None:
        raise NotFoundError("Product not found", details={"sku": sku})
    return snapshot_of(product)


def search_products(
    term: str | None = None,
    *,
    category: str | None = None,
    status: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> dict:
    """Name/SKU/barcode substring search, alphabetical."""
    query = db.session.query(Product)

    term = (term or "").strip()
    if term:
        like = f"%{term}%"
        query = query.filter(or_(
            Product.name.ilike(like),
            Product.sku.ilike(like),
            Product.barcode.ilike(like),
        ))
    if category:
        query = query.filter(Product.category == category)
    if status:
        query = query.filter(Product.status == status)

    query = query.order_by(Product.name.asc(), Product.id.asc())
    rows, pagination = paginate(query, page, limit)
    return {"items": [p.to_dict() for p in rows], "pagination": pagination}


def get_low_stock_products(limit: int = 50) -> list[Product]:
    """Active products at or below their reorder level, lowest stock first."""
    return (
        db.session.query(Product)
        .filter(Product.status == "active")
        .filter(Product.stock <= Product.reorder_level)
        .order_by(Product.stock.asc(), Product.name.asc())
        .limit(max(1, limit))
        .all()
    )


def list_products() -> list[Product]:
    return db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()


def create_product(
    *,
    name: str,
    sku: str,
    barcode: str,
    category: str,
    selling_price_cents: int,
    cost_price_cents: int = 0,
    tax_percent=0,
    discount_percent=0,
    discount_type: str = "percentage",
    brand: str | None = None,
    reorder_level: int = 10,
    unit: str = "pcs",
    initial_stock: int = 0,
    actor: ActorContext | None = None,
) -> Product:
    """
    Create a product and commit.

    Raises:
        ValidationError: bad prices/percentages, or duplicate SKU/barcode
    """
    name = (name or "").strip()
    sku = (sku or "").strip().upper()
    barcode = (barcode or "").strip()
    if not name or not sku or not barcode:
        raise ValidationError("name, sku and barcode are required")
    if discount_type not in DISCOUNT_TYPES:
        raise ValidationError(f"discount_type must be one of {list(DISCOUNT_TYPES)}")
    if initial_stock < 0:
        raise ValidationError("initial_stock must be >= 0")
    if initial_stock and actor is None:
        raise ValidationError("actor is required to post initial stock")

    product = Product(
        name=name,
        sku=sku,
        barcode=barcode,
        category=(category or "General").strip(),
        brand=brand,
        selling_price_cents=require_price_cents(selling_price_cents, "selling_price_cents"),
        cost_price_cents=require_price_cents(cost_price_cents, "cost_price_cents"),
        tax_percent=require_percent(tax_percent, "tax_percent"),
        discount_percent=require_percent(discount_percent, "discount_percent"),
        discount_type=discount_type,
        stock=0,
        reorder_level=reorder_level,
        unit=unit,
        status="active",
    )
    db.session.add(product)
    try:
        db.session.flush()
        if initial_stock:
            adjust(
                product.id,
                initial_stock,
                "stock_in",
                "Initial stock",
                actor,
                reference_type="adjustment",
                cost_price_cents=product.cost_price_cents,
            )
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError("SKU or barcode already exists", details={"sku": sku, "barcode": barcode})

    return product
