# Overview: Service-layer operations for sales; the checkout transaction coordinator and sale queries.

"""
Sales Service - single-transaction checkout

WHY: A checkout touches stock, the invoice counter, the sale record, the
inventory log, the customer aggregates and the audit trail. All of it is one
SQL transaction: either every effect is committed together or none is
visible. There is no partial sale and no compensation step.

Order inside the transaction:
1. Allocate the invoice number (atomic counter UPDATE).
2. Resolve product snapshots and price every line.
3. Check tender: total paid covers the grand total; only cash may over-tender.
4. Resolve the optional customer snapshot.
5. Insert the sale with its lines and payments.
6. Decrement stock line by line in ascending product id order.
7. Bump customer aggregates (and loyalty points when enabled).
8. Append the audit entry.
9. Commit.

Any exception before the commit rolls everything back, including the
invoice counter. Lost races on locks are retried a bounded number of times.

NOTE: There is no idempotency key. Submitting the same cart twice creates two
sales with two invoice numbers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Customer, Sale, SaleLine, SalePayment
from ..validation import (
    CartLine,
    PaymentInput,
    SaleRequest,
    ValidationError,
    require_percent,
    validate_sale_request,
)
from retailpos.time_utils import utcnow
from .audit_service import append_audit_entry
from .catalog_service import ProductSnapshot, find_by_id
from .concurrency import RETRYABLE_ERRORS, begin_write_transaction, run_with_retry
from .errors import InsufficientStockError, NotFoundError, PosError, TransactionFailedError
from .invoice_service import SettingsInsertRace, get_store_settings, next_invoice_number
from .money import LineTotals, change_due, format_cents, line_totals, points_for, sale_totals
from .pagination import paginate
from .session_service import ActorContext
from .stock_ledger import adjust


@dataclass(frozen=True)
class SaleResult:
    sale_id: int
    invoice_number: str
    grand_total_cents: int
    amount_paid_cents: int
    change_cents: int


@dataclass(frozen=True)
class _PricedLine:
    line_number: int
    quantity: int
    product: ProductSnapshot
    unit_price_cents: int
    discount_percent: Decimal
    tax_percent: Decimal
    totals: LineTotals


def _price_lines(lines: list[CartLine]) -> list[_PricedLine]:
    priced = []
    for number, line in enumerate(lines, start=1):
        product = find_by_id(line.product_id)
        if not product.is_active:
            raise ValidationError(
                f"Product {product.name} is not active",
                details={"product_id": product.id},
            )

        unit_price = (
            line.unit_price_override_cents
            if line.unit_price_override_cents is not None
            else product.selling_price_cents
        )
        discount_percent = require_percent(product.discount_percent, f"{product.sku}.discount_percent")
        tax_percent = require_percent(product.tax_percent, f"{product.sku}.tax_percent")

        priced.append(_PricedLine(
            line_number=number,
            quantity=line.quantity,
            product=product,
            unit_price_cents=unit_price,
            discount_percent=discount_percent,
            tax_percent=tax_percent,
            totals=line_totals(unit_price, line.quantity, discount_percent, tax_percent),
        ))
    return priced


def _check_tender(payments: list[PaymentInput], grand_total_cents: int) -> int:
    amount_paid = sum(p.amount_cents for p in payments)
    if amount_paid < grand_total_cents:
        raise ValidationError(
            "Insufficient payment",
            details={"amount_paid_cents": amount_paid, "grand_total_cents": grand_total_cents},
        )

    non_cash = sum(p.amount_cents for p in payments if p.method != "cash")
    if non_cash > grand_total_cents:
        raise ValidationError(
            "Non-cash payments cannot exceed the sale total",
            details={"non_cash_cents": non_cash, "grand_total_cents": grand_total_cents},
        )
    return amount_paid


def _resolve_customer(customer_id: int | None) -> Customer | None:
    if customer_id is None:
        return None
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found", details={"customer_id": customer_id})
    return customer


def _record_customer_purchase(customer_id: int, grand_total_cents: int, points: int) -> None:
    db.session.execute(
        update(Customer)
        .where(Customer.id == customer_id)
        .values(
            total_purchases=Customer.total_purchases + 1,
            total_spent_cents=Customer.total_spent_cents + grand_total_cents,
            loyalty_points=Customer.loyalty_points + points,
            last_purchase_at=utcnow(),
        )
        .execution_options(synchronize_session=False)
    )


def create_sale(
    *,
    lines: Iterable[CartLine],
    payments: Iterable[PaymentInput],
    actor: ActorContext,
    customer_id: int | None = None,
    notes: str | None = None,
    counter: str | None = None,
) -> SaleResult:
    """
    Run one checkout as a single all-or-nothing unit of work.

    Raises:
        ValidationError: bad cart, inactive product, bad tender
        NotFoundError: unknown product or customer
        InsufficientStockError: a line asks for more than is on hand
        ConcurrentConflictError: still losing lock races after retrying
        TransactionFailedError: any other storage failure
    """
    request = SaleRequest(
        lines=list(lines),
        payments=list(payments),
        customer_id=customer_id,
        notes=notes,
        counter=counter,
    )
    validate_sale_request(request)

    def _op() -> SaleResult:
        begin_write_transaction()

        invoice_number = next_invoice_number()
        settings = get_store_settings()

        priced = _price_lines(request.lines)
        totals = sale_totals(p.totals for p in priced)
        amount_paid = _check_tender(request.payments, totals.grand_total_cents)
        change = change_due(amount_paid, totals.grand_total_cents)

        customer = _resolve_customer(request.customer_id)

        sale = Sale(
            invoice_number=invoice_number,
            subtotal_cents=totals.subtotal_cents,
            total_discount_cents=totals.total_discount_cents,
            total_tax_cents=totals.total_tax_cents,
            grand_total_cents=totals.grand_total_cents,
            amount_paid_cents=amount_paid,
            change_cents=change,
            status="completed",
            customer_id=customer.id if customer else None,
            customer_name=customer.name if customer else None,
            customer_phone=customer.phone if customer else None,
            cashier_id=actor.actor_id,
            cashier_name=actor.actor_name,
            notes=request.notes,
            counter=request.counter,
        )
        for p in priced:
            sale.lines.append(SaleLine(
                line_number=p.line_number,
                product_id=p.product.id,
                product_name=p.product.name,
                product_sku=p.product.sku,
                barcode=p.product.barcode,
                quantity=p.quantity,
                unit_price_cents=p.unit_price_cents,
                cost_price_cents=p.product.cost_price_cents,
                discount_percent=p.discount_percent,
                tax_percent=p.tax_percent,
                subtotal_cents=p.totals.subtotal_cents,
                discount_cents=p.totals.discount_cents,
                tax_cents=p.totals.tax_cents,
                total_cents=p.totals.total_cents,
            ))
        for payment in request.payments:
            sale.payments.append(SalePayment(
                method=payment.method,
                amount_cents=payment.amount_cents,
                reference=payment.reference,
            ))
        db.session.add(sale)
        db.session.flush()

        # Fixed lock order across concurrent sales
        for p in sorted(priced, key=lambda p: (p.product.id, p.line_number)):
            adjust(
                p.product.id,
                -p.quantity,
                "sale",
                f"Sale: {invoice_number}",
                actor,
                reference_type="sale",
                reference_id=sale.id,
                cost_price_cents=p.product.cost_price_cents,
            )

        if customer is not None:
            points = 0
            if settings.enable_loyalty:
                points = points_for(totals.grand_total_cents, settings.loyalty_points_per_currency)
            _record_customer_purchase(customer.id, totals.grand_total_cents, points)

        append_audit_entry(
            actor=actor,
            action="sale",
            entity="Sale",
            entity_id=sale.id,
            description=(
                f"Created sale: {invoice_number} - Total: "
                f"{format_cents(totals.grand_total_cents, settings.currency_symbol)}"
            ),
            metadata={
                "invoice_number": invoice_number,
                "grand_total_cents": totals.grand_total_cents,
                "item_count": len(priced),
                "unit_count": sum(p.quantity for p in priced),
            },
        )

        result = SaleResult(
            sale_id=sale.id,
            invoice_number=invoice_number,
            grand_total_cents=totals.grand_total_cents,
            amount_paid_cents=amount_paid,
            change_cents=change,
        )
        db.session.commit()
        return result

    try:
        result = run_with_retry(
            _op,
            attempts=current_app.config.get("SALE_RETRY_ATTEMPTS", 3),
            backoff_base=current_app.config.get("SALE_RETRY_BACKOFF", 0.1),
            retry_on=RETRYABLE_ERRORS + (SettingsInsertRace,),
        )
    except InsufficientStockError as exc:
        db.session.rollback()
        current_app.logger.warning("Sale rejected by %s: %s", actor.actor_id, exc.message)
        raise
    except PosError:
        db.session.rollback()
        raise
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to process sale")
        raise TransactionFailedError("Failed to process sale")

    current_app.logger.info(
        "Sale %s committed by %s: total=%s paid=%s change=%s",
        result.invoice_number,
        actor.actor_id,
        result.grand_total_cents,
        result.amount_paid_cents,
        result.change_cents,
    )
    return result


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale not found", details={"sale_id": sale_id})
    return sale


def get_sale_by_invoice(invoice_number: str) -> Sale:
    sale = db.session.query(Sale).filter_by(invoice_number=invoice_number).first()
    if sale is None:
        raise NotFoundError("Sale not found", details={"invoice_number": invoice_number})
    return sale


def list_sales(
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    cashier_id: str | None = None,
    customer_id: int | None = None,
    status: str | None = None,
    page: int | None = None,
    limit: int | None = None,
) -> dict:
    """Sales newest first. start/end are inclusive bounds on created_at."""
    query = db.session.query(Sale)
    if start is not None:
        query = query.filter(Sale.created_at >= start)
    if end is not None:
        query = query.filter(Sale.created_at <= end)
    if cashier_id:
        query = query.filter(Sale.cashier_id == cashier_id)
    if customer_id is not None:
        query = query.filter(Sale.customer_id == customer_id)
    if status:
        query = query.filter(Sale.status == status)

    query = query.order_by(Sale.created_at.desc(), Sale.id.desc())
    rows, pagination = paginate(query, page, limit)
    return {"items": [sale.to_dict() for sale in rows], "pagination": pagination}
