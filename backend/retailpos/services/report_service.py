# Overview: Service-layer operations for sales reporting; aggregates over completed sales.

"""
Sales reports

All figures are read from the frozen sale records (Sale, SaleLine,
SalePayment), never from the live catalog, so a report over a closed period
does not move when prices or costs are edited later. Only sales with status
"completed" are counted. start/end are inclusive bounds on Sale.created_at.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import Sale, SaleLine, SalePayment
from ..validation import ValidationError
from .money import round_cents


def _check_range(start: datetime, end: datetime) -> None:
    if start is None or end is None:
        raise ValidationError("start and end are required")
    if start > end:
        raise ValidationError("start must not be after end")


def _completed_between(start: datetime, end: datetime) -> tuple:
    return (
        Sale.status == "completed",
        Sale.created_at >= start,
        Sale.created_at <= end,
    )


def _percent(part, whole) -> float:
    if not whole:
        return 0.0
    return float(round(Decimal(part) * 100 / Decimal(whole), 2))


def _average_cents(total: int, count: int) -> int:
    if not count:
        return 0
    return round_cents(Decimal(total) / count)


def sales_overview(start: datetime, end: datetime) -> dict:
    """
    Revenue, cost, profit, discount and tax totals for the window.

    revenue_change_percent compares against the window of the same length
    immediately before start (100.0 when there was no previous revenue).
    """
    _check_range(start, end)
    window = _completed_between(start, end)

    totals = db.session.query(
        func.count(Sale.id),
        func.coalesce(func.sum(Sale.grand_total_cents), 0),
        func.coalesce(func.sum(Sale.total_discount_cents), 0),
        func.coalesce(func.sum(Sale.total_tax_cents), 0),
    ).filter(*window).one()
    order_count, revenue, discount, tax = (int(v) for v in totals)

    lines = db.session.query(
        func.coalesce(func.sum(SaleLine.cost_price_cents * SaleLine.quantity), 0),
        func.count(SaleLine.id),
    ).join(Sale, SaleLine.sale_id == Sale.id).filter(*window).one()
    cost, line_count = (int(v) for v in lines)

    previous_start = start - (end - start)
    previous_revenue = int(
        db.session.query(func.coalesce(func.sum(Sale.grand_total_cents), 0))
        .filter(
            Sale.status == "completed",
            Sale.created_at >= previous_start,
            Sale.created_at < start,
        )
        .scalar()
    )

    if previous_revenue:
        revenue_change = _percent(revenue - previous_revenue, previous_revenue)
    else:
        revenue_change = 100.0 if revenue else 0.0

    profit = revenue - cost
    return {
        "total_revenue_cents": revenue,
        "total_cost_cents": cost,
        "total_profit_cents": profit,
        "profit_margin_percent": _percent(profit, revenue),
        "order_count": order_count,
        "line_count": line_count,
        "avg_order_value_cents": _average_cents(revenue, order_count),
        "total_discount_cents": discount,
        "total_tax_cents": tax,
        "previous_revenue_cents": previous_revenue,
        "revenue_change_percent": revenue_change,
    }


def payment_method_summary(start: datetime, end: datetime) -> list[dict]:
    """Tendered amount and payment count per method, largest total first."""
    _check_range(start, end)
    total = func.sum(SalePayment.amount_cents)
    rows = (
        db.session.query(SalePayment.method, total.label("total"), func.count(SalePayment.id))
        .join(Sale, SalePayment.sale_id == Sale.id)
        .filter(*_completed_between(start, end))
        .group_by(SalePayment.method)
        .order_by(total.desc(), SalePayment.method.asc())
        .all()
    )
    return [
        {"method": method, "total_cents": int(amount), "count": int(count)}
        for method, amount, count in rows
    ]


def top_products(start: datetime, end: datetime, limit: int = 10) -> list[dict]:
    """Best sellers by line revenue, using the names and costs frozen on the lines."""
    _check_range(start, end)
    revenue = func.sum(SaleLine.total_cents)
    rows = (
        db.session.query(
            SaleLine.product_id,
            func.max(SaleLine.product_name),
            func.max(SaleLine.product_sku),
            func.sum(SaleLine.quantity),
            revenue.label("revenue"),
            func.sum(SaleLine.total_cents - SaleLine.cost_price_cents * SaleLine.quantity),
        )
        .join(Sale, SaleLine.sale_id == Sale.id)
        .filter(*_completed_between(start, end))
        .group_by(SaleLine.product_id)
        .order_by(revenue.desc(), SaleLine.product_id.asc())
        .limit(max(1, limit))
        .all()
    )
    return [
        {
            "product_id": product_id,
            "name": name,
            "sku": sku,
            "total_sold": int(sold),
            "total_revenue_cents": int(line_revenue),
            "total_profit_cents": int(profit),
        }
        for product_id, name, sku, sold, line_revenue, profit in rows
    ]


def cashier_performance(start: datetime, end: datetime) -> list[dict]:
    _check_range(start, end)
    total = func.sum(Sale.grand_total_cents)
    rows = (
        db.session.query(
            Sale.cashier_id,
            func.max(Sale.cashier_name),
            total.label("total"),
            func.count(Sale.id),
        )
        .filter(*_completed_between(start, end))
        .group_by(Sale.cashier_id)
        .order_by(total.desc(), Sale.cashier_id.asc())
        .all()
    )
    return [
        {
            "cashier_id": cashier_id,
            "name": name,
            "total_sales_cents": int(sales_total),
            "order_count": int(count),
            "avg_order_value_cents": _average_cents(int(sales_total), int(count)),
        }
        for cashier_id, name, sales_total, count in rows
    ]
