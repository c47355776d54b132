# Overview: Pure money/tax arithmetic for sale lines and sale totals (no I/O).

"""
Money rules (authoritative)

- All amounts are integer cents. Percentages are Decimal in [0, 100].
- Per line, discount is applied before tax and is always a percentage of the
  line subtotal:
      subtotal = unit_price * quantity
      discount = round(subtotal * discount_percent / 100)
      tax      = round((subtotal - discount) * tax_percent / 100)
      total    = subtotal - discount + tax
- Rounding is to the nearest cent, half-up, applied per line to discount and
  tax. Sale totals are exact sums of the rounded line values, so
  grand_total == subtotal - total_discount + total_tax holds with no residue.
- Inputs are validated at the boundary (validation.py); nothing here raises
  on negative or out-of-range values.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import Iterable

HUNDRED = Decimal(100)


def _dec(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() keeps 12.5 as 12.5 instead of its binary expansion
        return Decimal(str(value))
    return Decimal(value or 0)


def round_cents(value: Decimal) -> int:
    """Nearest-cent rounding (half-up)."""
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class LineTotals:
    subtotal_cents: int
    discount_cents: int
    tax_cents: int
    total_cents: int

    @property
    def after_discount_cents(self) -> int:
        return self.subtotal_cents - self.discount_cents


@dataclass(frozen=True)
class SaleTotals:
    subtotal_cents: int
    total_discount_cents: int
    total_tax_cents: int
    grand_total_cents: int


def line_totals(unit_price_cents: int, quantity: int, discount_percent=0, tax_percent=0) -> LineTotals:
    subtotal = unit_price_cents * quantity
    discount = round_cents(Decimal(subtotal) * _dec(discount_percent) / HUNDRED)
    after_discount = subtotal - discount
    tax = round_cents(Decimal(after_discount) * _dec(tax_percent) / HUNDRED)
    return LineTotals(
        subtotal_cents=subtotal,
        discount_cents=discount,
        tax_cents=tax,
        total_cents=after_discount + tax,
    )


def sale_totals(lines: Iterable[LineTotals]) -> SaleTotals:
    subtotal = discount = tax = total = 0
    for line in lines:
        subtotal += line.subtotal_cents
        discount += line.discount_cents
        tax += line.tax_cents
        total += line.total_cents
    return SaleTotals(
        subtotal_cents=subtotal,
        total_discount_cents=discount,
        total_tax_cents=tax,
        grand_total_cents=total,
    )


def change_due(amount_paid_cents: int, grand_total_cents: int) -> int:
    return max(0, amount_paid_cents - grand_total_cents)


def to_cents(value) -> int:
    """Convert a major-unit amount ("28.35", 28.35, Decimal) to cents, half-up."""
    if isinstance(value, bool):
        raise TypeError("amount must be a number")
    return round_cents(_dec(value) * HUNDRED)


def format_cents(cents: int, symbol: str = "$") -> str:
    sign = "-" if cents < 0 else ""
    return f"{sign}{symbol}{Decimal(abs(cents)) / HUNDRED:.2f}"


def points_for(grand_total_cents: int, points_per_currency) -> int:
    """Whole points earned for a sale: floor(total in major units * rate)."""
    points = Decimal(grand_total_cents) / HUNDRED * _dec(points_per_currency)
    return max(0, int(points.to_integral_value(rounding=ROUND_FLOOR)))
