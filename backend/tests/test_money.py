"""
Money/tax arithmetic tests.

Verifies:
- Discount applies before tax, both rounded half-up per line
- Sale totals are exact sums of rounded line values
- Change is never negative
"""

from decimal import Decimal

from retailpos.services.money import (
    LineTotals,
    change_due,
    format_cents,
    line_totals,
    points_for,
    sale_totals,
    to_cents,
)


# =============================================================================
# LINE TOTALS
# =============================================================================


class TestLineTotals:

    def test_discount_then_tax(self):
        # 3 x 10.00, 10% off, 5% tax
        totals = line_totals(1000, 3, Decimal("10"), Decimal("5"))
        assert totals == LineTotals(
            subtotal_cents=3000,
            discount_cents=300,
            tax_cents=135,
            total_cents=2835,
        )

    def test_no_discount_no_tax(self):
        totals = line_totals(250, 4)
        assert totals.subtotal_cents == 1000
        assert totals.discount_cents == 0
        assert totals.tax_cents == 0
        assert totals.total_cents == 1000

    def test_discount_rounds_half_up(self):
        # 10% of 5 cents = 0.5 -> 1
        assert line_totals(5, 1, Decimal("10"), 0).discount_cents == 1

    def test_tax_rounds_half_up(self):
        # 10% of 15 cents = 1.5 -> 2
        assert line_totals(15, 1, 0, Decimal("10")).tax_cents == 2

    def test_tax_applies_to_discounted_amount(self):
        totals = line_totals(1999, 1, Decimal("12.5"), Decimal("7.25"))
        # discount 249.875 -> 250; tax on 1749 = 126.8025 -> 127
        assert totals.discount_cents == 250
        assert totals.tax_cents == 127
        assert totals.total_cents == 1999 - 250 + 127

    def test_full_discount(self):
        totals = line_totals(1000, 2, Decimal("100"), Decimal("5"))
        assert totals.total_cents == 0
        assert totals.tax_cents == 0

    def test_float_percent_is_taken_at_face_value(self):
        assert line_totals(1000, 1, 12.5, 0).discount_cents == 125


# =============================================================================
# SALE TOTALS AND CHANGE
# =============================================================================


class TestSaleTotals:

    def test_identity_holds_exactly(self):
        lines = [
            line_totals(1000, 3, Decimal("10"), Decimal("5")),
            line_totals(333, 7, Decimal("3.33"), Decimal("8.25")),
            line_totals(1, 1, Decimal("50"), Decimal("50")),
        ]
        totals = sale_totals(lines)
        assert totals.grand_total_cents == sum(line.total_cents for line in lines)
        assert totals.grand_total_cents == (
            totals.subtotal_cents - totals.total_discount_cents + totals.total_tax_cents
        )

    def test_empty(self):
        totals = sale_totals([])
        assert totals.grand_total_cents == 0

    def test_change_due(self):
        assert change_due(5000, 2835) == 2165

    def test_change_never_negative(self):
        assert change_due(2000, 2835) == 0
        assert change_due(2835, 2835) == 0


# =============================================================================
# HELPERS
# =============================================================================


class TestHelpers:

    def test_to_cents(self):
        assert to_cents("28.35") == 2835
        assert to_cents(Decimal("0.005")) == 1
        assert to_cents(10) == 1000
        assert to_cents(0.1 + 0.2) == 30

    def test_format_cents(self):
        assert format_cents(2835) == "$28.35"
        assert format_cents(5, "€") == "€0.05"
        assert format_cents(-150) == "-$1.50"

    def test_points_for_floors(self):
        assert points_for(2835, 1) == 28
        assert points_for(2835, Decimal("0.5")) == 14
        assert points_for(99, 1) == 0
