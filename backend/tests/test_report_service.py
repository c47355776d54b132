"""
Sales report tests.

Verifies:
- Overview totals, profit and margin come from the frozen sale lines
- Only completed sales inside the window are counted
- Payment, product and cashier breakdowns
"""

from datetime import timedelta

import pytest
from sqlalchemy import update

from retailpos.models import Sale
from retailpos.services import report_service, sales_service
from retailpos.services.session_service import ActorContext
from retailpos.time_utils import utcnow
from retailpos.validation import CartLine, PaymentInput, ValidationError


def _window():
    now = utcnow()
    return now - timedelta(hours=1), now + timedelta(hours=1)


def _sell(product, quantity, payment, actor):
    return sales_service.create_sale(
        lines=[CartLine(product_id=product.id, quantity=quantity)],
        payments=[payment],
        actor=actor,
    )


@pytest.fixture
def two_sales(db_session, settings, make_product, actor):
    """A: 3 x 10.00 (cost 6.00, 10% off, 5% tax) = 28.35 cash; B: 2 x 5.00 (cost 2.00) = 10.00 card."""
    tea = make_product(name="Tea", stock=10, price_cents=1000, cost_cents=600, discount_percent=10, tax_percent=5)
    mug = make_product(name="Mug", stock=10, price_cents=500, cost_cents=200)
    first = _sell(tea, 3, PaymentInput(method="cash", amount_cents=5000), actor)
    second = _sell(mug, 2, PaymentInput(method="card", amount_cents=1000), actor)
    return tea, mug, first, second


class TestSalesOverview:

    def test_totals(self, db_session, two_sales):
        overview = report_service.sales_overview(*_window())

        assert overview["total_revenue_cents"] == 3835
        assert overview["total_cost_cents"] == 2200
        assert overview["total_profit_cents"] == 1635
        assert overview["profit_margin_percent"] == 42.63
        assert overview["order_count"] == 2
        assert overview["line_count"] == 2
        assert overview["avg_order_value_cents"] == 1918
        assert overview["total_discount_cents"] == 300
        assert overview["total_tax_cents"] == 135
        assert overview["previous_revenue_cents"] == 0
        assert overview["revenue_change_percent"] == 100.0

    def test_refunded_sales_excluded(self, db_session, two_sales):
        _, _, _, second = two_sales
        db_session.get(Sale, second.sale_id).status = "refunded"
        db_session.commit()

        overview = report_service.sales_overview(*_window())

        assert overview["order_count"] == 1
        assert overview["total_revenue_cents"] == 2835

    def test_previous_window_comparison(self, db_session, two_sales):
        _, _, first, _ = two_sales
        start, end = _window()
        db_session.execute(
            update(Sale).where(Sale.id == first.sale_id).values(created_at=start - timedelta(minutes=30))
        )
        db_session.commit()

        overview = report_service.sales_overview(start, end)

        assert overview["total_revenue_cents"] == 1000
        assert overview["previous_revenue_cents"] == 2835
        assert overview["revenue_change_percent"] == -64.73

    def test_empty_window(self, db_session):
        overview = report_service.sales_overview(*_window())

        assert overview["order_count"] == 0
        assert overview["avg_order_value_cents"] == 0
        assert overview["profit_margin_percent"] == 0.0
        assert overview["revenue_change_percent"] == 0.0

    def test_reversed_range_rejected(self, db_session):
        start, end = _window()
        with pytest.raises(ValidationError):
            report_service.sales_overview(end, start)


class TestBreakdowns:

    def test_payment_methods(self, db_session, two_sales):
        summary = report_service.payment_method_summary(*_window())

        assert summary == [
            {"method": "cash", "total_cents": 5000, "count": 1},
            {"method": "card", "total_cents": 1000, "count": 1},
        ]

    def test_top_products(self, db_session, two_sales):
        tea, mug, _, _ = two_sales

        top = report_service.top_products(*_window())

        assert [row["product_id"] for row in top] == [tea.id, mug.id]
        assert top[0]["name"] == "Tea"
        assert top[0]["total_sold"] == 3
        assert top[0]["total_revenue_cents"] == 2835
        assert top[0]["total_profit_cents"] == 1035
        assert top[1]["total_profit_cents"] == 600

    def test_top_products_limit(self, db_session, two_sales):
        assert len(report_service.top_products(*_window(), limit=1)) == 1

    def test_cashier_performance(self, db_session, two_sales, make_product, actor):
        other = ActorContext(actor_id="cashier-2", actor_name="Robin Relief", actor_role="cashier")
        _, mug, _, _ = two_sales
        _sell(mug, 1, PaymentInput(method="cash", amount_cents=500), other)

        rows = report_service.cashier_performance(*_window())

        assert rows == [
            {
                "cashier_id": actor.actor_id,
                "name": actor.actor_name,
                "total_sales_cents": 3835,
                "order_count": 2,
                "avg_order_value_cents": 1918,
            },
            {
                "cashier_id": "cashier-2",
                "name": "Robin Relief",
                "total_sales_cents": 500,
                "order_count": 1,
                "avg_order_value_cents": 500,
            },
        ]
