"""
Concurrent checkout tests.

Runs real threads against the file-backed test database, each with its own
app context (and therefore its own session and connection).

Verifies:
- Two cashiers racing for the last unit: exactly one sale commits
- Stock never goes negative and the log matches the committed sales
- Invoice numbers are pairwise distinct and gap-free across racing sales
- Racing manual adjustments: stock equals the opening stock plus the
  committed deltas and never goes negative
"""

import threading

from retailpos.extensions import db
from retailpos.models import InventoryLogEntry, Sale
from retailpos.services import sales_service
from retailpos.services.concurrency import begin_write_transaction
from retailpos.services.inventory_service import adjust_inventory
from retailpos.services.errors import ConcurrentConflictError, InsufficientStockError
from retailpos.services.session_service import ActorContext
from retailpos.validation import AdjustmentRequest, CartLine, PaymentInput

from conftest import stock_of


def _race(app, product_id, workers, quantity=1):
    """Start `workers` checkouts at the same instant; return their outcomes."""
    barrier = threading.Barrier(workers)
    outcomes = []
    lock = threading.Lock()

    def _checkout(n):
        cashier = ActorContext(actor_id=f"cashier-{n}", actor_name=f"Cashier {n}", actor_role="cashier")
        with app.app_context():
            barrier.wait()
            try:
                result = sales_service.create_sale(
                    lines=[CartLine(product_id=product_id, quantity=quantity)],
                    payments=[PaymentInput(method="cash", amount_cents=100_000)],
                    actor=cashier,
                )
                outcome = ("committed", result.invoice_number)
            except InsufficientStockError:
                outcome = ("out_of_stock", None)
            except ConcurrentConflictError:
                outcome = ("conflict", None)
            with lock:
                outcomes.append(outcome)

    threads = [threading.Thread(target=_checkout, args=(n,)) for n in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    return outcomes


def _race_adjustments(app, product_id, requests):
    """Run one manual adjustment per (action, quantity) at the same instant."""
    barrier = threading.Barrier(len(requests))
    committed = []
    rejected = []
    lock = threading.Lock()

    def _adjust(n, action, quantity):
        clerk = ActorContext(actor_id=f"clerk-{n}", actor_name=f"Clerk {n}", actor_role="manager")
        with app.app_context():
            barrier.wait()
            try:
                movement = adjust_inventory(
                    AdjustmentRequest(
                        product_id=product_id,
                        action=action,
                        quantity=quantity,
                        reason="Cycle count",
                    ),
                    clerk,
                )
                delta = movement.quantity_after - movement.quantity_before
                with lock:
                    committed.append(delta)
            except (InsufficientStockError, ConcurrentConflictError):
                with lock:
                    rejected.append((action, quantity))

    threads = [
        threading.Thread(target=_adjust, args=(n, action, quantity))
        for n, (action, quantity) in enumerate(requests)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    return committed, rejected


class TestConcurrentCheckout:

    def test_last_unit_sold_once(self, app, db_session, settings, make_product):
        product = make_product(stock=1)
        product_id = product.id
        db_session.commit()

        outcomes = _race(app, product_id, workers=2)

        kinds = sorted(kind for kind, _ in outcomes)
        assert kinds == ["committed", "out_of_stock"]
        assert stock_of(product_id) == 0
        assert db_session.query(Sale).count() == 1
        assert db_session.query(InventoryLogEntry).filter_by(product_id=product_id).count() == 1

    def test_many_cashiers_never_oversell(self, app, db_session, settings, make_product):
        product = make_product(stock=5)
        product_id = product.id
        db_session.commit()

        outcomes = _race(app, product_id, workers=8)

        committed = [invoice for kind, invoice in outcomes if kind == "committed"]
        assert len(outcomes) == 8
        assert len(committed) == 5
        assert stock_of(product_id) == 0

        # Distinct and gap-free: 000001..000005 in some order
        sequences = sorted(int(invoice.rsplit("-", 1)[1]) for invoice in committed)
        assert sequences == [1, 2, 3, 4, 5]

        entries = db.session.query(InventoryLogEntry).filter_by(product_id=product_id).all()
        assert sum(e.quantity_change for e in entries) == -5
        assert all(e.quantity_after >= 0 for e in entries)

    def test_multi_unit_carts(self, app, db_session, settings, make_product):
        product = make_product(stock=7)
        product_id = product.id
        db_session.commit()

        outcomes = _race(app, product_id, workers=4, quantity=2)

        committed = [kind for kind, _ in outcomes if kind == "committed"]
        assert len(committed) == 3
        assert stock_of(product_id) == 1

    def test_two_sales_of_three_against_five(self, app, db_session, settings, make_product):
        product = make_product(stock=5)
        product_id = product.id
        db_session.commit()

        outcomes = _race(app, product_id, workers=2, quantity=3)

        kinds = sorted(kind for kind, _ in outcomes)
        assert kinds == ["committed", "out_of_stock"]
        assert stock_of(product_id) == 2

        entry = db.session.query(InventoryLogEntry).filter_by(product_id=product_id).one()
        assert (entry.quantity_before, entry.quantity_change, entry.quantity_after) == (5, -3, 2)


class TestConcurrentAdjustments:

    def test_mixed_adjustments_balance(self, app, db_session, make_product):
        product = make_product(stock=3)
        product_id = product.id
        db_session.commit()

        requests = [("stock_in", 5)] * 3 + [("stock_out", 4)] * 4 + [("damage", 2)] * 2
        committed, rejected = _race_adjustments(app, product_id, requests)

        assert len(committed) + len(rejected) == len(requests)
        final = stock_of(product_id)
        assert final == 3 + sum(committed)
        assert final >= 0

        entries = db.session.query(InventoryLogEntry).filter_by(product_id=product_id).all()
        assert len(entries) == len(committed)
        assert sorted(e.quantity_change for e in entries) == sorted(committed)
        assert all(e.quantity_after >= 0 for e in entries)
        assert all(e.quantity_after == e.quantity_before + e.quantity_change for e in entries)

    def test_inbound_only_all_commit(self, app, db_session, make_product):
        product = make_product(stock=0)
        product_id = product.id
        db_session.commit()

        committed, rejected = _race_adjustments(app, product_id, [("stock_in", 2)] * 6)

        assert rejected == []
        assert stock_of(product_id) == 12


class TestBeginWriteTransaction:

    def test_opens_transaction_on_fresh_session(self, app, db_session):
        with app.app_context():
            assert not db.session().in_transaction()

            begin_write_transaction()

            assert db.session().in_transaction()
            db.session.rollback()
