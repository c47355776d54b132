"""
Manual inventory adjustment tests.

Verifies:
- Direction per action (stock_in adds, everything else removes)
- Reason is mandatory, cost price is recorded
- Each adjustment writes one log row and one audit entry
- Log listing is newest first and paginated
"""

import pytest

from retailpos.models import AuditLogEntry, InventoryLogEntry
from retailpos.services.errors import InsufficientStockError, NotFoundError
from retailpos.services.inventory_service import adjust_inventory, list_inventory_logs
from retailpos.validation import AdjustmentRequest, ValidationError

from conftest import stock_of


def _request(product_id, action, quantity, reason="Shelf check", cost=None):
    return AdjustmentRequest(
        product_id=product_id,
        action=action,
        quantity=quantity,
        reason=reason,
        cost_price_cents=cost,
    )


class TestAdjustInventory:

    def test_damage_removes_stock(self, db_session, make_product, actor):
        product = make_product(stock=10)

        movement = adjust_inventory(_request(product.id, "damage", 2, reason="Broken"), actor)

        assert (movement.quantity_before, movement.quantity_after) == (10, 8)
        assert stock_of(product.id) == 8

        entry = db_session.query(InventoryLogEntry).one()
        assert entry.action == "damage"
        assert entry.quantity_change == -2
        assert entry.reason == "Broken"
        assert entry.reference_type == "adjustment"

    def test_stock_in_adds_stock(self, db_session, make_product, actor):
        product = make_product(stock=1)

        movement = adjust_inventory(_request(product.id, "stock_in", 24, cost=450), actor)

        assert movement.quantity_after == 25
        entry = db_session.query(InventoryLogEntry).one()
        assert entry.quantity_change == 24
        assert entry.cost_price_cents == 450

    def test_cost_price_defaults_to_product_cost(self, db_session, make_product, actor):
        product = make_product(stock=0, cost_cents=600)

        adjust_inventory(_request(product.id, "stock_in", 2), actor)

        entry = db_session.query(InventoryLogEntry).one()
        assert entry.cost_price_cents == 600

    @pytest.mark.parametrize("action", ["stock_out", "adjustment", "damage", "expired"])
    def test_outbound_actions_remove_stock(self, db_session, make_product, actor, action):
        product = make_product(stock=5)

        movement = adjust_inventory(_request(product.id, action, 3), actor)

        assert movement.quantity_after == 2

    def test_writes_audit_entry(self, db_session, make_product, actor):
        product = make_product(stock=5)

        adjust_inventory(_request(product.id, "expired", 1, reason="Past date"), actor)

        audit = db_session.query(AuditLogEntry).one()
        assert audit.action == "stock_adjustment"
        assert audit.entity == "Product"
        assert audit.entity_id == product.id
        assert audit.actor_id == actor.actor_id
        assert audit.metadata_json["quantity_change"] == -1

    def test_reason_is_required(self, db_session, make_product, actor):
        product = make_product(stock=5)

        with pytest.raises(ValidationError):
            adjust_inventory(_request(product.id, "damage", 1, reason="   "), actor)

        assert stock_of(product.id) == 5

    def test_sale_is_not_a_manual_action(self, db_session, make_product, actor):
        product = make_product(stock=5)

        with pytest.raises(ValidationError):
            adjust_inventory(_request(product.id, "sale", 1), actor)

    def test_cannot_remove_more_than_on_hand(self, db_session, make_product, actor):
        product = make_product(stock=1)

        with pytest.raises(InsufficientStockError):
            adjust_inventory(_request(product.id, "damage", 2), actor)

        assert stock_of(product.id) == 1
        assert db_session.query(InventoryLogEntry).count() == 0
        assert db_session.query(AuditLogEntry).count() == 0

    def test_unknown_product(self, db_session, actor):
        with pytest.raises(NotFoundError):
            adjust_inventory(_request(424242, "stock_in", 1), actor)


class TestListInventoryLogs:

    def test_newest_first_with_pagination(self, db_session, make_product, actor):
        product = make_product(stock=10)
        for qty in (1, 2, 3):
            adjust_inventory(_request(product.id, "stock_out", qty), actor)

        page1 = list_inventory_logs(product_id=product.id, limit=2)
        page2 = list_inventory_logs(product_id=product.id, page=2, limit=2)

        assert page1["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
        assert [row["quantity_change"] for row in page1["items"]] == [-3, -2]
        assert [row["quantity_change"] for row in page2["items"]] == [-1]

    def test_filter_by_action(self, db_session, make_product, actor):
        product = make_product(stock=10)
        adjust_inventory(_request(product.id, "stock_in", 5), actor)
        adjust_inventory(_request(product.id, "damage", 1), actor)

        result = list_inventory_logs(action="damage")

        assert result["pagination"]["total"] == 1
        assert result["items"][0]["action"] == "damage"

    def test_bounds_are_inclusive(self, db_session, make_product, actor):
        product = make_product(stock=10)
        movement = adjust_inventory(_request(product.id, "damage", 1), actor)
        created_at = movement.entry.created_at

        result = list_inventory_logs(start=created_at, end=created_at)

        assert result["pagination"]["total"] == 1
