"""
Customer service tests.

Verifies:
- Creation with audit entry, unique phone
- Search by name or phone, lookup by id
"""

import pytest

from retailpos.models import AuditLogEntry, Customer
from retailpos.services import customer_service
from retailpos.services.errors import NotFoundError
from retailpos.validation import CustomerInput, ValidationError


class TestCreateCustomer:

    def test_create(self, db_session, actor):
        customer = customer_service.create_customer(
            CustomerInput(name="  Ada Shopper ", phone=" 555-0199 ", email="ada@example.com"),
            actor,
        )

        assert customer.id is not None
        assert customer.name == "Ada Shopper"
        assert customer.phone == "555-0199"
        assert customer.total_purchases == 0
        assert customer.loyalty_points == 0

        audit = db_session.query(AuditLogEntry).one()
        assert audit.action == "create"
        assert audit.entity == "Customer"
        assert audit.entity_id == customer.id
        assert audit.description == "Created customer: Ada Shopper"

    def test_duplicate_phone_rejected(self, db_session, customer, actor):
        with pytest.raises(ValidationError) as exc_info:
            customer_service.create_customer(CustomerInput(name="Someone Else", phone=customer.phone), actor)

        assert exc_info.value.details["customer_id"] == customer.id
        assert db_session.query(Customer).count() == 1
        assert db_session.query(AuditLogEntry).count() == 0

    @pytest.mark.parametrize(
        "data",
        [
            CustomerInput(name="", phone="555-0101"),
            CustomerInput(name="No Phone", phone="  "),
            CustomerInput(name="Bad Mail", phone="555-0102", email="not-an-email"),
        ],
    )
    def test_invalid_input(self, db_session, actor, data):
        with pytest.raises(ValidationError):
            customer_service.create_customer(data, actor)
        assert db_session.query(Customer).count() == 0


class TestFindCustomers:

    def test_search_by_name_or_phone(self, db_session, customer, actor):
        customer_service.create_customer(CustomerInput(name="Ben Buyer", phone="777-1234"), actor)

        by_name = customer_service.search_customers("dana")
        by_phone = customer_service.search_customers("777")
        everyone = customer_service.search_customers()

        assert [row["name"] for row in by_name["items"]] == ["Dana Customer"]
        assert [row["name"] for row in by_phone["items"]] == ["Ben Buyer"]
        # Sorted by name
        assert [row["name"] for row in everyone["items"]] == ["Ben Buyer", "Dana Customer"]
        assert everyone["pagination"]["total"] == 2

    def test_get_customer(self, db_session, customer):
        assert customer_service.get_customer(customer.id).phone == "555-0100"

    def test_get_missing_customer(self, db_session):
        with pytest.raises(NotFoundError):
            customer_service.get_customer(9999)
