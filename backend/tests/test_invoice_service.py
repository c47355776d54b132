"""
Invoice numbering tests.

Verifies:
- Format is {prefix}-{YYMMDD}-{sequence:06d}
- The settings row is created on first use
- The counter only advances on commit
"""

import re
from datetime import date

from retailpos.extensions import db
from retailpos.models import StoreSettings
from retailpos.services.invoice_service import (
    SETTINGS_ID,
    format_invoice_number,
    get_store_settings,
    next_invoice_number,
)


ON = date(2026, 10, 19)


def _next_number_in_db() -> int:
    return (
        db.session.query(StoreSettings.invoice_next_number)
        .filter(StoreSettings.id == SETTINGS_ID)
        .scalar()
    )


class TestFormat:

    def test_format(self):
        assert format_invoice_number("INV", 42, ON) == "INV-261019-000042"

    def test_wide_sequence_is_not_truncated(self):
        assert format_invoice_number("INV", 1234567, ON) == "INV-261019-1234567"


class TestNextInvoiceNumber:

    def test_first_use_creates_settings(self, db_session):
        assert db_session.get(StoreSettings, SETTINGS_ID) is None

        number = next_invoice_number(on_date=ON)
        db_session.commit()

        assert number == "INV-261019-000001"
        assert _next_number_in_db() == 2

    def test_sequence_increments(self, db_session, settings):
        first = next_invoice_number(on_date=ON)
        second = next_invoice_number(on_date=ON)
        db_session.commit()

        assert first == "INV-261019-000001"
        assert second == "INV-261019-000002"
        assert _next_number_in_db() == 3

    def test_uses_stored_prefix(self, db_session, settings):
        settings.invoice_prefix = "POS"
        db_session.commit()

        assert next_invoice_number(on_date=ON) == "POS-261019-000001"

    def test_explicit_prefix_wins(self, db_session, settings):
        assert next_invoice_number("TILL2", on_date=ON) == "TILL2-261019-000001"

    def test_defaults_to_today(self, db_session, settings):
        number = next_invoice_number()
        assert re.fullmatch(r"INV-\d{6}-000001", number)

    def test_rollback_does_not_consume_a_number(self, db_session, settings):
        next_invoice_number(on_date=ON)
        db_session.rollback()

        assert next_invoice_number(on_date=ON) == "INV-261019-000001"
        db_session.commit()
        assert _next_number_in_db() == 2


class TestStoreSettings:

    def test_get_store_settings_is_a_singleton(self, db_session):
        first = get_store_settings()
        db_session.commit()
        second = get_store_settings()

        assert first.id == second.id == SETTINGS_ID
        assert db_session.query(StoreSettings).count() == 1
        assert second.invoice_prefix == "INV"
        assert second.currency_symbol == "$"
