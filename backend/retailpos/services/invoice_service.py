# Overview: Service-layer operations for invoice numbering and the store settings singleton.

from __future__ import annotations

from datetime import date

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import StoreSettings
from retailpos.time_utils import utcnow, yymmdd


SETTINGS_ID = 1


class SettingsInsertRace(Exception):
    """Another transaction inserted the settings row first. Retry the unit of work."""


def format_invoice_number(prefix: str, sequence: int, on_date: date) -> str:
    """e.g. ("INV", 42, 2026-10-19) -> "INV-261019-000042"."""
    return f"{prefix}-{yymmdd(on_date)}-{sequence:06d}"


def _insert_settings(settings: StoreSettings) -> None:
    db.session.add(settings)
    try:
        db.session.flush()
    except IntegrityError as exc:
        raise SettingsInsertRace("store settings row was created concurrently") from exc


def _new_settings(**overrides) -> StoreSettings:
    values = {
        "id": SETTINGS_ID,
        "invoice_prefix": current_app.config.get("INVOICE_PREFIX", "INV"),
        "invoice_next_number": 1,
    }
    values.update(overrides)
    return StoreSettings(**values)


def get_store_settings() -> StoreSettings:
    """Return the settings singleton, creating (and flushing) it on first use."""
    settings = db.session.get(StoreSettings, SETTINGS_ID)
    if settings is None:
        settings = _new_settings()
        _insert_settings(settings)
    return settings


def next_invoice_number(prefix: str | None = None, *, on_date: date | None = None) -> str:
    """
    Allocate the next invoice number inside the caller's transaction.

    The counter advances with a single atomic UPDATE and is read back in the
    same transaction; the allocated sequence is the pre-increment value. The
    increment only becomes durable when the caller commits, so an aborted sale
    leaves the counter untouched.

    Never commits. A concurrent first-use insert of the settings row surfaces
    as SettingsInsertRace; callers retry the whole unit of work.
    """
    stmt = (
        update(StoreSettings)
        .where(StoreSettings.id == SETTINGS_ID)
        .values(invoice_next_number=StoreSettings.invoice_next_number + 1)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)

    if result.rowcount:
        row = (
            db.session.query(StoreSettings.invoice_next_number, StoreSettings.invoice_prefix)
            .filter(StoreSettings.id == SETTINGS_ID)
            .one()
        )
        sequence = row.invoice_next_number - 1
        stored_prefix = row.invoice_prefix
    else:
        settings = _new_settings(invoice_next_number=2)
        _insert_settings(settings)
        sequence = 1
        stored_prefix = settings.invoice_prefix

    return format_invoice_number(prefix or stored_prefix, sequence, on_date or utcnow().date())
