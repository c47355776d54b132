# Overview: Service-layer operations for concurrency; transaction opening and bounded retry.

from __future__ import annotations

import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from .errors import ConcurrentConflictError


RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def begin_write_transaction() -> None:
    """
    Open the unit of work for a stock-mutating operation.

    SQLite only takes its write lock at the first write, so two deferred
    transactions can both read and then deadlock on upgrade. BEGIN IMMEDIATE
    takes the write lock up front. Other engines rely on the row locks taken
    by the conditional UPDATEs.
    """
    if db.engine.dialect.name == "sqlite" and not db.session().in_transaction():
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(
    func,
    *,
    attempts: int = 3,
    backoff_base: float = 0.1,
    retry_on: tuple = RETRYABLE_ERRORS,
):
    """
    Execute a DB unit of work with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts) by default. The session is rolled back
    before every retry. When the last attempt fails the race is surfaced as
    ConcurrentConflictError.
    """
    attempts = max(1, attempts)
    for attempt in range(attempts):
        try:
            return func()
        except retry_on as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise ConcurrentConflictError(
                    "Another transaction modified the same records; please retry",
                    details={"attempts": attempts},
                ) from exc
            time.sleep(backoff_base * (2 ** attempt))
