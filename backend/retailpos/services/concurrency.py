# Overview: Write-serialization and retry helpers shared by checkout and catalog services.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConcurrencyConflict
from ..extensions import db

RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def begin_write_transaction() -> None:
    """
    Open the session's transaction as a writer.

    SQLite has no row locks: BEGIN IMMEDIATE takes the database write lock up
    front, so concurrent checkouts are serialized for their whole
    validate+commit window. Other dialects rely on lock_for_update() rows.
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float | None = None, retry_on=RETRYABLE_ERRORS):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, busy database) and StaleDataError
    (optimistic locking conflicts) by default. Once attempts are exhausted the
    conflict surfaces as ConcurrencyConflict; nothing from a failed attempt
    stays applied because each failure rolls the session back.
    """
    if attempts is None:
        attempts = current_app.config.get("CHECKOUT_RETRY_ATTEMPTS", 3)
    if backoff_base is None:
        backoff_base = current_app.config.get("CHECKOUT_RETRY_BACKOFF", 0.05)

    for attempt in range(attempts):
        try:
            return func()
        except retry_on as exc:
            db.session.rollback()
            current_app.logger.warning(
                "Concurrent write conflict (attempt %d/%d): %s", attempt + 1, attempts, exc.__class__.__name__
            )
            if attempt >= attempts - 1:
                raise ConcurrencyConflict(
                    "Concurrent update conflict, please retry",
                    details={"attempts": attempts},
                ) from exc
            time.sleep(backoff_base * (2 ** attempt))


def run_checkout_with_retry(func):
    """Checkout also retries invoice_no collisions (unique constraint)."""
    return run_with_retry(func, retry_on=RETRYABLE_ERRORS + (IntegrityError,))
