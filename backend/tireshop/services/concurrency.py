# Overview: Retry and locking helpers for write paths that race across terminals.

from __future__ import annotations

import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def begin_write_transaction() -> None:
    """
    Open the current transaction in write mode.

    SQLite only takes the write lock on the first write statement, which lets two
    terminals validate against the same snapshot. BEGIN IMMEDIATE takes it up
    front so settlements serialize. Other databases rely on row locks instead.
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run a write, retrying when the database was busy.

    Retries on OperationalError (SQLite "database is locked", deadlocks) and
    StaleDataError. The session is rolled back before each retry, so func
    must redo all of its work.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc
