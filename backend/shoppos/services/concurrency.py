# backend/shoppos/services/concurrency.py
"""
Unit-of-work helpers shared by every writing service.

Pattern used throughout:

    def _op():
        ...mutate...
        finish(commit)
        return result

    if not commit:
        return _op()          # caller owns the transaction
    return run_with_retry(_op)
"""
from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

RETRY_ATTEMPTS = 3
RETRY_BACKOFF_SECONDS = 0.1

_RETRYABLE = (OperationalError, StaleDataError)


def lock_for_update(query):
    """SELECT ... FOR UPDATE. SQLite ignores it; its writes are serialized anyway."""
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = RETRY_ATTEMPTS, backoff_base: float = RETRY_BACKOFF_SECONDS):
    """
    Run one unit of work, re-running it from scratch after a lock timeout,
    deadlock or version_id conflict.

    Every failure rolls the session back first. Non-retryable errors and
    the last retryable one propagate unchanged.
    """
    attempt = 0
    while True:
        try:
            return func()
        except _RETRYABLE:
            db.session.rollback()
            attempt += 1
            if attempt >= attempts:
                raise
            time.sleep(backoff_base * (2 ** (attempt - 1)))
        except Exception:
            db.session.rollback()
            raise


def finish(commit: bool) -> None:
    """Commit, or only flush when an outer caller commits."""
    if commit:
        db.session.commit()
    else:
        db.session.flush()
