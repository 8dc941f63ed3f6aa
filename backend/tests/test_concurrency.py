# Overview: Pytest coverage for the unit-of-work retry helper.

import pytest
from sqlalchemy.orm.exc import StaleDataError

from shoppos.models import Product
from shoppos.services.concurrency import run_with_retry


def test_retries_stale_data_then_succeeds(db_session):
    calls = []

    def _op():
        calls.append(1)
        if len(calls) < 3:
            raise StaleDataError("version_id mismatch")
        return "done"

    assert run_with_retry(_op, backoff_base=0) == "done"
    assert len(calls) == 3


def test_gives_up_after_attempts(db_session):
    def _op():
        raise StaleDataError("version_id mismatch")

    with pytest.raises(StaleDataError):
        run_with_retry(_op, attempts=2, backoff_base=0)


def test_other_errors_roll_back_pending_rows(db_session):
    def _op():
        db_session.add(Product(name="Half written", sale_price_cents=100))
        db_session.flush()
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        run_with_retry(_op)

    assert db_session.query(Product).count() == 0
