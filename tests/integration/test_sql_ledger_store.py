"""Integration tests for the SQL ledger store (SQLite)"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from sqlalchemy import Text
from sqlalchemy.orm import Session

from velocity_limits.domain.exceptions import DuplicateKeyError, PersistenceError, ValidationError
from velocity_limits.domain.models import LoadAttempt, Outcome
from velocity_limits.evaluator import LoadLimitEvaluator
from velocity_limits.infrastructure.database.models import CustomerLoad
from velocity_limits.infrastructure.database.repositories import SqlLedgerStore, from_cents, to_cents

UTC = timezone.utc
DAY_START = datetime(2025, 2, 10, tzinfo=UTC)
DAY_END = DAY_START + timedelta(days=1) - timedelta(microseconds=1)


def attempt(load_id: str, amount: str, occurred_at: datetime, accepted: bool = True):
    return LoadAttempt(load_id, "1234", Decimal(amount), occurred_at, accepted)


def append_committed(store: SqlLedgerStore, *attempts: LoadAttempt) -> None:
    with store.transaction():
        for a in attempts:
            store.append(a)


def test_cents_conversion_is_exact():
    assert to_cents(Decimal("3318.47")) == 331847
    assert from_cents(331847) == Decimal("3318.47")
    assert from_cents(0) == Decimal("0.00")


def test_empty_sum_is_exact_zero(db: Session):
    store = SqlLedgerStore(db)

    total = store.sum_amount("1234", DAY_START, DAY_END)

    assert total == Decimal("0.00")
    assert isinstance(total, Decimal)
    assert store.count_attempts("1234", DAY_START, DAY_END) == 0


def test_window_bounds_are_inclusive(db: Session):
    store = SqlLedgerStore(db)
    append_committed(
        store,
        attempt("start", "0.10", DAY_START),
        attempt("end", "0.20", DAY_END),
        attempt("after", "0.40", DAY_END + timedelta(microseconds=1)),
        attempt("before", "0.80", DAY_START - timedelta(microseconds=1)),
    )

    assert store.sum_amount("1234", DAY_START, DAY_END) == Decimal("0.30")
    assert store.count_attempts("1234", DAY_START, DAY_END) == 2


def test_offset_timestamps_are_compared_as_instants(db: Session):
    """02:00 at +03:00 is 23:00Z the previous day"""
    store = SqlLedgerStore(db)
    plus_three = timezone(timedelta(hours=3))
    append_committed(store, attempt("1", "5.00", datetime(2025, 2, 11, 2, 0, tzinfo=plus_three)))

    assert store.count_attempts("1234", DAY_START, DAY_END) == 1
    [recorded] = store.list_attempts("1234")
    assert recorded.occurred_at == datetime(2025, 2, 10, 23, 0, tzinfo=UTC)


def test_accepted_only_filter(db: Session):
    store = SqlLedgerStore(db)
    append_committed(
        store,
        attempt("1", "1.00", DAY_START, accepted=True),
        attempt("2", "5.00", DAY_START, accepted=False),
    )

    assert store.sum_amount("1234", DAY_START, DAY_END) == Decimal("6.00")
    assert store.sum_amount("1234", DAY_START, DAY_END, accepted_only=True) == Decimal("1.00")
    assert store.count_attempts("1234", DAY_START, DAY_END, accepted_only=True) == 1


def test_duplicate_key_raises_and_rolls_back(db: Session):
    store = SqlLedgerStore(db)
    append_committed(store, attempt("1", "1.00", DAY_START))

    with pytest.raises(DuplicateKeyError):
        append_committed(store, attempt("1", "9.00", DAY_START))

    # Session is usable again after the rollback
    assert store.exists("1", "1234")
    assert store.sum_amount("1234", DAY_START, DAY_END) == Decimal("1.00")


def test_evaluator_over_sql_store(db: Session, limits, make_request):
    evaluator = LoadLimitEvaluator(SqlLedgerStore(db), limits)

    outcomes = [
        evaluator.evaluate(make_request(str(i), "10.00", "2025-02-10T00:00:00Z")).outcome
        for i in range(1, 5)
    ]
    duplicate = evaluator.evaluate(make_request("1", "10.00", "2025-02-10T00:00:00Z"))

    assert outcomes == [Outcome.ACCEPTED, Outcome.ACCEPTED, Outcome.ACCEPTED, Outcome.REJECTED]
    assert duplicate.outcome is Outcome.DUPLICATE
    assert len(SqlLedgerStore(db).list_attempts("1234")) == 4


def test_oversized_amount_is_rejected_before_reaching_the_store(db: Session, limits, make_request):
    store = SqlLedgerStore(db)
    evaluator = LoadLimitEvaluator(store, limits)

    with pytest.raises(ValidationError):
        evaluator.evaluate(make_request("1", "100000000000000000000", "2025-02-10T00:00:00Z"))

    assert store.list_attempts("1234") == []


def test_out_of_range_amount_surfaces_as_persistence_error(db: Session):
    store = SqlLedgerStore(db)

    with pytest.raises(PersistenceError):
        append_committed(store, attempt("1", "100000000000000000000", DAY_START))

    # Rolled back; the session still serves reads
    assert store.count_attempts("1234", DAY_START, DAY_END) == 0


def test_identifiers_have_no_length_cap(db: Session):
    assert isinstance(CustomerLoad.__table__.c.load_id.type, Text)
    assert isinstance(CustomerLoad.__table__.c.customer_id.type, Text)

    store = SqlLedgerStore(db)
    load_id = "L" * 300
    append_committed(store, LoadAttempt(load_id, "C" * 300, Decimal("1.00"), DAY_START, True))

    assert store.exists(load_id, "C" * 300)
