"""Data access layer for the load ledger"""

from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Iterator, List
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from velocity_limits.infrastructure.database.models import CustomerLoad
from velocity_limits.domain.exceptions import DuplicateKeyError, PersistenceError, StoreUnavailableError
from velocity_limits.domain.models import LoadAttempt

CENTS = Decimal("100")


def to_cents(amount: Decimal) -> int:
    """Exact conversion; amounts are validated to at most two decimals upstream"""
    cents = amount * CENTS
    if cents != cents.to_integral_value():
        raise PersistenceError(f"Amount {amount} has sub-cent precision")
    return int(cents)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / CENTS).quantize(Decimal("0.01"))


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Translate driver failures into domain persistence errors"""
    try:
        yield
    except OperationalError as e:
        raise StoreUnavailableError(f"Ledger store unavailable during {operation}: {e}") from e
    except OverflowError as e:
        raise PersistenceError(f"Value out of range for the ledger during {operation}: {e}") from e
    except SQLAlchemyError as e:
        raise PersistenceError(f"Ledger store failed during {operation}: {e}") from e


class SqlLedgerStore:
    """LedgerStore backed by a SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db

    def exists(self, load_id: str, customer_id: str) -> bool:
        with store_errors("exists"):
            row = (
                self.db.query(CustomerLoad.id)
                .filter(CustomerLoad.load_id == load_id, CustomerLoad.customer_id == customer_id)
                .first()
            )
        return row is not None

    def sum_amount(
        self, customer_id: str, start: datetime, end: datetime, accepted_only: bool = False
    ) -> Decimal:
        """Sum of amounts in [start, end]; coalesced to zero when no rows match"""
        with store_errors("sum_amount"):
            query = self.db.query(func.coalesce(func.sum(CustomerLoad.amount_cents), 0))
            cents = self._in_window(query, customer_id, start, end, accepted_only).scalar()
        return from_cents(int(cents))

    def count_attempts(
        self, customer_id: str, start: datetime, end: datetime, accepted_only: bool = False
    ) -> int:
        with store_errors("count_attempts"):
            query = self.db.query(func.count(CustomerLoad.id))
            count = self._in_window(query, customer_id, start, end, accepted_only).scalar()
        return int(count or 0)

    def append(self, attempt: LoadAttempt) -> None:
        """Insert the attempt; the unique key turns a concurrent duplicate into DuplicateKeyError"""
        row = CustomerLoad(
            load_id=attempt.load_id,
            customer_id=attempt.customer_id,
            amount_cents=to_cents(attempt.amount),
            load_time=attempt.occurred_at,
            accepted=attempt.accepted,
        )
        with store_errors("append"):
            try:
                self.db.add(row)
                self.db.flush()  # Surface constraint violations before commit
            except IntegrityError as e:
                raise DuplicateKeyError(attempt.load_id, attempt.customer_id) from e

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Commit the whole duplicate-check/read/append unit, or none of it"""
        try:
            yield
            with store_errors("commit"):
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def list_attempts(self, customer_id: str, limit: int = 20) -> List[LoadAttempt]:
        """Fetch recent attempts for a customer"""
        with store_errors("list_attempts"):
            rows = (
                self.db.query(CustomerLoad)
                .filter(CustomerLoad.customer_id == customer_id)
                .order_by(CustomerLoad.load_time.desc(), CustomerLoad.id.desc())
                .limit(limit)
                .all()
            )
        return [
            LoadAttempt(
                load_id=row.load_id,
                customer_id=row.customer_id,
                amount=from_cents(row.amount_cents),
                occurred_at=row.load_time,
                accepted=row.accepted,
            )
            for row in rows
        ]

    @staticmethod
    def _in_window(query, customer_id: str, start: datetime, end: datetime, accepted_only: bool):
        query = query.filter(
            CustomerLoad.customer_id == customer_id,
            CustomerLoad.load_time >= start,
            CustomerLoad.load_time <= end,
        )
        if accepted_only:
            query = query.filter(CustomerLoad.accepted.is_(True))
        return query
