"""In-memory ledger store, the reference implementation of the LedgerStore contract"""

import threading
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterator, List, Tuple

from velocity_limits.domain.exceptions import DuplicateKeyError
from velocity_limits.domain.models import LoadAttempt


class InMemoryLedgerStore:
    """Thread-safe map of (load_id, customer_id) -> LoadAttempt"""

    def __init__(self):
        self._attempts: Dict[Tuple[str, str], LoadAttempt] = {}
        self._lock = threading.Lock()
        self._local = threading.local()

    def exists(self, load_id: str, customer_id: str) -> bool:
        with self._lock:
            return (load_id, customer_id) in self._attempts

    def sum_amount(
        self, customer_id: str, start: datetime, end: datetime, accepted_only: bool = False
    ) -> Decimal:
        """Sum of amounts in [start, end]; Decimal("0.00") when nothing matches"""
        return sum(
            (a.amount for a in self._matching(customer_id, start, end, accepted_only)),
            Decimal("0.00"),
        )

    def count_attempts(
        self, customer_id: str, start: datetime, end: datetime, accepted_only: bool = False
    ) -> int:
        return len(self._matching(customer_id, start, end, accepted_only))

    def append(self, attempt: LoadAttempt) -> None:
        key = (attempt.load_id, attempt.customer_id)
        with self._lock:
            if key in self._attempts:
                raise DuplicateKeyError(attempt.load_id, attempt.customer_id)
            self._attempts[key] = attempt

        staged = getattr(self._local, "staged", None)
        if staged is not None:
            staged.append(key)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Discard attempts appended inside the scope if it exits with an error"""
        self._local.staged = []
        try:
            yield
        except Exception:
            with self._lock:
                for key in self._local.staged:
                    self._attempts.pop(key, None)
            raise
        finally:
            self._local.staged = None

    def list_attempts(self, customer_id: str, limit: int = 20) -> List[LoadAttempt]:
        """Most recent attempts first"""
        with self._lock:
            attempts = [a for a in self._attempts.values() if a.customer_id == customer_id]
        attempts.sort(key=lambda a: a.occurred_at, reverse=True)
        return attempts[:limit]

    def _matching(
        self, customer_id: str, start: datetime, end: datetime, accepted_only: bool
    ) -> List[LoadAttempt]:
        with self._lock:
            return [
                a
                for a in self._attempts.values()
                if a.customer_id == customer_id
                and start <= a.occurred_at <= end
                and (a.accepted or not accepted_only)
            ]
