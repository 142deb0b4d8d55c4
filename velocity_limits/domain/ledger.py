"""Ledger store contract the limit evaluator depends on"""

from datetime import datetime
from decimal import Decimal
from typing import ContextManager, List, Protocol

from velocity_limits.domain.models import LoadAttempt


class LedgerStore(Protocol):
    """
    Durable record of every load attempt, keyed by (load_id, customer_id).

    Range queries are inclusive of both start and end. Aggregates over no
    rows return exact zero, never None.
    """

    def exists(self, load_id: str, customer_id: str) -> bool: ...

    def sum_amount(
        self, customer_id: str, start: datetime, end: datetime, accepted_only: bool = False
    ) -> Decimal: ...

    def count_attempts(
        self, customer_id: str, start: datetime, end: datetime, accepted_only: bool = False
    ) -> int: ...

    def append(self, attempt: LoadAttempt) -> None:
        """Raises DuplicateKeyError if the key exists, PersistenceError on other failures"""
        ...

    def transaction(self) -> ContextManager[None]:
        """Atomic scope: commit on success, roll back on any exception"""
        ...

    def list_attempts(self, customer_id: str, limit: int = 20) -> List[LoadAttempt]: ...
