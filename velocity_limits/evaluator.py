"""Load limit evaluator - the single authority for admission decisions"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from velocity_limits.domain.exceptions import DuplicateKeyError, PersistenceError, StoreUnavailableError
from velocity_limits.domain.ledger import LedgerStore
from velocity_limits.domain.limits import check_limits
from velocity_limits.domain.models import LimitBreach, LimitConfig, LoadAttempt, LoadDecision, LoadRequest, Outcome
from velocity_limits.domain.parsing import validate_request
from velocity_limits.infrastructure.observability.logging import log_decision
from velocity_limits.infrastructure.observability.metrics import (
    evaluation_latency_histogram,
    record_decision,
    store_failures_counter,
)
from velocity_limits.utils.date_utils import day_window, week_window


class CustomerLocks:
    """
    Per-customer mutual exclusion shared by every evaluator in the process.

    A customer's lock lives only while some thread holds or waits on it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._users: Dict[str, int] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, customer_id: str, timeout: float) -> Iterator[None]:
        """
        Serialize work for one customer.

        Raises:
            StoreUnavailableError: If the customer stays locked longer than timeout
        """
        with self._guard:
            lock = self._locks.setdefault(customer_id, threading.Lock())
            self._users[customer_id] = self._users.get(customer_id, 0) + 1

        try:
            if not lock.acquire(timeout=timeout):
                raise StoreUnavailableError(f"Timed out after {timeout}s waiting on customer {customer_id}")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._release_entry(customer_id)

    def _release_entry(self, customer_id: str) -> None:
        with self._guard:
            self._users[customer_id] -= 1
            if not self._users[customer_id]:
                del self._users[customer_id]
                del self._locks[customer_id]


class LoadLimitEvaluator:
    """
    Decide accept/reject/duplicate for load requests and record every decided attempt.

    The evaluator keeps no state of its own; history lives in the ledger store
    and limits are fixed at construction.
    """

    def __init__(
        self,
        store: LedgerStore,
        limits: LimitConfig,
        locks: Optional[CustomerLocks] = None,
        lock_timeout_seconds: float = 5.0,
    ):
        self.store = store
        self.limits = limits
        self.locks = locks if locks is not None else CustomerLocks()
        self.lock_timeout_seconds = lock_timeout_seconds

    def evaluate(self, request: LoadRequest) -> LoadDecision:
        """
        Evaluate one load request.

        Flow:
        1. Validate input (never persisted when invalid)
        2. Under the customer's lock and one store transaction:
           duplicate check, windowed aggregates, limit checks, append
        3. Record metrics and the decision log

        Raises:
            ValidationError: Request violates an input invariant
            PersistenceError: Store read/write failed; no decision was recorded
        """
        validate_request(request)
        start_time = time.perf_counter()

        try:
            with evaluation_latency_histogram.time():
                with self.locks.hold(request.customer_id, self.lock_timeout_seconds):
                    decision = self._evaluate_locked(request)
        except PersistenceError as e:
            store_failures_counter.inc()
            logging.error(
                f"Ledger store error: {e}",
                extra={"load_id": request.load_id, "customer_id": request.customer_id},
            )
            raise

        breached = decision.breached.value if decision.breached else None
        duration_ms = (time.perf_counter() - start_time) * 1000
        record_decision(decision.outcome.value, breached, request.amount)
        log_decision(request.load_id, request.customer_id, decision.outcome.value, breached, duration_ms)

        return decision

    def _evaluate_locked(self, request: LoadRequest) -> LoadDecision:
        try:
            with self.store.transaction():
                if self.store.exists(request.load_id, request.customer_id):
                    return self._decision(request, Outcome.DUPLICATE)

                breached = self._check_limits(request)
                self.store.append(
                    LoadAttempt(
                        load_id=request.load_id,
                        customer_id=request.customer_id,
                        amount=request.amount,
                        occurred_at=request.time,
                        accepted=breached is None,
                    )
                )
        except DuplicateKeyError:
            # Another writer stored this key between our check and our insert
            return self._decision(request, Outcome.DUPLICATE)

        if breached is None:
            return self._decision(request, Outcome.ACCEPTED)
        return self._decision(request, Outcome.REJECTED, breached)

    def _check_limits(self, request: LoadRequest) -> Optional[LimitBreach]:
        day = day_window(request.time)
        week = week_window(request.time)
        accepted_only = not self.limits.count_rejected_attempts
        customer_id = request.customer_id

        logging.debug(
            "Checking limits",
            extra={
                "load_id": request.load_id,
                "customer_id": customer_id,
                "day_start": day.start.isoformat(),
                "week_start": week.start.isoformat(),
            },
        )

        return check_limits(
            request.amount,
            self.limits,
            daily_count=lambda: self.store.count_attempts(customer_id, day.start, day.end, accepted_only),
            daily_total=lambda: self.store.sum_amount(customer_id, day.start, day.end, accepted_only),
            weekly_total=lambda: self.store.sum_amount(customer_id, week.start, week.end, accepted_only),
        )

    @staticmethod
    def _decision(
        request: LoadRequest, outcome: Outcome, breached: Optional[LimitBreach] = None
    ) -> LoadDecision:
        return LoadDecision(
            load_id=request.load_id,
            customer_id=request.customer_id,
            outcome=outcome,
            breached=breached,
        )
