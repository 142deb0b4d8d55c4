"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from velocity_limits.config import settings
from velocity_limits.evaluator import CustomerLocks, LoadLimitEvaluator
from velocity_limits.infrastructure.database.repositories import SqlLedgerStore
from velocity_limits.infrastructure.database.session import get_db

# One lock registry per process so concurrent requests for a customer serialize
customer_locks = CustomerLocks()


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_ledger_store(db: Session = Depends(get_db)) -> SqlLedgerStore:
    """Provide the SQL-backed ledger store for this request's session"""
    return SqlLedgerStore(db)


def get_evaluator(store: SqlLedgerStore = Depends(get_ledger_store)) -> LoadLimitEvaluator:
    """Provide a limit evaluator bound to the request's store"""
    return LoadLimitEvaluator(
        store,
        settings.limit_config(),
        locks=customer_locks,
        lock_timeout_seconds=settings.lock_timeout_seconds,
    )
