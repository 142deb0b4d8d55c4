"""GET /v1/loads/history - Fetch a customer's recorded load attempts"""

from fastapi import APIRouter, Depends, HTTPException, Query

from velocity_limits.api.v1.schemas import HistoryResponse, HistoryItem
from velocity_limits.api.dependencies import get_ledger_store
from velocity_limits.domain.exceptions import PersistenceError
from velocity_limits.infrastructure.database.repositories import SqlLedgerStore

router = APIRouter()


@router.get("/loads/history", response_model=HistoryResponse)
def get_load_history(
    customer_id: str = Query(..., min_length=1, description="Customer identifier"),
    limit: int = Query(20, ge=1, le=200),
    store: SqlLedgerStore = Depends(get_ledger_store),
):
    """
    Retrieve recent load attempts for a customer.

    Returns:
        Accepted and rejected attempts, most recent first
    """
    try:
        attempts = store.list_attempts(customer_id, limit=limit)
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Ledger store unavailable")

    history_items = [
        HistoryItem(
            id=a.load_id,
            amount=str(a.amount),
            time=a.occurred_at.isoformat(),
            accepted=a.accepted,
        )
        for a in attempts
    ]

    return HistoryResponse(customer_id=customer_id, loads=history_items)
