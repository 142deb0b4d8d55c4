"""POST /v1/loads - velocity limit admission endpoint"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from velocity_limits.api.v1.schemas import LoadRequestBody, LoadResponse
from velocity_limits.api.dependencies import get_evaluator, get_request_id
from velocity_limits.evaluator import LoadLimitEvaluator
from velocity_limits.domain.exceptions import PersistenceError, ValidationError
from velocity_limits.domain.models import Outcome

router = APIRouter()


@router.post(
    "/loads",
    response_model=LoadResponse,
    responses={204: {"description": "Duplicate load id for this customer; nothing recorded"}},
)
def create_load(
    request_body: LoadRequestBody,
    request: Request,
    evaluator: LoadLimitEvaluator = Depends(get_evaluator),
):
    """
    Decide whether a load fits the customer's velocity limits.

    Flow:
    1. Parse amount and timestamp
    2. Evaluate daily count, daily amount, weekly amount limits
    3. Return accepted flag, or 204 when the load id was already seen
    """
    request_id = get_request_id(request)

    try:
        load_request = request_body.to_domain()
        decision = evaluator.evaluate(load_request)

    except ValidationError as e:
        logging.warning(f"Invalid load request: {e}", extra={"request_id": request_id, "field": e.field})
        raise HTTPException(status_code=422, detail=str(e))

    except PersistenceError as e:
        logging.error(f"Ledger store error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Ledger store unavailable")

    if decision.outcome is Outcome.DUPLICATE:
        return Response(status_code=204)

    return LoadResponse(**decision.to_response())
