"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List

from velocity_limits.domain.models import LoadRequest
from velocity_limits.domain.parsing import build_load_request


class LoadRequestBody(BaseModel):
    """Request body for POST /v1/loads, also one line of batch input"""

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    id: str = Field(..., description="Load identifier, unique per customer")
    customer_id: str = Field(..., description="Customer identifier")
    load_amount: str = Field(..., description='Display amount, e.g. "$3318.47"')
    time: str = Field(..., description="ISO-8601 timestamp, e.g. 2000-01-01T00:00:00Z")

    def to_domain(self) -> LoadRequest:
        """Parse amount and timestamp; raises ParseError/ValidationError"""
        return build_load_request(self.id, self.customer_id, self.load_amount, self.time)


class LoadResponse(BaseModel):
    """Response for POST /v1/loads"""

    id: str
    customer_id: str
    accepted: bool


class HistoryItem(BaseModel):
    """Single recorded attempt"""

    id: str
    amount: str
    time: str
    accepted: bool


class HistoryResponse(BaseModel):
    """Response for GET /v1/loads/history"""

    customer_id: str
    loads: List[HistoryItem]
