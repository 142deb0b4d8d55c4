"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional


class Outcome(str, Enum):
    """Admission decision for a single load request"""

    ACCEPTED = "accepted"
    REJECTED = "rejected"
    DUPLICATE = "duplicate"


class LimitBreach(str, Enum):
    """Which velocity limit rejected a load"""

    DAILY_COUNT = "daily_count"
    DAILY_AMOUNT = "daily_amount"
    WEEKLY_AMOUNT = "weekly_amount"


@dataclass(frozen=True)
class LoadRequest:
    """Incoming load as received from a caller, before validation"""

    load_id: str
    customer_id: str
    amount: Optional[Decimal]
    time: Optional[datetime]


@dataclass(frozen=True)
class LoadAttempt:
    """Recorded attempt; written once, never updated"""

    load_id: str
    customer_id: str
    amount: Decimal
    occurred_at: datetime
    accepted: bool


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive [start, end] instant range"""

    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


@dataclass(frozen=True)
class LimitConfig:
    """Velocity limits fixed for the lifetime of an evaluator"""

    daily_amount_limit: Decimal
    weekly_amount_limit: Decimal
    daily_count_limit: int
    count_rejected_attempts: bool = True


@dataclass(frozen=True)
class LoadDecision:
    """Output of limit evaluation"""

    load_id: str
    customer_id: str
    outcome: Outcome
    breached: Optional[LimitBreach] = None

    @property
    def accepted(self) -> Optional[bool]:
        """True/False for decided loads, None for a duplicate"""
        if self.outcome is Outcome.DUPLICATE:
            return None
        return self.outcome is Outcome.ACCEPTED

    def to_response(self) -> Optional[Dict[str, object]]:
        """Outbound unit; duplicates produce no output at all"""
        if self.outcome is Outcome.DUPLICATE:
            return None
        return {"id": self.load_id, "customer_id": self.customer_id, "accepted": self.accepted}
