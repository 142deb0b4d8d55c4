"""Velocity limit rules - core business logic for load admission"""

from decimal import Decimal
from typing import Callable, Optional

from velocity_limits.domain.models import LimitBreach, LimitConfig


def exceeds_daily_count(daily_count: int, limits: LimitConfig) -> bool:
    """The Nth attempt is allowed only while fewer than N are already recorded"""
    return daily_count >= limits.daily_count_limit


def exceeds_amount(recorded_total: Decimal, amount: Decimal, limit: Decimal) -> bool:
    """Landing exactly on the limit is allowed; going past it is not"""
    return recorded_total + amount > limit


def check_limits(
    amount: Decimal,
    limits: LimitConfig,
    daily_count: Callable[[], int],
    daily_total: Callable[[], Decimal],
    weekly_total: Callable[[], Decimal],
) -> Optional[LimitBreach]:
    """
    Apply velocity limits in fixed order and return the first one breached.

    Order:
    1. Daily attempt count
    2. Daily amount
    3. Weekly amount

    Aggregates are passed as callables so a failing check skips the
    remaining store queries.

    Returns: None when the load fits every limit
    """
    if exceeds_daily_count(daily_count(), limits):
        return LimitBreach.DAILY_COUNT

    if exceeds_amount(daily_total(), amount, limits.daily_amount_limit):
        return LimitBreach.DAILY_AMOUNT

    if exceeds_amount(weekly_total(), amount, limits.weekly_amount_limit):
        return LimitBreach.WEEKLY_AMOUNT

    return None
