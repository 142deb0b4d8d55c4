"""Wire-format parsing and input validation for load requests"""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from velocity_limits.domain.exceptions import ParseError, ValidationError
from velocity_limits.domain.models import LoadRequest

# Optional ISO currency code, optional symbol, then the number: "$", "USD", "USD $", "€"
_AMOUNT = re.compile(r"^(?:[A-Z]{3}\s*)?[$€£¥]?\s*(?P<number>[+-]?\d+(?:\.(?P<fraction>\d+))?)$")

# Largest single load; keeps cents sums well inside a 64-bit integer
MAX_AMOUNT = Decimal("999999999999.99")


def parse_amount(raw: Optional[str]) -> Decimal:
    """
    Parse a display amount such as "$3318.47" into an exact Decimal.

    Accepts a leading currency code and/or symbol and surrounding whitespace.
    At most two fractional digits are allowed so amounts stay exact in minor units.

    Raises:
        ParseError: If the text is not a currency prefix followed by a plain decimal
    """
    if raw is None:
        raise ParseError("load_amount", "amount is missing")

    match = _AMOUNT.match(raw.strip())
    if not match:
        raise ParseError("load_amount", f"not a decimal amount: {raw!r}")

    fraction = match.group("fraction")
    if fraction is not None and len(fraction) > 2:
        raise ParseError("load_amount", f"at most two decimal places allowed: {raw!r}")

    try:
        return Decimal(match.group("number"))
    except InvalidOperation as e:
        raise ParseError("load_amount", f"not a decimal amount: {raw!r}") from e


def parse_timestamp(raw: Optional[str]) -> datetime:
    """
    Parse an ISO-8601 timestamp ("2000-01-01T00:00:00Z" or with an explicit offset).

    The offset is preserved: calendar windows are derived in the request's own zone.
    """
    if raw is None:
        raise ParseError("time", "timestamp is missing")

    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ParseError("time", f"not an ISO-8601 timestamp: {raw!r}") from e

    if parsed.tzinfo is None:
        raise ParseError("time", f"timestamp has no UTC offset: {raw!r}")

    return parsed


def build_load_request(
    load_id: str,
    customer_id: str,
    load_amount: Optional[str],
    time: Optional[str],
) -> LoadRequest:
    """Parse raw wire fields into a validated LoadRequest"""
    load_id = (load_id or "").strip()
    customer_id = (customer_id or "").strip()

    # Identifiers are reported before amount/time parse failures
    if not load_id:
        raise ValidationError("id", "must not be empty")
    if not customer_id:
        raise ValidationError("customer_id", "must not be empty")

    request = LoadRequest(
        load_id=load_id,
        customer_id=customer_id,
        amount=parse_amount(load_amount),
        time=parse_timestamp(time),
    )
    validate_request(request)
    return request


def validate_request(request: LoadRequest) -> None:
    """
    Enforce LoadRequest invariants before evaluation.

    Raises:
        ValidationError: Naming the first failing field
    """
    if not request.load_id:
        raise ValidationError("id", "must not be empty")
    if not request.customer_id:
        raise ValidationError("customer_id", "must not be empty")
    if request.amount is None:
        raise ValidationError("load_amount", "is required")
    if not request.amount.is_finite() or request.amount <= 0:
        raise ValidationError("load_amount", "must be strictly positive")
    if request.amount > MAX_AMOUNT:
        raise ValidationError("load_amount", f"must not exceed {MAX_AMOUNT}")
    if request.time is None:
        raise ValidationError("time", "is required")
    if request.time.tzinfo is None or request.time.utcoffset() is None:
        raise ValidationError("time", "must carry a UTC offset")
