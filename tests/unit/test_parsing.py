"""Unit tests for wire-format parsing and request validation"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from velocity_limits.domain.exceptions import ParseError, ValidationError
from velocity_limits.domain.models import LoadRequest
from velocity_limits.domain.parsing import (
    MAX_AMOUNT,
    build_load_request,
    parse_amount,
    parse_timestamp,
    validate_request,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("$3318.47", Decimal("3318.47")),
        ("$5", Decimal("5")),
        ("  $12.5 ", Decimal("12.5")),
        ("USD 99.99", Decimal("99.99")),
        ("1200.00", Decimal("1200.00")),
        ("USD $ 7.10", Decimal("7.10")),
        ("€20", Decimal("20")),
    ],
)
def test_parse_amount_strips_currency_prefix(raw, expected):
    assert parse_amount(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["$abc", "", "$", "12.345", "1e5", "$1,000.00", "hello world 100", "abc12", "usd 5.00", "$$5", "5 $", None],
)
def test_parse_amount_rejects_malformed(raw):
    with pytest.raises(ParseError) as exc_info:
        parse_amount(raw)
    assert exc_info.value.field == "load_amount"


def test_parse_timestamp_utc_designator():
    parsed = parse_timestamp("2000-01-01T00:00:00Z")
    assert parsed == datetime(2000, 1, 1, tzinfo=timezone.utc)
    assert parsed.utcoffset() == timedelta(0)


def test_parse_timestamp_keeps_explicit_offset():
    """Windows are computed in the caller's offset, so it must not be normalized away"""
    parsed = parse_timestamp("2025-02-10T23:30:00-05:00")
    assert parsed.utcoffset() == timedelta(hours=-5)
    assert parsed.hour == 23


@pytest.mark.parametrize("raw", ["2000-01-01T00:00:00", "yesterday", "", None])
def test_parse_timestamp_rejects_naive_or_garbage(raw):
    with pytest.raises(ParseError) as exc_info:
        parse_timestamp(raw)
    assert exc_info.value.field == "time"


def test_build_load_request_happy_path():
    request = build_load_request("15887", "528", "$3318.47", "2000-01-01T00:00:00Z")

    assert request.load_id == "15887"
    assert request.customer_id == "528"
    assert request.amount == Decimal("3318.47")
    assert request.time == datetime(2000, 1, 1, tzinfo=timezone.utc)


def test_build_load_request_reports_first_failing_field():
    """Empty id is reported even though the amount is also malformed"""
    with pytest.raises(ValidationError) as exc_info:
        build_load_request("", "528", "$abc", "2000-01-01T00:00:00Z")
    assert exc_info.value.field == "id"

    with pytest.raises(ValidationError) as exc_info:
        build_load_request("1", "  ", "$abc", "2000-01-01T00:00:00Z")
    assert exc_info.value.field == "customer_id"


@pytest.mark.parametrize("amount", ["$0.00", "$-5.00"])
def test_build_load_request_rejects_non_positive_amount(amount):
    with pytest.raises(ValidationError) as exc_info:
        build_load_request("1", "528", amount, "2000-01-01T00:00:00Z")
    assert exc_info.value.field == "load_amount"


def test_validate_request_requires_amount_and_time():
    now = datetime(2025, 2, 10, tzinfo=timezone.utc)

    with pytest.raises(ValidationError) as exc_info:
        validate_request(LoadRequest("1", "528", None, now))
    assert exc_info.value.field == "load_amount"

    with pytest.raises(ValidationError) as exc_info:
        validate_request(LoadRequest("1", "528", Decimal("1.00"), None))
    assert exc_info.value.field == "time"

    with pytest.raises(ValidationError) as exc_info:
        validate_request(LoadRequest("1", "528", Decimal("1.00"), datetime(2025, 2, 10)))
    assert exc_info.value.field == "time"


def test_parse_amount_names_the_precision_rule():
    with pytest.raises(ParseError) as exc_info:
        parse_amount("$1.005")
    assert exc_info.value.field == "load_amount"
    assert "at most two decimal places" in str(exc_info.value)


def test_amount_above_cap_is_rejected_before_evaluation():
    now = datetime(2025, 2, 10, tzinfo=timezone.utc)

    validate_request(LoadRequest("1", "528", MAX_AMOUNT, now))

    with pytest.raises(ValidationError) as exc_info:
        build_load_request("1", "528", "100000000000000000000", "2025-02-10T00:00:00Z")
    assert exc_info.value.field == "load_amount"
