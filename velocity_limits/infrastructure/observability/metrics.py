"""Prometheus metrics for monitoring admission outcomes, limit breaches, and store health"""

from decimal import Decimal
from typing import Optional
from prometheus_client import Counter, Histogram

# Decision metrics
decision_counter = Counter(
    "velocity_load_decisions_total",
    "Total load admission decisions",
    ["outcome"],  # accepted | rejected | duplicate
)

limit_breach_counter = Counter(
    "velocity_limit_breaches_total",
    "Rejected loads by the first limit they breached",
    ["limit"],  # daily_count | daily_amount | weekly_amount
)

accepted_amount_counter = Counter(
    "velocity_accepted_amount_total",
    "Total amount of accepted loads",
)

evaluation_latency_histogram = Histogram(
    "velocity_evaluation_seconds",
    "Time taken to evaluate a load request",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

# Ledger store metrics
store_failures_counter = Counter(
    "velocity_store_failures_total",
    "Ledger store calls that failed or timed out",
)

# Batch metrics
batch_skipped_lines_counter = Counter(
    "velocity_batch_skipped_lines_total",
    "Batch input lines skipped for parse or validation errors",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_decision(outcome: str, breached: Optional[str], amount: Decimal) -> None:
    """Record one admission outcome"""
    decision_counter.labels(outcome=outcome).inc()

    if breached is not None:
        limit_breach_counter.labels(limit=breached).inc()

    if outcome == "accepted":
        accepted_amount_counter.inc(float(amount))
