"""Batch processing of newline-delimited load requests"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Union

import pydantic

from velocity_limits.api.v1.schemas import LoadRequestBody
from velocity_limits.domain.exceptions import ValidationError
from velocity_limits.domain.models import LoadRequest, Outcome
from velocity_limits.evaluator import LoadLimitEvaluator
from velocity_limits.infrastructure.observability.logging import log_skipped_line
from velocity_limits.infrastructure.observability.metrics import batch_skipped_lines_counter


@dataclass
class BatchSummary:
    """Counts for one batch run"""

    accepted: int = 0
    rejected: int = 0
    duplicates: int = 0
    skipped: int = 0

    @property
    def processed(self) -> int:
        return self.accepted + self.rejected + self.duplicates


def parse_line(line: Union[str, bytes], encoding: str = "utf-8") -> LoadRequest:
    """
    Turn one JSON line into a validated LoadRequest.

    Raw bytes are decoded here so an undecodable line fails on its own.

    Raises:
        ValidationError: Bad encoding, malformed JSON, missing fields, or bad amount/time
    """
    if isinstance(line, bytes):
        try:
            line = line.decode(encoding)
        except UnicodeDecodeError as e:
            raise ValidationError("line", f"not valid {encoding}: {e.reason}") from e

    try:
        payload = json.loads(line)
    except json.JSONDecodeError as e:
        raise ValidationError("line", f"invalid JSON: {e.msg}") from e

    if not isinstance(payload, dict):
        raise ValidationError("line", "expected a JSON object")

    try:
        body = LoadRequestBody.model_validate(payload)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "line"
        raise ValidationError(field, first["msg"]) from e

    return body.to_domain()


def format_response(response: dict) -> str:
    """Compact JSON in id, customer_id, accepted order"""
    return json.dumps(response, separators=(",", ":"))


def run_batch(
    lines: Iterable[Union[str, bytes]],
    evaluator: LoadLimitEvaluator,
    write: Callable[[str], None],
    encoding: str = "utf-8",
) -> BatchSummary:
    """
    Evaluate every line in order, writing one output line per decided load.

    Parse and validation failures are logged and skipped; duplicates produce
    no output. Ledger store errors propagate and stop the run, since later
    decisions would be made against an unknown history.
    """
    summary = BatchSummary()

    for line_no, line in enumerate(lines, start=1):
        if not line.strip():
            continue

        try:
            request = parse_line(line, encoding)
        except ValidationError as e:
            summary.skipped += 1
            batch_skipped_lines_counter.inc()
            log_skipped_line(line_no, str(e))
            continue

        decision = evaluator.evaluate(request)

        if decision.outcome is Outcome.DUPLICATE:
            summary.duplicates += 1
            continue

        if decision.outcome is Outcome.ACCEPTED:
            summary.accepted += 1
        else:
            summary.rejected += 1
        write(format_response(decision.to_response()))

    return summary


def process_file(
    input_path: Path,
    output_path: Path,
    evaluator: LoadLimitEvaluator,
    encoding: str = "utf-8",
) -> BatchSummary:
    """Read NDJSON requests from input_path and write NDJSON decisions to output_path"""
    with input_path.open("rb") as reader, output_path.open("w", encoding=encoding) as writer:
        summary = run_batch(reader, evaluator, lambda text: writer.write(text + "\n"), encoding)

    logging.info(
        "Batch complete",
        extra={
            "input_path": str(input_path),
            "output_path": str(output_path),
            "accepted": summary.accepted,
            "rejected": summary.rejected,
            "duplicates": summary.duplicates,
            "skipped": summary.skipped,
        },
    )
    return summary
