"""Command-line entry point for batch evaluation"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from sqlalchemy.orm import sessionmaker

from velocity_limits.batch import process_file
from velocity_limits.config import settings
from velocity_limits.domain.exceptions import PersistenceError
from velocity_limits.evaluator import LoadLimitEvaluator
from velocity_limits.infrastructure.database.memory_store import InMemoryLedgerStore
from velocity_limits.infrastructure.database.repositories import SqlLedgerStore
from velocity_limits.infrastructure.database.session import create_db_engine, init_db
from velocity_limits.infrastructure.observability.logging import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="velocity-limits", description="Velocity limit admission controller")
    subcommands = parser.add_subparsers(dest="command", required=True)

    process = subcommands.add_parser("process", help="Evaluate an NDJSON file of load requests")
    process.add_argument("input", type=Path, help="Input file, one JSON load request per line")
    process.add_argument("-o", "--output", type=Path, default=Path("output.txt"), help="Output file")
    process.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    process.add_argument(
        "--in-memory",
        action="store_true",
        help="Keep the ledger in memory for this run only",
    )

    init = subcommands.add_parser("init-db", help="Create ledger tables")
    init.add_argument("--database-url", default=None, help="Override DATABASE_URL")

    return parser


def run(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(settings.log_level)

    database_url = args.database_url or settings.database_url

    if args.command == "init-db":
        init_db(create_db_engine(database_url, settings.store_timeout_seconds))
        return 0

    limits = settings.limit_config()

    if args.in_memory:
        evaluator = LoadLimitEvaluator(InMemoryLedgerStore(), limits, lock_timeout_seconds=settings.lock_timeout_seconds)
        return _process(args, evaluator)

    engine = create_db_engine(database_url, settings.store_timeout_seconds)
    init_db(engine)
    db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        evaluator = LoadLimitEvaluator(SqlLedgerStore(db), limits, lock_timeout_seconds=settings.lock_timeout_seconds)
        return _process(args, evaluator)
    finally:
        db.close()
        engine.dispose()


def _process(args: argparse.Namespace, evaluator: LoadLimitEvaluator) -> int:
    try:
        process_file(args.input, args.output, evaluator)
    except FileNotFoundError as e:
        logging.error(f"Input file not found: {e.filename}")
        return 2
    except PersistenceError as e:
        logging.error(f"Batch aborted, ledger store error: {e}")
        return 1
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
