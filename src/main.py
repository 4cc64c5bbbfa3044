from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from config import config
from db.db import create_session_factory, init_db
from domain.custody_ledger import AlreadyExistsError, CustodyLedger, NotFoundError, ScanDecodePolicy
from domain.encoding import RecordDecodeError
from services.contract_runtime import ContractRuntime, InvalidArgumentsError, UnknownOperationError

logger = logging.getLogger(__name__)


def run(
    operation: str,
    args: Sequence[str],
    *,
    db_file: Path | None,
    reset: bool,
    decode_policy: ScanDecodePolicy,
) -> str:
    settings = config()
    if db_file is not None:
        session = init_db(echo=settings.sql_echo, db_file=db_file, reset=reset)
    else:
        session = create_session_factory(settings.database_url, echo=settings.sql_echo)()

    with session:
        runtime = ContractRuntime(session, ledger=CustodyLedger(decode_policy=decode_policy))
        return runtime.invoke(operation, *args)


def main(argv: Sequence[str] | None = None) -> int:
    settings = config()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    parser = argparse.ArgumentParser(description="Invoke a custody ledger operation.")
    parser.add_argument("operation", choices=ContractRuntime.OPERATIONS)
    parser.add_argument("args", nargs="*")
    parser.add_argument("--db-file", type=Path, default=None, help="SQLite file; overrides CUSTODY_DATABASE_URL")
    parser.add_argument("--reset", action="store_true", help="Delete --db-file before running")
    parser.add_argument(
        "--decode-policy",
        type=ScanDecodePolicy,
        choices=list(ScanDecodePolicy),
        default=settings.scan_decode_policy,
    )
    args = parser.parse_args(argv)

    try:
        result = run(
            args.operation,
            args.args,
            db_file=args.db_file,
            reset=args.reset,
            decode_policy=args.decode_policy,
        )
    except (
        AlreadyExistsError,
        NotFoundError,
        UnknownOperationError,
        InvalidArgumentsError,
        ValidationError,
        RecordDecodeError,
    ) as exc:
        logger.error("%s failed: %s", args.operation, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if result:
        print(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
