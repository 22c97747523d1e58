#!/usr/bin/env python3
"""Generate installment schedules for every Active CFD contract.

Contracts that already have installments are skipped, as are contracts
missing a first installment date, count or amount. A database error aborts
the run with exit status 1.

Usage:
    python scripts/generate_installments.py [--as-of YYYY-MM-DD]
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy.exc import SQLAlchemyError

import app.models  # noqa: F401  (register models)
from app.core.config import LOG_FORMAT, LOG_LEVEL
from app.core.logging import setup_logging
from app.services.installment_generator import run_batch
from app.utils.database import SessionLocal

logger = logging.getLogger("scripts.generate_installments")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Installments due before this date are marked PAID (default: today)",
    )
    parser.add_argument("--log-level", default=LOG_LEVEL)
    return parser.parse_args(argv)


def main(argv=None, session_factory=SessionLocal) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level, LOG_FORMAT)

    as_of = args.as_of or date.today()
    db = session_factory()
    try:
        summary = run_batch(db, as_of)
    except SQLAlchemyError:
        logger.exception("Database error, aborting installment generation")
        return 1
    finally:
        db.close()

    logger.info(
        "Generated %s installments total (%s paid, %s pending)",
        summary.installments_created,
        summary.paid,
        summary.pending,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
