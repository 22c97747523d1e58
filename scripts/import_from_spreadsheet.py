#!/usr/bin/env python3
"""Import installment terms from a spreadsheet export and build schedules.

The CSV needs the columns property_id, first_payment_date,
installment_amount, installment_count and optionally balloon_amount,
balloon_date. Each matching contract gets its terms updated, its deed status
set to NOT_RECORDED, and (if it has none yet) an installment schedule whose
past-due rows are backfilled as PAID.

Usage:
    python scripts/import_from_spreadsheet.py terms.csv [--as-of YYYY-MM-DD]
"""

import argparse
import csv
import logging
import sys
from datetime import date
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

import app.models  # noqa: F401  (register models)
from app.core.config import LOG_FORMAT, LOG_LEVEL
from app.core.logging import setup_logging
from app.schemas.installment_schema import ScheduleTermsRow
from app.services.installment_generator import run_import
from app.utils.contract_calculations import parse_decimal
from app.utils.database import SessionLocal

logger = logging.getLogger("scripts.import_from_spreadsheet")


def read_terms(path: Path) -> list[ScheduleTermsRow]:
    """Parse and validate the CSV; the first bad row stops the import."""
    rows = []
    with open(path, newline="", encoding="utf-8-sig") as f:
        for line_no, raw in enumerate(csv.DictReader(f), start=2):
            raw = {k.strip(): (v or "").strip() for k, v in raw.items() if k}
            for money_col in ("installment_amount", "balloon_amount"):
                if raw.get(money_col):
                    raw[money_col] = str(parse_decimal(raw[money_col]))
            try:
                rows.append(ScheduleTermsRow(**raw))
            except ValidationError as e:
                raise ValueError(f"{path}:{line_no}: {e}") from e
    return rows


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("csv_path", type=Path)
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

    try:
        rows = read_terms(args.csv_path)
    except (OSError, ValueError) as e:
        logger.error("Cannot read %s: %s", args.csv_path, e)
        return 2

    as_of = args.as_of or date.today()
    db = session_factory()
    try:
        summary = run_import(db, rows, as_of)
    except SQLAlchemyError:
        logger.exception("Database error, aborting import")
        return 1
    finally:
        db.close()

    logger.info(
        "Processed %s rows: %s installments generated, %s contracts not found",
        len(rows),
        summary.installments_created,
        len(summary.not_found),
    )
    logger.info("All imported contracts marked as pre-deed (NOT_RECORDED)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
