"""Tests for the command-line scripts."""

import importlib.util
import logging
from datetime import date
from pathlib import Path

import pytest
from sqlalchemy.exc import OperationalError

from app.models.installment_model import Installment

SCRIPTS_DIR = Path(__file__).resolve().parent.parent / "scripts"


def load_script(name: str):
    spec = importlib.util.spec_from_file_location(f"scripts_{name}", SCRIPTS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def terms_csv(tmp_path):
    path = tmp_path / "terms.csv"
    path.write_text(
        "property_id,first_payment_date,installment_amount,installment_count,balloon_amount,balloon_date\n"
        "33,2025-05-25,195.00,35,,\n"
        "99,2025-05-25,150.00,24,,\n",
        encoding="utf-8",
    )
    return path


class TestGenerateInstallmentsScript:
    """scripts/generate_installments.py"""

    def test_generates(self, session_factory, db, make_contract) -> None:
        make_contract(installment_count=3)
        script = load_script("generate_installments")

        code = script.main(["--as-of", "2025-06-01"], session_factory=session_factory)

        assert code == 0
        assert db.query(Installment).count() == 3
        assert db.query(Installment).filter(Installment.status == "PAID").count() == 1

    def test_database_error_exits_1(self, session_factory, monkeypatch) -> None:
        script = load_script("generate_installments")

        def boom(db, as_of):
            raise OperationalError("SELECT 1", {}, Exception("connection lost"))

        monkeypatch.setattr(script, "run_batch", boom)
        assert script.main(["--as-of", "2025-06-01"], session_factory=session_factory) == 1


class TestImportScript:
    """scripts/import_from_spreadsheet.py"""

    def test_read_terms(self, terms_csv) -> None:
        rows = load_script("import_from_spreadsheet").read_terms(terms_csv)
        assert [r.property_id for r in rows] == ["33", "99"]
        assert rows[0].installment_count == 35
        assert rows[0].balloon_date is None

    def test_read_terms_european_amount(self, tmp_path) -> None:
        path = tmp_path / "terms.csv"
        path.write_text(
            "property_id,first_payment_date,installment_amount,installment_count\n"
            '25,2025-06-15,"1.234,50",12\n',
            encoding="utf-8",
        )
        rows = load_script("import_from_spreadsheet").read_terms(path)
        assert str(rows[0].installment_amount) == "1234.50"

    def test_imports_and_backfills(self, terms_csv, session_factory, db, make_contract) -> None:
        contract = make_contract(installment_count=0, first_installment_date=None)
        script = load_script("import_from_spreadsheet")

        code = script.main([str(terms_csv), "--as-of", "2025-06-01"], session_factory=session_factory)

        assert code == 0
        db.expire_all()
        assert db.get(type(contract), contract.id).deed_status == "NOT_RECORDED"
        rows = db.query(Installment).order_by(Installment.installment_number).all()
        assert len(rows) == 35
        assert rows[0].due_date == date(2025, 5, 25)
        assert [r.status for r in rows[:2]] == ["PAID", "PENDING"]

    def test_bad_row_exits_2(self, tmp_path, session_factory) -> None:
        path = tmp_path / "terms.csv"
        path.write_text(
            "property_id,first_payment_date,installment_amount,installment_count\n"
            "33,2025-05-25,195.00,many\n",
            encoding="utf-8",
        )
        script = load_script("import_from_spreadsheet")
        assert script.main([str(path)], session_factory=session_factory) == 2

    def test_missing_file_exits_2(self, tmp_path, session_factory) -> None:
        script = load_script("import_from_spreadsheet")
        assert script.main([str(tmp_path / "nope.csv")], session_factory=session_factory) == 2
