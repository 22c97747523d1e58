"""Tests for batch and import generation over the database."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.exceptions import AlreadyGeneratedError, IneligibleContractError
from app.models.contract_model import Contract
from app.models.installment_model import Installment
from app.schemas.installment_schema import ScheduleTermsRow
from app.services.installment_generator import generate_for_contract, run_batch, run_import
from app.services.installment_store import INSERT_COLUMNS, SqlInstallmentStore
from app.utils.schedule import generate_schedule


def installments_for(db, contract_id):
    return (
        db.query(Installment)
        .filter(Installment.contract_id == contract_id)
        .order_by(Installment.installment_number)
        .all()
    )


class TestGenerateForContract:
    """Single contract generation with the SQL store."""

    def test_persists_schedule(self, db, make_contract) -> None:
        contract = make_contract()
        drafts = generate_for_contract(SqlInstallmentStore(db), contract, date(2025, 6, 1))

        rows = installments_for(db, contract.id)
        assert len(rows) == len(drafts) == 35
        assert rows[0].due_date == date(2025, 5, 25)
        assert rows[0].status == "PAID"
        assert rows[1].status == "PENDING"
        assert rows[0].amount == Decimal("195.00")
        assert rows[0].property_id == "#33"

    def test_second_call_raises_already_generated(self, db, make_contract) -> None:
        contract = make_contract(installment_count=3)
        store = SqlInstallmentStore(db)
        generate_for_contract(store, contract, date(2025, 6, 1))

        with pytest.raises(AlreadyGeneratedError) as exc:
            generate_for_contract(store, contract, date(2025, 6, 1))
        assert exc.value.existing_count == 3
        assert len(installments_for(db, contract.id)) == 3

    def test_ineligible_writes_nothing(self, db, make_contract) -> None:
        contract = make_contract(first_installment_date=None)
        with pytest.raises(IneligibleContractError):
            generate_for_contract(SqlInstallmentStore(db), contract, date(2025, 6, 1))
        assert installments_for(db, contract.id) == []

    def test_insert_failure_rolls_back_contract(self, db, make_contract, monkeypatch) -> None:
        contract = make_contract(installment_count=5)
        store = SqlInstallmentStore(db)
        original_insert = store.insert
        calls = {"n": 0}

        def flaky_insert(draft):
            calls["n"] += 1
            if calls["n"] == 3:
                raise IntegrityError("INSERT", {}, Exception("boom"))
            original_insert(draft)

        monkeypatch.setattr(store, "insert", flaky_insert)

        with pytest.raises(IntegrityError):
            generate_for_contract(store, contract, date(2025, 6, 1))
        assert store.count_for_contract(contract.id) == 0


class TestRunBatch:
    """Batch mode over all candidate contracts."""

    def test_counts_and_skips(self, db, make_contract) -> None:
        good = make_contract(property_id="#33", installment_count=3)
        balloon = make_contract(
            property_id="#25",
            installment_amount=Decimal("449.00"),
            installment_count=36,
            first_installment_date=date(2025, 6, 15),
            balloon_amount=Decimal("3500.00"),
            balloon_date=date(2025, 11, 11),
        )
        missing = make_contract(property_id="#40", first_installment_date=None)
        make_contract(property_id="#50", sale_type="CASH")
        make_contract(property_id="#60", status="PaidOff")

        summary = run_batch(db, date(2025, 6, 1))

        assert summary.contracts_processed == 3
        assert summary.contracts_generated == 2
        assert summary.installments_created == 3 + 37
        assert [s["contract_id"] for s in summary.skipped_ineligible] == [missing.id]
        assert summary.skipped_ineligible[0]["reason"] == "missing first installment date"
        assert summary.skipped_existing == []
        assert len(installments_for(db, good.id)) == 3
        assert installments_for(db, balloon.id)[-1].type == "BALLOON"

    def test_second_run_inserts_nothing(self, db, make_contract) -> None:
        contract = make_contract(installment_count=4)
        run_batch(db, date(2025, 6, 1))

        summary = run_batch(db, date(2025, 6, 1))

        assert summary.installments_created == 0
        assert summary.skipped_existing == [
            {"contract_id": contract.id, "property_id": "#33", "existing_count": 4}
        ]
        assert db.query(Installment).count() == 4

    def test_paid_pending_tally(self, db, make_contract) -> None:
        make_contract(installment_count=3, first_installment_date=date(2025, 5, 25))
        summary = run_batch(db, date(2025, 6, 25))
        assert (summary.paid, summary.pending) == (1, 2)

    def test_invalid_terms_are_skipped(self, db, make_contract) -> None:
        make_contract(property_id="#70", installment_count=-1)
        make_contract(property_id="#71", installment_count=2)

        summary = run_batch(db, date(2025, 6, 1))

        assert summary.contracts_generated == 1
        assert summary.skipped_ineligible[0]["property_id"] == "#70"

    def test_database_error_is_fatal(self, db, make_contract, monkeypatch) -> None:
        make_contract(property_id="#33", installment_count=2)
        make_contract(property_id="#34", installment_count=2)

        def broken(self, contract_id):
            raise OperationalError("SELECT", {}, Exception("connection lost"))

        monkeypatch.setattr(SqlInstallmentStore, "count_for_contract", broken)

        with pytest.raises(OperationalError):
            run_batch(db, date(2025, 6, 1))


class TestRunImport:
    """Import mode from spreadsheet terms."""

    def test_updates_terms_and_generates(self, db, make_contract) -> None:
        contract = make_contract(
            property_id="#25",
            installment_amount=Decimal("0"),
            installment_count=0,
            first_installment_date=None,
        )
        rows = [
            ScheduleTermsRow(
                property_id="25",
                first_payment_date=date(2025, 6, 15),
                installment_amount=Decimal("449.00"),
                installment_count=36,
                balloon_amount=Decimal("3500.00"),
                balloon_date=date(2025, 11, 11),
            )
        ]

        summary = run_import(db, rows, date(2025, 12, 1))

        db.refresh(contract)
        assert contract.first_installment_date == date(2025, 6, 15)
        assert contract.installment_count == 36
        assert contract.deed_status == "NOT_RECORDED"

        inst = installments_for(db, contract.id)
        assert len(inst) == 37
        # Jun..Nov 15 regular + Nov 11 balloon fall before Dec 1
        assert summary.paid == 7
        assert summary.pending == 30
        assert inst[-1].status == "PAID"

    def test_unknown_property_is_skipped(self, db, make_contract) -> None:
        rows = [
            ScheduleTermsRow(
                property_id="#99",
                first_payment_date=date(2025, 5, 25),
                installment_amount=Decimal("195"),
                installment_count=35,
            )
        ]
        summary = run_import(db, rows, date(2025, 6, 1))
        assert summary.not_found == ["#99"]
        assert db.query(Installment).count() == 0

    def test_existing_schedule_kept(self, db, make_contract) -> None:
        contract = make_contract(installment_count=2)
        run_batch(db, date(2025, 1, 1))

        rows = [
            ScheduleTermsRow(
                property_id="#33",
                first_payment_date=date(2025, 5, 25),
                installment_amount=Decimal("236"),
                installment_count=35,
            )
        ]
        summary = run_import(db, rows, date(2025, 6, 1))

        db.refresh(contract)
        assert contract.installment_count == 35
        assert summary.skipped_existing[0]["existing_count"] == 2
        assert len(installments_for(db, contract.id)) == 2

    def test_zero_balloon_clears_fields(self, db, make_contract) -> None:
        contract = make_contract(balloon_amount=Decimal("900"), balloon_date=date(2027, 1, 1))
        rows = [
            ScheduleTermsRow(
                property_id="#33",
                first_payment_date=date(2025, 5, 25),
                installment_amount=Decimal("195"),
                installment_count=35,
                balloon_amount="",
            )
        ]
        run_import(db, rows, date(2025, 6, 1))

        db.refresh(contract)
        assert contract.balloon_amount is None
        assert contract.balloon_date is None
        assert db.query(Installment).filter(Installment.type == "BALLOON").count() == 0


class TestScheduleTermsRow:
    """Spreadsheet row validation."""

    def test_balloon_requires_date(self) -> None:
        with pytest.raises(ValueError):
            ScheduleTermsRow(
                property_id="#25",
                first_payment_date=date(2025, 6, 15),
                installment_amount=Decimal("449"),
                installment_count=36,
                balloon_amount=Decimal("3500"),
            )

    def test_count_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            ScheduleTermsRow(
                property_id="#25",
                first_payment_date=date(2025, 6, 15),
                installment_amount=Decimal("449"),
                installment_count=0,
            )


class TestSqlInstallmentStore:
    """Installment persistence."""

    def test_stored_row_matches_serialized_draft(self, db, make_contract) -> None:
        contract = make_contract(installment_count=1)
        draft = generate_schedule(contract, date(2025, 6, 1))[0]

        store = SqlInstallmentStore(db)
        store.insert(draft)
        store.commit()

        row = installments_for(db, contract.id)[0]
        stored = (
            row.contract_id, row.property_id, row.installment_number,
            row.due_date.isoformat(), f"{row.amount:.2f}", row.type, row.status,
        )
        assert dict(zip(INSERT_COLUMNS, stored)) == dict(zip(INSERT_COLUMNS, draft.as_row()))
