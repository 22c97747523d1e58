"""
Batch and import entry points around the schedule generator.

Both walk contracts one at a time: eligibility check, existence check,
generate, insert, commit. Per-contract skips are logged and the run carries
on; database errors are not caught here and abort the run.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AlreadyGeneratedError,
    ContractNotFoundError,
    IneligibleContractError,
    InvalidContractTermsError,
)
from app.services.contracts_service import fetch_generation_candidates, get_contract_by_property_id
from app.services.installment_store import SqlInstallmentStore
from app.utils.contract_calculations import money
from app.utils.schedule import PAID, ContractTerms, InstallmentDraft, check_eligibility, generate_schedule

logger = logging.getLogger(__name__)


@dataclass
class GenerationSummary:
    as_of: date
    contracts_processed: int = 0
    contracts_generated: int = 0
    installments_created: int = 0
    paid: int = 0
    pending: int = 0
    skipped_ineligible: list[dict] = field(default_factory=list)
    skipped_existing: list[dict] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)

    def add(self, drafts: list[InstallmentDraft]) -> None:
        self.contracts_generated += 1
        self.installments_created += len(drafts)
        paid = sum(1 for d in drafts if d.status == PAID)
        self.paid += paid
        self.pending += len(drafts) - paid

    def to_dict(self) -> dict:
        return {
            "as_of": self.as_of,
            "contracts_processed": self.contracts_processed,
            "contracts_generated": self.contracts_generated,
            "installments_created": self.installments_created,
            "paid": self.paid,
            "pending": self.pending,
            "skipped_ineligible": self.skipped_ineligible,
            "skipped_existing": self.skipped_existing,
            "not_found": self.not_found,
        }


def generate_for_contract(store: SqlInstallmentStore, contract, as_of: date) -> list[InstallmentDraft]:
    """
    Generate and persist one contract's schedule.

    Raises InvalidContractTermsError / IneligibleContractError when the terms
    can't produce a schedule and AlreadyGeneratedError when installments are
    already on file. A failed insert rolls the contract back and re-raises.
    """
    terms = ContractTerms.from_contract(contract)
    check_eligibility(terms)

    existing = store.count_for_contract(terms.contract_id)
    if existing > 0:
        raise AlreadyGeneratedError(terms.contract_id, existing)

    drafts = generate_schedule(terms, as_of)

    try:
        for draft in drafts:
            store.insert(draft)
        store.commit()
    except SQLAlchemyError:
        store.rollback()
        logger.error("Insert failed for contract %s, rolled back", terms.property_id)
        raise

    return drafts


def _process(store: SqlInstallmentStore, contract, as_of: date, summary: GenerationSummary) -> None:
    summary.contracts_processed += 1
    label = f"{contract.property_id} ({contract.buyer_name})"

    try:
        drafts = generate_for_contract(store, contract, as_of)
    except (IneligibleContractError, InvalidContractTermsError) as e:
        reason = e.reason if isinstance(e, IneligibleContractError) else str(e)
        logger.warning("Skipping %s: %s", label, reason, extra={"contract_id": contract.id})
        summary.skipped_ineligible.append(
            {"contract_id": contract.id, "property_id": contract.property_id, "reason": reason}
        )
        return
    except AlreadyGeneratedError as e:
        logger.info("Skipping %s: already has %s installments", label, e.existing_count,
                    extra={"contract_id": contract.id})
        summary.skipped_existing.append(
            {"contract_id": contract.id, "property_id": contract.property_id, "existing_count": e.existing_count}
        )
        return

    summary.add(drafts)
    paid = sum(1 for d in drafts if d.status == PAID)
    logger.info(
        "Generated %s installments for %s (%s paid, %s pending)",
        len(drafts), label, paid, len(drafts) - paid,
        extra={"contract_id": contract.id},
    )


def run_batch(db: Session, as_of: date, contracts: Optional[list] = None) -> GenerationSummary:
    """Generate schedules for every Active CFD contract that has none yet."""
    store = SqlInstallmentStore(db)
    summary = GenerationSummary(as_of=as_of)

    if contracts is None:
        contracts = fetch_generation_candidates(db)
    logger.info("Found %s CFD contracts", len(contracts))

    for contract in contracts:
        _process(store, contract, as_of, summary)

    logger.info(
        "Done: %s installments across %s contracts (%s ineligible, %s already generated)",
        summary.installments_created,
        summary.contracts_generated,
        len(summary.skipped_ineligible),
        len(summary.skipped_existing),
    )
    return summary


def apply_schedule_terms(contract, row) -> None:
    """Copy spreadsheet financing terms onto the contract and mark it pre-deed."""
    contract.first_installment_date = row.first_payment_date
    contract.installment_amount = money(row.installment_amount)
    contract.installment_count = row.installment_count
    if row.balloon_amount and row.balloon_amount > 0:
        contract.balloon_amount = money(row.balloon_amount)
        contract.balloon_date = row.balloon_date
    else:
        contract.balloon_amount = None
        contract.balloon_date = None
    contract.deed_status = "NOT_RECORDED"


def _find_contract(db: Session, property_id: str):
    contract = get_contract_by_property_id(db, property_id)
    if contract is None:
        raise ContractNotFoundError(f"Contract {property_id} not found")
    return contract


def run_import(db: Session, rows: list, as_of: date) -> GenerationSummary:
    """
    Update contracts from spreadsheet rows (ScheduleTermsRow) and generate
    their schedules, backfilling PAID for installments due before as_of.
    """
    store = SqlInstallmentStore(db)
    summary = GenerationSummary(as_of=as_of)

    for row in rows:
        try:
            contract = _find_contract(db, row.property_id)
        except ContractNotFoundError as e:
            logger.warning("%s, skipping", e)
            summary.not_found.append(row.property_id)
            continue

        apply_schedule_terms(contract, row)
        db.commit()
        logger.info("Updated %s with installment terms, deed status NOT_RECORDED", contract.property_id)

        _process(store, contract, as_of, summary)

    logger.info(
        "Import done: %s rows, %s installments generated",
        len(rows),
        summary.installments_created,
    )
    return summary
