import logging

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.schemas.contract_schema import ContractImportRow, ImportErrorRow, ImportResult
from app.services.contracts_service import create_contract, get_contract_by_property_id
from app.utils.contract_calculations import normalize_property_id

logger = logging.getLogger(__name__)


def validate_import_row(row: ContractImportRow):
    """Return the first rule the row breaks, or None."""
    if row.origin_type == "ASSUMED":
        if not row.transfer_date:
            return "ASSUMED requires transfer_date"
        if not row.opening_receivable:
            return "ASSUMED requires opening_receivable"
        if row.installments_paid_by_transfer is None:
            return "ASSUMED requires installments_paid_by_transfer"

    if row.origin_type == "DIRECT":
        if row.transfer_date:
            return "DIRECT must have blank transfer_date"
        if row.opening_receivable:
            return "DIRECT must have blank opening_receivable"

    if row.sale_type == "CFD" and (not row.installment_amount or not row.installment_count):
        return "CFD requires installment_amount and installment_count"

    if row.sale_type == "CASH" and not row.close_date:
        return "CASH requires close_date"

    if row.deed_status == "RECORDED" and not row.deed_recorded_date:
        return "RECORDED deed status requires deed_recorded_date"
    if row.deed_status == "NOT_RECORDED" and row.deed_recorded_date:
        return "NOT_RECORDED deed status must have blank deed_recorded_date"

    return None


def _validation_message(e: ValidationError) -> str:
    err = e.errors()[0]
    field = ".".join(str(p) for p in err.get("loc", ()))
    return f"{field}: {err['msg']}" if field else err["msg"]


def import_contracts(db: Session, rows: list) -> ImportResult:
    """
    Create one contract per row; bad rows are reported, not raised.
    Rows may be raw dicts, each one is validated on its own.
    Row numbers count the header line (first data row = 2).
    """
    errors = []
    imported = 0

    for i, raw in enumerate(rows):
        row_num = i + 2
        try:
            row = raw if isinstance(raw, ContractImportRow) else ContractImportRow.model_validate(raw)
        except ValidationError as e:
            errors.append(ImportErrorRow(row=row_num, message=_validation_message(e)))
            continue

        property_id = normalize_property_id(row.property_id)

        if not property_id:
            errors.append(ImportErrorRow(row=row_num, message="Missing property_id"))
            continue

        if get_contract_by_property_id(db, property_id):
            errors.append(ImportErrorRow(row=row_num, message=f"Duplicate property_id: {property_id}"))
            continue

        problem = validate_import_row(row)
        if problem:
            errors.append(ImportErrorRow(row=row_num, message=problem))
            continue

        values = row.model_dump(exclude_none=True)
        values["property_id"] = property_id
        try:
            create_contract(db, values)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            errors.append(ImportErrorRow(row=row_num, message=str(getattr(e, "orig", e))))
            continue

        imported += 1

    logger.info("Contract import: %s imported, %s rejected", imported, len(errors))
    return ImportResult(success=not errors, imported=imported, errors=errors)
