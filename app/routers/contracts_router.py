import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette import status

from app.core.exceptions import (
    AlreadyGeneratedError,
    IneligibleContractError,
    InvalidContractTermsError,
)
from app.models.contract_model import Contract
from app.models.installment_model import Installment
from app.models.payment_model import Payment
from app.schemas.contract_schema import (
    AuditLogOut,
    ContractCalculationsOut,
    ContractCreate,
    ContractOut,
    ContractUpdate,
    ImportResult,
)
from app.schemas.installment_schema import InstallmentOut
from app.services.audit_log import (
    TRACKED_CONTRACT_FIELDS,
    audit_log_for,
    changed_tracked_fields,
    log_contract_change,
)
from app.services.contract_import import import_contracts
from app.services.contracts_service import create_contract, get_contract_by_property_id
from app.services.installment_generator import generate_for_contract
from app.services.installment_store import SqlInstallmentStore
from app.utils.contract_calculations import (
    gain_recognized,
    gross_profit,
    gross_profit_percent,
    money,
    normalize_property_id,
    payments_in_scope,
    receivable_balance,
)
from app.utils.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contracts", tags=["Contracts"])


# -------------------------------------------------
# Helpers
# -------------------------------------------------
def get_contract_or_404(db: Session, contract_id: int) -> Contract:
    contract = db.query(Contract).filter(Contract.id == contract_id).first()
    if not contract:
        raise HTTPException(404, "Contract not found")
    return contract


# =================================================
# STATIC ROUTES (ALWAYS FIRST)
# =================================================
@router.get("", response_model=list[ContractOut])
def list_contracts(
        status: Optional[str] = None,
        origin_type: Optional[str] = None,
        sale_type: Optional[str] = None,
        county: Optional[str] = None,
        db: Session = Depends(get_db),
):
    q = db.query(Contract)
    if status:
        q = q.filter(Contract.status == status)
    if origin_type:
        q = q.filter(Contract.origin_type == origin_type.upper())
    if sale_type:
        q = q.filter(Contract.sale_type == sale_type.upper())
    if county:
        q = q.filter(Contract.county == county)
    return q.order_by(Contract.created_at.desc(), Contract.id.desc()).all()


@router.post("", response_model=ContractOut, status_code=status.HTTP_201_CREATED)
def create_contract_route(payload: ContractCreate, db: Session = Depends(get_db)):
    property_id = normalize_property_id(payload.property_id)
    if not property_id:
        raise HTTPException(400, "Invalid property_id")

    if get_contract_by_property_id(db, property_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Contract {property_id} already exists",
        )

    try:
        contract = create_contract(db, payload.model_dump(exclude_none=True))
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unable to create contract due to database constraints.",
        )

    db.refresh(contract)
    logger.info("Created contract %s for %s", contract.property_id, contract.buyer_name)
    return contract


@router.post("/import", response_model=ImportResult)
def import_contracts_route(rows: list[dict], db: Session = Depends(get_db)):
    # each row is validated inside import_contracts
    return import_contracts(db, rows)


@router.get("/by-property/{property_id}", response_model=ContractOut)
def contract_by_property(property_id: str, db: Session = Depends(get_db)):
    contract = get_contract_by_property_id(db, property_id)
    if not contract:
        raise HTTPException(404, "Contract not found")
    return contract


# =================================================
# DYNAMIC ROUTES (LAST)
# =================================================
@router.get("/{contract_id}", response_model=ContractOut)
def get_contract(contract_id: int, db: Session = Depends(get_db)):
    return get_contract_or_404(db, contract_id)


@router.put("/{contract_id}", response_model=ContractOut)
def update_contract(contract_id: int, payload: ContractUpdate, db: Session = Depends(get_db)):
    contract = get_contract_or_404(db, contract_id)

    updates = payload.model_dump(exclude_unset=True)
    changed_by = (updates.pop("changed_by", None) or "").strip()
    reason = (updates.pop("reason", None) or "").strip()

    if "property_id" in updates:
        new_pid = normalize_property_id(updates["property_id"])
        if not new_pid:
            raise HTTPException(400, "Invalid property_id")
        dup = (
            db.query(Contract)
            .filter(Contract.property_id == new_pid, Contract.id != contract_id)
            .first()
        )
        if dup:
            raise HTTPException(409, "Property id already in use")
        updates["property_id"] = new_pid

    audited = changed_tracked_fields(contract, updates, TRACKED_CONTRACT_FIELDS)
    if audited and (not changed_by or not reason):
        raise HTTPException(
            400, f"changed_by and reason are required when changing {', '.join(audited)}"
        )

    for field in audited:
        log_contract_change(db, contract_id, field, getattr(contract, field), updates[field], changed_by, reason)

    for field, value in updates.items():
        setattr(contract, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unable to update contract due to database constraints.",
        )
    db.refresh(contract)
    return contract


@router.delete("/{contract_id}")
def delete_contract(contract_id: int, db: Session = Depends(get_db)):
    contract = get_contract_or_404(db, contract_id)
    db.delete(contract)
    db.commit()
    return {"message": "Contract deleted successfully"}


@router.get("/{contract_id}/calculations", response_model=ContractCalculationsOut)
def contract_calculations(
        contract_id: int,
        year: Optional[int] = Query(None),
        db: Session = Depends(get_db),
):
    contract = get_contract_or_404(db, contract_id)
    payments = db.query(Payment).filter(Payment.contract_id == contract_id).all()

    gp_percent = gross_profit_percent(contract.contract_price, contract.cost_basis)

    out = ContractCalculationsOut(
        contract_id=contract.id,
        gross_profit_percent=float(gp_percent),
        gross_profit=float(gross_profit(contract.contract_price, contract.cost_basis)),
        receivable_balance=float(receivable_balance(contract, payments)),
        year=year,
    )

    if year:
        year_payments = [p for p in payments_in_scope(contract, payments) if p.payment_date.year == year]
        principal = sum((money(p.principal_amount) for p in year_payments), money(0))
        late_fees = sum((money(p.late_fee_amount) for p in year_payments), money(0))
        gain = gain_recognized(principal, gp_percent)

        out.principal_received_year = float(principal)
        out.late_fees_year = float(late_fees)
        out.gain_recognized_year = float(gain)
        out.total_profit_recognized_year = float(gain + late_fees)

    return out


@router.get("/{contract_id}/schedule", response_model=list[InstallmentOut])
def get_schedule(contract_id: int, db: Session = Depends(get_db)):
    get_contract_or_404(db, contract_id)
    return (
        db.query(Installment)
        .filter(Installment.contract_id == contract_id)
        .order_by(Installment.installment_number.asc())
        .all()
    )


@router.post("/{contract_id}/installments/generate", response_model=list[InstallmentOut])
def generate_contract_installments(
        contract_id: int,
        as_of: Optional[date] = Query(None, description="Cutoff for PAID backfill, defaults to today"),
        db: Session = Depends(get_db),
):
    contract = get_contract_or_404(db, contract_id)

    try:
        generate_for_contract(SqlInstallmentStore(db), contract, as_of or date.today())
    except (IneligibleContractError, InvalidContractTermsError) as e:
        raise HTTPException(400, str(e))
    except AlreadyGeneratedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return get_schedule(contract_id, db)


@router.get("/{contract_id}/audit-log", response_model=list[AuditLogOut])
def contract_audit_log(contract_id: int, db: Session = Depends(get_db)):
    get_contract_or_404(db, contract_id)
    return audit_log_for(db, "CONTRACT", contract_id)
