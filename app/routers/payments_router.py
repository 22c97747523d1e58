from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette import status

from app.models.contract_model import Contract
from app.models.payment_model import Payment
from app.schemas.contract_schema import AuditLogOut
from app.schemas.payment_schema import PaymentCreate, PaymentOut, PaymentUpdate, SplitSuggestionOut
from app.services.audit_log import (
    TRACKED_PAYMENT_FIELDS,
    audit_log_for,
    changed_tracked_fields,
    log_payment_change,
)
from app.utils.contract_calculations import money
from app.utils.database import get_db

router = APIRouter(prefix="/payments", tags=["Payments"])

SPLIT_TOLERANCE = Decimal("0.01")


def check_split(total, principal, late_fee):
    """Principal + late fee must equal the total, within a cent."""
    if abs(money(total) - (money(principal) + money(late_fee))) > SPLIT_TOLERANCE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Principal amount + Late fee amount must equal Total amount",
        )


def get_payment_or_404(db: Session, payment_id: int) -> Payment:
    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    if not payment:
        raise HTTPException(404, "Payment not found")
    return payment


@router.get("", response_model=list[PaymentOut])
def list_payments(db: Session = Depends(get_db)):
    return db.query(Payment).order_by(Payment.payment_date.desc(), Payment.id.desc()).all()


@router.get("/suggest-split", response_model=SplitSuggestionOut)
def suggest_split(
        amount_total: Decimal = Query(..., ge=0),
        installment_amount: Decimal = Query(..., ge=0),
):
    # anything above the installment is treated as late fee
    if amount_total > installment_amount:
        return SplitSuggestionOut(
            principal_amount=float(money(installment_amount)),
            late_fee_amount=float(money(amount_total - installment_amount)),
        )
    return SplitSuggestionOut(principal_amount=float(money(amount_total)), late_fee_amount=0.0)


@router.get("/by-contract/{contract_id}", response_model=list[PaymentOut])
def payments_by_contract(contract_id: int, db: Session = Depends(get_db)):
    return (
        db.query(Payment)
        .filter(Payment.contract_id == contract_id)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
        .all()
    )


@router.get("/by-year/{year}", response_model=list[PaymentOut])
def payments_by_year(year: int, db: Session = Depends(get_db)):
    return (
        db.query(Payment)
        .filter(Payment.payment_date >= date(year, 1, 1), Payment.payment_date <= date(year, 12, 31))
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
        .all()
    )


@router.post("", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
def create_payment(payload: PaymentCreate, db: Session = Depends(get_db)):
    contract = db.query(Contract).filter(Contract.id == payload.contract_id).first()
    if not contract:
        raise HTTPException(404, "Contract not found")

    check_split(payload.amount_total, payload.principal_amount, payload.late_fee_amount)

    payment = Payment(
        contract_id=contract.id,
        property_id=contract.property_id,
        payment_date=payload.payment_date,
        amount_total=money(payload.amount_total),
        principal_amount=money(payload.principal_amount),
        late_fee_amount=money(payload.late_fee_amount),
        received_by=payload.received_by,
        channel=payload.channel,
        memo=payload.memo,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    return payment


@router.put("/{payment_id}", response_model=PaymentOut)
def update_payment(payment_id: int, payload: PaymentUpdate, db: Session = Depends(get_db)):
    payment = get_payment_or_404(db, payment_id)

    updates = payload.model_dump(exclude_unset=True)
    changed_by = (updates.pop("changed_by", None) or "").strip()
    reason = (updates.pop("reason", None) or "").strip()

    check_split(
        updates.get("amount_total", payment.amount_total),
        updates.get("principal_amount", payment.principal_amount),
        updates.get("late_fee_amount", payment.late_fee_amount),
    )

    audited = changed_tracked_fields(payment, updates, TRACKED_PAYMENT_FIELDS)
    if audited and (not changed_by or not reason):
        raise HTTPException(
            400, f"changed_by and reason are required when changing {', '.join(audited)}"
        )

    for field in audited:
        log_payment_change(db, payment_id, field, getattr(payment, field), updates[field], changed_by, reason)

    for field, value in updates.items():
        setattr(payment, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unable to update payment due to database constraints.",
        )
    db.refresh(payment)
    return payment


@router.delete("/{payment_id}")
def delete_payment(payment_id: int, db: Session = Depends(get_db)):
    payment = get_payment_or_404(db, payment_id)
    db.delete(payment)
    db.commit()
    return {"message": "Payment deleted successfully"}


@router.get("/{payment_id}/audit-log", response_model=list[AuditLogOut])
def payment_audit_log(payment_id: int, db: Session = Depends(get_db)):
    get_payment_or_404(db, payment_id)
    return audit_log_for(db, "PAYMENT", payment_id)
