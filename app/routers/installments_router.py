from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.models.contract_model import Contract
from app.models.installment_model import Installment
from app.schemas.installment_schema import GenerationSummaryOut, OverdueInstallmentOut
from app.services.installment_generator import run_batch
from app.utils.database import get_db

router = APIRouter(prefix="/installments", tags=["Installments"])


@router.post("/generate", response_model=GenerationSummaryOut)
def generate_all(
        as_of: Optional[date] = Query(None, description="Cutoff for PAID backfill, defaults to today"),
        db: Session = Depends(get_db),
):
    """Batch mode: every Active CFD contract without a schedule gets one."""
    summary = run_batch(db, as_of or date.today())
    return summary.to_dict()


@router.get("/overdue", response_model=list[OverdueInstallmentOut])
def overdue_installments(
        as_of: Optional[date] = Query(None),
        db: Session = Depends(get_db),
):
    as_of = as_of or date.today()

    rows = (
        db.query(Installment, Contract)
        .join(Contract, Contract.id == Installment.contract_id)
        .filter(
            Installment.status != "PAID",
            Installment.due_date < as_of,
            Contract.status == "Active",
        )
        .order_by(Installment.due_date.asc(), Installment.installment_number.asc())
        .all()
    )

    return [
        OverdueInstallmentOut(
            installment_id=inst.id,
            contract_id=inst.contract_id,
            property_id=inst.property_id,
            buyer_name=contract.buyer_name,
            installment_number=inst.installment_number,
            due_date=inst.due_date,
            amount=float(inst.amount),
            type=inst.type,
            days_overdue=(as_of - inst.due_date).days,
        )
        for inst, contract in rows
    ]
