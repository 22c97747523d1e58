import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.models.contract_model import Contract
from app.models.payment_model import Payment
from app.utils.contract_calculations import money, normalize_property_id

logger = logging.getLogger(__name__)


def get_contract_by_property_id(db: Session, property_id: str) -> Optional[Contract]:
    """Exact match first, then with / without the leading '#'."""
    raw = (property_id or "").strip()
    candidates = [raw, normalize_property_id(raw)]
    if raw.startswith("#"):
        candidates.append(raw[1:])

    for pid in candidates:
        if not pid:
            continue
        row = db.query(Contract).filter(Contract.property_id == pid).first()
        if row:
            return row
    return None


def fetch_generation_candidates(db: Session) -> list[Contract]:
    """Active CFD contracts, the ones that carry an installment schedule."""
    return (
        db.query(Contract)
        .filter(Contract.sale_type == "CFD", Contract.status == "Active")
        .order_by(Contract.property_id.asc())
        .all()
    )


def create_contract(db: Session, values: dict) -> Contract:
    """
    Insert a contract (flush only, caller commits).

    CASH sales with a close date get their full-price payment on file
    unless one already exists.
    """
    values = dict(values)
    values["property_id"] = normalize_property_id(values["property_id"])

    contract = Contract(**values)
    db.add(contract)
    db.flush()

    if contract.sale_type == "CASH" and contract.close_date:
        has_payment = db.query(Payment.id).filter(Payment.contract_id == contract.id).first()
        if not has_payment:
            price = money(contract.contract_price)
            db.add(
                Payment(
                    contract_id=contract.id,
                    property_id=contract.property_id,
                    payment_date=contract.close_date,
                    amount_total=price,
                    principal_amount=price,
                    late_fee_amount=money(0),
                    received_by="GT_REAL_BANK",
                    channel="WIRE",
                    memo="CASH sale - full payment at closing",
                )
            )
            db.flush()
            logger.info("Recorded closing payment for CASH sale %s", contract.property_id)

    return contract
