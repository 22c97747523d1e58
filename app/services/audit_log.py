from decimal import Decimal

from sqlalchemy.orm import Session

from app.models.tax_audit_log_model import TaxAuditLog
from app.utils.contract_calculations import money

# fields that feed the installment-sale tax computation
TRACKED_CONTRACT_FIELDS = (
    "contract_price",
    "cost_basis",
    "down_payment",
    "opening_receivable",
    "transfer_date",
    "close_date",
)

TRACKED_PAYMENT_FIELDS = (
    "payment_date",
    "amount_total",
    "principal_amount",
    "late_fee_amount",
)


def _as_text(value):
    if value is None or value == "":
        return None
    if isinstance(value, (Decimal, float, int)) and not isinstance(value, bool):
        return str(money(value))
    return str(value)


def _record(db: Session, entity_type: str, entity_id: int, field: str, old, new, changed_by: str, reason: str) -> bool:
    if _as_text(old) == _as_text(new):
        return False
    db.add(
        TaxAuditLog(
            entity_type=entity_type,
            entity_id=entity_id,
            field=field,
            old_value=_as_text(old),
            new_value=_as_text(new),
            changed_by=changed_by,
            reason=reason,
        )
    )
    return True


def log_contract_change(db: Session, contract_id: int, field: str, old, new, changed_by: str, reason: str) -> bool:
    if field not in TRACKED_CONTRACT_FIELDS:
        return False
    return _record(db, "CONTRACT", contract_id, field, old, new, changed_by, reason)


def log_payment_change(db: Session, payment_id: int, field: str, old, new, changed_by: str, reason: str) -> bool:
    if field not in TRACKED_PAYMENT_FIELDS:
        return False
    return _record(db, "PAYMENT", payment_id, field, old, new, changed_by, reason)


def audit_log_for(db: Session, entity_type: str, entity_id: int) -> list[TaxAuditLog]:
    return (
        db.query(TaxAuditLog)
        .filter(TaxAuditLog.entity_type == entity_type, TaxAuditLog.entity_id == entity_id)
        .order_by(TaxAuditLog.changed_at.asc(), TaxAuditLog.id.asc())
        .all()
    )


def changed_tracked_fields(entity, updates: dict, tracked) -> list[str]:
    """Tracked fields whose value in `updates` differs from the entity's."""
    return [
        f for f in tracked
        if f in updates and _as_text(getattr(entity, f)) != _as_text(updates[f])
    ]
