import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.installment_model import Installment
from app.utils.schedule import InstallmentDraft

logger = logging.getLogger(__name__)

# column order of an installment insert, shared with InstallmentDraft.as_row
INSERT_COLUMNS = (
    "contract_id",
    "property_id",
    "installment_number",
    "due_date",
    "amount",
    "type",
    "status",
)


class SqlInstallmentStore:
    """Installment persistence over a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def count_for_contract(self, contract_id: int) -> int:
        return (
            self.db.query(func.count(Installment.id))
            .filter(Installment.contract_id == contract_id)
            .scalar()
        ) or 0

    def insert(self, draft: InstallmentDraft) -> None:
        values = {col: getattr(draft, col) for col in INSERT_COLUMNS}
        logger.debug("Insert installment %s", dict(zip(INSERT_COLUMNS, draft.as_row())))
        self.db.add(Installment(**values))
        self.db.flush()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
