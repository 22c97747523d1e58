from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from app.utils.database import Base


class TaxAuditLog(Base):
    __tablename__ = "tax_audit_log"

    id = Column(Integer, primary_key=True, index=True)

    entity_type = Column(String(20), nullable=False)  # CONTRACT / PAYMENT
    entity_id = Column(Integer, nullable=False, index=True)

    field = Column(String(100), nullable=False)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)

    changed_by = Column(String(255), nullable=False)
    changed_at = Column(DateTime, server_default=func.now(), nullable=False)
    reason = Column(Text, nullable=False)
