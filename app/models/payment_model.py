from sqlalchemy import (
    Column, Integer, String, Date, DateTime, Numeric, Text, ForeignKey
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.utils.database import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)

    contract_id = Column(
        Integer, ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    property_id = Column(String(50), nullable=False)

    payment_date = Column(Date, nullable=False, index=True)
    amount_total = Column(Numeric(15, 2), nullable=False)
    principal_amount = Column(Numeric(15, 2), nullable=False)
    late_fee_amount = Column(Numeric(15, 2), nullable=False, default=0)

    received_by = Column(String(20), nullable=False, default="UNKNOWN")
    channel = Column(String(20), nullable=False, default="OTHER")
    memo = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    contract = relationship("Contract", back_populates="payments")
