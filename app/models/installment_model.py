from sqlalchemy import (
    Column, Integer, String, Date, Numeric, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from app.utils.database import Base


class Installment(Base):
    __tablename__ = "installments"
    __table_args__ = (
        UniqueConstraint("contract_id", "installment_number", name="uq_contract_installment_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    contract_id = Column(
        Integer, ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    property_id = Column(String(50), nullable=False)  # denormalized for quick lookup

    installment_number = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)

    type = Column(String(20), nullable=False, default="REGULAR")  # REGULAR / BALLOON
    status = Column(String(20), nullable=False, default="PENDING")  # PENDING / PAID

    contract = relationship("Contract", back_populates="installments")
