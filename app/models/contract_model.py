# app/models/contract_model.py

from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    Numeric,
    Text,
    Index,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.utils.database import Base


class Contract(Base):
    __tablename__ = "contracts"

    __table_args__ = (
        Index("ix_contracts_status", "status"),
        Index("ix_contracts_sale_status", "sale_type", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(String(50), unique=True, nullable=False)  # e.g. "#33"
    buyer_name = Column(String(255), nullable=False)

    # DIRECT / ASSUMED
    origin_type = Column(String(20), nullable=False, server_default="DIRECT")
    # CFD / CASH
    sale_type = Column(String(20), nullable=False, server_default="CFD")

    county = Column(String(100), nullable=False)
    state = Column(String(50), nullable=True)

    contract_date = Column(Date, nullable=False)
    transfer_date = Column(Date, nullable=True)  # ASSUMED only
    close_date = Column(Date, nullable=True)  # CASH only

    contract_price = Column(Numeric(15, 2), nullable=False)
    cost_basis = Column(Numeric(15, 2), nullable=False, server_default="0")
    cost_basis_source = Column(String(20), nullable=True)
    cost_basis_notes = Column(Text, nullable=True)
    down_payment = Column(Numeric(15, 2), nullable=False, server_default="0")

    # financing terms
    installment_amount = Column(Numeric(15, 2), nullable=False, server_default="0")
    installment_count = Column(Integer, nullable=False, server_default="0")
    installments_paid_by_transfer = Column(Integer, nullable=True)
    first_installment_date = Column(Date, nullable=True)
    balloon_amount = Column(Numeric(15, 2), nullable=True)
    balloon_date = Column(Date, nullable=True)

    # Active / PaidOff / Default / Repossessed
    status = Column(String(20), nullable=False, server_default="Active")

    # UNKNOWN / NOT_RECORDED / RECORDED
    deed_status = Column(String(20), nullable=False, server_default="UNKNOWN")
    deed_recorded_date = Column(Date, nullable=True)

    notes = Column(Text, nullable=True)

    # ASSUMED: receivable as of transfer date
    opening_receivable = Column(Numeric(15, 2), nullable=True)
    opening_receivable_source = Column(String(20), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    installments = relationship(
        "Installment",
        back_populates="contract",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Installment.installment_number",
    )
    payments = relationship(
        "Payment",
        back_populates="contract",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
