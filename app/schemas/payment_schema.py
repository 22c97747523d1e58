from pydantic import BaseModel, Field, field_validator
from datetime import date
from decimal import Decimal
from typing import Optional

from app.core.enums import PaymentChannel, ReceivedBy


class PaymentCreate(BaseModel):
    contract_id: int
    payment_date: date
    amount_total: Decimal = Field(gt=0)
    principal_amount: Decimal = Field(ge=0)
    late_fee_amount: Decimal = Field(default=Decimal("0"), ge=0)
    received_by: ReceivedBy = "UNKNOWN"
    channel: PaymentChannel = "OTHER"
    memo: Optional[str] = None

    @field_validator("memo", mode="before")
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class PaymentUpdate(BaseModel):
    payment_date: Optional[date] = None
    amount_total: Optional[Decimal] = Field(default=None, gt=0)
    principal_amount: Optional[Decimal] = Field(default=None, ge=0)
    late_fee_amount: Optional[Decimal] = Field(default=None, ge=0)
    received_by: Optional[ReceivedBy] = None
    channel: Optional[PaymentChannel] = None
    memo: Optional[str] = None

    changed_by: Optional[str] = None
    reason: Optional[str] = None

    @field_validator(
        "payment_date", "amount_total", "principal_amount", "late_fee_amount",
        "received_by", "channel",
    )
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class PaymentOut(BaseModel):
    id: int
    contract_id: int
    property_id: str
    payment_date: date
    amount_total: float
    principal_amount: float
    late_fee_amount: float
    received_by: str
    channel: str
    memo: Optional[str] = None

    class Config:
        from_attributes = True


class SplitSuggestionOut(BaseModel):
    principal_amount: float
    late_fee_amount: float
