from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import date
from decimal import Decimal
from typing import Optional, List


class InstallmentOut(BaseModel):
    id: int
    contract_id: int
    property_id: str
    installment_number: int
    due_date: date
    amount: float
    type: str
    status: str

    class Config:
        from_attributes = True


class ScheduleTermsRow(BaseModel):
    """One spreadsheet row of financing terms for an existing contract."""

    property_id: str = Field(..., min_length=1)
    first_payment_date: date
    installment_amount: Decimal = Field(gt=0)
    installment_count: int = Field(gt=0)
    balloon_amount: Decimal = Field(default=Decimal("0"), ge=0)
    balloon_date: Optional[date] = None

    @field_validator("balloon_amount", "balloon_date", mode="before")
    def blank_to_default(cls, v, info):
        if v is None or (isinstance(v, str) and not v.strip()):
            return Decimal("0") if info.field_name == "balloon_amount" else None
        return v

    @model_validator(mode="after")
    def balloon_needs_date(self):
        if self.balloon_amount > 0 and self.balloon_date is None:
            raise ValueError("balloon_amount requires balloon_date")
        return self


class SkippedContractOut(BaseModel):
    contract_id: int
    property_id: str
    reason: Optional[str] = None
    existing_count: Optional[int] = None


class GenerationSummaryOut(BaseModel):
    as_of: date
    contracts_processed: int
    contracts_generated: int
    installments_created: int
    paid: int
    pending: int
    skipped_ineligible: List[SkippedContractOut] = []
    skipped_existing: List[SkippedContractOut] = []
    not_found: List[str] = []


class OverdueInstallmentOut(BaseModel):
    installment_id: int
    contract_id: int
    property_id: str
    buyer_name: str
    installment_number: int
    due_date: date
    amount: float
    type: str
    days_overdue: int
