import re

from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List

from app.core.enums import (
    ContractStatus,
    CostBasisSource,
    DeedStatus,
    OpeningReceivableSource,
    OriginType,
    SaleType,
)
from app.utils.contract_calculations import parse_decimal


class ContractBase(BaseModel):
    property_id: str = Field(..., min_length=1, max_length=50)
    buyer_name: str = Field(..., min_length=1, max_length=255)
    origin_type: OriginType = "DIRECT"
    sale_type: SaleType = "CFD"
    county: str
    state: Optional[str] = None

    contract_date: date
    transfer_date: Optional[date] = None
    close_date: Optional[date] = None

    contract_price: Decimal = Field(ge=0)
    cost_basis: Decimal = Field(default=Decimal("0"), ge=0)
    cost_basis_source: Optional[CostBasisSource] = None
    cost_basis_notes: Optional[str] = None
    down_payment: Decimal = Field(default=Decimal("0"), ge=0)

    installment_amount: Decimal = Field(default=Decimal("0"), ge=0)
    installment_count: int = Field(default=0, ge=0)
    installments_paid_by_transfer: Optional[int] = Field(default=None, ge=0)
    first_installment_date: Optional[date] = None
    balloon_amount: Optional[Decimal] = Field(default=None, ge=0)
    balloon_date: Optional[date] = None

    status: ContractStatus = "Active"
    deed_status: DeedStatus = "UNKNOWN"
    deed_recorded_date: Optional[date] = None

    notes: Optional[str] = None
    opening_receivable: Optional[Decimal] = Field(default=None, ge=0)
    opening_receivable_source: Optional[OpeningReceivableSource] = None

    @field_validator("notes", "cost_basis_notes", "state", mode="before")
    def empty_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class ContractCreate(ContractBase):
    pass


class ContractUpdate(BaseModel):
    property_id: Optional[str] = None
    buyer_name: Optional[str] = None
    origin_type: Optional[OriginType] = None
    sale_type: Optional[SaleType] = None
    county: Optional[str] = None
    state: Optional[str] = None

    contract_date: Optional[date] = None
    transfer_date: Optional[date] = None
    close_date: Optional[date] = None

    contract_price: Optional[Decimal] = Field(default=None, ge=0)
    cost_basis: Optional[Decimal] = Field(default=None, ge=0)
    cost_basis_source: Optional[CostBasisSource] = None
    cost_basis_notes: Optional[str] = None
    down_payment: Optional[Decimal] = Field(default=None, ge=0)

    installment_amount: Optional[Decimal] = Field(default=None, ge=0)
    installment_count: Optional[int] = Field(default=None, ge=0)
    installments_paid_by_transfer: Optional[int] = Field(default=None, ge=0)
    first_installment_date: Optional[date] = None
    balloon_amount: Optional[Decimal] = Field(default=None, ge=0)
    balloon_date: Optional[date] = None

    status: Optional[ContractStatus] = None
    deed_status: Optional[DeedStatus] = None
    deed_recorded_date: Optional[date] = None

    notes: Optional[str] = None
    opening_receivable: Optional[Decimal] = Field(default=None, ge=0)
    opening_receivable_source: Optional[OpeningReceivableSource] = None

    # required when a tax-audited field changes
    changed_by: Optional[str] = None
    reason: Optional[str] = None

    @field_validator(
        "property_id", "buyer_name", "origin_type", "sale_type", "county",
        "contract_date", "contract_price", "cost_basis", "down_payment",
        "installment_amount", "installment_count", "status", "deed_status",
    )
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class ContractOut(BaseModel):
    id: int
    property_id: str
    buyer_name: str
    origin_type: str
    sale_type: str
    county: str
    state: Optional[str] = None

    contract_date: date
    transfer_date: Optional[date] = None
    close_date: Optional[date] = None

    contract_price: float
    cost_basis: float
    cost_basis_source: Optional[str] = None
    cost_basis_notes: Optional[str] = None
    down_payment: float

    installment_amount: float
    installment_count: int
    installments_paid_by_transfer: Optional[int] = None
    first_installment_date: Optional[date] = None
    balloon_amount: Optional[float] = None
    balloon_date: Optional[date] = None

    status: str
    deed_status: str
    deed_recorded_date: Optional[date] = None

    notes: Optional[str] = None
    opening_receivable: Optional[float] = None
    opening_receivable_source: Optional[str] = None

    class Config:
        from_attributes = True


class ContractCalculationsOut(BaseModel):
    contract_id: int
    gross_profit_percent: float
    gross_profit: float
    receivable_balance: float
    year: Optional[int] = None
    principal_received_year: float = 0
    gain_recognized_year: float = 0
    late_fees_year: float = 0
    total_profit_recognized_year: float = 0


class AuditLogOut(BaseModel):
    id: int
    entity_type: str
    entity_id: int
    field: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    changed_by: str
    changed_at: datetime
    reason: str

    class Config:
        from_attributes = True


class ContractImportRow(BaseModel):
    property_id: str
    buyer_name: str
    county: str
    state: Optional[str] = None
    origin_type: OriginType
    sale_type: SaleType = "CFD"
    contract_date: date
    transfer_date: Optional[date] = None
    close_date: Optional[date] = None
    contract_price: Decimal
    cost_basis: Decimal
    down_payment: Decimal = Decimal("0")
    installment_amount: Optional[Decimal] = None
    installment_count: Optional[int] = None
    installments_paid_by_transfer: Optional[int] = None
    balloon_amount: Optional[Decimal] = None
    balloon_date: Optional[date] = None
    status: ContractStatus = "Active"
    notes: Optional[str] = None
    opening_receivable: Optional[Decimal] = None
    deed_status: DeedStatus = "UNKNOWN"
    deed_recorded_date: Optional[date] = None

    @field_validator(
        "transfer_date", "close_date", "balloon_date", "deed_recorded_date",
        "installment_amount", "installment_count", "installments_paid_by_transfer",
        "balloon_amount", "opening_receivable", "state", "notes",
        mode="before",
    )
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator(
        "contract_price", "cost_basis", "down_payment", "installment_amount",
        "balloon_amount", "opening_receivable",
        mode="before",
    )
    def hand_typed_money(cls, v):
        # "1,234.56" / "1.234,56" / "$1,234" as typed in spreadsheets
        if isinstance(v, str) and v.strip():
            if not re.fullmatch(r"\$?\s*-?[\d.,\s]*\d[\d.,\s]*", v.strip()):
                raise ValueError(f"not a number: {v!r}")
            return parse_decimal(v)
        return v


class ImportErrorRow(BaseModel):
    row: int
    message: str


class ImportResult(BaseModel):
    success: bool
    imported: int
    errors: List[ImportErrorRow] = []
