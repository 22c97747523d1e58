from pydantic import BaseModel
from datetime import date
from typing import Optional, List


class PreDeedRowOut(BaseModel):
    contract_id: int
    property_id: str
    buyer_contract_id: str
    property_county: str
    contract_date: date
    deed_status: str
    deed_recorded_date: Optional[date] = None
    down_payment_received: float
    installments_received: float
    total_received: float
    status: str
    pre_deed_status: str
    payment_dates: str


class PreDeedTotalsOut(BaseModel):
    confirmed_pre_deed: float
    missing_deed_info: float


class PreDeedTieOutOut(BaseModel):
    cutoff_date: date
    totals: PreDeedTotalsOut
    rows: List[PreDeedRowOut]


class TaxScheduleRowOut(BaseModel):
    contract_id: int
    property_id: str
    buyer_name: str
    origin_type: str
    sale_type: str
    principal_received: float
    gross_profit_percent: float
    gain_recognized: float
    late_fees: float
    total_profit_recognized: float


class ExceptionOut(BaseModel):
    id: str
    contract_id: int
    property_id: str
    type: str
    severity: str
    message: str
    field: Optional[str] = None


class DashboardOut(BaseModel):
    year: int
    active_contracts: int
    total_contract_price: float
    total_cost_basis: float
    total_gross_profit: float
    total_receivable_balance: float
    principal_received_ytd: float
    gain_recognized_ytd: float
    late_fees_ytd: float
