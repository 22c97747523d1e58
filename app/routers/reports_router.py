from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.core.enums import ContractStatus, OriginType, SaleType
from app.schemas.report_schema import (
    DashboardOut,
    ExceptionOut,
    PreDeedTieOutOut,
    TaxScheduleRowOut,
)
from app.services.reports_service import (
    dashboard_kpis,
    data_exceptions,
    pre_deed_csv,
    pre_deed_tie_out,
    tax_schedule,
)
from app.utils.database import get_db

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/pre-deed-tie-out", response_model=PreDeedTieOutOut)
def pre_deed_tie_out_report(
        cutoff_date: date,
        format: Literal["json", "csv"] = "json",
        status: Optional[ContractStatus] = None,
        origin_type: Optional[OriginType] = None,
        county: Optional[str] = None,
        property_id: Optional[str] = None,
        db: Session = Depends(get_db),
):
    filters = {
        "status": status,
        "origin_type": origin_type,
        "county": county,
        "property_id": property_id,
    }
    report = pre_deed_tie_out(db, cutoff_date, filters)

    if format == "csv":
        filename = f"PreDeed_TieOut_{cutoff_date.isoformat()}.csv"
        return StreamingResponse(
            iter([pre_deed_csv(report)]),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return report


@router.get("/tax-schedule", response_model=list[TaxScheduleRowOut])
def tax_schedule_report(year: int, db: Session = Depends(get_db)):
    return tax_schedule(db, year)


@router.get("/exceptions", response_model=list[ExceptionOut])
def exceptions_report(db: Session = Depends(get_db)):
    return data_exceptions(db)


@router.get("/dashboard", response_model=DashboardOut)
def dashboard(
        year: Optional[int] = Query(None),
        status: Optional[ContractStatus] = None,
        origin_type: Optional[OriginType] = None,
        sale_type: Optional[SaleType] = None,
        county: Optional[str] = None,
        db: Session = Depends(get_db),
):
    filters = {
        "status": status,
        "origin_type": origin_type,
        "sale_type": sale_type,
        "county": county,
    }
    return dashboard_kpis(db, year or date.today().year, filters)
