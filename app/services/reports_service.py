import csv
import io
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from app.models.contract_model import Contract
from app.models.payment_model import Payment
from app.utils.contract_calculations import (
    ZERO,
    gain_recognized,
    gross_profit_percent,
    is_down_payment_memo,
    money,
    payments_in_scope,
    pre_deed_status,
    receivable_balance,
)

PRE_DEED_CSV_HEADERS = [
    "buyer_contract_id",
    "property_county",
    "contract_date",
    "deed_status",
    "deed_recorded_date",
    "down_payment",
    "installments",
    "total_received",
    "status",
    "pre_deed",
]


def _filtered_contracts(db: Session, filters: Optional[dict] = None) -> list[Contract]:
    q = db.query(Contract)
    filters = filters or {}
    if filters.get("status"):
        q = q.filter(Contract.status == filters["status"])
    if filters.get("origin_type"):
        q = q.filter(Contract.origin_type == filters["origin_type"])
    if filters.get("sale_type"):
        q = q.filter(Contract.sale_type == filters["sale_type"])
    if filters.get("county"):
        q = q.filter(Contract.county == filters["county"])
    if filters.get("property_id"):
        q = q.filter(Contract.property_id == filters["property_id"])
    return q.order_by(Contract.property_id.asc()).all()


def _payments_by_contract(db: Session) -> dict[int, list[Payment]]:
    out: dict[int, list[Payment]] = {}
    for p in db.query(Payment).order_by(Payment.payment_date.asc(), Payment.id.asc()).all():
        out.setdefault(p.contract_id, []).append(p)
    return out


def format_payment_dates(payments: list[Payment]) -> str:
    """'Nov 03, 2025' for one receipt, 'Nov 03-Dec 04, 2025' for a range."""
    if not payments:
        return "N/A"
    dates = sorted(p.payment_date for p in payments)
    first, last = dates[0], dates[-1]
    if len(dates) == 1:
        return f"{first:%b %d}, {first.year}"
    return f"{first:%b %d}-{last:%b %d}, {first.year}"


def pre_deed_tie_out(db: Session, cutoff: date, filters: Optional[dict] = None) -> dict:
    """
    Customer deposits received through `cutoff` on contracts whose deed had
    not been recorded by then.
    """
    by_contract = _payments_by_contract(db)
    rows = []
    confirmed_total = ZERO
    missing_total = ZERO

    for contract in _filtered_contracts(db, filters):
        payments = payments_in_scope(contract, by_contract.get(contract.id, []), cutoff=cutoff)

        dp_payment = next((p for p in payments if is_down_payment_memo(p.memo)), None)
        if dp_payment:
            down_payment_received = money(dp_payment.principal_amount)
        elif (
                contract.origin_type == "DIRECT"
                and contract.sale_type == "CFD"
                and contract.contract_date <= cutoff
        ):
            down_payment_received = money(contract.down_payment)
        else:
            down_payment_received = ZERO

        installments_received = sum(
            (money(p.principal_amount) for p in payments if p is not dp_payment), ZERO
        )
        total_received = money(down_payment_received + installments_received)

        flag = pre_deed_status(contract.deed_status, contract.deed_recorded_date, cutoff)
        if flag == "Y":
            confirmed_total += total_received
        elif flag == "Missing":
            missing_total += total_received

        rows.append(
            {
                "contract_id": contract.id,
                "property_id": contract.property_id,
                "buyer_contract_id": f"{contract.buyer_name} / {contract.property_id}",
                "property_county": f"{contract.property_id} / {contract.county}, {contract.state or ''}".rstrip(", "),
                "contract_date": contract.contract_date,
                "deed_status": contract.deed_status or "UNKNOWN",
                "deed_recorded_date": contract.deed_recorded_date,
                "down_payment_received": down_payment_received,
                "installments_received": installments_received,
                "total_received": total_received,
                "status": contract.status,
                "pre_deed_status": flag,
                "payment_dates": format_payment_dates(payments),
            }
        )

    return {
        "cutoff_date": cutoff,
        "totals": {
            "confirmed_pre_deed": money(confirmed_total),
            "missing_deed_info": money(missing_total),
        },
        "rows": rows,
    }


def pre_deed_csv(report: dict) -> str:
    """RFC 4180 CSV of a tie-out report (quotes only where needed)."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(PRE_DEED_CSV_HEADERS)
    for r in report["rows"]:
        writer.writerow(
            [
                r["buyer_contract_id"],
                r["property_county"],
                r["contract_date"].isoformat(),
                r["deed_status"],
                r["deed_recorded_date"].isoformat() if r["deed_recorded_date"] else "Missing",
                f"{r['down_payment_received']:.2f}",
                f"{r['installments_received']:.2f}",
                f"{r['total_received']:.2f}",
                r["status"],
                r["pre_deed_status"],
            ]
        )
    return buf.getvalue()


def tax_schedule(db: Session, year: int) -> list[dict]:
    """Installment-method gain per contract for one tax year."""
    by_contract = _payments_by_contract(db)
    out = []

    for contract in _filtered_contracts(db):
        year_payments = [
            p for p in by_contract.get(contract.id, []) if p.payment_date.year == year
        ]
        principal = sum((money(p.principal_amount) for p in year_payments), ZERO)
        late_fees = sum((money(p.late_fee_amount) for p in year_payments), ZERO)
        gp_percent = gross_profit_percent(contract.contract_price, contract.cost_basis)
        gain = gain_recognized(principal, gp_percent)

        out.append(
            {
                "contract_id": contract.id,
                "property_id": contract.property_id,
                "buyer_name": contract.buyer_name,
                "origin_type": contract.origin_type,
                "sale_type": contract.sale_type,
                "principal_received": principal,
                "gross_profit_percent": gp_percent,
                "gain_recognized": gain,
                "late_fees": late_fees,
                "total_profit_recognized": money(gain + late_fees),
            }
        )
    return out


def data_exceptions(db: Session) -> list[dict]:
    """Data-quality problems that block a clean tax schedule."""
    by_contract = _payments_by_contract(db)
    out = []

    def add(contract, suffix, type_, severity, message, field=None):
        out.append(
            {
                "id": f"{contract.id}-{suffix}",
                "contract_id": contract.id,
                "property_id": contract.property_id,
                "type": type_,
                "severity": severity,
                "message": message,
                "field": field,
            }
        )

    for contract in _filtered_contracts(db):
        payments = by_contract.get(contract.id, [])

        if not contract.cost_basis or money(contract.cost_basis) == 0:
            add(contract, "cost-basis", "MISSING_COST_BASIS", "CRITICAL",
                "Cost Basis is missing or zero", "cost_basis")

        if contract.origin_type == "ASSUMED" and not contract.transfer_date:
            add(contract, "transfer-date", "MISSING_TRANSFER_DATE", "CRITICAL",
                "ASSUMED contract missing Transfer Date", "transfer_date")

        if contract.origin_type == "ASSUMED" and not contract.opening_receivable:
            add(contract, "opening-receivable", "MISSING_OPENING_RECEIVABLE", "CRITICAL",
                "ASSUMED contract missing Opening Receivable", "opening_receivable")

        if contract.sale_type == "CASH" and not contract.close_date:
            add(contract, "close-date", "MISSING_CLOSE_DATE", "HIGH",
                "CASH sale missing Close Date", "close_date")

        balance = receivable_balance(contract, payments)
        if balance < 0:
            add(contract, "negative-receivable", "NEGATIVE_RECEIVABLE", "CRITICAL",
                f"Receivable balance is negative: ${balance:.2f}")

        for p in payments:
            principal = money(p.principal_amount)
            late_fee = money(p.late_fee_amount)
            total = money(p.amount_total)
            if abs(principal + late_fee - total) > money("0.01"):
                add(contract, f"payment-{p.id}-mismatch", "PAYMENT_MISMATCH", "HIGH",
                    f"Payment {p.id}: Principal (${principal}) + Late Fee (${late_fee}) != Total (${total})")

    return out


def dashboard_kpis(db: Session, year: int, filters: Optional[dict] = None) -> dict:
    contracts = _filtered_contracts(db, filters)
    by_contract = _payments_by_contract(db)

    total_price = sum((money(c.contract_price) for c in contracts), ZERO)
    total_cost = sum((money(c.cost_basis) for c in contracts), ZERO)
    receivable = ZERO
    principal_ytd = ZERO
    late_fees_ytd = ZERO
    gain_ytd = ZERO

    for c in contracts:
        payments = by_contract.get(c.id, [])
        receivable += receivable_balance(c, payments)

        year_payments = [p for p in payments if p.payment_date.year == year]
        principal = sum((money(p.principal_amount) for p in year_payments), ZERO)
        principal_ytd += principal
        late_fees_ytd += sum((money(p.late_fee_amount) for p in year_payments), ZERO)
        gain_ytd += gain_recognized(principal, gross_profit_percent(c.contract_price, c.cost_basis))

    return {
        "year": year,
        "active_contracts": sum(1 for c in contracts if c.status == "Active"),
        "total_contract_price": total_price,
        "total_cost_basis": total_cost,
        "total_gross_profit": money(total_price - total_cost),
        "total_receivable_balance": money(receivable),
        "principal_received_ytd": principal_ytd,
        "gain_recognized_ytd": money(gain_ytd),
        "late_fees_ytd": late_fees_ytd,
    }
