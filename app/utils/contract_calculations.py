import re
from datetime import date
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional

ZERO = Decimal("0.00")
DOWN_PAYMENT_MARKERS = ("down payment", "entrada")


def money(x) -> Decimal:
    """Always return 2-decimal Decimal with HALF_UP rounding."""
    if x is None:
        x = 0
    if not isinstance(x, Decimal):
        x = Decimal(str(x))
    return x.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def parse_decimal(value) -> Decimal:
    """
    Parse money typed by hand, US or European separators.

    Examples:
      "1,234.56" -> 1234.56
      "1.234,56" -> 1234.56
      "1234,56"  -> 1234.56
      "1,234"    -> 1234
    Unparseable / empty input -> 0
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if not value:
        return Decimal("0")

    s = str(value).strip().replace("$", "").replace(" ", "")
    commas = s.count(",")
    dots = s.count(".")

    if commas and dots:
        # whichever separator comes last is the decimal point
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif commas:
        if commas > 1:
            s = s.replace(",", "")
        else:
            head, tail = s.split(",")
            s = f"{head}.{tail}" if len(tail) <= 2 else f"{head}{tail}"

    try:
        return Decimal(s)
    except InvalidOperation:
        return Decimal("0")


def normalize_property_id(raw: Optional[str]) -> str:
    """
    "33" / "#33" / "Property 33" / "  PROP 33 " -> "#33"
    Empty input -> ""
    """
    if not raw:
        return ""
    s = re.sub(r"\s+", "", raw.strip()).replace("#", "")
    s = re.sub(r"^property", "", s, flags=re.IGNORECASE)
    s = re.sub(r"^prop", "", s, flags=re.IGNORECASE)
    return f"#{s}" if s else ""


def gross_profit(contract_price, cost_basis) -> Decimal:
    return money(parse_decimal(contract_price) - parse_decimal(cost_basis))


def gross_profit_percent(contract_price, cost_basis) -> Decimal:
    """(price - cost) / price * 100, 0 when price is 0."""
    price = parse_decimal(contract_price)
    if price == 0:
        return Decimal("0")
    return (price - parse_decimal(cost_basis)) / price * Decimal("100")


def gain_recognized(principal_amount, gp_percent) -> Decimal:
    """Installment-method gain: principal received x gross profit %."""
    return money(parse_decimal(principal_amount) * Decimal(str(gp_percent)) / Decimal("100"))


def is_down_payment_memo(memo: Optional[str]) -> bool:
    if not memo:
        return False
    m = memo.lower()
    return any(marker in m for marker in DOWN_PAYMENT_MARKERS)


def effective_down_payment(contract, payments):
    """
    Returns (effective_dp, dp_payment_id).

    A payment whose memo mentions a down payment replaces the contract's
    down_payment field so the DP is never counted twice.
    """
    for p in payments:
        if is_down_payment_memo(p.memo):
            return money(p.principal_amount), p.id
    return money(contract.down_payment), None


def payments_in_scope(contract, payments, cutoff: Optional[date] = None):
    """Payments for this contract, after transfer (ASSUMED) and up to cutoff."""
    out = [p for p in payments if p.contract_id == contract.id]
    if contract.origin_type == "ASSUMED" and contract.transfer_date:
        out = [p for p in out if p.payment_date >= contract.transfer_date]
    if cutoff is not None:
        out = [p for p in out if p.payment_date <= cutoff]
    return out


def receivable_balance(contract, payments) -> Decimal:
    """
    CASH:    0
    ASSUMED: opening_receivable - principal paid after transfer
    DIRECT:  contract_price - effective DP - principal paid (DP payment excluded)
    """
    if contract.sale_type == "CASH":
        return ZERO

    scoped = payments_in_scope(contract, payments)
    effective_dp, dp_payment_id = effective_down_payment(contract, scoped)

    principal_paid = sum(
        (money(p.principal_amount) for p in scoped if dp_payment_id is None or p.id != dp_payment_id),
        ZERO,
    )

    if contract.origin_type == "ASSUMED":
        return money(money(contract.opening_receivable) - principal_paid)

    return money(money(contract.contract_price) - effective_dp - principal_paid)


def pre_deed_status(deed_status: Optional[str], deed_recorded_date: Optional[date], cutoff: date) -> str:
    """
    Y       -> deposits still pre-deed at cutoff
    N       -> deed recorded on or before cutoff
    Missing -> deed status unknown
    """
    if deed_status == "NOT_RECORDED":
        return "Y"
    if deed_status == "RECORDED":
        if deed_recorded_date and deed_recorded_date <= cutoff:
            return "N"
        return "Y"
    return "Missing"
