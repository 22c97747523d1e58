"""
Installment schedule generation for contract-for-deed sales.

The generator is a pure function of (contract terms, as-of date): it never
reads the clock and performs no I/O. Callers own the idempotency check
and persistence (see app.services.installment_generator).
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from dateutil.relativedelta import relativedelta

from app.core.exceptions import IneligibleContractError, InvalidContractTermsError
from app.utils.contract_calculations import money

REGULAR = "REGULAR"
BALLOON = "BALLOON"
PENDING = "PENDING"
PAID = "PAID"


def to_date(value) -> Optional[date]:
    """Accept date, datetime or 'yyyy-mm-dd'; drop any time component."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as e:
        raise InvalidContractTermsError(f"Invalid date: {value!r}") from e


def _decimal(value, field: str) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, bool):
        raise InvalidContractTermsError(f"{field} must be numeric, got {value!r}")
    try:
        d = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise InvalidContractTermsError(f"{field} must be numeric, got {value!r}") from e
    if not d.is_finite():
        raise InvalidContractTermsError(f"{field} must be numeric, got {value!r}")
    if d < 0:
        raise InvalidContractTermsError(f"{field} must not be negative, got {value!r}")
    return d


def _count(value) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise InvalidContractTermsError(f"installment_count must be an integer, got {value!r}")
    try:
        n = int(value)
    except (TypeError, ValueError) as e:
        raise InvalidContractTermsError(f"installment_count must be an integer, got {value!r}") from e
    if n != Decimal(str(value)):
        raise InvalidContractTermsError(f"installment_count must be an integer, got {value!r}")
    if n < 0:
        raise InvalidContractTermsError(f"installment_count must not be negative, got {value!r}")
    return n


@dataclass(frozen=True)
class ContractTerms:
    """The financing fields of a contract the generator works from."""

    contract_id: int
    property_id: str
    installment_amount: Decimal
    installment_count: int
    first_installment_date: Optional[date] = None
    balloon_amount: Decimal = Decimal("0.00")
    balloon_date: Optional[date] = None

    @classmethod
    def from_contract(cls, contract) -> "ContractTerms":
        """
        Build terms from a Contract row (or anything exposing the same attributes).
        Raises InvalidContractTermsError on negative / non-numeric values.
        """
        return cls(
            contract_id=contract.id,
            property_id=contract.property_id,
            installment_amount=_decimal(contract.installment_amount, "installment_amount"),
            installment_count=_count(contract.installment_count),
            first_installment_date=to_date(contract.first_installment_date),
            balloon_amount=_decimal(getattr(contract, "balloon_amount", None), "balloon_amount"),
            balloon_date=to_date(getattr(contract, "balloon_date", None)),
        )

    @property
    def has_balloon(self) -> bool:
        return self.balloon_amount > 0 and self.balloon_date is not None


@dataclass(frozen=True)
class InstallmentDraft:
    contract_id: int
    property_id: str
    installment_number: int
    due_date: date
    amount: Decimal
    type: str
    status: str

    def as_row(self) -> tuple:
        """Serialized row (yyyy-mm-dd date, two-decimal amount) in INSERT_COLUMNS order."""
        return (
            self.contract_id,
            self.property_id,
            self.installment_number,
            self.due_date.isoformat(),
            f"{self.amount:.2f}",
            self.type,
            self.status,
        )


def check_eligibility(terms: ContractTerms) -> None:
    """Raise IneligibleContractError naming the first missing term."""
    if terms.first_installment_date is None:
        raise IneligibleContractError(terms.contract_id, "missing first installment date")
    if terms.installment_count <= 0:
        raise IneligibleContractError(terms.contract_id, "installment count is zero")
    if terms.installment_amount <= 0:
        raise IneligibleContractError(terms.contract_id, "installment amount is zero")


def add_months(anchor: date, months: int) -> date:
    """Calendar-month addition, clamped to the last day of the target month."""
    return anchor + relativedelta(months=months)


def status_for(due_date: date, as_of: date) -> str:
    # strictly before the cutoff counts as paid; due on the cutoff is still pending
    return PAID if due_date < as_of else PENDING


def generate_schedule(contract, as_of: date) -> list[InstallmentDraft]:
    """
    Build the ordered installment set for one contract.

    Regular installments fall on first_installment_date + i months
    (i = 0..count-1), each offset from the anchor so month-end dates clamp
    without drifting. A balloon, when balloon_amount > 0 and balloon_date is
    set, is appended as installment count + 1 on balloon_date. Every row's
    status is PAID if due before as_of, else PENDING.
    """
    terms = contract if isinstance(contract, ContractTerms) else ContractTerms.from_contract(contract)
    check_eligibility(terms)
    as_of = to_date(as_of)
    if as_of is None:
        raise ValueError("as_of date is required")

    amount = money(terms.installment_amount)
    drafts = []

    for i in range(terms.installment_count):
        due = add_months(terms.first_installment_date, i)
        drafts.append(
            InstallmentDraft(
                contract_id=terms.contract_id,
                property_id=terms.property_id,
                installment_number=i + 1,
                due_date=due,
                amount=amount,
                type=REGULAR,
                status=status_for(due, as_of),
            )
        )

    if terms.has_balloon:
        drafts.append(
            InstallmentDraft(
                contract_id=terms.contract_id,
                property_id=terms.property_id,
                installment_number=terms.installment_count + 1,
                due_date=terms.balloon_date,
                amount=money(terms.balloon_amount),
                type=BALLOON,
                status=status_for(terms.balloon_date, as_of),
            )
        )

    return drafts
