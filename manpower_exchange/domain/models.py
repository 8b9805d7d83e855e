"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

from manpower_exchange.domain.exceptions import InvalidInputError

COST_MAX_DIGITS = 12
COST_DECIMAL_PLACES = 2


@dataclass
class Company:
    """Company taking part in an employee loan"""

    company_id: str  # UEN
    name: str


@dataclass
class Employee:
    """Employee that can be loaned between companies"""

    employee_id: str  # work permit number
    name: str
    company_id: Optional[str] = None


@dataclass(frozen=True)
class TransactionKey:
    """Composite identity of a transaction.

    Changing any component yields a different transaction, never a mutation
    of the existing one.
    """

    loan_company_id: str
    borrowing_company_id: str
    employee_id: str
    start_date: date

    def __post_init__(self) -> None:
        for field_name in ("loan_company_id", "borrowing_company_id", "employee_id"):
            value = getattr(self, field_name)
            if not isinstance(value, str) or not value.strip():
                raise InvalidInputError(f"TransactionKey.{field_name} is required")
        if not isinstance(self.start_date, date):
            raise InvalidInputError("TransactionKey.start_date is required")

    def as_dict(self) -> Dict[str, str]:
        return {
            "loan_company_id": self.loan_company_id,
            "borrowing_company_id": self.borrowing_company_id,
            "employee_id": self.employee_id,
            "start_date": self.start_date.isoformat(),
        }

    def __str__(self) -> str:
        return (
            f"({self.loan_company_id} -> {self.borrowing_company_id}, "
            f"employee {self.employee_id}, from {self.start_date.isoformat()})"
        )


@dataclass
class Transaction:
    """Loan of one employee from a loan company to a borrowing company.

    The period is [key.start_date, end_date) for overlap purposes.
    """

    key: TransactionKey
    end_date: date
    total_cost: Decimal
    status: str
    loan_company: Optional[Company] = None
    borrowing_company: Optional[Company] = None
    employee: Optional[Employee] = None

    @property
    def start_date(self) -> date:
        return self.key.start_date

    @property
    def employee_id(self) -> str:
        return self.key.employee_id

    @property
    def loan_company_id(self) -> str:
        return self.key.loan_company_id

    @property
    def borrowing_company_id(self) -> str:
        return self.key.borrowing_company_id

    def validate(self) -> None:
        """Check the non-key fields; raises InvalidInputError"""
        if not isinstance(self.end_date, date):
            raise InvalidInputError("Transaction end_date is required")
        if self.end_date <= self.start_date:
            raise InvalidInputError(
                f"end_date {self.end_date} must be after start_date {self.start_date}"
            )
        if self.total_cost is None:
            raise InvalidInputError("Transaction total_cost is required")
        try:
            cost = Decimal(self.total_cost)
        except (InvalidOperation, TypeError, ValueError) as e:
            raise InvalidInputError(f"Transaction total_cost is not a number: {self.total_cost!r}") from e
        if not cost.is_finite():
            raise InvalidInputError("Transaction total_cost must be a finite number")
        if cost < 0:
            raise InvalidInputError("Transaction total_cost must not be negative")
        # Stored as NUMERIC(12, 2)
        if cost.as_tuple().exponent < -COST_DECIMAL_PLACES:
            raise InvalidInputError(
                f"Transaction total_cost allows at most {COST_DECIMAL_PLACES} decimal places"
            )
        if cost.adjusted() >= COST_MAX_DIGITS - COST_DECIMAL_PLACES:
            raise InvalidInputError(f"Transaction total_cost allows at most {COST_MAX_DIGITS} digits")
        if not isinstance(self.status, str) or not self.status.strip():
            raise InvalidInputError("Transaction status is required")
