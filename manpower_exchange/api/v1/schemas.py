"""Pydantic schemas for API request/response validation"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from manpower_exchange.domain.models import (
    COST_DECIMAL_PLACES,
    COST_MAX_DIGITS,
    Company,
    Employee,
    Transaction,
    TransactionKey,
)


class TransactionRequest(BaseModel):
    """Request body for POST /v1/transactions"""

    loan_company_id: str = Field(..., min_length=1, description="UEN of the lending company")
    borrowing_company_id: str = Field(..., min_length=1, description="UEN of the receiving company")
    employee_id: str = Field(..., min_length=1, description="Work permit number of the loaned employee")
    start_date: date = Field(..., description="First day of the loan")
    end_date: date = Field(..., description="Day the loan ends; must be after start_date")
    total_cost: Decimal = Field(
        ...,
        ge=0,
        max_digits=COST_MAX_DIGITS,
        decimal_places=COST_DECIMAL_PLACES,
        description="Agreed price for the loan",
    )
    status: str = Field(..., min_length=1, description="Caller-defined status, e.g. Pending")

    def to_domain(self) -> Transaction:
        return Transaction(
            key=TransactionKey(
                loan_company_id=self.loan_company_id,
                borrowing_company_id=self.borrowing_company_id,
                employee_id=self.employee_id,
                start_date=self.start_date,
            ),
            end_date=self.end_date,
            total_cost=self.total_cost,
            status=self.status,
        )


class ReplaceTransactionRequest(TransactionRequest):
    """Request body for PUT /v1/transactions"""

    original_start_date: Optional[date] = Field(
        None, description="Start date of the transaction being replaced; defaults to start_date"
    )


class StatusUpdateRequest(BaseModel):
    """Request body for PATCH /v1/transactions/{employee_id}/{start_date}/status"""

    status: str = Field(..., min_length=1)


class TransactionResponse(BaseModel):
    """Transaction as returned to API callers, with display names of the parties"""

    loan_company_id: str
    borrowing_company_id: str
    employee_id: str
    start_date: date
    end_date: date
    total_cost: Decimal
    status: str
    loan_company_name: Optional[str] = None
    borrowing_company_name: Optional[str] = None
    employee_name: Optional[str] = None

    @classmethod
    def from_domain(cls, transaction: Transaction) -> "TransactionResponse":
        return cls(
            loan_company_id=transaction.loan_company_id,
            borrowing_company_id=transaction.borrowing_company_id,
            employee_id=transaction.employee_id,
            start_date=transaction.start_date,
            end_date=transaction.end_date,
            total_cost=transaction.total_cost,
            status=transaction.status,
            loan_company_name=transaction.loan_company.name if transaction.loan_company else None,
            borrowing_company_name=transaction.borrowing_company.name if transaction.borrowing_company else None,
            employee_name=transaction.employee.name if transaction.employee else None,
        )


class CompanySchema(BaseModel):
    """Company registration and lookup"""

    company_id: str = Field(..., min_length=1, description="Company UEN")
    name: str = Field(..., min_length=1)

    def to_domain(self) -> Company:
        return Company(company_id=self.company_id, name=self.name)


class EmployeeSchema(BaseModel):
    """Employee registration and lookup"""

    employee_id: str = Field(..., min_length=1, description="Work permit number")
    name: str = Field(..., min_length=1)
    company_id: Optional[str] = None

    def to_domain(self) -> Employee:
        return Employee(employee_id=self.employee_id, name=self.name, company_id=self.company_id)
