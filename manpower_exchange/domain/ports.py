"""Collaborator contracts consumed by the transaction lifecycle service"""

from datetime import date
from typing import List, Optional, Protocol

from manpower_exchange.domain.models import Company, Employee, Transaction, TransactionKey


class EmployeeLookup(Protocol):
    def get(self, employee_id: str) -> Optional[Employee]:
        ...


class CompanyLookup(Protocol):
    def get(self, company_id: str) -> Optional[Company]:
        ...


class TransactionRepository(Protocol):
    """
    Storage of transactions keyed by TransactionKey.

    Writes become durable on commit(). lock_employee() must serialise
    concurrent writers for the same employee until commit() or rollback().
    save() raises AlreadyExistsError when storage rejects a duplicate key.
    """

    def find_all(self) -> List[Transaction]:
        ...

    def find_by_key(self, key: TransactionKey) -> Optional[Transaction]:
        ...

    def find_by_employee(self, employee_id: str) -> List[Transaction]:
        ...

    def find_by_employee_and_start_date(self, employee_id: str, start_date: date) -> Optional[Transaction]:
        ...

    def find_by_loan_company(self, company_id: str) -> List[Transaction]:
        ...

    def find_by_borrowing_company(self, company_id: str) -> List[Transaction]:
        ...

    def save(self, transaction: Transaction) -> Transaction:
        ...

    def delete_by_key(self, key: TransactionKey) -> None:
        ...

    def lock_employee(self, employee_id: str) -> None:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...
