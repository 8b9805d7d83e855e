"""Data access layer for companies, employees and loan transactions"""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from manpower_exchange.infrastructure.database.models import CompanyModel, EmployeeModel, TransactionModel
from manpower_exchange.domain.exceptions import AlreadyExistsError
from manpower_exchange.domain.models import Company, Employee, Transaction, TransactionKey


def _company_to_domain(row: Optional[CompanyModel]) -> Optional[Company]:
    if row is None:
        return None
    return Company(company_id=row.uen, name=row.name)


def _employee_to_domain(row: Optional[EmployeeModel]) -> Optional[Employee]:
    if row is None:
        return None
    return Employee(employee_id=row.work_permit_number, name=row.name, company_id=row.company_uen)


class CompanyRepository:
    """Repository for registered companies"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, company_id: str) -> Optional[Company]:
        return _company_to_domain(self.db.get(CompanyModel, company_id))

    def add(self, company: Company) -> Company:
        """Register a company; raises AlreadyExistsError on a taken UEN"""
        if self.db.get(CompanyModel, company.company_id) is not None:
            raise AlreadyExistsError("Company", company.company_id)
        self.db.add(CompanyModel(uen=company.company_id, name=company.name))
        self.db.commit()
        return company


class EmployeeRepository:
    """Repository for employees available for loan"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, employee_id: str) -> Optional[Employee]:
        return _employee_to_domain(self.db.get(EmployeeModel, employee_id))

    def add(self, employee: Employee) -> Employee:
        """Register an employee; raises AlreadyExistsError on a taken work permit number"""
        if self.db.get(EmployeeModel, employee.employee_id) is not None:
            raise AlreadyExistsError("Employee", employee.employee_id)
        self.db.add(
            EmployeeModel(
                work_permit_number=employee.employee_id,
                name=employee.name,
                company_uen=employee.company_id,
            )
        )
        self.db.commit()
        return employee


class TransactionRepository:
    """Repository for loan transactions keyed by (loan co, borrowing co, employee, start date)"""

    def __init__(self, db: Session):
        self.db = db
        self._last_saved: Optional[TransactionKey] = None

    def find_all(self) -> List[Transaction]:
        return self._fetch()

    def find_by_key(self, key: TransactionKey) -> Optional[Transaction]:
        row = self._get_row(key)
        return self._to_domain(row) if row is not None else None

    def find_by_employee(self, employee_id: str) -> List[Transaction]:
        return self._fetch(TransactionModel.employee_id == employee_id)

    def find_by_employee_and_start_date(self, employee_id: str, start_date: date) -> Optional[Transaction]:
        row = (
            self.db.query(TransactionModel)
            .filter(
                TransactionModel.employee_id == employee_id,
                TransactionModel.loan_start_date == start_date,
            )
            .first()
        )
        return self._to_domain(row) if row is not None else None

    def find_by_loan_company(self, company_id: str) -> List[Transaction]:
        return self._fetch(TransactionModel.loan_company_id == company_id)

    def find_by_borrowing_company(self, company_id: str) -> List[Transaction]:
        return self._fetch(TransactionModel.borrowing_company_id == company_id)

    def save(self, transaction: Transaction) -> Transaction:
        """Insert or update the row for transaction.key (flushed, not committed)"""
        row = self._get_row(transaction.key)
        if row is None:
            row = TransactionModel(
                loan_company_id=transaction.loan_company_id,
                borrowing_company_id=transaction.borrowing_company_id,
                employee_id=transaction.employee_id,
                loan_start_date=transaction.start_date,
            )
            self.db.add(row)

        row.loan_end_date = transaction.end_date
        row.total_cost = transaction.total_cost
        row.loan_status = transaction.status

        self._last_saved = transaction.key
        try:
            self.db.flush()
        except IntegrityError as e:
            raise AlreadyExistsError("Transaction", transaction.key, reason=str(e.orig)) from e

        return self._to_domain(row)

    def delete_by_key(self, key: TransactionKey) -> None:
        row = self._get_row(key)
        if row is not None:
            self.db.delete(row)
            self.db.flush()

    def lock_employee(self, employee_id: str) -> None:
        """Row lock on the employee until commit/rollback (ignored by SQLite)"""
        (
            self.db.query(EmployeeModel)
            .filter(EmployeeModel.work_permit_number == employee_id)
            .with_for_update()
            .first()
        )

    def commit(self) -> None:
        """Commit pending writes; a key clash detected here becomes AlreadyExistsError"""
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise AlreadyExistsError("Transaction", self._last_saved or "pending changes", reason=str(e.orig)) from e
        finally:
            self._last_saved = None

    def rollback(self) -> None:
        self._last_saved = None
        self.db.rollback()

    def _get_row(self, key: TransactionKey) -> Optional[TransactionModel]:
        return self.db.get(
            TransactionModel,
            (key.loan_company_id, key.borrowing_company_id, key.employee_id, key.start_date),
        )

    def _fetch(self, *criteria) -> List[Transaction]:
        rows = (
            self.db.query(TransactionModel)
            .filter(*criteria)
            .order_by(TransactionModel.employee_id, TransactionModel.loan_start_date)
            .all()
        )
        return [self._to_domain(row) for row in rows]

    @staticmethod
    def _to_domain(row: TransactionModel) -> Transaction:
        return Transaction(
            key=TransactionKey(
                loan_company_id=row.loan_company_id,
                borrowing_company_id=row.borrowing_company_id,
                employee_id=row.employee_id,
                start_date=row.loan_start_date,
            ),
            end_date=row.loan_end_date,
            total_cost=Decimal(row.total_cost),
            status=row.loan_status,
            loan_company=_company_to_domain(row.loan_company),
            borrowing_company=_company_to_domain(row.borrowing_company),
            employee=_employee_to_domain(row.employee),
        )
