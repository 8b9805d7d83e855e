"""Transaction lifecycle - create, replace, status update and delete of employee loans"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace as clone
from datetime import date
from typing import Dict, Iterator, List, Optional

from manpower_exchange.domain.conflicts import check_against_all
from manpower_exchange.domain.exceptions import InvalidInputError, NotFoundError
from manpower_exchange.domain.models import Transaction
from manpower_exchange.domain.ports import CompanyLookup, EmployeeLookup, TransactionRepository

logger = logging.getLogger(__name__)

TRANSACTION = "Transaction"


class EmployeeLockRegistry:
    """One lock per employee so check-then-act sequences never interleave.

    Entries live only while someone holds or waits on them.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._holders: Dict[str, int] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def lock_for(self, employee_id: str) -> Optional[threading.Lock]:
        """Lock currently registered for the employee, None when idle"""
        with self._guard:
            return self._locks.get(employee_id)

    @contextmanager
    def hold(self, employee_id: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(employee_id, threading.Lock())
            self._holders[employee_id] = self._holders.get(employee_id, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._holders[employee_id] -= 1
                if self._holders[employee_id] == 0:
                    del self._holders[employee_id]
                    del self._locks[employee_id]


class TransactionLifecycleService:
    """
    Keeps every employee's engagements pairwise non-overlapping.

    Identity includes the start date, so changes are split into two
    operations: replace() may move a transaction to a new key (delete old,
    insert new), update_status() only touches the status of a fixed key.
    Every write runs under the employee's lock and commits or rolls back
    as a whole.
    """

    def __init__(
        self,
        transactions: TransactionRepository,
        employees: EmployeeLookup,
        companies: CompanyLookup,
        locks: Optional[EmployeeLockRegistry] = None,
    ):
        self.transactions = transactions
        self.employees = employees
        self.companies = companies
        self.locks = locks if locks is not None else EmployeeLockRegistry()

    # Writes

    def create(self, candidate: Optional[Transaction]) -> Transaction:
        """
        Store a new engagement.

        Raises:
            InvalidInputError: candidate missing or malformed
            NotFoundError: employee or either company unknown
            ScheduleConflictError: overlaps another engagement of the employee
            AlreadyExistsError: storage rejected the key
        """
        self._validate_candidate(candidate)
        resolved = self._resolve_references(candidate)

        with self._unit_of_work(resolved.employee_id):
            existing = self.transactions.find_by_employee(resolved.employee_id)
            check_against_all(resolved, existing)
            saved = self.transactions.save(resolved)

        self._log_write("create", saved)
        return saved

    def replace(self, candidate: Optional[Transaction], original_start_date: Optional[date] = None) -> Transaction:
        """
        Supersede the employee's transaction starting on original_start_date.

        original_start_date defaults to the candidate's own start date. The
        superseded transaction is excluded from the conflict check so a
        no-op replace never collides with itself.
        """
        self._validate_candidate(candidate)
        resolved = self._resolve_references(candidate)
        original_start = original_start_date or resolved.start_date

        with self._unit_of_work(resolved.employee_id):
            current = self._require(resolved.employee_id, original_start)
            existing = self.transactions.find_by_employee(resolved.employee_id)
            check_against_all(resolved, existing, exclude_key=current.key)

            if current.key != resolved.key:
                self.transactions.delete_by_key(current.key)
            saved = self.transactions.save(resolved)

        self._log_write("replace", saved, replaced_start_date=original_start.isoformat())
        return saved

    def update_status(self, employee_id: str, start_date: date, new_status: str) -> Transaction:
        """Change only the status; schedule and identity are left untouched"""
        self._validate_lookup_args(employee_id, start_date)
        if not isinstance(new_status, str) or not new_status.strip():
            raise InvalidInputError("Transaction status is required")

        with self._unit_of_work(employee_id):
            current = self._require(employee_id, start_date)
            current.status = new_status
            saved = self.transactions.save(current)

        self._log_write("update_status", saved)
        return saved

    def delete(self, employee_id: str, start_date: date) -> Transaction:
        """Remove the transaction by its full key and return what was removed"""
        self._validate_lookup_args(employee_id, start_date)

        with self._unit_of_work(employee_id):
            current = self._require(employee_id, start_date)
            self.transactions.delete_by_key(current.key)

        self._log_write("delete", current)
        return current

    # Reads

    def get(self, employee_id: str, start_date: date) -> Transaction:
        self._validate_lookup_args(employee_id, start_date)
        return self._require(employee_id, start_date)

    def list_all(self) -> List[Transaction]:
        return self.transactions.find_all()

    def list_by_loan_company(self, company_id: str) -> List[Transaction]:
        self._validate_id(company_id, "Company's Id")
        return [t for t in self.transactions.find_by_loan_company(company_id) if t.loan_company_id == company_id]

    def list_by_borrowing_company(self, company_id: str) -> List[Transaction]:
        self._validate_id(company_id, "Company's Id")
        return [
            t for t in self.transactions.find_by_borrowing_company(company_id) if t.borrowing_company_id == company_id
        ]

    def list_by_employee(self, employee_id: str) -> List[Transaction]:
        self._validate_id(employee_id, "Employee's Id")
        return self.transactions.find_by_employee(employee_id)

    # Helpers

    @contextmanager
    def _unit_of_work(self, employee_id: str) -> Iterator[None]:
        with self.locks.hold(employee_id):
            try:
                self.transactions.lock_employee(employee_id)
                yield
                self.transactions.commit()
            except Exception:
                self.transactions.rollback()
                raise

    def _require(self, employee_id: str, start_date: date) -> Transaction:
        found = self.transactions.find_by_employee_and_start_date(employee_id, start_date)
        if found is None:
            raise NotFoundError(TRANSACTION, f"(Employee's Id: {employee_id}, date: {start_date.isoformat()})")
        return found

    def _resolve_references(self, candidate: Transaction) -> Transaction:
        employee = self.employees.get(candidate.employee_id)
        if employee is None:
            raise NotFoundError("Employee", candidate.employee_id)
        loan_company = self.companies.get(candidate.loan_company_id)
        if loan_company is None:
            raise NotFoundError("Company", candidate.loan_company_id)
        borrowing_company = self.companies.get(candidate.borrowing_company_id)
        if borrowing_company is None:
            raise NotFoundError("Company", candidate.borrowing_company_id)

        return clone(
            candidate,
            employee=employee,
            loan_company=loan_company,
            borrowing_company=borrowing_company,
        )

    @staticmethod
    def _validate_candidate(candidate: Optional[Transaction]) -> None:
        if candidate is None:
            raise InvalidInputError("Transaction is required")
        candidate.validate()

    @classmethod
    def _validate_lookup_args(cls, employee_id: str, start_date: date) -> None:
        cls._validate_id(employee_id, "Employee's Id")
        if not isinstance(start_date, date):
            raise InvalidInputError("Transaction start_date is required")

    @staticmethod
    def _validate_id(value: str, label: str) -> None:
        if not isinstance(value, str) or not value.strip():
            raise InvalidInputError(f"{label} is required")

    @staticmethod
    def _log_write(operation: str, transaction: Transaction, **fields) -> None:
        logger.info(
            "Transaction %s completed",
            operation,
            extra={
                "step": f"transaction_{operation}",
                "employee_id": transaction.employee_id,
                "start_date": transaction.start_date.isoformat(),
                "end_date": transaction.end_date.isoformat(),
                "loan_company_id": transaction.loan_company_id,
                "borrowing_company_id": transaction.borrowing_company_id,
                "status": transaction.status,
                **fields,
            },
        )
