"""Integration tests for the SQL repositories"""

import pytest
from datetime import date
from decimal import Decimal
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from manpower_exchange.domain.exceptions import AlreadyExistsError, ScheduleConflictError
from manpower_exchange.domain.lifecycle import TransactionLifecycleService
from manpower_exchange.domain.models import Company
from manpower_exchange.infrastructure.database.repositories import (
    CompanyRepository,
    EmployeeRepository,
    TransactionRepository,
)
from tests.fakes import BORROW_CO, EMPLOYEE, LOAN_CO, OTHER_CO, OTHER_EMPLOYEE

pytestmark = pytest.mark.integration


@pytest.fixture
def repo(seeded_db: Session) -> TransactionRepository:
    return TransactionRepository(seeded_db)


@pytest.fixture
def sql_service(seeded_db: Session, repo: TransactionRepository) -> TransactionLifecycleService:
    return TransactionLifecycleService(repo, EmployeeRepository(seeded_db), CompanyRepository(seeded_db))


def test_save_and_load_with_party_references(repo, make_transaction):
    saved = repo.save(make_transaction(date(2021, 1, 10), date(2021, 1, 20)))
    repo.commit()

    loaded = repo.find_by_key(saved.key)
    assert loaded.end_date == date(2021, 1, 20)
    assert loaded.total_cost == Decimal("1500.00")
    assert loaded.employee.name == "Tan Ah Kow"
    assert loaded.loan_company.name == "Kallang Builders"
    assert loaded.borrowing_company.name == "Jurong Marine"


def test_save_existing_key_updates_row(repo, make_transaction):
    repo.save(make_transaction(date(2021, 1, 10), date(2021, 1, 20)))
    repo.save(make_transaction(date(2021, 1, 10), date(2021, 1, 20), status="Active"))
    repo.commit()

    rows = repo.find_all()
    assert len(rows) == 1
    assert rows[0].status == "Active"


def test_finders_filter_and_order(repo, make_transaction):
    repo.save(make_transaction(date(2021, 3, 1), date(2021, 3, 5)))
    repo.save(make_transaction(date(2021, 1, 1), date(2021, 1, 5), borrowing_company_id=OTHER_CO))
    repo.save(make_transaction(date(2021, 1, 1), date(2021, 1, 5), employee_id=OTHER_EMPLOYEE))
    repo.commit()

    assert [t.start_date for t in repo.find_by_employee(EMPLOYEE)] == [date(2021, 1, 1), date(2021, 3, 1)]
    assert len(repo.find_by_loan_company(LOAN_CO)) == 3
    assert len(repo.find_by_borrowing_company(BORROW_CO)) == 2
    assert len(repo.find_by_borrowing_company(OTHER_CO)) == 1
    assert repo.find_by_employee_and_start_date(OTHER_EMPLOYEE, date(2021, 1, 1)) is not None
    assert repo.find_by_employee_and_start_date(OTHER_EMPLOYEE, date(2021, 3, 1)) is None


def test_delete_by_key(repo, make_transaction):
    saved = repo.save(make_transaction(date(2021, 1, 10), date(2021, 1, 20)))
    repo.delete_by_key(saved.key)
    repo.commit()

    assert repo.find_by_key(saved.key) is None
    repo.delete_by_key(saved.key)


def test_rollback_discards_pending_writes(repo, make_transaction):
    repo.lock_employee(EMPLOYEE)
    repo.save(make_transaction(date(2021, 1, 10), date(2021, 1, 20)))
    repo.rollback()

    assert repo.find_all() == []


def test_integrity_error_becomes_already_exists(repo, seeded_db, make_transaction, monkeypatch):
    def failing_flush(*args, **kwargs):
        raise IntegrityError("INSERT INTO transactions", {}, Exception("UNIQUE constraint failed"))

    monkeypatch.setattr(seeded_db, "flush", failing_flush)

    with pytest.raises(AlreadyExistsError) as exc_info:
        repo.save(make_transaction(date(2021, 1, 10), date(2021, 1, 20)))

    assert exc_info.value.entity == "Transaction"
    assert "UNIQUE constraint failed" in str(exc_info.value)


def test_service_replace_moves_key_in_database(sql_service, repo, make_transaction):
    original = sql_service.create(make_transaction(date(2021, 1, 10), date(2021, 1, 20)))

    moved = sql_service.replace(
        make_transaction(date(2021, 1, 15), date(2021, 1, 25), borrowing_company_id=OTHER_CO),
        original_start_date=date(2021, 1, 10),
    )

    assert repo.find_by_key(original.key) is None
    assert repo.find_by_key(moved.key).borrowing_company.name == "Tuas Fabrication"


def test_service_conflict_leaves_database_unchanged(sql_service, repo, make_transaction):
    sql_service.create(make_transaction(date(2021, 1, 10), date(2021, 1, 20)))

    with pytest.raises(ScheduleConflictError):
        sql_service.create(make_transaction(date(2021, 1, 19), date(2021, 1, 30), borrowing_company_id=OTHER_CO))

    assert len(repo.find_all()) == 1


def test_company_repository_rejects_duplicate(seeded_db):
    companies = CompanyRepository(seeded_db)

    with pytest.raises(AlreadyExistsError):
        companies.add(Company(company_id=LOAN_CO, name="Duplicate"))
    assert companies.get(LOAN_CO).name == "Kallang Builders"


def test_integrity_error_on_commit_becomes_already_exists(repo, seeded_db, make_transaction, monkeypatch):
    def failing_commit(*args, **kwargs):
        raise IntegrityError("COMMIT", {}, Exception("duplicate key value violates unique constraint"))

    saved = repo.save(make_transaction(date(2021, 1, 10), date(2021, 1, 20)))
    monkeypatch.setattr(seeded_db, "commit", failing_commit)

    with pytest.raises(AlreadyExistsError) as exc_info:
        repo.commit()

    assert exc_info.value.identifier == saved.key
    assert "duplicate key value" in str(exc_info.value)
    assert repo.find_all() == []


def test_service_rolls_back_when_commit_rejects_key(sql_service, repo, seeded_db, make_transaction, monkeypatch):
    def failing_commit(*args, **kwargs):
        raise IntegrityError("COMMIT", {}, Exception("duplicate key value violates unique constraint"))

    monkeypatch.setattr(seeded_db, "commit", failing_commit)

    with pytest.raises(AlreadyExistsError):
        sql_service.create(make_transaction(date(2021, 1, 10), date(2021, 1, 20)))

    assert repo.find_all() == []
