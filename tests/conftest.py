"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from datetime import date
from decimal import Decimal
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from manpower_exchange.api.main import create_app
from manpower_exchange.domain.lifecycle import TransactionLifecycleService
from manpower_exchange.domain.models import Company, Employee, Transaction, TransactionKey
from manpower_exchange.infrastructure.database.models import Base, CompanyModel, EmployeeModel
from manpower_exchange.infrastructure.database.session import get_db
from tests.fakes import (
    BORROW_CO,
    EMPLOYEE,
    LOAN_CO,
    OTHER_CO,
    OTHER_EMPLOYEE,
    InMemoryDirectory,
    InMemoryTransactionRepository,
)

# Test database
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def transaction_repo() -> InMemoryTransactionRepository:
    return InMemoryTransactionRepository()


@pytest.fixture
def service(transaction_repo: InMemoryTransactionRepository) -> TransactionLifecycleService:
    """Lifecycle service over in-memory collaborators"""
    employees = InMemoryDirectory(
        Employee(employee_id=EMPLOYEE, name="Tan Ah Kow", company_id=LOAN_CO),
        Employee(employee_id=OTHER_EMPLOYEE, name="Lim Bee Hoon", company_id=LOAN_CO),
    )
    companies = InMemoryDirectory(
        Company(company_id=LOAN_CO, name="Kallang Builders"),
        Company(company_id=BORROW_CO, name="Jurong Marine"),
        Company(company_id=OTHER_CO, name="Tuas Fabrication"),
    )
    return TransactionLifecycleService(transaction_repo, employees, companies)


@pytest.fixture
def make_transaction() -> Callable[..., Transaction]:
    """Factory for candidate transactions with sensible defaults"""

    def _make(
        start: date,
        end: date,
        employee_id: str = EMPLOYEE,
        loan_company_id: str = LOAN_CO,
        borrowing_company_id: str = BORROW_CO,
        total_cost: str = "1500.00",
        status: str = "Pending",
    ) -> Transaction:
        return Transaction(
            key=TransactionKey(
                loan_company_id=loan_company_id,
                borrowing_company_id=borrowing_company_id,
                employee_id=employee_id,
                start_date=start,
            ),
            end_date=end,
            total_cost=Decimal(total_cost),
            status=status,
        )

    return _make


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def seeded_db(db: Session) -> Session:
    """Database holding three companies and two employees"""
    db.add_all(
        [
            CompanyModel(uen=LOAN_CO, name="Kallang Builders"),
            CompanyModel(uen=BORROW_CO, name="Jurong Marine"),
            CompanyModel(uen=OTHER_CO, name="Tuas Fabrication"),
            EmployeeModel(work_permit_number=EMPLOYEE, name="Tan Ah Kow", company_uen=LOAN_CO),
            EmployeeModel(work_permit_number=OTHER_EMPLOYEE, name="Lim Bee Hoon", company_uen=LOAN_CO),
        ]
    )
    db.commit()
    return db


@pytest.fixture
def client(seeded_db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield seeded_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)
