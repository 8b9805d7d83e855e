"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from manpower_exchange.domain.lifecycle import EmployeeLockRegistry, TransactionLifecycleService
from manpower_exchange.infrastructure.clients.events import EventsClient
from manpower_exchange.infrastructure.database.repositories import (
    CompanyRepository,
    EmployeeRepository,
    TransactionRepository,
)
from manpower_exchange.infrastructure.database.session import get_db

# Shared by every request served by this process
_employee_locks = EmployeeLockRegistry()


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_events_client() -> EventsClient:
    """Provide lifecycle event webhook client instance"""
    return EventsClient()


def get_employee_locks() -> EmployeeLockRegistry:
    return _employee_locks


def get_lifecycle_service(
    db: Session = Depends(get_db),
    locks: EmployeeLockRegistry = Depends(get_employee_locks),
) -> TransactionLifecycleService:
    """Wire the lifecycle service to request-scoped repositories"""
    return TransactionLifecycleService(
        transactions=TransactionRepository(db),
        employees=EmployeeRepository(db),
        companies=CompanyRepository(db),
        locks=locks,
    )
