"""/v1/transactions - employee loan lifecycle endpoints"""

import time
from contextlib import contextmanager
from datetime import date
from typing import Iterator, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, Response

from manpower_exchange.api.dependencies import get_events_client, get_lifecycle_service, get_request_id
from manpower_exchange.api.v1.schemas import (
    ReplaceTransactionRequest,
    StatusUpdateRequest,
    TransactionRequest,
    TransactionResponse,
)
from manpower_exchange.domain.exceptions import (
    DomainException,
    InvalidInputError,
    NotFoundError,
    TransactionConflictError,
)
from manpower_exchange.domain.lifecycle import TransactionLifecycleService
from manpower_exchange.infrastructure.clients import events
from manpower_exchange.infrastructure.clients.events import EventsClient, transaction_event
from manpower_exchange.infrastructure.observability.logging import log_operation_outcome
from manpower_exchange.infrastructure.observability.metrics import record_transaction_operation

router = APIRouter()

# Order matters: the first matching class wins
ERROR_MAPPING = (
    (InvalidInputError, 400, "invalid"),
    (NotFoundError, 404, "not_found"),
    (TransactionConflictError, 409, "conflict"),
)


def error_response(error: DomainException) -> HTTPException:
    """Translate a domain error into the matching HTTP error"""
    for error_type, status_code, _ in ERROR_MAPPING:
        if isinstance(error, error_type):
            break
    else:
        status_code = 400
    detail = {"message": str(error), "error": type(error).__name__, **error.context()}
    return HTTPException(status_code=status_code, detail=detail)


def _outcome(error: DomainException) -> str:
    for error_type, _, outcome in ERROR_MAPPING:
        if isinstance(error, error_type):
            return outcome
    return "invalid"


@contextmanager
def observe_operation(operation: str, request_id: str, employee_id: Optional[str]) -> Iterator[None]:
    """Record metrics and logs for one write, converting domain errors to HTTP errors"""
    start_time = time.time()
    try:
        yield
    except DomainException as e:
        outcome = _outcome(e)
        record_transaction_operation(operation, outcome)
        log_operation_outcome(
            request_id, operation, outcome, employee_id, (time.time() - start_time) * 1000, error=str(e)
        )
        raise error_response(e) from e

    record_transaction_operation(operation, "ok")
    log_operation_outcome(request_id, operation, "ok", employee_id, (time.time() - start_time) * 1000)


def _publish(background_tasks: BackgroundTasks, client: EventsClient, payload: dict) -> None:
    if client.enabled:
        background_tasks.add_task(client.send_event, payload)


@router.get("/transactions", response_model=List[TransactionResponse])
def list_transactions(
    employee_id: Optional[str] = Query(None, description="Only this employee's loans"),
    service: TransactionLifecycleService = Depends(get_lifecycle_service),
):
    """List every transaction, or one employee's transactions"""
    try:
        if employee_id is not None:
            transactions = service.list_by_employee(employee_id)
        else:
            transactions = service.list_all()
    except DomainException as e:
        raise error_response(e) from e
    return [TransactionResponse.from_domain(t) for t in transactions]


@router.get("/transactions/incoming", response_model=List[TransactionResponse])
def list_incoming_transactions(
    company_id: str = Query(..., description="UEN of the lending company"),
    service: TransactionLifecycleService = Depends(get_lifecycle_service),
):
    """Transactions in which the company loans out its employees"""
    try:
        transactions = service.list_by_loan_company(company_id)
    except DomainException as e:
        raise error_response(e) from e
    return [TransactionResponse.from_domain(t) for t in transactions]


@router.get("/transactions/outgoing", response_model=List[TransactionResponse])
def list_outgoing_transactions(
    company_id: str = Query(..., description="UEN of the borrowing company"),
    service: TransactionLifecycleService = Depends(get_lifecycle_service),
):
    """Transactions in which the company borrows employees"""
    try:
        transactions = service.list_by_borrowing_company(company_id)
    except DomainException as e:
        raise error_response(e) from e
    return [TransactionResponse.from_domain(t) for t in transactions]


@router.get("/transactions/{employee_id}/{start_date}", response_model=TransactionResponse)
def get_transaction(
    employee_id: str,
    start_date: date,
    service: TransactionLifecycleService = Depends(get_lifecycle_service),
):
    try:
        transaction = service.get(employee_id, start_date)
    except DomainException as e:
        raise error_response(e) from e
    return TransactionResponse.from_domain(transaction)


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
def create_transaction(
    request_body: TransactionRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    service: TransactionLifecycleService = Depends(get_lifecycle_service),
    events_client: EventsClient = Depends(get_events_client),
):
    """
    Loan an employee to another company.

    Fails with 409 when the employee is already committed for any day of
    the requested period.
    """
    with observe_operation("create", get_request_id(request), request_body.employee_id):
        created = service.create(request_body.to_domain())

    _publish(background_tasks, events_client, transaction_event(events.TRANSACTION_CREATED, created))
    return TransactionResponse.from_domain(created)


@router.put("/transactions", response_model=TransactionResponse)
def replace_transaction(
    request_body: ReplaceTransactionRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    service: TransactionLifecycleService = Depends(get_lifecycle_service),
    events_client: EventsClient = Depends(get_events_client),
):
    """
    Replace the employee's transaction starting on original_start_date.

    Any field may change, including the start date and both companies.
    """
    with observe_operation("replace", get_request_id(request), request_body.employee_id):
        replaced = service.replace(request_body.to_domain(), request_body.original_start_date)

    original_start = request_body.original_start_date or request_body.start_date
    _publish(
        background_tasks,
        events_client,
        transaction_event(events.TRANSACTION_REPLACED, replaced, replaced_start_date=original_start.isoformat()),
    )
    return TransactionResponse.from_domain(replaced)


@router.patch("/transactions/{employee_id}/{start_date}/status", response_model=TransactionResponse)
def update_transaction_status(
    employee_id: str,
    start_date: date,
    request_body: StatusUpdateRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    service: TransactionLifecycleService = Depends(get_lifecycle_service),
    events_client: EventsClient = Depends(get_events_client),
):
    with observe_operation("update_status", get_request_id(request), employee_id):
        updated = service.update_status(employee_id, start_date, request_body.status)

    _publish(background_tasks, events_client, transaction_event(events.TRANSACTION_STATUS_UPDATED, updated))
    return TransactionResponse.from_domain(updated)


@router.delete("/transactions/{employee_id}/{start_date}", status_code=204)
def delete_transaction(
    employee_id: str,
    start_date: date,
    background_tasks: BackgroundTasks,
    request: Request,
    service: TransactionLifecycleService = Depends(get_lifecycle_service),
    events_client: EventsClient = Depends(get_events_client),
):
    with observe_operation("delete", get_request_id(request), employee_id):
        deleted = service.delete(employee_id, start_date)

    _publish(background_tasks, events_client, transaction_event(events.TRANSACTION_DELETED, deleted))
    return Response(status_code=204)
