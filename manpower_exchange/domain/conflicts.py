"""Schedule conflict detection for employee loans"""

from datetime import date
from typing import Iterable, Optional

from manpower_exchange.domain.exceptions import InvalidInputError, ScheduleConflictError
from manpower_exchange.domain.models import Transaction, TransactionKey


def conflicts(new_start: date, new_end: date, old_start: date, old_end: date) -> bool:
    """
    Decide whether two periods overlap using half-open [start, end) semantics.

    Back-to-back periods (new_start == old_end) do not conflict.
    """
    return new_start < old_end and old_start < new_end


def ensure_positive_length(start: date, end: date) -> None:
    """Reject periods that end on or before the day they start"""
    if end <= start:
        raise InvalidInputError(f"end_date {end} must be after start_date {start}")


def find_conflict(
    candidate: Transaction,
    existing: Iterable[Transaction],
    exclude_key: Optional[TransactionKey] = None,
) -> Optional[Transaction]:
    """Return the first existing engagement of the same employee that overlaps candidate"""
    ensure_positive_length(candidate.start_date, candidate.end_date)

    for other in existing:
        if other.employee_id != candidate.employee_id:
            continue
        if exclude_key is not None and other.key == exclude_key:
            continue
        if conflicts(candidate.start_date, candidate.end_date, other.start_date, other.end_date):
            return other
    return None


def check_against_all(
    candidate: Transaction,
    existing: Iterable[Transaction],
    exclude_key: Optional[TransactionKey] = None,
) -> None:
    """
    Verify candidate fits the employee's schedule.

    Raises:
        InvalidInputError: candidate period has no length
        ScheduleConflictError: candidate overlaps an existing engagement
    """
    clash = find_conflict(candidate, existing, exclude_key=exclude_key)
    if clash is not None:
        raise ScheduleConflictError(candidate.start_date, candidate.end_date, clash.key)
