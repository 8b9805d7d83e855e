"""Domain-specific exceptions"""

from datetime import date
from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    def context(self) -> Dict[str, Any]:
        """Extra fields exposed to callers alongside the message"""
        return {}


class InvalidInputError(DomainException):
    """Required field missing or transaction data malformed"""

    pass


class NotFoundError(DomainException):
    """Referenced employee, company or transaction does not exist"""

    def __init__(self, entity: str, identifier: Any):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"Could not find {entity} with id: {identifier}")

    def context(self) -> Dict[str, Any]:
        return {"entity": self.entity, "identifier": str(self.identifier)}


class TransactionConflictError(DomainException):
    """Transaction cannot be stored alongside existing engagements"""

    pass


class ScheduleConflictError(TransactionConflictError):
    """Candidate period overlaps an existing engagement of the same employee"""

    def __init__(self, start_date: date, end_date: date, conflicting_key: Any):
        self.start_date = start_date
        self.end_date = end_date
        self.conflicting_key = conflicting_key
        super().__init__(
            f"Date between {start_date} and {end_date} is not available "
            f"(conflicts with {conflicting_key})"
        )

    def context(self) -> Dict[str, Any]:
        return {"conflicting_key": self.conflicting_key.as_dict()}


class AlreadyExistsError(TransactionConflictError):
    """Storage rejected an insert because the identifier is already taken"""

    def __init__(self, entity: str, identifier: Any, reason: Optional[str] = None):
        self.entity = entity
        self.identifier = identifier
        message = f"{entity} already exists with id: {identifier}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)

    def context(self) -> Dict[str, Any]:
        return {"entity": self.entity, "identifier": str(self.identifier)}
