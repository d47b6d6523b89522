"""Error kinds raised by the storage layer and rendered by the API."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Sequence

from fastapi import status


class ErrorKind(str, Enum):
    VALIDATION_FAILURE = "validation_failure"
    UNIQUE_CONSTRAINT_VIOLATION = "unique_constraint_violation"
    NOT_FOUND = "not_found"
    INVALID_IDENTIFIER = "invalid_identifier"
    SERVER_FAULT = "server_fault"


class ApplicationError(Exception):
    """Base application error with HTTP semantics."""

    kind: ErrorKind = ErrorKind.SERVER_FAULT
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationFailure(ApplicationError):
    """One or more fields of a candidate user failed validation."""

    kind = ErrorKind.VALIDATION_FAILURE
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed"

    def __init__(self, messages: Sequence[str]) -> None:
        self.messages: List[str] = list(messages)
        super().__init__("; ".join(self.messages) or self.message)

    def to_payload(self) -> Dict[str, Any]:
        return {"errors": self.messages}


class UniqueConstraintViolation(ApplicationError):
    kind = ErrorKind.UNIQUE_CONSTRAINT_VIOLATION
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, field: str = "email") -> None:
        self.field = field
        super().__init__(f"{field.capitalize()} already exists")


class NotFoundError(ApplicationError):
    kind = ErrorKind.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND
    message = "User not found"


class InvalidIdentifierError(ApplicationError):
    kind = ErrorKind.INVALID_IDENTIFIER
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid user ID"


class ServerFault(ApplicationError):
    """Any storage failure or unclassified exception.

    The message is for logs only; callers always receive the generic body.
    """

    def to_payload(self) -> Dict[str, Any]:
        return {"error": ServerFault.message}
