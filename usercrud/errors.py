"""Failure taxonomy for the user directory and its mapping to API errors."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Sequence, Tuple

INTERNAL_ERROR_MESSAGE = "Internal server error occurred"


class UserServiceError(Exception):
    """Base class for failures the directory reports to its callers."""


class UserNotFoundError(UserServiceError):
    """Raised when a referenced user id does not exist."""

    def __init__(self, user_id: object) -> None:
        super().__init__(f"User not found with id: {user_id}")
        self.user_id = user_id


class DuplicateEmailError(UserServiceError):
    """Raised when a create or update would give two users the same email."""

    def __init__(self, email: str) -> None:
        super().__init__(f"Email already exists: {email}")
        self.email = email


class ValidationError(UserServiceError):
    """Raised when a user payload breaks one or more field rules."""

    def __init__(self, messages: Iterable[str]) -> None:
        self.messages: List[str] = list(messages)
        if not self.messages:
            raise ValueError("ValidationError requires at least one message")
        super().__init__("Validation failed: " + "; ".join(self.messages))


class ArgumentError(UserServiceError):
    """Raised by the API layer when an operation argument is missing or malformed."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid argument: {detail}")
        self.detail = detail


class ErrorCategory(str, Enum):
    """Caller-visible classification of a failed operation."""

    NOT_FOUND = "not-found"
    BAD_REQUEST = "bad-request"
    INTERNAL_ERROR = "internal-error"


@dataclass(frozen=True)
class ErrorEntry:
    """A single error reported in place of an operation result."""

    category: ErrorCategory
    message: str
    path: Tuple[str, ...]

    def to_dict(self) -> Dict[str, object]:
        return {
            "category": self.category.value,
            "message": self.message,
            "path": list(self.path),
        }


# Checked in order; more specific kinds must precede their bases.
_CLASSIFICATION: Sequence[Tuple[type, ErrorCategory]] = (
    (UserNotFoundError, ErrorCategory.NOT_FOUND),
    (DuplicateEmailError, ErrorCategory.BAD_REQUEST),
    (ValidationError, ErrorCategory.BAD_REQUEST),
    (ArgumentError, ErrorCategory.BAD_REQUEST),
)


def classify(exc: BaseException) -> ErrorCategory:
    """Return the category for ``exc``.

    Unknown exceptions are internal errors. A :class:`UserServiceError`
    subclass missing from the classification table raises :class:`TypeError`
    so that new failure kinds are classified deliberately.
    """

    for kind, category in _CLASSIFICATION:
        if isinstance(exc, kind):
            return category
    if isinstance(exc, UserServiceError):
        raise TypeError(f"Unclassified user service error: {type(exc).__name__}")
    return ErrorCategory.INTERNAL_ERROR


def to_error_entry(exc: BaseException, path: Sequence[str]) -> ErrorEntry:
    """Build the error entry reported for ``exc`` at ``path``."""

    category = classify(exc)
    if category is ErrorCategory.INTERNAL_ERROR:
        message = INTERNAL_ERROR_MESSAGE
    else:
        message = str(exc)
    return ErrorEntry(category=category, message=message, path=tuple(path))


__all__ = [
    "ArgumentError",
    "DuplicateEmailError",
    "ErrorCategory",
    "ErrorEntry",
    "INTERNAL_ERROR_MESSAGE",
    "UserNotFoundError",
    "UserServiceError",
    "ValidationError",
    "classify",
    "to_error_entry",
]
