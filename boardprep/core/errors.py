# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error hierarchy for the practice engine.

Two tiers of errors exist:

- DomainError: a violated data-integrity invariant in reference data
  (a question without exactly one correct choice, a choice that does not
  belong to its question). Never retried; surfaced as an internal error.
- ApplicationError: an expected, user-facing outcome (not found, conflict,
  unauthenticated, unsubscribed, invalid input). Returned to callers as a
  typed result and never retried.

Example:
    >>> raise NotFoundError("Practice session not found")
    >>> error.code
    <ErrorCode.NOT_FOUND: 'NOT_FOUND'>
"""

from enum import Enum


class DomainErrorCode(str, Enum):
    """Codes for invariant violations in reference data."""

    INVALID_QUESTION = "INVALID_QUESTION"
    INVALID_CHOICE = "INVALID_CHOICE"


class ErrorCode(str, Enum):
    """Codes for application-level outcomes."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    UNSUBSCRIBED = "UNSUBSCRIBED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class DomainError(Exception):
    """Raised when reference data violates a domain invariant.

    Attributes:
        code: The violated invariant.
        message: Human-readable description.
    """

    def __init__(self, code: DomainErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class ApplicationError(Exception):
    """Base exception for expected application outcomes.

    Attributes:
        code: Error code callers map to user messages.
        message: Human-readable description.
        field_errors: Per-field validation messages, if any.
    """

    default_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        code_or_message: "ErrorCode | str",
        message: str | None = None,
        field_errors: dict[str, list[str]] | None = None,
    ) -> None:
        """Initialize the error.

        Accepts either ``ApplicationError(code, message)`` or, on the
        fixed-code subclasses, ``NotFoundError(message)``.

        Args:
            code_or_message: An ErrorCode, or the message when the class
                carries a default code.
            message: The message when a code was given first.
            field_errors: Optional per-field validation messages.
        """
        if isinstance(code_or_message, ErrorCode):
            code = code_or_message
            text = message if message is not None else code.value
        elif message is not None:
            code = ErrorCode(code_or_message)
            text = message
        else:
            code = self.default_code
            text = code_or_message

        super().__init__(text)
        self.code = code
        self.message = text
        self.field_errors = field_errors

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value!r}, message={self.message!r})"


class NotFoundError(ApplicationError):
    """Raised when a resource does not exist or is not owned by the caller."""

    default_code = ErrorCode.NOT_FOUND


class ConflictError(ApplicationError):
    """Raised when an operation is invalid for the current state."""

    default_code = ErrorCode.CONFLICT


class UnauthenticatedError(ApplicationError):
    """Raised when no user is signed in."""

    default_code = ErrorCode.UNAUTHENTICATED


class UnsubscribedError(ApplicationError):
    """Raised when the user has no entitling subscription."""

    default_code = ErrorCode.UNSUBSCRIBED


class ValidationFailedError(ApplicationError):
    """Raised when input fails validation."""

    default_code = ErrorCode.VALIDATION_ERROR


class InternalError(ApplicationError):
    """Raised when the engine reaches a state it cannot explain."""

    default_code = ErrorCode.INTERNAL_ERROR


def from_code(
    code: ErrorCode,
    message: str,
    field_errors: dict[str, list[str]] | None = None,
) -> ApplicationError:
    """Rebuild the most specific ApplicationError for a stored code.

    Args:
        code: Stored error code.
        message: Stored error message.
        field_errors: Stored per-field validation messages, if any.

    Returns:
        An ApplicationError subclass instance carrying the same code.
    """
    for error_cls in (
        NotFoundError,
        ConflictError,
        UnauthenticatedError,
        UnsubscribedError,
        ValidationFailedError,
        InternalError,
    ):
        if error_cls.default_code == code:
            return error_cls(message, field_errors=field_errors)
    return ApplicationError(code, message, field_errors)
