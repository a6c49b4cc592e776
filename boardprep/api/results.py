# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tagged action results.

Actions never raise across their boundary. Every outcome is an
ActionResult: ok with data, or not ok with an error code, a message and
optional per-field validation messages.

Example:
    >>> result = await actions.end_session("user-1", {"session_id": "s-1"})
    >>> if not result.ok:
    ...     print(result.error.code)
    CONFLICT
"""

import logging
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from boardprep.core.errors import ApplicationError, DomainError, ErrorCode

logger = logging.getLogger(__name__)

T = TypeVar("T")

INVALID_INPUT_MESSAGE = "Invalid input"
INTERNAL_ERROR_MESSAGE = "Internal error"


class ActionError(BaseModel):
    """Error payload of a failed action."""

    code: ErrorCode
    message: str
    field_errors: dict[str, list[str]] | None = None


class ActionResult(BaseModel, Generic[T]):
    """Outcome of an action: exactly one of data (when ok) and error is meaningful."""

    ok: bool
    data: T | None = None
    error: ActionError | None = None


def ok(data: Any) -> ActionResult[Any]:
    return ActionResult(ok=True, data=data)


def err(
    code: ErrorCode,
    message: str,
    field_errors: dict[str, list[str]] | None = None,
) -> ActionResult[Any]:
    return ActionResult(
        ok=False,
        error=ActionError(code=code, message=message, field_errors=field_errors),
    )


def validation_field_errors(error: ValidationError) -> dict[str, list[str]]:
    """Flatten pydantic errors to {dotted.field.path: [messages]}.

    Errors without a location (model-level validators) are keyed "_root".
    """
    field_errors: dict[str, list[str]] = {}
    for detail in error.errors():
        path = ".".join(str(part) for part in detail["loc"]) or "_root"
        field_errors.setdefault(path, []).append(detail["msg"])
    return field_errors


def handle_error(error: Exception) -> ActionResult[Any]:
    """Convert any exception raised by an action into a failed result.

    Application errors keep their code and message. Domain invariant
    violations and unexpected errors are logged and reported as a generic
    internal error.
    """
    if isinstance(error, ApplicationError):
        return err(error.code, error.message, error.field_errors)

    if isinstance(error, ValidationError):
        return err(
            ErrorCode.VALIDATION_ERROR,
            INVALID_INPUT_MESSAGE,
            validation_field_errors(error),
        )

    if isinstance(error, DomainError):
        logger.error(
            "Domain invariant violated (%s): %s", error.code.value, error.message
        )
        return err(ErrorCode.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE)

    logger.error("Unhandled error in action: %s", str(error), exc_info=error)
    return err(ErrorCode.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE)
