from __future__ import annotations

from typing import Any

from fastapi import HTTPException


class AppError(HTTPException):
    """
    Base for domain errors raised by the engine.
    Each subclass pins its HTTP status so services can raise by meaning
    and the API layer renders a uniform envelope.
    """
    status_code_default = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None, *, errors: list[dict[str, Any]] | None = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(status_code=self.status_code_default, detail=self.message)


class ValidationError(AppError):
    status_code_default = 400
    default_message = "Invalid data"


class Unauthorized(AppError):
    status_code_default = 401
    default_message = "Missing or invalid credentials"


class PermissionDenied(AppError):
    status_code_default = 403
    default_message = "You are not allowed to perform this action"


class NotFound(AppError):
    status_code_default = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code_default = 409
    default_message = "Unique constraint violation"


class PersistenceFailure(AppError):
    status_code_default = 500
    default_message = "Database error"
