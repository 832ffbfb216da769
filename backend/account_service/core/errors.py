# account_service/core/errors.py
"""
Application error taxonomy.

Every anticipated failure is raised as a subclass of AppError. These are
"operational" errors: their status code, machine-readable code and message are
safe to show to clients. Anything else reaching the error handlers is treated
as an internal failure.
"""
from typing import Any


class AppError(Exception):
    """
    Base class for operational errors.

    Attributes:
        status_code: HTTP status returned to the client
        code: Stable machine-readable error code
        message: Human-readable message
        is_operational: Always True for AppError and subclasses
    """
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "Something went wrong! Please try again later."
    is_operational: bool = True

    def __init__(self, message: str | None = None, *, status_code: int | None = None, code: str | None = None):
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"status": "error", "code": self.code, "message": self.message}


class InputValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Invalid input data."


class InvalidCredentials(AppError):
    # Same wording for unknown email and wrong password
    status_code = 401
    code = "AUTH_INVALID_CREDENTIALS"
    message = "Incorrect email or password."


class Unauthenticated(AppError):
    status_code = 401
    code = "AUTH_REQUIRED"
    message = "You are not logged in! Please log in to get access."


class TokenInvalid(Unauthenticated):
    code = "AUTH_INVALID_TOKEN"
    message = "Invalid token. Please log in again."


class TokenExpired(Unauthenticated):
    code = "AUTH_TOKEN_EXPIRED"
    message = "Your token has expired! Please log in again."


class StaleCredential(Unauthenticated):
    code = "AUTH_STALE_CREDENTIAL"
    message = "Stale credential: user recently changed password! Please log in again."


class UserNoLongerExists(Unauthenticated):
    code = "AUTH_USER_NOT_FOUND"
    message = "The user belonging to this token no longer exists."


class Forbidden(AppError):
    status_code = 403
    code = "FORBIDDEN"
    message = "You do not have permission to perform this action."


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"
    message = "There is no document found with that ID."


class DuplicateField(AppError):
    """Raised when a write collides with a unique index."""
    status_code = 400
    code = "DUPLICATE_FIELD"

    def __init__(self, field: str | None, value: Any = None):
        self.field = field
        self.value = value
        if field == "email":
            message = (
                "This email already exists in the database. "
                "If you forgot your password, please reset password!"
            )
        elif field is None:
            message = "Duplicate field value. Please use another value!"
        elif value is not None:
            message = f"Duplicate field value: [{field}: {value}]"
        else:
            message = f"Duplicate field value: [{field}]"
        super().__init__(message)


class NoUpdatableFields(AppError):
    status_code = 400
    code = "NO_UPDATABLE_FIELDS"
    message = "You are not allowed to update these fields!"


class PasswordChangeNotAllowed(AppError):
    status_code = 400
    code = "PASSWORD_ROUTE_REQUIRED"
    message = "This route is not for password updates. Please use /auth/update-password."
