"""
Application error types

Every error carries a ``kind`` that the error handlers map to an HTTP status.
"""
from typing import Optional


class AppError(Exception):
    kind: str = "unclassified"
    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(AppError):
    """Input did not pass the user validator"""
    kind = "validation"
    status_code = 400

    def __init__(self, errors: list[dict], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors


class DuplicateUserError(AppError):
    """A user with the same username or email already exists"""
    kind = "uniqueness"
    status_code = 409

    def __init__(self, field: str):
        super().__init__(f"{field.capitalize()} already exists")
        self.field = field

    def to_error(self) -> dict:
        return {"field": self.field, "message": self.message}


class DatabaseError(AppError):
    kind = "database"
    status_code = 500


class UniqueViolation(DatabaseError):
    """Raised by database adapters when a UNIQUE constraint rejects a write"""

    def __init__(self, column: str, message: Optional[str] = None):
        super().__init__(message or f"UNIQUE constraint failed: Users.{column}")
        self.column = column


class DatabaseConnectionError(AppError):
    kind = "connection"
    status_code = 503
