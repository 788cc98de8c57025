"""
Error taxonomy for the API.

Every domain failure is an ApiError carrying the HTTP status it maps to.
The API boundary turns these into the JSON envelope; anything else that
escapes a handler is logged and reported as a generic 500.
"""

from typing import Optional


class ApiError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[list] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.errors = errors

    def to_dict(self) -> dict:
        body = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(ApiError):
    status_code = 400
    message = "Validation failed"


class AuthError(ApiError):
    status_code = 401
    message = "Not authorized"


class InvalidToken(AuthError):
    message = "Invalid or expired token"


class OwnershipError(ApiError):
    status_code = 403
    message = "Not authorized to modify this resource"


class NotFoundError(ApiError):
    status_code = 404
    message = "Not found"


class ConflictError(ApiError):
    status_code = 400
    message = "Resource already exists"


class DuplicateUser(ConflictError):
    message = "User with this email or username already exists"


class InternalError(ApiError):
    status_code = 500
