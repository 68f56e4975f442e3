"""
Typed domain errors.

Workflows raise these with a fixed message and HTTP status; the exception
handlers in main.py serialize them as ``{"success": false, "error": message}``.
Anything that is not an AppError is reported to clients as a generic 500.
"""


class AppError(Exception):
    """Base exception for all application-specific errors."""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    """Raised when request input is missing or malformed."""

    status_code = 400


class ConflictError(AppError):
    """Raised when a requested short code is already taken."""

    status_code = 409


class NotFoundError(AppError):
    """Raised when a short code is unknown or its URL is inactive."""

    status_code = 404


class GoneError(AppError):
    """Raised when a short code exists and is active but has expired."""

    status_code = 410


class InternalError(AppError):
    """Raised for failures the caller cannot fix, e.g. an exhausted retry budget."""

    status_code = 500
