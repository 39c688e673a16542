"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500, code: str = "Application.Error"):
        """Initialize exception with message, status code and error code."""
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found", code: str = "Resource.NotFound"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404, code=code)


class ConflictException(AppException):
    """Conflict exception.

    Raised for overlapping appointments and for stale concurrency tokens;
    both mean the caller must reload and retry.
    """

    def __init__(self, message: str = "Conflict", code: str = "Resource.Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409, code=code)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error", code: str = "Request.ValidationFailed"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400, code=code)


class ConcurrencyConflictError(Exception):
    """Raised by the store when a save loses a concurrent write."""
