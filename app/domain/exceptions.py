"""Exceptions raised by the appointment aggregate."""


class AppointmentArgumentError(ValueError):
    """Raised when an argument passed to the aggregate is invalid."""

    def __init__(self, message: str, param_name: str):
        """Initialize with the offending parameter name."""
        self.message = message
        self.param_name = param_name
        super().__init__(f"{message} (parameter '{param_name}')")


class AppointmentOperationError(Exception):
    """Raised when a transition is not allowed from the current status."""

    def __init__(self, message: str):
        """Initialize exception with message."""
        self.message = message
        super().__init__(message)
