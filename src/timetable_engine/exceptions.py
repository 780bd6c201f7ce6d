"""Custom exceptions for the timetable engine."""


class SchedulingError(Exception):
    """Base exception for scheduling errors."""

    pass


class InvalidInputError(SchedulingError):
    """Member, owner or settings data is malformed."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        location = f" ({field})" if field else ""
        super().__init__(f"Invalid input{location}: {message}")


class DirectionsServiceError(SchedulingError):
    """The directions service failed or returned a non-OK status."""

    def __init__(self, message: str, status: str | None = None):
        self.status = status
        if status:
            message = f"{message} (status: {status})"
        super().__init__(message)
