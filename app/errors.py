# app/errors.py


class BookingError(Exception):
    """Base class for every error the booking core raises."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    """Bad or missing input (empty name/email, bad datetime, past slot)."""


class NotFound(BookingError):
    """Unknown service, slot or reservation id."""


class Conflict(BookingError):
    """Duplicate booking or full slot."""


class Forbidden(BookingError):
    """Caller may not perform the operation."""


class StorageError(BookingError):
    """Durable storage could not be read or written."""
