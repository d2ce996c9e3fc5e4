"""Error kinds raised by the parcel repository and service."""
from __future__ import annotations


class ParcelError(Exception):
    """Base class for parcel storage errors."""


class ParcelNotFound(ParcelError, LookupError):
    def __init__(self, number: int):
        super().__init__(f"parcel_not_found: {number}")
        self.number = number


class PersistenceError(ParcelError):
    """Statement execution or connection failure; the sqlite3 error is the __cause__."""

    def __init__(self, operation: str, detail: str):
        super().__init__(f"{operation} failed: {detail}")
        self.operation = operation


class InvalidTransition(ParcelError, ValueError):
    """Address change or deletion attempted on a parcel that is no longer registered."""

    def __init__(self, number: int, status: str, operation: str):
        if status == "registered":
            msg = f"parcel {number}: {operation} rejected, status kept changing while it ran"
        else:
            msg = f"parcel {number}: {operation} allowed only in status 'registered', current status '{status}'"
        super().__init__(msg)
        self.number = number
        self.status = status
        self.operation = operation
