"""Domain errors raised below the route layer.

Routes translate these into HTTP responses; services and the store never
import FastAPI.
"""


class ClubhouseError(Exception):
    """Base class for all domain errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(ClubhouseError):
    """A referenced record does not exist (or is not usable, e.g. an inactive court)."""


class ConflictError(ClubhouseError):
    """The requested court slot overlaps an active booking."""

    def __init__(self, message: str = "Court is already booked for this time slot", conflicting: dict | None = None):
        self.conflicting = conflicting
        super().__init__(message)


class TransientStoreError(ClubhouseError):
    """A store call failed in a way that may succeed on retry (timeout, lost connection, contention)."""


class ConditionFailedError(ClubhouseError):
    """A conditional write was rejected; nothing in the transaction was applied."""
