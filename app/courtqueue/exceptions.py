"""
Exceptions for the court queue.

The allocation engine itself never raises for unmet preconditions; it
returns a declined Outcome. These are used by the outer surfaces.
"""


class CourtQueueError(Exception):
    """Base exception for court queue errors."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class CommandError(CourtQueueError):
    """A command payload failed validation."""

    pass


class StorageError(CourtQueueError):
    """A snapshot could not be decoded."""

    pass
