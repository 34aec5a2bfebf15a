"""Exception types raised by wolctl operations."""


class WolError(Exception):
    """Base class for every error an operation reports to the user."""


class ValidationError(WolError):
    """Raised when a required argument is missing or empty."""


class NotFoundError(WolError):
    """Raised when an alias name is not in the store."""


class StorageError(WolError):
    """Raised when the alias file cannot be read, written or parsed."""


class TransmissionError(WolError):
    """Raised when the magic packet could not be sent."""
