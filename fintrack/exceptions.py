"""Domain-specific exceptions for the finance tracker core services."""

class ValidationError(ValueError):
    """Raised when provided data does not meet validation requirements."""


class RecordNotFoundError(LookupError):
    """Raised when an expense, income or category record cannot be located."""


class PersistenceError(IOError):
    """Raised when the persistence layer encounters unrecoverable issues."""


class ConstraintViolationError(PersistenceError):
    """Raised when the backing store rejects a write because of a constraint."""
