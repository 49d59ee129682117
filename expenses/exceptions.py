"""Domain-specific exceptions for the expense tracker core."""

class ValidationError(ValueError):
    """Raised when provided or stored data does not meet validation requirements."""


class NotFoundError(LookupError):
    """Raised when an expense record cannot be located."""


class ParseError(ValueError):
    """Raised when a numeric value in stored data or user input cannot be parsed."""


class PersistenceError(IOError):
    """Raised when the backing file cannot be read or written."""
