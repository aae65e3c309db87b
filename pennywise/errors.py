"""
Exception hierarchy shared by services and the API layer.
"""


class PennywiseError(Exception):
    """Base class for application errors."""
    pass


class ValidationError(PennywiseError, ValueError):
    """Raised when input to a service operation is invalid."""
    pass


class NotAuthenticatedError(PennywiseError):
    """Raised when an operation needs a user and none is present."""
    pass


class NotFoundError(PennywiseError):
    """Raised when a referenced row doesn't exist."""
    pass


class NotAuthorizedError(PennywiseError):
    """Raised when a referenced row belongs to another user."""
    pass


class TransientSourceError(PennywiseError):
    """Raised by the exchange rate client on network, status or payload problems."""
    pass
