"""Failure taxonomy of the dining domain.

Field-level failures extend Protean's ``ValidationError`` so they carry the
same ``{"field": ["message"]}`` payload as every other domain validation error;
the API layer maps each class to its own HTTP status.
"""

from protean.exceptions import InvalidOperationError, ValidationError


class Unauthenticated(Exception):
    """No actor identity accompanied the request."""


class Unauthorized(InvalidOperationError):
    """The actor does not own the address, order or reservation being acted on."""


class InvalidCartState(ValidationError):
    """A cart line is missing the denormalized values needed to price it."""


class EmptyCart(ValidationError):
    """The actor has no open cart, or the open cart holds no lines."""


class TableUnavailable(ValidationError):
    """The requested table is too small, under maintenance, or already booked."""


class ExtensionLimitReached(ValidationError):
    """A reservation has used up its automatic extensions."""


class TransactionFailed(Exception):
    """An unexpected persistence failure; the unit of work was rolled back."""

    retryable = True
