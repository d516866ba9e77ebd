"""
Domain errors raised by the booking services.

Services raise these at the point of detection; ``app.main`` translates them
into JSON responses using ``status_code``.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for every booking-domain failure."""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(DomainError):
    """Malformed or rule-violating input."""

    status_code = 400


class PricingError(ValidationError):
    """Date/time window or setup hours cannot be priced."""


class ConflictError(DomainError):
    """The request collides with existing bookings or state."""

    status_code = 409


class NotFoundError(DomainError):
    status_code = 404


class ExpiredError(DomainError):
    """A management link that existed but is past its expiry."""

    status_code = 410


class UnauthorizedError(DomainError):
    status_code = 401


class ForbiddenError(DomainError):
    status_code = 403


class DependencyError(DomainError):
    """A collaborator (payment gateway, store) failed.

    The message is safe to show to callers; the cause is logged server-side.
    """

    status_code = 500
