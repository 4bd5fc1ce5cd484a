"""Custom exception classes for the school magazine portal.

This module defines application-specific exceptions following Google Python
Style Guide.
"""

from typing import List, Optional


class MagazineError(Exception):
    """Base exception for all magazine portal errors."""

    pass


class ValidationError(MagazineError):
    """Raised when input fails one or more validation rules."""

    def __init__(self, violations: List[str]):
        """Initialize the exception.

        Args:
            violations: Every rule the input violated, in check order.
        """
        self.violations = list(violations)
        super().__init__("; ".join(self.violations))


class ForbiddenTransitionError(MagazineError):
    """Raised for an illegal workflow move or a wrong actor role."""

    pass


class NotFoundError(MagazineError):
    """Raised when a requested entity cannot be found."""

    def __init__(self, entity: str, entity_id: object):
        """Initialize the exception.

        Args:
            entity: Kind of entity, e.g. "Article".
            entity_id: The id that was not found.
        """
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class RemoteUnavailableError(MagazineError):
    """Raised when the Remote Content Service cannot serve a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        """Initialize the exception.

        Args:
            message: Description of the failure.
            status_code: HTTP status when the server answered with non-2xx.
        """
        self.status_code = status_code
        super().__init__(message)


class PersistenceError(MagazineError):
    """Raised when the local cache store cannot be read or written."""

    pass


class AuthenticationError(MagazineError):
    """Raised when neither the remote service nor the cache accepts a login."""

    pass

