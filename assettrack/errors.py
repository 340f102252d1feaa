"""
Domain exceptions raised by the service layer.

Each exception carries the HTTP status it maps to. The application
factory registers a single handler for ``ServiceError`` that turns any
of them into a ``{"message": ...}`` JSON response.
"""


class ServiceError(Exception):
    """Base class for errors that map to a client-facing status code."""

    status_code = 500

    def __init__(self, message: str, error: str | None = None):
        super().__init__(message)
        self.message = message
        self.error = error

    def to_dict(self) -> dict:
        payload = {"message": self.message}
        if self.error:
            payload["error"] = self.error
        return payload


class ValidationError(ServiceError):
    """Bad input: duplicate unique value, missing association, bad state."""

    status_code = 400


class AuthenticationError(ServiceError):
    """Missing, invalid, or expired credentials."""

    status_code = 401


class PermissionDenied(ServiceError):
    """Authenticated, but not allowed to perform the operation."""

    status_code = 403


class NotFoundError(ServiceError):
    """The referenced row does not exist (or has been soft-deleted)."""

    status_code = 404
