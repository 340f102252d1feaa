"""
Request context passed explicitly through handlers, policies and the
audit recorder.

A ``RequestContext`` is built once per request by the ``authenticated``
decorator and handed to the view as its first positional argument.
Services receive it as a parameter rather than reading Flask globals,
which keeps them callable from the CLI and from tests.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from flask import request


@dataclass(frozen=True)
class RequestContext:
    """Identity and request metadata for one API call."""

    user: object
    ip_address: str | None = None
    user_agent: str | None = None
    received_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def user_id(self) -> int | None:
        return getattr(self.user, "id", None)

    @property
    def role_name(self) -> str | None:
        return getattr(self.user, "role_name", None)

    @classmethod
    def from_request(cls, user) -> "RequestContext":
        """Build a context from the active Flask request."""
        return cls(
            user=user,
            ip_address=request.remote_addr,
            user_agent=str(request.user_agent)[:500] or None,
        )

    @classmethod
    def system(cls, user=None) -> "RequestContext":
        """Context for CLI commands and other work outside a request."""
        return cls(user=user)
