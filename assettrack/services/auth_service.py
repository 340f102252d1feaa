"""
Auth service — password login and signed bearer tokens.

Tokens are HS256 JWTs produced with python-jose. They carry the user id
(``sub``) and role name; every request re-reads the user and role from
the database, so role changes and deactivation take effect on the next
request while already-issued tokens stay valid until they expire.
"""

import logging
from datetime import datetime, timedelta, timezone

from flask import current_app
from jose import ExpiredSignatureError, JWTError, jwt

from assettrack.context import RequestContext
from assettrack.errors import AuthenticationError, PermissionDenied, ValidationError
from assettrack.extensions import db
from assettrack.models.user import User
from assettrack.services import user_service

logger = logging.getLogger(__name__)


# -- Tokens ----------------------------------------------------------------


def issue_token(user: User) -> str:
    """Sign a token for ``user`` valid for ``JWT_EXPIRES_MINUTES``."""
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user.id),
        "role": user.role_name,
        "iat": now,
        "exp": now + timedelta(minutes=current_app.config["JWT_EXPIRES_MINUTES"]),
    }
    return jwt.encode(
        claims,
        current_app.config["JWT_SECRET"],
        algorithm=current_app.config["JWT_ALGORITHM"],
    )


def resolve_token(token: str) -> User:
    """
    Verify a bearer token and load its user.

    Raises:
        AuthenticationError: Expired or invalid token, or unknown user.
        PermissionDenied:    The account has been deactivated.
    """
    try:
        claims = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
        )
    except ExpiredSignatureError as exc:
        raise AuthenticationError("Token expired") from exc
    except JWTError as exc:
        raise AuthenticationError("Invalid token") from exc

    try:
        user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise AuthenticationError("Invalid token") from exc

    user = user_service.get_user_by_id(user_id)
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise PermissionDenied("User account is inactive")
    return user


def token_from_header(header_value: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not header_value:
        return None
    scheme, _, token = header_value.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


# -- Login and registration ------------------------------------------------


def login(username: str, password: str) -> tuple[User, str]:
    """
    Check credentials and issue a token.

    Returns:
        The user and a freshly signed token.

    Raises:
        ValidationError:     Username or password missing.
        AuthenticationError: Unknown user or wrong password.
        PermissionDenied:    Account inactive.
    """
    if not username or not password:
        raise ValidationError("Username and password are required.")

    user = user_service.get_user_by_username(username)
    if user is None or not user.check_password(password):
        logger.info("Failed login attempt for username '%s'", username)
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise PermissionDenied("User account is inactive")

    user.last_login = datetime.now(timezone.utc)
    db.session.commit()

    logger.info("User %s logged in", user.username)
    return user, issue_token(user)


def register(data: dict) -> tuple[User, str]:
    """
    Self-service registration with the configured default role.

    Returns:
        The new user and a token for immediate use.
    """
    user = user_service.create_user(
        data, role_name=current_app.config["DEFAULT_ROLE"]
    )
    return user, issue_token(user)


def change_password(ctx: RequestContext, current_password: str, new_password: str) -> None:
    """Replace the acting user's password after verifying the current one."""
    if not current_password or not new_password:
        raise ValidationError("Current password and new password are required.")
    user = ctx.user
    if not user.check_password(current_password):
        raise AuthenticationError("Current password is incorrect")
    user_service.validate_password(new_password)
    user.set_password(new_password)
    db.session.commit()
    logger.info("User %s changed their password", user.username)
