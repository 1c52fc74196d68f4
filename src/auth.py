"""
Authentication utilities.

Password hashing uses bcrypt. Never store plaintext passwords.
Bearer tokens are HS256 JWTs carrying the user's email claim.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import Request

from src.config import get_jwt_expires_minutes, get_jwt_secret
from src.errors import InvalidTokenError, MalformedAuthHeaderError
from src.logging_utils import log_event


JWT_ALGORITHM = "HS256"
BEARER_PREFIX = "Bearer "


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    INVARIANT: The result is always a bcrypt hash, never plaintext.
    This function is the ONLY way to create password_hash values.

    Args:
        password: Plaintext password from user input

    Returns:
        Bcrypt hash string (safe to store in database)
    """
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against a bcrypt hash.

    Args:
        password: Plaintext password from user input
        password_hash: Bcrypt hash from database

    Returns:
        True if password matches, False otherwise
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        # Invalid hash format
        return False


def create_access_token(email: str, *, now: datetime | None = None) -> str:
    """Sign a token for `email`, valid for JWT_EXPIRES_MINUTES (default 1 hour)."""
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "email": email,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=get_jwt_expires_minutes()),
    }
    return jwt.encode(payload, get_jwt_secret(), algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Verify signature and expiry and return the claim set.

    Raises:
        InvalidTokenError on bad signature, expired token, malformed token,
        or a claim set without a string email.
    """
    try:
        claims = jwt.decode(
            token,
            get_jwt_secret(),
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.PyJWTError as exc:
        log_event("auth_rejected", level="warning", reason="invalid_token", error_type=type(exc).__name__)
        raise InvalidTokenError() from exc

    if not isinstance(claims.get("email"), str) or not claims["email"]:
        log_event("auth_rejected", level="warning", reason="invalid_token", error_type="MissingEmailClaim")
        raise InvalidTokenError()

    return claims


def require_user_email(request: Request) -> str:
    """
    FastAPI dependency guarding protected routes.

    Expects `Authorization: Bearer <token>` (prefix is case-sensitive).
    On success the email claim is stored on request.state.user_email and
    returned.

    Raises:
        MalformedAuthHeaderError if the header is missing, has the wrong
        prefix, or carries no token.
        InvalidTokenError if the token fails verification.
    """
    header = request.headers.get("Authorization") or ""
    token = header[len(BEARER_PREFIX):] if header.startswith(BEARER_PREFIX) else ""
    if not token.strip():
        log_event("auth_rejected", level="warning", reason="malformed_header", path=request.url.path)
        raise MalformedAuthHeaderError()

    claims = decode_access_token(token)
    email = claims["email"]

    request.state.user_email = email
    log_event("auth_ok", level="debug", email=email)
    return email
