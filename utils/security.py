"""
security helpers:
- Argon2 password hashing via argon2-cffi
- Access / refresh JWT creation and verification via PyJWT
- JTI generation for token identifiers
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError

from flask import current_app

logger = logging.getLogger(__name__)

ph = PasswordHasher()


class TokenError(Exception):
    """A presented token could not be accepted."""


class ExpiredToken(TokenError):
    pass


class InvalidToken(TokenError):
    pass


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plaintext password against its argon2 hash.

    Fails closed: a mismatch, a malformed hash or any internal error is "not verified".
    """
    if not password or not password_hash:
        return False
    try:
        return ph.verify(password_hash, password)
    except VerifyMismatchError:
        return False
    except Exception as exc:
        # Never include the password or the hash in the log line
        logger.warning("Password verification error: %s", exc.__class__.__name__)
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(user) -> str:
    """Short-lived bearer token carrying the user id and display fields."""
    now = _now()
    exp = now + current_app.config["ACCESS_TOKEN_EXPIRES"]
    payload = {
        "iss": current_app.config.get("JWT_ISSUER", "user-account-api"),
        "sub": str(user.id),
        "email": user.email,
        "username": user.username,
        "fullName": user.full_name,
        "type": "access",
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(
        payload, current_app.config["ACCESS_TOKEN_SECRET"], algorithm=current_app.config["JWT_ALGORITHM"]
    )


def create_refresh_token(user) -> str:
    """Long-lived token carrying only the user id.

    The jti nonce keeps two tokens minted within the same second distinct, which
    single-use rotation depends on.
    """
    now = _now()
    exp = now + current_app.config["REFRESH_TOKEN_EXPIRES"]
    payload = {
        "sub": str(user.id),
        "jti": generate_jti(),
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(
        payload, current_app.config["REFRESH_TOKEN_SECRET"], algorithm=current_app.config["JWT_ALGORITHM"]
    )


def _decode(token: str, secret: str) -> Dict[str, Any]:
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise ExpiredToken("Token expired")
    except jwt.InvalidTokenError as exc:
        raise InvalidToken(f"Invalid token: {exc}")


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate an access token. Raises ExpiredToken / InvalidToken.
    """
    decoded = _decode(token, current_app.config["ACCESS_TOKEN_SECRET"])
    if decoded.get("type") != "access":
        raise InvalidToken("Wrong token type")
    return decoded


def verify_refresh_token(token: str) -> str:
    """
    Check signature and expiry of a refresh token and return the user id it names.
    Raises ExpiredToken / InvalidToken.
    """
    decoded = _decode(token, current_app.config["REFRESH_TOKEN_SECRET"])
    if "type" in decoded:
        raise InvalidToken("Wrong token type")
    return str(decoded["sub"])
