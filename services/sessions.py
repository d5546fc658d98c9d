"""
Login, logout, refresh and password change.

Each user has at most one live session: the refresh token stored on the user row.
A refresh token is accepted only if its signature and expiry check out AND it is
the stored value, so every successful refresh kills the token it consumed.
"""
from __future__ import annotations

import logging
from typing import NamedTuple

import jwt
from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from api.errors import ApiError, BadRequest, NotFound, ServerError, Unauthorized
from models import storage
from models.schemas.user import UserOutSchema
from models.session_store import SessionStore
from models.user import User
from utils.security import (
    TokenError,
    create_access_token,
    create_refresh_token,
    hash_password,
    verify_password,
    verify_refresh_token,
)

logger = logging.getLogger(__name__)

user_out_schema = UserOutSchema()

TOKEN_GENERATION_FAILED = "Something went wrong while generating refresh and access tokens."
EXPIRED_OR_USED = "Refresh token is expired or used"


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str


class LoginResult(NamedTuple):
    user: dict
    access_token: str
    refresh_token: str


class SessionManager:
    def __init__(self, store: SessionStore | None = None):
        self.store = store or SessionStore()

    def _issue_tokens(self, user: User, consumed: str | None = None) -> TokenPair:
        """
        Mint a new pair and make its refresh token the stored one.

        With `consumed`, the write is a compare-and-swap against that token;
        losing the swap means another request already used it.
        """
        try:
            access_token = create_access_token(user)
            refresh_token = create_refresh_token(user)
            if consumed is None:
                self.store.set_current_refresh_token(user.id, refresh_token)
                swapped = True
            else:
                swapped = self.store.rotate_refresh_token(user.id, consumed, refresh_token)
        except (jwt.PyJWTError, SQLAlchemyError, KeyError, TypeError) as exc:
            logger.error("Token generation failed for user %s: %s", user.id, exc.__class__.__name__)
            raise ServerError(TOKEN_GENERATION_FAILED)
        if not swapped:
            raise Unauthorized(EXPIRED_OR_USED)
        return TokenPair(access_token, refresh_token)

    def login(self, password: str | None, username: str | None = None, email: str | None = None) -> LoginResult:
        if not username and not email:
            raise BadRequest("username or email is required.")

        criteria = []
        if username:
            criteria.append(User.username == username)
        if email:
            criteria.append(User.email == email)
        session = storage.get_session()
        user = session.query(User).filter(or_(*criteria)).first()
        if not user:
            raise NotFound("User does not exist.")

        if not verify_password(password, user.password_hash):
            logger.warning("Invalid credentials for user %s", user.id)
            raise Unauthorized("Invalid user credentials")

        pair = self._issue_tokens(user)
        logger.info("User %s logged in", user.id)
        return LoginResult(user_out_schema.dump(user), pair.access_token, pair.refresh_token)

    def logout(self, user_id: str) -> None:
        """Forget the stored refresh token. Safe to call when already logged out."""
        self.store.set_current_refresh_token(user_id, None)
        logger.info("User %s logged out", user_id)

    def refresh(self, presented: str | None) -> TokenPair:
        """
        Exchange a refresh token for a new pair.

        Every failure is reported as Unauthorized, so an unauthenticated caller
        never sees a server error from this endpoint.
        """
        if not presented or not isinstance(presented, str):
            raise Unauthorized("Unauthorized request.")
        try:
            try:
                user_id = verify_refresh_token(presented)
            except TokenError as exc:
                raise Unauthorized(str(exc))

            user = storage.get(User, user_id)
            if not user:
                raise Unauthorized("Invalid refresh token")

            if presented != self.store.get_current_refresh_token(user.id):
                logger.warning("Stale refresh token presented for user %s", user.id)
                raise Unauthorized(EXPIRED_OR_USED)

            pair = self._issue_tokens(user, consumed=presented)
        except Unauthorized:
            raise
        except ApiError as exc:
            raise Unauthorized(exc.message)
        except Exception:
            logger.exception("Unexpected error while refreshing tokens")
            raise Unauthorized("Invalid refresh token")

        logger.info("Rotated refresh token for user %s", user.id)
        return pair

    def change_password(self, user_id: str, old_password: str | None, new_password: str | None) -> None:
        user = storage.get(User, user_id)
        if not user:
            raise NotFound("User does not exist.")
        if not verify_password(old_password, user.password_hash):
            raise BadRequest("Incorrect Password")
        if not new_password:
            raise BadRequest("newPassword is required")

        user.password_hash = hash_password(new_password)
        user.save()
        # Existing sessions survive a password change unless configured otherwise
        if current_app.config.get("REVOKE_SESSIONS_ON_PASSWORD_CHANGE"):
            self.store.set_current_refresh_token(user.id, None)
        logger.info("Password changed for user %s", user.id)
