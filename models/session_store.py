"""
Per-user session state: the single refresh token currently accepted for a user.

Writes are column-level UPDATE statements rather than ORM attribute writes, so
rotating a token never runs the profile field validators on User and never
depends on what an in-memory instance believes the token to be.
"""
from __future__ import annotations

import logging

from sqlalchemy import select, update

from models import storage
from models.user import User

logger = logging.getLogger(__name__)


class SessionStore:
    """Reads and writes users.refresh_token."""

    def __init__(self, db=None):
        self.db = db or storage

    def get_current_refresh_token(self, user_id: str) -> str | None:
        """Return the stored refresh token, read fresh from the database."""
        session = self.db.get_session()
        return session.execute(
            select(User.refresh_token).where(User.id == user_id)
        ).scalar_one_or_none()

    def set_current_refresh_token(self, user_id: str, token: str | None) -> None:
        """Overwrite the stored refresh token. None clears the session."""
        session = self.db.get_session()
        session.execute(
            update(User).where(User.id == user_id).values(refresh_token=token)
        )
        self.db.save()

    def rotate_refresh_token(self, user_id: str, expected: str, new: str) -> bool:
        """
        Compare-and-swap: replace `expected` with `new` only if `expected` is still
        the stored value. Returns False when another request rotated or cleared it first.
        """
        session = self.db.get_session()
        result = session.execute(
            update(User)
            .where(User.id == user_id, User.refresh_token == expected)
            .values(refresh_token=new)
        )
        self.db.save()
        swapped = result.rowcount == 1
        if not swapped:
            logger.info("Refresh token rotation lost for user %s", user_id)
        return swapped
