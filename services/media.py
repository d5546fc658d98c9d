"""
Replacing a profile image: upload the new file, evict the old blob, commit the
new URL, and only then report an eviction failure.

A failed upload never touches the user row. A failed eviction never undoes the
committed URL. Two concurrent replaces of the same field are last-writer-wins
and may evict each other's blob.
"""
from __future__ import annotations

import logging
import os

from sqlalchemy import select, update

from api.errors import BadRequest, NotFound, ServerError
from models import storage
from models.user import User
from utils.blob_storage import public_id_from_url

logger = logging.getLogger(__name__)

# API field name -> (User column, label used in messages)
MEDIA_FIELDS = {
    "avatar": ("avatar", "Avatar"),
    "coverImage": ("cover_image", "Cover image"),
}


def _discard(local_path: str | None) -> None:
    if local_path and os.path.exists(local_path):
        os.remove(local_path)


class MediaReplacer:
    def __init__(self, blob_storage):
        self.blob_storage = blob_storage

    def replace(self, user_id: str, field: str, local_path: str | None) -> User:
        if field not in MEDIA_FIELDS:
            _discard(local_path)
            raise BadRequest(f"Unsupported media field: {field}")
        column_name, label = MEDIA_FIELDS[field]
        column = getattr(User, column_name)

        if not local_path:
            raise BadRequest(f"{label} file is missing")

        session = storage.get_session()
        exists = session.execute(select(User.id).where(User.id == user_id)).scalar_one_or_none()
        if exists is None:
            _discard(local_path)
            raise NotFound("User does not exist.")

        uploaded = self.blob_storage.upload(local_path)
        new_url = (uploaded or {}).get("url")
        if not new_url:
            raise ServerError(f"Something went wrong while uploading the {label.lower()}, try again.")

        # Read the stored value, not whatever an in-memory instance holds
        current_url = session.execute(
            select(column).where(User.id == user_id)
        ).scalar_one_or_none()

        eviction = None
        if current_url:
            eviction = self.blob_storage.delete(public_id_from_url(current_url), resource_type="image")

        result = session.execute(
            update(User).where(User.id == user_id).values({column_name: new_url})
        )
        storage.save()
        if result.rowcount != 1:
            logger.warning("User %s vanished during %s replace, orphaned %s", user_id, field, new_url)
            raise NotFound("User does not exist.")
        logger.info("Replaced %s for user %s", field, user_id)

        if eviction is not None and eviction.get("result") != "ok":
            logger.warning("Could not evict previous %s for user %s: %s", field, user_id, eviction)
            raise ServerError(
                f"Something went wrong while deleting previous {label.lower()}.",
                errors=[eviction],
            )

        return storage.get(User, user_id)
