"""Stash multipart files on local disk before they are pushed to blob storage."""
from __future__ import annotations

import os
import uuid

from flask import current_app
from werkzeug.utils import secure_filename


def stash_upload(file_storage) -> str | None:
    """Save a werkzeug FileStorage under UPLOAD_FOLDER; None when no file was sent."""
    if file_storage is None or not file_storage.filename:
        return None
    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    name = secure_filename(file_storage.filename) or "upload"
    path = os.path.join(folder, f"{uuid.uuid4().hex}-{name}")
    file_storage.save(path)
    return path
