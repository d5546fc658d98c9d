"""
S3 storage for profile media (avatars and cover images).

Objects are stored as <prefix>/<public_id><ext>, so the public id of a stored
image is the basename of its URL without the extension. Deleting by public id
removes whatever extension the object was uploaded with.
"""
from __future__ import annotations

import logging
import os
import uuid
from typing import Optional
from urllib.parse import urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def public_id_from_url(url: Optional[str]) -> str:
    """'https://cdn/x/user_media/ab12.png' -> 'ab12'"""
    if not url:
        return ""
    path = urlparse(url).path if "://" in url else url
    return os.path.splitext(os.path.basename(path))[0]


class S3BlobStorage:
    """Service for managing user media in S3"""

    def __init__(
        self,
        bucket: Optional[str],
        prefix: str = "user_media",
        region: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 10,
        max_attempts: int = 2,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        client=None,
    ):
        if client is None:
            if not access_key_id or not secret_access_key:
                logger.warning("AWS credentials not configured. Falling back to the default credential chain.")
            client = boto3.client(
                "s3",
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                region_name=region,
                config=Config(
                    connect_timeout=timeout,
                    read_timeout=timeout,
                    retries={"max_attempts": max_attempts},
                ),
            )
        self.s3_client = client
        self.bucket = bucket
        self.prefix = (prefix or "").strip("/")
        self.region = region
        self.base_url = base_url

    def _key(self, name: str) -> str:
        return f"{self.prefix}/{name}" if self.prefix else name

    def url_for(self, key: str) -> str:
        """CDN URL when configured, otherwise the virtual-hosted S3 URL"""
        if self.base_url:
            return f"{self.base_url.rstrip('/')}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload(self, local_path: Optional[str]) -> Optional[dict]:
        """
        Push a local file to S3 and return {"url", "public_id"}.

        Returns None when there is nothing to upload or the upload failed
        (including timeouts). The local file is removed either way.
        """
        if not local_path:
            return None
        try:
            if not self.bucket:
                logger.error("S3_MEDIA_BUCKET not configured, cannot upload %s", local_path)
                return None
            ext = os.path.splitext(local_path)[1].lower()
            public_id = uuid.uuid4().hex
            key = self._key(f"{public_id}{ext}")
            extra_args = {}
            if ext in CONTENT_TYPES:
                extra_args["ContentType"] = CONTENT_TYPES[ext]

            with open(local_path, "rb") as fh:
                self.s3_client.put_object(Bucket=self.bucket, Key=key, Body=fh.read(), **extra_args)
            logger.info("Uploaded media object %s", key)
            return {"url": self.url_for(key), "public_id": public_id}
        except (BotoCoreError, ClientError, OSError) as e:
            logger.error("Error uploading %s to S3: %s", local_path, e)
            return None
        finally:
            try:
                os.remove(local_path)
            except OSError as e:
                logger.debug("Could not remove temp upload %s: %s", local_path, e)

    def delete(self, public_id: str, resource_type: str = "image") -> dict:
        """
        Delete every object stored under a public id.

        Never raises for storage faults; the outcome is reported in the returned dict:
        {"result": "ok"}, {"result": "not found"} or {"result": "error", "message": ...}.
        """
        if not public_id:
            return {"result": "not found"}
        if not self.bucket:
            logger.warning("S3_MEDIA_BUCKET not configured, cannot delete %s", public_id)
            return {"result": "error", "message": "bucket not configured"}

        stem = self._key(public_id)
        try:
            listing = self.s3_client.list_objects_v2(Bucket=self.bucket, Prefix=stem)
            keys = [
                obj["Key"] for obj in listing.get("Contents", [])
                if os.path.splitext(obj["Key"])[0] == stem
            ]
            if not keys:
                logger.warning("Media object not found in S3: %s", stem)
                return {"result": "not found"}

            response = self.s3_client.delete_objects(
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": k} for k in keys], "Quiet": True},
            )
            failed = response.get("Errors", [])
            if failed:
                logger.error("S3 refused to delete %s: %s", stem, failed)
                return {"result": "error", "message": "delete rejected", "errors": failed}
            logger.info("Deleted %s media object(s) for %s (%s)", len(keys), public_id, resource_type)
            return {"result": "ok"}
        except (BotoCoreError, ClientError) as e:
            logger.error("Error deleting %s from S3: %s", stem, e)
            return {"result": "error", "message": str(e)}


def init_blob_storage(app) -> S3BlobStorage:
    cfg = app.config
    blob_storage = S3BlobStorage(
        bucket=cfg.get("S3_MEDIA_BUCKET"),
        prefix=cfg.get("S3_MEDIA_PREFIX", "user_media"),
        region=cfg.get("AWS_REGION"),
        base_url=cfg.get("S3_MEDIA_BASE_URL"),
        timeout=cfg.get("BLOB_STORAGE_TIMEOUT_SECONDS", 10),
        max_attempts=cfg.get("BLOB_STORAGE_MAX_ATTEMPTS", 2),
        access_key_id=cfg.get("AWS_ACCESS_KEY_ID"),
        secret_access_key=cfg.get("AWS_SECRET_ACCESS_KEY"),
    )
    app.extensions["blob_storage"] = blob_storage
    return blob_storage


def get_blob_storage():
    return current_app.extensions["blob_storage"]
