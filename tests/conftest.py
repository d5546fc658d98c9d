from __future__ import annotations

import os
import uuid

import pytest

from api import create_app
from models import storage
from models.user import User
from utils.security import hash_password

OLD_AVATAR = "https://media.test/user_media/oldavatar.png"


class FakeBlobStorage:
    """In-memory stand-in for S3BlobStorage with the same upload/delete contract."""

    def __init__(self) -> None:
        self.uploaded: list[str] = []
        self.deleted: list[str] = []
        self.delete_result: dict = {"result": "ok"}
        self.fail_uploads = False

    def upload(self, local_path):
        if not local_path:
            return None
        try:
            if self.fail_uploads:
                return None
            public_id = uuid.uuid4().hex
            ext = os.path.splitext(local_path)[1]
            url = f"https://media.test/user_media/{public_id}{ext}"
            self.uploaded.append(url)
            return {"url": url, "public_id": public_id}
        finally:
            if os.path.exists(local_path):
                os.remove(local_path)

    def delete(self, public_id, resource_type="image"):
        self.deleted.append(public_id)
        return dict(self.delete_result)


@pytest.fixture
def app(tmp_path):
    app = create_app("testing")
    app.config["UPLOAD_FOLDER"] = str(tmp_path / "uploads")
    app.extensions["blob_storage"] = FakeBlobStorage()
    yield app
    storage.close()


@pytest.fixture
def blobs(app) -> FakeBlobStorage:
    return app.extensions["blob_storage"]


@pytest.fixture
def client(app):
    # Cookies are sent explicitly so body-vs-cookie precedence stays under test control
    return app.test_client(use_cookies=False)


@pytest.fixture
def make_user(app):
    def _make(
        username: str = "ana",
        email: str = "a@x.com",
        password: str = "p1",
        full_name: str = "Ana",
        avatar: str = OLD_AVATAR,
        cover_image: str = "",
    ) -> str:
        with app.app_context():
            user = User(
                username=username,
                email=email,
                full_name=full_name,
                password_hash=hash_password(password),
                avatar=avatar,
                cover_image=cover_image,
            )
            storage.new(user)
            storage.save()
            return user.id

    return _make


@pytest.fixture
def login(client):
    def _login(username: str = "ana", password: str = "p1") -> dict:
        r = client.post("/api/v1/users/login", json={"username": username, "password": password})
        assert r.status_code == 200, r.get_json()
        return r.get_json()["data"]

    return _login
