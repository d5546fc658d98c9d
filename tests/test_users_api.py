from __future__ import annotations

import io

BASE = "/api/v1/users"


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _upload(client, path: str, field: str, token: str, name: str = "new.png"):
    return client.patch(
        f"{BASE}/{path}",
        data={field: (io.BytesIO(b"new image"), name)},
        content_type="multipart/form-data",
        headers=_bearer(token),
    )


def test_current_user(client, make_user, login) -> None:
    uid = make_user()
    access = login()["accessToken"]

    r = client.get(f"{BASE}/current-user", headers=_bearer(access))
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["_id"] == uid
    assert data["fullName"] == "Ana"
    assert "refreshToken" not in data


def test_current_user_from_cookie(client, make_user, login) -> None:
    make_user()
    access = login()["accessToken"]
    r = client.get(f"{BASE}/current-user", headers={"Cookie": f"accessToken={access}"})
    assert r.status_code == 200


def test_current_user_requires_auth(client) -> None:
    r = client.get(f"{BASE}/current-user")
    assert r.status_code == 401
    assert r.get_json() == {
        "statusCode": 401,
        "data": None,
        "message": "Unauthorized request",
        "success": False,
        "errors": [],
    }


def test_update_account(client, make_user, login) -> None:
    make_user()
    access = login()["accessToken"]

    r = client.patch(f"{BASE}/update-account", json={"fullName": "Ana B"}, headers=_bearer(access))
    assert r.status_code == 400

    r = client.patch(
        f"{BASE}/update-account",
        json={"fullName": "Ana B", "email": "ana@x.com"},
        headers=_bearer(access),
    )
    assert r.status_code == 200
    assert r.get_json()["data"]["fullName"] == "Ana B"
    assert r.get_json()["data"]["email"] == "ana@x.com"
    assert client.post(f"{BASE}/login", json={"email": "ana@x.com", "password": "p1"}).status_code == 200


def test_update_account_duplicate_email(client, make_user, login) -> None:
    make_user()
    make_user(username="bob", email="b@x.com")
    access = login()["accessToken"]
    r = client.patch(
        f"{BASE}/update-account",
        json={"fullName": "Ana", "email": "b@x.com"},
        headers=_bearer(access),
    )
    assert r.status_code == 409


def test_update_avatar(client, make_user, login, blobs) -> None:
    make_user()
    access = login()["accessToken"]

    r = _upload(client, "avatar", "avatar", access)
    assert r.status_code == 200
    assert r.get_json()["message"] == "Avatar image updated successfully"
    assert r.get_json()["data"]["avatar"] == blobs.uploaded[-1]
    assert blobs.deleted == ["oldavatar"]


def test_update_avatar_eviction_failure_still_commits(client, make_user, login, blobs) -> None:
    make_user()
    access = login()["accessToken"]
    blobs.delete_result = {"result": "not found"}

    r = _upload(client, "avatar", "avatar", access)
    assert r.status_code == 500
    assert r.get_json()["errors"] == [{"result": "not found"}]

    current = client.get(f"{BASE}/current-user", headers=_bearer(access)).get_json()["data"]
    assert current["avatar"] == blobs.uploaded[-1]


def test_update_avatar_without_file(client, make_user, login) -> None:
    make_user()
    access = login()["accessToken"]
    r = client.patch(f"{BASE}/avatar", data={}, content_type="multipart/form-data", headers=_bearer(access))
    assert r.status_code == 400
    assert r.get_json()["message"] == "Avatar file is missing"


def test_update_cover_image(client, make_user, login, blobs) -> None:
    make_user()
    access = login()["accessToken"]
    r = _upload(client, "cover-image", "coverImage", access, name="cover.jpg")
    assert r.status_code == 200
    assert r.get_json()["data"]["coverImage"] == blobs.uploaded[-1]
    assert blobs.deleted == []


def test_health(client) -> None:
    r = client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.get_json()["database"] is True


def test_unknown_route_uses_error_envelope(client) -> None:
    r = client.get("/api/v1/nope")
    assert r.status_code == 404
    assert r.get_json()["success"] is False
