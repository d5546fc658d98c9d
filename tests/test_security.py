from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import jwt
import pytest

from utils.security import (
    ExpiredToken,
    InvalidToken,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    hash_password,
    verify_password,
    verify_refresh_token,
)


def _user() -> SimpleNamespace:
    return SimpleNamespace(id="user-1", email="a@x.com", username="ana", full_name="Ana")


def test_hash_password_is_salted_and_verifies() -> None:
    first = hash_password("p1")
    second = hash_password("p1")
    assert first != second
    assert "p1" not in first
    assert verify_password("p1", first)
    assert verify_password("p1", second)


def test_verify_password_rejects_wrong_password() -> None:
    assert verify_password("nope", hash_password("p1")) is False


@pytest.mark.parametrize("password,stored", [("p1", "not-an-argon2-hash"), ("", "x"), (None, "x"), ("p1", None)])
def test_verify_password_fails_closed(password, stored) -> None:
    assert verify_password(password, stored) is False


def test_access_token_carries_identity_and_display_fields(app) -> None:
    with app.app_context():
        token = create_access_token(_user())
        claims = jwt.decode(token, app.config["ACCESS_TOKEN_SECRET"], algorithms=["HS256"])
        assert decode_access_token(token)["sub"] == "user-1"
    assert claims["sub"] == "user-1"
    assert claims["username"] == "ana"
    assert claims["email"] == "a@x.com"
    assert claims["fullName"] == "Ana"
    assert claims["type"] == "access"


def test_refresh_token_carries_only_the_identity(app) -> None:
    with app.app_context():
        token = create_refresh_token(_user())
        assert verify_refresh_token(token) == "user-1"
    claims = jwt.decode(token, app.config["REFRESH_TOKEN_SECRET"], algorithms=["HS256"])
    assert set(claims) == {"sub", "jti", "iat", "exp"}


def test_refresh_tokens_minted_back_to_back_differ(app) -> None:
    with app.app_context():
        assert create_refresh_token(_user()) != create_refresh_token(_user())


def test_tokens_are_not_interchangeable(app) -> None:
    with app.app_context():
        access = create_access_token(_user())
        refresh = create_refresh_token(_user())
        with pytest.raises(InvalidToken):
            verify_refresh_token(access)
        with pytest.raises(InvalidToken):
            decode_access_token(refresh)


def test_refresh_token_with_wrong_signature_is_rejected(app) -> None:
    forged = jwt.encode(
        {"sub": "user-1", "jti": "x", "exp": 4102444800},
        "some-other-secret-0123456789abcdef0123456789",
        algorithm="HS256",
    )
    with app.app_context(), pytest.raises(InvalidToken):
        verify_refresh_token(forged)


def test_expired_refresh_token_is_rejected(app) -> None:
    app.config["REFRESH_TOKEN_EXPIRES"] = timedelta(seconds=-30)
    with app.app_context():
        token = create_refresh_token(_user())
        with pytest.raises(ExpiredToken):
            verify_refresh_token(token)
