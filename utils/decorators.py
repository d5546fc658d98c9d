from __future__ import annotations
from functools import wraps
from flask import request, g
from api.errors import Unauthorized
from utils.security import decode_access_token, TokenError
from models import storage
from models.user import User

ACCESS_COOKIE = "accessToken"


def _presented_access_token() -> str | None:
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


def jwt_required():
    """Require a valid access token (cookie or Bearer header); sets g.current_user."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = _presented_access_token()
            if not token:
                raise Unauthorized("Unauthorized request")
            try:
                decoded = decode_access_token(token)
            except TokenError as e:
                raise Unauthorized(str(e))

            user = storage.get(User, decoded.get("sub"))
            if not user:
                raise Unauthorized("Invalid access token")
            g.current_user = user
            return fn(*args, **kwargs)

        return wrapper

    return decorator
