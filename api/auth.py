"""
Authentication blueprint (mounted under /api/v1/users):
- POST  /register
- POST  /login
- POST  /logout
- POST  /refresh-token
- PATCH /change-password

Tokens travel both in the JSON body and as httpOnly cookies (accessToken, refreshToken).
"""
from __future__ import annotations

from flask import Blueprint, request, g, current_app

from models import storage
from models.user import User
from models.schemas.user import (
    UserRegisterSchema,
    UserLoginSchema,
    ChangePasswordSchema,
    UserOutSchema,
)
from services.sessions import SessionManager
from utils.blob_storage import get_blob_storage
from utils.decorators import ACCESS_COOKIE, jwt_required
from utils.security import hash_password
from utils.uploads import stash_upload

from .errors import api_response, BadRequest, Conflict, ServerError

REFRESH_COOKIE = "refreshToken"

bp = Blueprint("auth", __name__)

user_register_schema = UserRegisterSchema()
user_login_schema = UserLoginSchema()
change_password_schema = ChangePasswordSchema()
user_out_schema = UserOutSchema()


def _cookie_options() -> dict:
    return {"httponly": True, "secure": current_app.config.get("COOKIE_SECURE", True)}


def set_auth_cookies(response, access_token: str, refresh_token: str):
    response.set_cookie(ACCESS_COOKIE, access_token, **_cookie_options())
    response.set_cookie(REFRESH_COOKIE, refresh_token, **_cookie_options())
    return response


def clear_auth_cookies(response):
    response.delete_cookie(ACCESS_COOKIE, **_cookie_options())
    response.delete_cookie(REFRESH_COOKIE, **_cookie_options())
    return response


@bp.post("/register")
def register():
    """
    Register a new user (multipart form).
    ---
    tags:
      - Auth
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: fullName, type: string, required: true }
      - { in: formData, name: email, type: string, required: true }
      - { in: formData, name: username, type: string, required: true }
      - { in: formData, name: password, type: string, required: true }
      - { in: formData, name: avatar, type: file, required: true }
      - { in: formData, name: coverImage, type: file, required: false }
    responses:
      201:
        description: Created
      400:
        description: Missing fields or avatar
      409:
        description: Username or email already taken
    """
    form = request.form.to_dict()
    fields = ("fullName", "email", "username", "password")
    if any(not (form.get(f) or "").strip() for f in fields):
        raise BadRequest("All fields are required")
    data = user_register_schema.load(form)

    session = storage.get_session()
    username = data["username"].lower()
    existing = session.query(User).filter(
        (User.username == username) | (User.email == data["email"])
    ).first()
    if existing:
        raise Conflict("User with this username or email already exists.")

    avatar_path = stash_upload(request.files.get("avatar"))
    if not avatar_path:
        raise BadRequest("Avatar file is required")
    cover_path = stash_upload(request.files.get("coverImage"))

    blob_storage = get_blob_storage()
    avatar = blob_storage.upload(avatar_path)
    cover_image = blob_storage.upload(cover_path)
    if not avatar or not avatar.get("url"):
        raise ServerError("Something went wrong while file upload, try again.")

    user = User(
        full_name=data["fullName"],
        email=data["email"],
        username=username,
        password_hash=hash_password(data["password"]),
        avatar=avatar["url"],
        cover_image=(cover_image or {}).get("url") or "",
    )
    storage.new(user)
    storage.save()

    return api_response(201, user_out_schema.dump(user), "User registration successful")


@bp.post("/login")
def login():
    """
    Login with username or email; returns both tokens and sets them as cookies.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             username: { type: string }
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid credentials
      404:
        description: No such user
    """
    payload = user_login_schema.load(request.get_json(silent=True) or {})
    result = SessionManager().login(
        payload.get("password"), username=payload.get("username"), email=payload.get("email")
    )
    response, status = api_response(
        200,
        {
            "user": result.user,
            "accessToken": result.access_token,
            "refreshToken": result.refresh_token,
        },
        "User logged in successfully.",
    )
    set_auth_cookies(response, result.access_token, result.refresh_token)
    return response, status


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: forget the stored refresh token and clear the cookies.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    SessionManager().logout(g.current_user.id)
    response, status = api_response(200, {}, "User logged out.")
    clear_auth_cookies(response)
    return response, status


@bp.post("/refresh-token")
def refresh_token():
    """
    Exchange a refresh token (cookie first, then JSON body) for a new pair.
    The presented token stops working once exchanged.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         required: false
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: Rotated tokens
      401:
        description: Missing, invalid, expired or already used refresh token
    """
    presented = request.cookies.get(REFRESH_COOKIE)
    if not presented:
        body = request.get_json(silent=True)
        presented = body.get("refreshToken") if isinstance(body, dict) else None

    pair = SessionManager().refresh(presented)
    response, status = api_response(
        200,
        {"accessToken": pair.access_token, "refreshToken": pair.refresh_token},
        "Access token refreshed",
    )
    set_auth_cookies(response, pair.access_token, pair.refresh_token)
    return response, status


@bp.route("/change-password", methods=["PATCH", "POST"])
@jwt_required()
def change_password():
    """
    Change the current user's password.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             oldPassword: { type: string }
             newPassword: { type: string }
    responses:
      200:
        description: Password updated
      400:
        description: Incorrect old password
    """
    payload = change_password_schema.load(request.get_json(silent=True) or {})
    SessionManager().change_password(
        g.current_user.id, payload.get("oldPassword"), payload.get("newPassword")
    )
    return api_response(200, {}, "Password updated successfully.")
