from __future__ import annotations

from flask import Blueprint, request, g

from models import storage
from models.schemas.user import UpdateAccountSchema, UserOutSchema
from services.media import MediaReplacer
from utils.blob_storage import get_blob_storage
from utils.decorators import jwt_required
from utils.uploads import stash_upload

from .errors import api_response, BadRequest

bp = Blueprint("users", __name__)

update_account_schema = UpdateAccountSchema()
user_out_schema = UserOutSchema()


@bp.get("/current-user")
@jwt_required()
def current_user():
    """
    Get the authenticated user.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return api_response(200, user_out_schema.dump(g.current_user), "Current user fetched successfully")


@bp.patch("/update-account")
@jwt_required()
def update_account():
    """
    Update full name and email.
    ---
    tags:
      - Users
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
             fullName: { type: string }
             email: { type: string }
    responses:
      200: { description: OK }
      400: { description: Missing fields }
      409: { description: Email already taken }
    """
    payload = request.get_json(silent=True) or {}
    if not payload.get("fullName") or not payload.get("email"):
        raise BadRequest("All fields are required")
    data = update_account_schema.load(payload)

    user = g.current_user
    user.full_name = data["fullName"]
    user.email = data["email"]
    storage.new(user)
    storage.save()
    return api_response(200, user_out_schema.dump(user), "Account details updated successfully")


def _replace_media(field: str, message: str):
    local_path = stash_upload(request.files.get(field))
    user = MediaReplacer(get_blob_storage()).replace(g.current_user.id, field, local_path)
    return api_response(200, user_out_schema.dump(user), message)


@bp.patch("/avatar")
@jwt_required()
def update_avatar():
    """
    Replace the avatar image (multipart field `avatar`).
    The previous image is deleted from storage after the new one is saved.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: avatar, type: file, required: true }
    responses:
      200: { description: Avatar updated }
      400: { description: File missing }
      500: { description: Upload failed, or the old image could not be deleted (new avatar is kept) }
    """
    return _replace_media("avatar", "Avatar image updated successfully")


@bp.patch("/cover-image")
@jwt_required()
def update_cover_image():
    """
    Replace the cover image (multipart field `coverImage`).
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - { in: formData, name: coverImage, type: file, required: true }
    responses:
      200: { description: Cover image updated }
      400: { description: File missing }
      500: { description: Upload failed, or the old image could not be deleted (new image is kept) }
    """
    return _replace_media("coverImage", "Cover image updated successfully")
