from marshmallow import Schema, fields, pre_load, validates, ValidationError, EXCLUDE


SECRET_FIELDS = ("password", "oldPassword", "newPassword")


def _strip(v):
    return v.strip() if isinstance(v, str) else v


class _InputSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = {k: v if k in SECRET_FIELDS else _strip(v) for k, v in data.items()}
        return data


class UserRegisterSchema(_InputSchema):
    fullName = fields.String(required=True)
    email = fields.Email(required=True)
    username = fields.String(required=True)
    password = fields.String(required=True, load_only=True)

    @validates("username")
    def validate_username(self, value, **kwargs):
        if any(ch.isspace() for ch in value):
            raise ValidationError("Username must not contain whitespace.")


class UserLoginSchema(_InputSchema):
    username = fields.String(load_default=None)
    email = fields.String(load_default=None)
    password = fields.String(load_default=None)


class ChangePasswordSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    oldPassword = fields.String(load_default=None)
    newPassword = fields.String(load_default=None)


class UpdateAccountSchema(_InputSchema):
    fullName = fields.String(load_default=None)
    email = fields.Email(load_default=None)


class UserOutSchema(Schema):
    """Sanitized user view: never carries the password hash or refresh token."""
    id = fields.String(data_key="_id")
    username = fields.String()
    email = fields.String()
    full_name = fields.String(data_key="fullName")
    avatar = fields.String()
    cover_image = fields.String(data_key="coverImage")
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")
