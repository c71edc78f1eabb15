from marshmallow import Schema, fields, pre_load, validates, validates_schema, ValidationError

from models.schemas.common import (
    LOGIN_PASSWORD_MIN,
    normalize_username,
    password_length,
    username_length,
    validate_strong_password,
)


class RegisterSchema(Schema):
    username = fields.String(required=True, validate=username_length)
    password = fields.String(required=True, load_only=True, validate=password_length)
    confirm_password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "username" in data:
            data = dict(data, username=normalize_username(data["username"]))
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        validate_strong_password(value)

    @validates_schema
    def passwords_match(self, data, **kwargs):
        if data.get("password") != data.get("confirm_password"):
            raise ValidationError("Passwords do not match.", field_name="confirm_password")


class LoginSchema(Schema):
    username = fields.String(required=True, validate=username_length)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "username" in data:
            data = dict(data, username=normalize_username(data["username"]))
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < LOGIN_PASSWORD_MIN:
            raise ValidationError(f"Password must be at least {LOGIN_PASSWORD_MIN} characters long.")


class ChangePasswordSchema(Schema):
    current_password = fields.String(required=True, load_only=True)
    new_password = fields.String(required=True, load_only=True, validate=password_length)
    confirm_new_password = fields.String(required=True, load_only=True)

    @validates("new_password")
    def validate_new_password(self, value, **kwargs):
        validate_strong_password(value)

    @validates_schema
    def passwords_match(self, data, **kwargs):
        if data.get("new_password") != data.get("confirm_new_password"):
            raise ValidationError(
                "New password and its confirmation do not match.",
                field_name="confirm_new_password",
            )


class RefreshTokenSchema(Schema):
    refresh_token = fields.String(required=True)


class RevokeTokenSchema(Schema):
    refresh_token = fields.String(required=True)
    reason = fields.String(allow_none=True, load_default=None)


class AuthBundleOutSchema(Schema):
    access_token = fields.String()
    access_token_expiry = fields.DateTime(format="iso")
    refresh_token = fields.String()
    refresh_token_expiry = fields.DateTime(format="iso")
    username = fields.String()
    user_id = fields.String()
    token_type = fields.Constant("bearer")
