import re

from marshmallow import Schema, fields, pre_load, validates, validate, ValidationError

from models.user import Role

PASSWORD_MIN_LENGTH = 6
PASSWORD_COMPLEXITY = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def _strip(v):
    return v.strip() if isinstance(v, str) else v


class RegisterSchema(Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)
    name = fields.String(required=True, validate=validate.Length(min=1))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            for key in ("email", "name"):
                if key in data:
                    data[key] = _strip(data[key])
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < PASSWORD_MIN_LENGTH:
            raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long.")
        if not PASSWORD_COMPLEXITY.match(value):
            raise ValidationError(
                "Password must contain at least one uppercase letter, one lowercase letter, and one number"
            )


class CreateUserSchema(Schema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=PASSWORD_MIN_LENGTH))
    name = fields.String(required=True, validate=validate.Length(min=1))
    role = fields.Enum(Role, by_value=True, load_default=Role.USER)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data["email"] = _strip(data["email"])
        return data


class LoginSchema(Schema):
    email = fields.String(required=True)
    password = fields.String(required=True, load_only=True)


class RefreshSchema(Schema):
    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class UserOutSchema(Schema):
    id = fields.String(allow_none=False)
    email = fields.String()
    name = fields.String(allow_none=True)
    role = fields.String()
    is_active = fields.Boolean()
    created_at = fields.String(allow_none=True)
    updated_at = fields.String(allow_none=True)


class ProvisionedUserOutSchema(Schema):
    email = fields.String()
    name = fields.String()
    role = fields.Function(lambda obj: getattr(obj.get("role"), "value", obj.get("role")))
    sapId = fields.String()
