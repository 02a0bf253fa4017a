from marshmallow import Schema, fields, validate


class SapCreateUserSchema(Schema):
    email = fields.Email(required=True)
    name = fields.String(required=True, validate=validate.Length(min=1))
    password = fields.String(load_default=None, load_only=True, validate=validate.Length(min=6))


class SapUserOutSchema(Schema):
    email = fields.String()
    name = fields.String()
    sapId = fields.String()
