from marshmallow import Schema, fields


class UserOutSchema(Schema):
    id = fields.String(allow_none=False)
    name = fields.String(allow_none=False)
    wins = fields.Integer()
    losses = fields.Integer()


class ActionResultSchema(Schema):
    success = fields.Boolean(required=True)
    message = fields.String(required=True)
