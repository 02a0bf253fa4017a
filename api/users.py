from __future__ import annotations

from flask import Blueprint, request, jsonify, current_app

from models.schemas.user import CreateUserSchema, ProvisionedUserOutSchema
from utils.decorators import api_key_required

bp = Blueprint("users", __name__)

create_user_schema = CreateUserSchema()
provisioned_user_out_schema = ProvisionedUserOutSchema()


@bp.post("/users")
@api_key_required()
def create_user():
    """
    Create a user in SAP mode (generated sapId, optional sync to USER_API_BASE)
    ---
    tags:
      - Users
    parameters:
      - in: header
        name: x-api-key
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          required: [email, password, name]
          properties:
            email: { type: string }
            password: { type: string }
            name: { type: string }
            role: { type: string, enum: [USER, ADMIN] }
    responses:
      201:
        description: Created
      401:
        description: Invalid API key
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = create_user_schema.load(payload)
    user = current_app.extensions["user_provisioning"].create(data)
    return jsonify(provisioned_user_out_schema.dump(user)), 201
