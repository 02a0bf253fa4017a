from flask import Blueprint, request, jsonify, current_app

from models.schemas.sap import SapCreateUserSchema, SapUserOutSchema
from utils.decorators import api_key_required

bp = Blueprint("sap", __name__, url_prefix="/integration/sap")

sap_create_user_schema = SapCreateUserSchema()
sap_user_out_schema = SapUserOutSchema()


@bp.post("/users")
@api_key_required()
def create_user():
    """
    SAP pass-through user creation
    ---
    tags:
      - SAP
    parameters:
      - in: header
        name: x-api-key
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          required: [email, name]
          properties:
            email: { type: string }
            name: { type: string }
            password: { type: string }
    responses:
      201:
        description: Created
      401:
        description: Invalid API key
    """
    payload = request.get_json(silent=True) or {}
    data = sap_create_user_schema.load(payload)
    user = current_app.extensions["sap_service"].create_user(data)
    return jsonify(sap_user_out_schema.dump(user)), 201
