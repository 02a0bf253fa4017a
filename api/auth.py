"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- GET  /auth/me

Views only parse input and render output; AuthService does the work:
- argon2 password hashing
- short-lived access tokens and longer-lived refresh tokens (HS256 JWTs,
  separate secrets)
- refresh tokens stored in DB (RefreshToken model) and rotated on use
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, current_app

from models.schemas.user import RegisterSchema, LoginSchema, RefreshSchema, UserOutSchema
from utils.decorators import jwt_required

bp = Blueprint("auth", __name__, url_prefix="/auth")

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
user_out_schema = UserOutSchema()


def get_auth_service():
    return current_app.extensions["auth_service"]


def _token_response(result: dict):
    return jsonify(
        {
            "access_token": result["access_token"],
            "refresh_token": result["refresh_token"],
            "token_type": "bearer",
            "user": user_out_schema.dump(result["user"]),
        }
    ), 200


@bp.post("/register")
def register():
    """
    Register a new user.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [email, password, name]
          properties:
            email: { type: string, example: user@example.com }
            password: { type: string, example: Password123! }
            name: { type: string, example: John Doe }
    responses:
      201:
        description: Created
      409:
        description: Email already registered
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = register_schema.load(payload)
    user = get_auth_service().register(data)
    return jsonify({"data": user_out_schema.dump(user)}), 201


@bp.post("/login")
def login():
    """
    Login: return access_token and refresh_token
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
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Unauthorized
    """
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)
    result = get_auth_service().login(data["email"], data["password"])
    return _token_response(result)


@bp.post("/refresh")
def refresh():
    """
    Use a refresh token to obtain new access and refresh tokens (rotation)
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
             refresh_token: { type: string }
    responses:
      200:
        description: OK (returns a new token pair)
      401:
        description: Invalid refresh token
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_schema.load(payload)
    result = get_auth_service().refresh_tokens(data["refresh_token"])
    return _token_response(result)


@bp.post("/logout")
@jwt_required()
def logout(claims):
    """
    Logout: deletes the given refresh token of the current user
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
             refresh_token: { type: string }
    responses:
      204:
        description: ""
      401:
        description: Unauthorized
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_schema.load(payload)
    get_auth_service().logout(claims["sub"], data["refresh_token"])
    return ("", 204)


@bp.get("/me")
@jwt_required()
def me(claims):
    """
    Claims of the current access token
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify(
        {
            "data": {
                "id": claims["sub"],
                "email": claims.get("email"),
                "role": claims.get("role"),
            }
        }
    ), 200
