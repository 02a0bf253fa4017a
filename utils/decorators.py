from __future__ import annotations
from functools import wraps
import hmac

from flask import request, abort, current_app

from utils.security import TokenError


def _bearer_token() -> str:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        abort(401, description="Missing or invalid Authorization header")
    token = auth.split(" ", 1)[1].strip()
    if not token:
        abort(401, description="Missing or invalid Authorization header")
    return token


def jwt_required():
    """
    Require a valid access token. The verified claims are handed to the view
    as the `claims` keyword argument.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = _bearer_token()
            auth_service = current_app.extensions["auth_service"]
            try:
                claims = auth_service.verify_access_token(token)
            except TokenError:
                abort(401, description="Invalid or expired access token")
            kwargs["claims"] = claims
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def api_key_required(header: str = "x-api-key", config_key: str = "SAP_INTEGRATION_API_KEY"):
    """Compare a shared API key header against the configured value."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            provided = request.headers.get(header, "")
            expected = current_app.config.get(config_key) or ""
            if not provided or not hmac.compare_digest(provided.encode(), expected.encode()):
                abort(401, description="Invalid API key")
            return fn(*args, **kwargs)

        return wrapper

    return decorator
