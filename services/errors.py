"""
Error taxonomy of the authentication core.

AuthError subclasses are rendered by api.errors into the uniform error
envelope; `status` picks the category (401 unauthorized, 409 conflict).
RefreshTokenFailure never leaves the service: it is logged with its reason
and replaced by InvalidRefreshToken.
"""
from __future__ import annotations

import enum


class AuthError(Exception):
    code = "UNAUTHORIZED"
    message = "Unauthorized"
    status = 401

    def __init__(self, message: str | None = None, details: dict | None = None):
        if message is not None:
            self.message = message
        self.details = details
        super().__init__(self.message)


class InvalidCredentials(AuthError):
    message = "Invalid credentials"


class AccountInactive(AuthError):
    message = "User account is inactive"


class InvalidRefreshToken(AuthError):
    message = "Invalid refresh token"


class DuplicateEmail(AuthError):
    code = "CONFLICT"
    message = "Email already registered"
    status = 409

    def __init__(self, email: str | None = None):
        super().__init__(details={"field": "email"})
        self.email = email


class InvalidConfiguration(ValueError):
    """Malformed configuration value, raised while the app is being built."""


class RefreshFailureReason(str, enum.Enum):
    INVALID_SIGNATURE = "invalid_signature"
    UNKNOWN_TOKEN = "unknown_token"
    EXPIRED_RECORD = "expired_record"
    ROTATION_CONFLICT = "rotation_conflict"
    STORE_ERROR = "store_error"
    UNEXPECTED_ERROR = "unexpected_error"


class RefreshTokenFailure(Exception):
    def __init__(self, reason: RefreshFailureReason):
        super().__init__(reason.value)
        self.reason = reason
