"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT signing/verification via PyJWT (TokenSigner)
- JTI generation for token identifiers
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Dict, Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError

from utils.durations import resolve_expiration

ph = PasswordHasher()

ACCESS = "access"
REFRESH = "refresh"


class TokenError(Exception):
    """Base class for signer failures"""


class InvalidToken(TokenError):
    pass


class TokenExpired(TokenError):
    pass


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TokenSigner:
    """Signs and verifies claim bundles as JWTs.

    Every token gets its own jti so two tokens minted in the same second
    for the same claims are still distinct strings.
    """

    def __init__(self, algorithm: str = "HS256", issuer: str | None = None):
        self.algorithm = algorithm
        self.issuer = issuer

    def sign(self, claims: Dict[str, Any], secret: str, lifetime: str, token_type: str = ACCESS) -> str:
        now = _now()
        payload = dict(claims)
        payload.update(
            {
                "type": token_type,
                "jti": generate_jti(),
                "iat": int(now.timestamp()),
                "exp": int(resolve_expiration(lifetime, now=now).timestamp()),
            }
        )
        if self.issuer:
            payload["iss"] = self.issuer
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def verify(self, token: str, secret: str, expected_type: str | None = None) -> Dict[str, Any]:
        """
        Decode and validate a JWT. Raises TokenExpired or InvalidToken.
        When expected_type is given the "type" claim must match it.
        """
        options = {"require": ["exp", "sub"]}
        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options=options,
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpired("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidToken(f"Invalid token: {exc}") from exc

        if expected_type and decoded.get("type") != expected_type:
            raise InvalidToken("Wrong token type")
        return decoded
