"""
Authentication service: credential validation, login, registration,
refresh token rotation and logout.

Collaborators are injected (UserDirectory, TokenSigner, RefreshTokenStore)
and the caller's identity is always passed in explicitly; nothing here reads
request or application globals.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError

from services.errors import (
    AccountInactive,
    InvalidCredentials,
    InvalidRefreshToken,
    RefreshFailureReason,
    RefreshTokenFailure,
)
from utils.durations import resolve_expiration
from utils.security import ACCESS, REFRESH, TokenError, verify_password

logger = logging.getLogger(__name__)

DEFAULT_ACCESS_EXPIRES_IN = "15m"
DEFAULT_REFRESH_EXPIRES_IN = "7d"


def sanitize_user(user) -> Dict[str, Any]:
    """Public view of a user: every column except the password hash."""
    return user.to_dict()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AuthService:
    def __init__(
        self,
        directory,
        signer,
        store,
        access_secret: str,
        refresh_secret: str,
        access_expires_in: str = DEFAULT_ACCESS_EXPIRES_IN,
        refresh_expires_in: str = DEFAULT_REFRESH_EXPIRES_IN,
    ):
        # fail at startup on malformed or out-of-range lifetimes
        resolve_expiration(access_expires_in)
        resolve_expiration(refresh_expires_in)

        self.directory = directory
        self.signer = signer
        self.store = store
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.access_expires_in = access_expires_in
        self.refresh_expires_in = refresh_expires_in

    def validate_credentials(self, email: str, password: str) -> Dict[str, Any]:
        user = self.directory.find_by_email(email)
        if user is None:
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            raise InvalidCredentials()
        # only reachable with a correct password, so the distinct error leaks nothing
        if not user.is_active:
            raise AccountInactive()
        return sanitize_user(user)

    def _issue_tokens(self, claims: Dict[str, Any]) -> tuple[str, str]:
        access_token = self.signer.sign(claims, self.access_secret, self.access_expires_in, token_type=ACCESS)
        refresh_token = self.signer.sign(claims, self.refresh_secret, self.refresh_expires_in, token_type=REFRESH)
        return access_token, refresh_token

    def login(self, email: str, password: str) -> Dict[str, Any]:
        user = self.validate_credentials(email, password)

        claims = {"sub": user["id"], "email": user["email"], "role": user["role"]}
        access_token, refresh_token = self._issue_tokens(claims)

        expires_at = resolve_expiration(self.refresh_expires_in)
        self.store.insert(refresh_token, user["id"], expires_at)

        logger.info("User %s logged in successfully", user["email"])
        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "user": user,
        }

    def register(self, registration: Dict[str, Any]) -> Dict[str, Any]:
        user = self.directory.create(registration)
        logger.info("New user registered: %s", user.email)
        return sanitize_user(user)

    def refresh_tokens(self, presented: str) -> Dict[str, Any]:
        """
        Rotate a refresh token. Every failure (bad signature, unknown or
        already rotated token, expired record, lost race, store error)
        surfaces as InvalidRefreshToken; the cause is only logged.
        """
        try:
            return self._rotate(presented)
        except RefreshTokenFailure as exc:
            logger.info("Refresh token rejected: %s", exc.reason.value)
            raise InvalidRefreshToken() from None
        except SQLAlchemyError:
            self.store.rollback()
            logger.warning("Refresh token rejected: %s", RefreshFailureReason.STORE_ERROR.value, exc_info=True)
            raise InvalidRefreshToken() from None
        except Exception:
            # any other collaborator failure (signer, driver) is collapsed the same way
            self.store.rollback()
            logger.warning("Refresh token rejected: %s", RefreshFailureReason.UNEXPECTED_ERROR.value, exc_info=True)
            raise InvalidRefreshToken() from None

    def _rotate(self, presented: str) -> Dict[str, Any]:
        try:
            payload = self.signer.verify(presented, self.refresh_secret, expected_type=REFRESH)
        except TokenError:
            raise RefreshTokenFailure(RefreshFailureReason.INVALID_SIGNATURE) from None

        record = self.store.find_by_token(presented)
        if record is None:
            raise RefreshTokenFailure(RefreshFailureReason.UNKNOWN_TOKEN)

        if _as_utc(record.expires_at) < datetime.now(timezone.utc):
            self.store.delete_by_token(presented)
            raise RefreshTokenFailure(RefreshFailureReason.EXPIRED_RECORD)

        # claims come from the verified token, not from a fresh directory read
        claims = {"sub": payload["sub"], "email": payload.get("email"), "role": payload.get("role")}
        user = sanitize_user(record.user)

        access_token, refresh_token = self._issue_tokens(claims)
        expires_at = resolve_expiration(self.refresh_expires_in)

        if not self.store.rotate(presented, refresh_token, claims["sub"], expires_at):
            raise RefreshTokenFailure(RefreshFailureReason.ROTATION_CONFLICT)

        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "user": user,
        }

    def logout(self, user_id: str, refresh_token: str) -> None:
        deleted = self.store.delete_by_user_and_token(user_id, refresh_token)
        logger.info("User %s logged out (%d refresh token(s) removed)", user_id, deleted)

    def verify_access_token(self, token: str) -> Dict[str, Any]:
        """Claims of a valid access token; raises TokenError otherwise."""
        return self.signer.verify(token, self.access_secret, expected_type=ACCESS)
