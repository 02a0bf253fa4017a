"""
Refresh Token Store: durable refresh token records keyed by token string.

rotate() is the conditional primitive the rotation relies on: the old row is
removed with a DELETE whose affected row count is checked inside the same
transaction that inserts the replacement. Two callers rotating the same token
are serialized by the database; the second one deletes nothing and gets False.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import joinedload

from models.refresh_token import RefreshToken


class RefreshTokenStore:
    def __init__(self, storage):
        self.storage = storage

    def insert(self, token: str, user_id: str, expires_at: datetime) -> RefreshToken:
        record = RefreshToken(token=token, user_id=user_id, expires_at=expires_at)
        self.storage.new(record)
        self.storage.save()
        return record

    def find_by_token(self, token: str) -> RefreshToken | None:
        session = self.storage.get_session()
        return (
            session.query(RefreshToken)
            .options(joinedload(RefreshToken.user))
            .filter(RefreshToken.token == token)
            .first()
        )

    def delete_by_token(self, token: str) -> int:
        session = self.storage.get_session()
        deleted = (
            session.query(RefreshToken)
            .filter(RefreshToken.token == token)
            .delete(synchronize_session=False)
        )
        self.storage.save()
        return deleted

    def delete_by_user_and_token(self, user_id: str, token: str) -> int:
        session = self.storage.get_session()
        deleted = (
            session.query(RefreshToken)
            .filter(RefreshToken.user_id == user_id, RefreshToken.token == token)
            .delete(synchronize_session=False)
        )
        self.storage.save()
        return deleted

    def rollback(self) -> None:
        self.storage.rollback()

    def rotate(self, old_token: str, new_token: str, user_id: str, expires_at: datetime) -> bool:
        """Replace old_token by new_token atomically.
        Returns False (and changes nothing) when old_token is no longer present.
        """
        session = self.storage.get_session()
        try:
            deleted = (
                session.query(RefreshToken)
                .filter(RefreshToken.token == old_token)
                .delete(synchronize_session=False)
            )
            if deleted != 1:
                session.rollback()
                return False
            session.add(RefreshToken(token=new_token, user_id=user_id, expires_at=expires_at))
            session.commit()
        except Exception:
            session.rollback()
            raise
        return True
