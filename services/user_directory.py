"""
User Directory: lookup by email and creation with an argon2 password hash.
Email uniqueness is enforced here (and by the unique index on users.email).
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from models.user import Role, User
from services.errors import DuplicateEmail
from utils.security import hash_password

logger = logging.getLogger(__name__)


class UserDirectory:
    def __init__(self, storage):
        self.storage = storage

    def find_by_email(self, email: str) -> User | None:
        session = self.storage.get_session()
        return session.query(User).filter(User.email == email).first()

    def create(self, registration: dict) -> User:
        """Create a user from validated registration data.
        Raises DuplicateEmail if the email is already taken.
        """
        email = registration["email"]
        if self.find_by_email(email) is not None:
            raise DuplicateEmail(email)

        user = User(
            email=email,
            password_hash=hash_password(registration["password"]),
            name=registration["name"],
            role=registration.get("role") or Role.USER,
            is_active=registration.get("is_active", True),
        )
        self.storage.new(user)
        try:
            self.storage.save()
        except IntegrityError:
            # lost a race against a concurrent registration of the same email
            raise DuplicateEmail(email) from None
        return user
