#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixin for the SAP User API models.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps (server-side defaults)
- to_dict() that formats timestamps, removes SA internals and never
  exposes password hashes

Notes:
- For SQLite, func.now() maps to CURRENT_TIMESTAMP.
"""

from __future__ import annotations

from datetime import datetime
import enum
import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

TIME_FMT = "%Y-%m-%dT%H:%M:%S.%f"

# Fields that must never leave the persistence layer
SENSITIVE_FIELDS = ("password", "password_hash")

# Declarative base for all models
Base = declarative_base()


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


class BaseModel:
    """
    Base mixin for all persistent models.

    - id, created_at, updated_at
    - to_dict() with timestamp formatting
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        DB defaults fill created_at/updated_at on insert unless passed explicitly.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def __str__(self) -> str:
        return f"[{self.__class__.__name__}] ({self.id})"

    def to_dict(self) -> dict:
        """
        Return a dictionary of column values suitable for API responses:
        - Formats datetimes to TIME_FMT
        - Unwraps enums to their values
        - Drops SQLAlchemy internal state and sensitive fields
        """
        d = {}
        for column in self.__table__.columns:
            if column.name in SENSITIVE_FIELDS:
                continue
            value = getattr(self, column.name, None)
            if isinstance(value, datetime):
                value = value.strftime(TIME_FMT)
            elif isinstance(value, enum.Enum):
                value = value.value
            d[column.name] = value
        return d
