#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixin for the User Accounts API.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps

Notes:
- We use server-side defaults (func.now()) so timestamps are set consistently by the DB.
- For SQLite, func.now() maps to CURRENT_TIMESTAMP.
- Persistence goes through DBStorage (models/db_storage.py); models never commit themselves.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

# Declarative base for all models
Base = declarative_base()


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


class BaseModel:
    """
    Base mixin for all persistent models: id, created_at, updated_at.
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        DB defaults handle created_at/updated_at on insert.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def __str__(self) -> str:
        return f"[{self.__class__.__name__}] ({self.id})"
