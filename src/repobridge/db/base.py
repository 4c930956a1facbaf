"""
repobridge.db.base

SQLAlchemy declarative base and record lifecycle columns.

Responsibilities:
- Provide a shared DeclarativeBase for application models.
- Provide `RecordMixin`: string id plus created/updated/deleted timestamps, the
  columns `repobridge.repository.Repository` reads and stamps.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class RecordMixin:
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)

    # Timestamps are stamped by the repository, not by `onupdate`, so a soft delete
    # leaves `updated_at` untouched.
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True, default=None, index=True
    )


# --- Module Notes -----------------------------------------------------------
# Models should inherit from both, e.g. `class Note(RecordMixin, Base)`, so metadata
# discovery and `init_db` pick them up.
