"""SQLAlchemy ORM models for the link shortener application.

Data Model Layout
=================
::
    links table
    ├─ id (VARCHAR(36) PRIMARY KEY, UUID4 string)
    ├─ code (VARCHAR(8) UNIQUE, INDEXED)
    ├─ target_url (TEXT NOT NULL)
    ├─ clicks (INTEGER NOT NULL DEFAULT 0)
    ├─ last_clicked (TIMESTAMPTZ NULL)
    └─ created_at (TIMESTAMPTZ NOT NULL)

Key Behaviours
===============
- The unique index on ``code`` is the only authority on whether a code exists.
- ``clicks`` and ``last_clicked`` change only through the store's atomic
  increment; every other column is written once at insert.
- ``created_at`` is assigned in Python so newest-first ordering keeps
  sub-second precision on every backend.

Classes:
    Link:  A short code bound to its target URL plus click metadata.
"""

import datetime
import uuid

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shortlinks.database import Base

__all__ = ["Link", "utcnow"]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class Link(Base):
    __tablename__ = "links"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code: Mapped[str] = mapped_column(String(8), unique=True, index=True, nullable=False)
    target_url: Mapped[str] = mapped_column(Text, nullable=False)
    clicks: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_clicked: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Link(id={self.id!r}, code='{self.code}', clicks={self.clicks})>"
