from __future__ import annotations

"""SQLAlchemy ORM models for the gateway's relational persistence.

These ORM models define the subset of the assistant's schema the gateway reads
and writes through ``metatron_ai.agent_core.stores.sql``:

- ``settings``: key/value documents; the notebook lives under one key.
- ``media``: generated and edited images attached to a chat message.

Both tables are core-protected: the model can never write to them through the
``db_query`` tool, only through the dedicated tools.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class SettingRow(Base):
    """Row model for ``settings``. ``value`` holds a JSON document."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[str] = mapped_column(Text)


class MediaRow(Base):
    """Row model for ``media``.

    ``source_media_id`` links an edited image to the image it was derived from.
    """

    __tablename__ = "media"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    chat_id: Mapped[str] = mapped_column(String(64), index=True)
    message_id: Mapped[str] = mapped_column(String(64), index=True)

    filename: Mapped[str] = mapped_column(String(255))
    prompt: Mapped[str] = mapped_column(Text)
    short_description: Mapped[str] = mapped_column(Text)
    mime_type: Mapped[str] = mapped_column(String(64))
    size: Mapped[int] = mapped_column(Integer)
    model: Mapped[str] = mapped_column(String(128))
    source_media_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
