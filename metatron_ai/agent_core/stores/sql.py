from __future__ import annotations

"""SQLAlchemy async store implementations.

This module provides the relational implementations of the store interfaces in
``metatron_ai.agent_core.stores.interfaces``.

Usage
-----

Typical wiring (tests or application setup):

- Create an async engine with ``create_engine``.
- Create tables with ``create_all`` (for tests/dev).
- Create a session factory with ``create_sessionmaker``.
- Build ``SqlSettingsRepository``/``SqlMediaRepository`` from the session
  factory and ``SqlStatementStore`` from the engine.

Transaction model
-----------------

Each method opens its own connection or ``AsyncSession``, performs one
operation and commits. No transaction spans two calls, so concurrent turns
only ever contend on single statements.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..schemas.domain import MediaRecord
from .models import Base, MediaRow, SettingRow


def create_engine(db_url: str) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    The helper normalizes Postgres URLs to ensure the async driver is used and
    rewrites plain ``sqlite://`` URLs to ``sqlite+aiosqlite://``.
    """
    url = re.sub(r"^postgres(?:ql)?(?:\+[a-z0-9_]+)?://", "postgresql+asyncpg://", db_url, count=1)
    url = re.sub(r"^sqlite://", "sqlite+aiosqlite://", url, count=1)
    return create_async_engine(url, pool_pre_ping=True)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an ``async_sessionmaker`` with safe defaults for this project."""
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_all(engine: AsyncEngine) -> None:
    """Create all tables for the current ORM metadata.

    This is mainly intended for tests and local development.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@dataclass(frozen=True)
class SqlStatementStore:
    """``SqlStore`` executing raw statements on an ``AsyncEngine``.

    Statements go through ``exec_driver_sql`` so the text reaches the driver
    untouched (no bind-parameter parsing of ``:name`` sequences).
    """

    engine: AsyncEngine

    async def fetch_all(self, sql: str) -> List[Dict[str, Any]]:
        async with self.engine.connect() as conn:
            result = await conn.exec_driver_sql(sql)
            return [dict(row) for row in result.mappings().all()]

    async def execute(self, sql: str) -> int:
        async with self.engine.begin() as conn:
            result = await conn.exec_driver_sql(sql)
            return result.rowcount

    async def execute_script(self, sql: str) -> None:
        async with self.engine.begin() as conn:
            await conn.exec_driver_sql(sql)


@dataclass(frozen=True)
class SqlSettingsRepository:
    """SQL implementation of ``SettingsRepository``."""

    session_factory: async_sessionmaker[AsyncSession]

    async def get(self, key: str) -> Optional[str]:
        """
        Return the raw value stored under ``key``.

        Args:
            key: The settings key.

        Returns:
            The stored string, or None when absent.
        """
        async with self.session_factory() as s:
            row = await s.get(SettingRow, key)
            return row.value if row is not None else None

    async def set(self, key: str, value: str) -> None:
        """
        Insert or replace the value stored under ``key``.

        Args:
            key: The settings key.
            value: The new raw value.
        """
        async with self.session_factory() as s:
            row = await s.get(SettingRow, key)
            if row is None:
                s.add(SettingRow(key=key, value=value))
            else:
                row.value = value
            await s.commit()


@dataclass(frozen=True)
class SqlMediaRepository:
    """SQL implementation of ``MediaRepository``."""

    session_factory: async_sessionmaker[AsyncSession]

    async def add(self, record: MediaRecord) -> None:
        """
        Persist a new media record.

        Args:
            record: The media domain object to insert.
        """
        async with self.session_factory() as s:
            s.add(
                MediaRow(
                    id=record.id,
                    chat_id=record.chat_id,
                    message_id=record.message_id,
                    filename=record.filename,
                    prompt=record.prompt,
                    short_description=record.short_description,
                    mime_type=record.mime_type,
                    size=record.size,
                    model=record.model,
                    source_media_id=record.source_media_id,
                    created_at=record.created_at,
                )
            )
            await s.commit()

    async def get(self, media_id: str) -> Optional[MediaRecord]:
        """
        Retrieve a media record by id.

        Args:
            media_id: The media identifier.

        Returns:
            The MediaRecord if found, else None.
        """
        async with self.session_factory() as s:
            row = await s.get(MediaRow, media_id)
            if row is None:
                return None
            return MediaRecord(
                id=row.id,
                chat_id=row.chat_id,
                message_id=row.message_id,
                filename=row.filename,
                prompt=row.prompt,
                short_description=row.short_description,
                mime_type=row.mime_type,
                size=row.size,
                model=row.model,
                source_media_id=row.source_media_id,
                created_at=row.created_at,
            )
