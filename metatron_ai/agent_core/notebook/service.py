from __future__ import annotations

"""The agent notebook: persisted memory and table-schema notes.

A single record stored as JSON under ``settings["system_instruction"]``. The
model mutates it through the ``save_memory`` and ``update_db_schema`` tools and
the streaming layer prepends ``render()`` to every turn, so a mutation is
visible in the next instruction set without further signaling.

Every mutation rewrites the whole record and refreshes ``updatedAt``. There is
no history and no locking; the last write wins.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from metatron_ai.core.logging_config import get_logger

from ..stores.interfaces import SettingsRepository
from .models import (
    MAX_MEMORY_LENGTH,
    NO_MEMORY_PLACEHOLDER,
    NO_SCHEMA_PLACEHOLDER,
    NOTEBOOK_SETTINGS_KEY,
    NotebookRecord,
)

logger = get_logger(__name__)


class MemoryTooLongError(ValueError):
    """Raised when a memory write exceeds ``MAX_MEMORY_LENGTH`` characters."""

    def __init__(self, length: int) -> None:
        super().__init__(f"Memory exceeds maximum length of {MAX_MEMORY_LENGTH} characters")
        self.length = length


class AgentNotebook:
    """Read, mutate and render the notebook record."""

    def __init__(self, repository: SettingsRepository, *, key: str = NOTEBOOK_SETTINGS_KEY) -> None:
        self._repo = repository
        self._key = key

    async def read(self) -> NotebookRecord:
        """
        Return the current record.

        A missing record is created with defaults. A stored record that is not
        valid JSON or does not fit the schema is logged and replaced with
        defaults instead of failing.
        """
        raw = await self._repo.get(self._key)
        if raw:
            try:
                return NotebookRecord.model_validate_json(raw)
            except ValidationError as e:
                logger.warning(f"Stored notebook is unreadable, resetting to defaults: {e.error_count()} error(s)")

        record = NotebookRecord()
        await self._save(record)
        return record

    async def update(self, **fields: Any) -> NotebookRecord:
        """
        Merge ``fields`` into the record and persist it.

        Args:
            **fields: Record fields by attribute name (``memory``, ``db_schema``,
                ``core_instruction``, ``memory_enabled``).

        Returns:
            The persisted record.
        """
        data = (await self.read()).model_dump()
        data.update(fields)
        data["updated_at"] = datetime.now(timezone.utc)
        updated = NotebookRecord.model_validate(data)
        await self._save(updated)
        return updated

    async def write_memory(self, memory: str) -> NotebookRecord:
        """
        Replace the memory text.

        Raises:
            MemoryTooLongError: If ``memory`` is longer than 4000 characters.
        """
        if len(memory) > MAX_MEMORY_LENGTH:
            raise MemoryTooLongError(len(memory))
        return await self.update(memory=memory)

    async def write_schema(self, schema: str) -> NotebookRecord:
        """Replace the table-schema description."""
        return await self.update(db_schema=schema)

    async def render(self) -> Optional[str]:
        """
        Compose the instruction text for the next turn.

        Returns:
            The core instruction followed by the memory and database sections,
            or None when the core instruction is blank.
        """
        record = await self.read()
        if not record.core_instruction.strip():
            return None

        memory = record.memory if record.memory.strip() else NO_MEMORY_PLACEHOLDER
        schema = record.db_schema if record.db_schema.strip() else NO_SCHEMA_PLACEHOLDER
        return f"{record.core_instruction}\n\n---\n\n## Your Memory\n{memory}\n\n## Your Database\n{schema}"

    async def _save(self, record: NotebookRecord) -> None:
        await self._repo.set(self._key, record.model_dump_json(by_alias=True))
