from __future__ import annotations

import json
from typing import Dict, Optional

import pytest

from metatron_ai.agent_core.notebook import MAX_MEMORY_LENGTH, AgentNotebook, MemoryTooLongError
from metatron_ai.agent_core.notebook.models import (
    NO_MEMORY_PLACEHOLDER,
    NO_SCHEMA_PLACEHOLDER,
    NOTEBOOK_SETTINGS_KEY,
)


class _DictSettings:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})
        self.writes = 0

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.writes += 1
        self.data[key] = value


@pytest.fixture
def repo() -> _DictSettings:
    return _DictSettings()


@pytest.fixture
def notebook(repo: _DictSettings) -> AgentNotebook:
    return AgentNotebook(repo)


@pytest.mark.asyncio
async def test_first_read_persists_defaults(notebook: AgentNotebook, repo: _DictSettings) -> None:
    record = await notebook.read()
    assert record.memory == ""
    assert record.memory_enabled is True
    stored = json.loads(repo.data[NOTEBOOK_SETTINGS_KEY])
    assert set(stored) == {"coreInstruction", "memory", "memoryEnabled", "dbSchema", "updatedAt"}


@pytest.mark.asyncio
async def test_memory_at_limit_is_accepted_and_rendered(notebook: AgentNotebook) -> None:
    text = "m" * (MAX_MEMORY_LENGTH - 5) + " end."
    assert len(text) == MAX_MEMORY_LENGTH
    await notebook.write_memory(text)
    rendered = await notebook.render()
    assert rendered is not None
    assert f"## Your Memory\n{text}\n" in rendered


@pytest.mark.asyncio
async def test_memory_over_limit_is_rejected(notebook: AgentNotebook) -> None:
    await notebook.write_memory("keep me")
    with pytest.raises(MemoryTooLongError, match="Memory exceeds maximum length of 4000 characters"):
        await notebook.write_memory("x" * (MAX_MEMORY_LENGTH + 1))
    assert (await notebook.read()).memory == "keep me"


@pytest.mark.asyncio
async def test_mutation_refreshes_timestamp_and_keeps_other_fields(notebook: AgentNotebook) -> None:
    first = await notebook.write_memory("likes tea")
    second = await notebook.write_schema("ai_recipes(name, steps)")
    assert second.memory == "likes tea"
    assert second.db_schema == "ai_recipes(name, steps)"
    assert second.updated_at >= first.updated_at


@pytest.mark.asyncio
async def test_render_uses_placeholders(notebook: AgentNotebook) -> None:
    await notebook.update(core_instruction="Be brief.")
    assert await notebook.render() == (
        f"Be brief.\n\n---\n\n## Your Memory\n{NO_MEMORY_PLACEHOLDER}\n\n## Your Database\n{NO_SCHEMA_PLACEHOLDER}"
    )


@pytest.mark.asyncio
async def test_render_is_none_when_core_instruction_blank(notebook: AgentNotebook) -> None:
    await notebook.update(core_instruction="   ")
    assert await notebook.render() is None


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["{not json", "[]", json.dumps({"memory": 5, "memoryEnabled": "maybe"})])
async def test_corrupted_record_is_replaced_with_defaults(raw: str) -> None:
    repo = _DictSettings({NOTEBOOK_SETTINGS_KEY: raw})
    record = await AgentNotebook(repo).read()
    assert record.memory == ""
    assert json.loads(repo.data[NOTEBOOK_SETTINGS_KEY])["memory"] == ""


@pytest.mark.asyncio
async def test_reads_camel_case_record_written_elsewhere() -> None:
    repo = _DictSettings(
        {NOTEBOOK_SETTINGS_KEY: json.dumps({"coreInstruction": "Hi", "memory": "m", "dbSchema": "s", "extra": 1})}
    )
    record = await AgentNotebook(repo).read()
    assert (record.core_instruction, record.memory, record.db_schema) == ("Hi", "m", "s")
    assert repo.writes == 0
