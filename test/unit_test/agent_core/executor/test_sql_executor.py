from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from metatron_ai.agent_core.executor import SqlExecutor
from metatron_ai.agent_core.stores.sql import SqlStatementStore, create_engine


@pytest_asyncio.fixture
async def store(tmp_path: Path):
    engine = create_engine(f"sqlite:///{tmp_path / 'gateway.db'}")
    s = SqlStatementStore(engine)
    await s.execute_script("CREATE TABLE chats (id INTEGER PRIMARY KEY, title TEXT)")
    await s.execute("INSERT INTO chats (title) VALUES ('hello')")
    try:
        yield s
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_ddl_mutate_and_read_round(store: SqlStatementStore) -> None:
    ex = SqlExecutor(store)

    created = await ex.execute("CREATE TABLE ai_notes (id INTEGER PRIMARY KEY, body TEXT)")
    assert created.output == {"success": True}

    inserted = await ex.execute("INSERT INTO ai_notes (body) VALUES ('a'), ('b')")
    assert inserted.output == {"affectedRows": 2}

    rows = await ex.execute("SELECT body FROM ai_notes ORDER BY id")
    assert rows.output == {"rows": [{"body": "a"}, {"body": "b"}]}


@pytest.mark.asyncio
async def test_reading_protected_table_is_allowed(store: SqlStatementStore) -> None:
    res = await SqlExecutor(store).execute("SELECT title FROM chats")
    assert res.output == {"rows": [{"title": "hello"}]}


@pytest.mark.asyncio
async def test_protected_write_never_reaches_store(store: SqlStatementStore) -> None:
    res = await SqlExecutor(store).execute("DELETE FROM chats")
    assert not res.ok
    assert "protected" in res.error
    rows = await store.fetch_all("SELECT COUNT(*) AS n FROM chats")
    assert rows == [{"n": 1}]


@pytest.mark.asyncio
async def test_driver_error_becomes_error_envelope(store: SqlStatementStore) -> None:
    res = await SqlExecutor(store).execute("SELECT * FROM ai_missing")
    assert not res.ok
    assert "no such table" in res.error


@pytest.mark.asyncio
async def test_denial_is_error_envelope_without_store_call() -> None:
    fake = AsyncMock()
    res = await SqlExecutor(fake).execute("SELECT 1; SELECT 2")
    assert res.error == "Only one SQL statement can be executed per call."
    fake.fetch_all.assert_not_called()


@pytest.mark.asyncio
async def test_cancellation_propagates() -> None:
    fake = AsyncMock()
    fake.fetch_all.side_effect = asyncio.CancelledError()
    with pytest.raises(asyncio.CancelledError):
        await SqlExecutor(fake).execute("SELECT 1")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "sql",
    [
        "INSERT INTO 'chats' SELECT * FROM ai_x",
        "UPDATE 'chats' SET title = 'pwned' WHERE id IN (SELECT id FROM ai_x)",
    ],
)
async def test_string_literal_table_name_cannot_reach_protected_table(store: SqlStatementStore, sql: str) -> None:
    await store.execute_script("CREATE TABLE ai_x (id INTEGER PRIMARY KEY, title TEXT)")
    await store.execute("INSERT INTO ai_x (id, title) VALUES (1, 'pwned')")

    res = await SqlExecutor(store).execute(sql)

    assert not res.ok
    assert "protected" in res.error
    assert await store.fetch_all("SELECT id, title FROM chats") == [{"id": 1, "title": "hello"}]


@pytest.mark.asyncio
async def test_pragma_call_form_is_not_applied(store: SqlStatementStore) -> None:
    ex = SqlExecutor(store)

    res = await ex.execute("PRAGMA user_version(7)")

    assert res.error.startswith("PRAGMA assignments are not allowed.")
    assert (await ex.execute("PRAGMA user_version")).output == {"rows": [{"user_version": 0}]}


@pytest.mark.asyncio
async def test_read_only_pragma_with_table_argument(store: SqlStatementStore) -> None:
    res = await SqlExecutor(store).execute("PRAGMA table_info(chats)")
    assert [row["name"] for row in res.output["rows"]] == ["id", "title"]
