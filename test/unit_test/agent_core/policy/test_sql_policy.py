from __future__ import annotations

import pytest

from metatron_ai.agent_core.policy import SqlCategory, SqlStatementPolicy, parse_statement
from metatron_ai.agent_core.policy.sql_policy import extract_tables, tokenize


@pytest.fixture
def policy() -> SqlStatementPolicy:
    return SqlStatementPolicy()


class TestParseStatement:
    @pytest.mark.parametrize(
        ("sql", "category"),
        [
            ("SELECT * FROM chats", SqlCategory.read),
            ("  select 1;", SqlCategory.read),
            ("PRAGMA table_info(ai_notes)", SqlCategory.read),
            ("PRAGMA user_version", SqlCategory.read),
            ("PRAGMA main.index_list('chats')", SqlCategory.read),
            ('PRAGMA foreign_key_list("messages")', SqlCategory.read),
            ("EXPLAIN QUERY PLAN SELECT * FROM messages", SqlCategory.read),
            ("WITH t AS (SELECT 1) SELECT * FROM t", SqlCategory.read),
            ("INSERT INTO ai_x (a) VALUES (1)", SqlCategory.mutate),
            ("REPLACE INTO contacts (name) VALUES ('x')", SqlCategory.mutate),
            ("WITH t AS (SELECT 1) DELETE FROM ai_x", SqlCategory.mutate),
            ("EXPLAIN DELETE FROM ai_x", SqlCategory.mutate),
            ("CREATE TABLE ai_x (id INTEGER)", SqlCategory.ddl),
            ("ALTER TABLE ai_x ADD COLUMN b TEXT", SqlCategory.ddl),
            ("DROP TABLE ai_x", SqlCategory.ddl),
        ],
    )
    def test_categories(self, sql: str, category: SqlCategory) -> None:
        assert parse_statement(sql).category == category

    @pytest.mark.parametrize(
        ("sql", "message"),
        [
            ("", "SQL statement is empty."),
            ("  ;  ", "SQL statement is empty."),
            ("-- only a comment", "SQL statement is empty."),
            ("SELECT 1; DROP TABLE chats", "Only one SQL statement can be executed per call."),
            ("SELECT 1;;", "Only one SQL statement can be executed per call."),
            ("PRAGMA journal_mode = WAL", "PRAGMA assignments are not allowed."),
            ("PRAGMA user_version(7)", "PRAGMA assignments are not allowed."),
            ("PRAGMA journal_mode(OFF)", "PRAGMA assignments are not allowed."),
            ("PRAGMA main.writable_schema(1)", "PRAGMA assignments are not allowed."),
            ("PRAGMA foreign_keys (0)", "PRAGMA assignments are not allowed."),
            ("PRAGMA table_info(ai_x, 1)", "PRAGMA table_info takes a single table or index name."),
            ("PRAGMA table_info = ai_x", "PRAGMA assignments are not allowed."),
        ],
    )
    def test_rejected_statements(self, sql: str, message: str) -> None:
        with pytest.raises(ValueError, match=message.replace(".", r"\.")):
            parse_statement(sql)

    @pytest.mark.parametrize("sql", ["ATTACH DATABASE 'x.db' AS x", "VACUUM", "BEGIN", "COMMIT", "DETACH x"])
    def test_unknown_leading_keyword(self, sql: str) -> None:
        with pytest.raises(ValueError, match="is not allowed"):
            parse_statement(sql)

    def test_semicolon_inside_string_is_not_a_separator(self) -> None:
        stmt = parse_statement("INSERT INTO ai_log (msg) VALUES ('a; DROP TABLE chats')")
        assert stmt.tables == ("ai_log",)
        assert "chats" not in stmt.identifiers


class TestExtractTables:
    @pytest.mark.parametrize(
        ("sql", "tables"),
        [
            ("SELECT * FROM a JOIN b ON a.id = b.id", ("a", "b")),
            ("INSERT INTO ai_x SELECT * FROM contacts", ("ai_x", "contacts")),
            ("UPDATE main.chats SET x = 1", ("chats",)),
            ('UPDATE "chats" SET x = 1', ("chats",)),
            ("UPDATE [ai_x] SET x = 1", ("ai_x",)),
            ("CREATE TABLE IF NOT EXISTS ai_notes (id INTEGER)", ("ai_notes",)),
            ("CREATE INDEX idx ON ai_notes (body)", ("ai_notes",)),
            ("ALTER TABLE ai_x RENAME TO ai_y", ("ai_x", "ai_y")),
            ("INSERT OR REPLACE INTO ai_x (a) VALUES (1)", ("ai_x",)),
            ("INSERT INTO ai_x (a) VALUES (1) ON CONFLICT(a) DO UPDATE SET a = 2", ("ai_x",)),
            ("DROP INDEX idx_foo", ()),
            ("INSERT INTO 'chats' SELECT * FROM ai_x", ("chats", "ai_x")),
            ("UPDATE main.'settings' SET v = 1", ("settings",)),
            ("ALTER TABLE ai_x RENAME TO 'messages'", ("ai_x", "messages")),
        ],
    )
    def test_tables(self, sql: str, tables: tuple) -> None:
        assert extract_tables(tokenize(sql)) == tables

    def test_comments_dropped_and_strings_unquoted(self) -> None:
        tokens = tokenize("/* chats */ SELECT 'it''s' -- settings\nFROM ai_x")
        assert [(t.type, t.value) for t in tokens] == [
            ("word", "SELECT"),
            ("string", "it's"),
            ("word", "FROM"),
            ("word", "ai_x"),
        ]


class TestSqlStatementPolicy:
    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT * FROM chats",
            "SELECT m.* FROM messages m JOIN chats c ON c.id = m.chat_id",
            "INSERT INTO ai_notes (body) VALUES ('chats')",
            "INSERT INTO contacts (name) VALUES ('Alice')",
            "CREATE TABLE ai_notes (id INTEGER PRIMARY KEY, body TEXT)",
            "CREATE INDEX idx_notes ON ai_notes (body)",
            "INSERT INTO ai_x SELECT * FROM contacts",
            "DELETE FROM cronjobs WHERE id = 3",
        ],
    )
    def test_allowed(self, policy: SqlStatementPolicy, sql: str) -> None:
        decision, stmt = policy.validate(sql)
        assert decision.allowed, decision.reason
        assert stmt is not None

    @pytest.mark.parametrize(
        "sql",
        [
            "UPDATE chats SET title = 'x'",
            "delete from CHATS",
            'UPDATE "messages" SET body = NULL',
            "UPDATE main.settings SET value = '{}'",
            "DROP TABLE media",
            "INSERT INTO ai_log SELECT * FROM messages",
            "DELETE FROM ai_x WHERE id IN (SELECT id FROM settings)",
            "UPDATE ai_x SET a = 1 FROM attachments",
            "ALTER TABLE ai_x RENAME TO chats",
            "CREATE INDEX idx ON chats (id)",
            "WITH t AS (SELECT 1) DELETE FROM messages",
            "/* hi */ DELETE FROM chats",
            "-- SELECT\nDELETE FROM chats",
            "INSERT INTO 'chats' SELECT * FROM ai_x",
            "UPDATE 'chats' SET title = 'x' WHERE id IN (SELECT id FROM ai_x)",
            "DELETE FROM 'media'",
        ],
    )
    def test_protected_writes_denied(self, policy: SqlStatementPolicy, sql: str) -> None:
        decision, _ = policy.validate(sql)
        assert not decision.allowed
        assert "protected" in decision.reason

    def test_unprefixed_write_denied_with_hint(self, policy: SqlStatementPolicy) -> None:
        decision, _ = policy.validate("CREATE TABLE notes (id INTEGER)")
        assert not decision.allowed
        assert "'ai_notes'" in decision.reason

    def test_subquery_on_unmanaged_table_denies_write(self, policy: SqlStatementPolicy) -> None:
        decision, _ = policy.validate("UPDATE ai_x SET a = (SELECT b FROM notes)")
        assert not decision.allowed

    def test_write_without_table_denied(self, policy: SqlStatementPolicy) -> None:
        decision, stmt = policy.validate("DROP INDEX idx_foo")
        assert not decision.allowed
        assert "Could not determine the target table" in decision.reason
        assert stmt is not None

    def test_multi_statement_denied_without_parse(self, policy: SqlStatementPolicy) -> None:
        decision, stmt = policy.validate("SELECT 1; DELETE FROM ai_x")
        assert not decision.allowed
        assert stmt is None

    def test_deterministic(self, policy: SqlStatementPolicy) -> None:
        sql = "UPDATE contacts SET name = 'Bob'"
        assert policy.validate(sql)[0] == policy.validate(sql)[0]
