from __future__ import annotations

"""Policy for raw SQL statements in the relational deployment mode.

The statement is tokenized before any decision is made: comments are dropped,
quoted identifiers and string literals are unquoted, and only then is the
leading keyword classified and every referenced table extracted. Tier checks
reuse ``StorePolicy.check_target`` so both deployment modes share one rule set.

SQLite accepts a string literal where a table name is expected
(``INSERT INTO 'chats' ...``), so a string right after a table-introducing
keyword is read as a table name.

This is not a full SQL grammar. It is conservative where it cannot be sure:

- more than one statement is denied;
- an unknown leading keyword is denied;
- ``PRAGMA`` may only query; an assignment or argument is denied unless the
  pragma is a read-only schema lookup such as ``table_info(t)``;
- a mutating or DDL statement must name at least one table, and every table it
  references (including those read by subqueries or joins) must be writable;
- a mutating or DDL statement that mentions a core-protected name anywhere as
  an identifier is denied.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .models import PolicyDecision
from .store_policy import StorePolicy


class SqlCategory(str, Enum):
    read = "read"
    mutate = "mutate"
    ddl = "ddl"


_READ_KEYWORDS = {"SELECT", "PRAGMA", "EXPLAIN", "VALUES"}
_MUTATE_KEYWORDS = {"INSERT", "UPDATE", "DELETE", "REPLACE"}
_DDL_KEYWORDS = {"CREATE", "ALTER", "DROP"}

# Keywords followed (possibly after modifiers) by a table name.
_TABLE_INTRODUCERS = {"FROM", "JOIN", "INTO", "UPDATE", "TABLE", "VIEW"}
# Modifiers that may sit between an introducer and the table name.
_SKIPPABLE = {"IF", "NOT", "EXISTS", "ONLY", "OR", "ROLLBACK", "ABORT", "REPLACE", "FAIL", "IGNORE"}
# Words that can follow an introducer without naming a table ("DO UPDATE SET", "INSERT INTO t SELECT").
_NOT_TABLES = {"SET", "SELECT", "VALUES", "DEFAULT", "WITH"}

# Pragmas that take a table or index name and only report on it.
_READ_ONLY_PRAGMAS = {
    "table_info",
    "table_xinfo",
    "table_list",
    "index_list",
    "index_info",
    "index_xinfo",
    "foreign_key_list",
}

_TOKEN_RE = re.compile(
    r"""
      (?P<ws>\s+)
    | (?P<line_comment>--[^\n]*)
    | (?P<block_comment>/\*.*?(?:\*/|\Z))
    | (?P<string>'(?:[^']|'')*'?)
    | (?P<quoted>"(?:[^"]|"")*"|`[^`]*`|\[[^\]]*\])
    | (?P<word>[A-Za-z_][A-Za-z0-9_$]*)
    | (?P<number>\d+(?:\.\d+)?)
    | (?P<semicolon>;)
    | (?P<punct>.)
    """,
    re.VERBOSE | re.DOTALL,
)


@dataclass(frozen=True)
class SqlToken:
    type: str
    value: str

    @property
    def is_identifier(self) -> bool:
        return self.type in ("word", "quoted")

    @property
    def is_name(self) -> bool:
        """True for anything SQLite may accept as a table name, string literals included."""
        return self.type in ("word", "quoted", "string")

    @property
    def keyword(self) -> str:
        return self.value.upper() if self.type == "word" else ""


@dataclass(frozen=True)
class ParsedStatement:
    """A single classified statement and the tables it references."""

    sql: str
    category: SqlCategory
    leading_keyword: str
    tables: Tuple[str, ...]
    identifiers: Tuple[str, ...]


def _unquote(token: str) -> str:
    if token[:1] == "'":
        body = token[1:-1] if len(token) > 1 and token.endswith("'") else token[1:]
        return body.replace("''", "'")
    if token[:1] == '"':
        return token[1:-1].replace('""', '"')
    if token[:1] in ("`", "["):
        return token[1:-1]
    return token


def tokenize(sql: str) -> List[SqlToken]:
    """Split ``sql`` into tokens, dropping whitespace and comments; quoted tokens are unquoted."""
    tokens: List[SqlToken] = []
    for m in _TOKEN_RE.finditer(sql):
        kind = m.lastgroup or "punct"
        if kind in ("ws", "line_comment", "block_comment"):
            continue
        value = m.group(kind)
        if kind in ("quoted", "string"):
            value = _unquote(value)
        tokens.append(SqlToken(kind, value))
    return tokens


def _read_table_name(tokens: List[SqlToken], start: int) -> Optional[str]:
    """Read a possibly schema-qualified table name at ``start``; return the table part."""
    i = start
    while i < len(tokens) and tokens[i].keyword in _SKIPPABLE:
        i += 1
    if i >= len(tokens) or not tokens[i].is_name or tokens[i].keyword in _NOT_TABLES:
        return None
    name = tokens[i].value
    while i + 2 < len(tokens) and tokens[i + 1].value == "." and tokens[i + 2].is_name:
        name = tokens[i + 2].value
        i += 2
    return name


def extract_tables(tokens: List[SqlToken]) -> Tuple[str, ...]:
    """Return every table name referenced after a table-introducing keyword, in order."""
    found: List[str] = []
    create_index = False
    for i, tok in enumerate(tokens):
        kw = tok.keyword
        if kw == "INDEX":
            create_index = True
        renamed = kw == "TO" and i > 0 and tokens[i - 1].keyword == "RENAME"
        if kw in _TABLE_INTRODUCERS or (create_index and kw == "ON") or renamed:
            name = _read_table_name(tokens, i + 1)
            if name and name not in found:
                found.append(name)
    return tuple(found)


def _check_pragma(tokens: List[SqlToken]) -> None:
    """Allow ``PRAGMA [schema.]name`` and ``PRAGMA name(table)`` for read-only pragmas only."""
    rest = tokens[1:]
    if len(rest) >= 3 and rest[1].value == "." and rest[0].is_name:
        rest = rest[2:]
    if not rest or not rest[0].is_name:
        raise ValueError("PRAGMA requires a pragma name.")
    name, args = rest[0].value.lower(), rest[1:]
    if not args:
        return
    if any(t.value == "=" for t in args) or name not in _READ_ONLY_PRAGMAS:
        raise ValueError(
            "PRAGMA assignments are not allowed. Only query a pragma, or pass a table to "
            f"one of: {', '.join(sorted(_READ_ONLY_PRAGMAS))}."
        )
    if not (len(args) == 3 and args[0].value == "(" and args[1].is_name and args[2].value == ")"):
        raise ValueError(f"PRAGMA {name} takes a single table or index name.")


def parse_statement(sql: str) -> ParsedStatement:
    """
    Tokenize and classify a single SQL statement.

    Raises:
        ValueError: If the input is empty, holds more than one statement, or
            starts with a keyword outside the read/mutate/DDL families.
    """
    tokens = tokenize(sql)
    if tokens and tokens[-1].type == "semicolon":
        tokens = tokens[:-1]
    if not tokens:
        raise ValueError("SQL statement is empty.")
    if any(t.type == "semicolon" for t in tokens):
        raise ValueError("Only one SQL statement can be executed per call.")

    lead = tokens[0].keyword
    words = {t.keyword for t in tokens if t.type == "word"}
    if lead in _READ_KEYWORDS:
        category = SqlCategory.read
        if lead == "PRAGMA":
            _check_pragma(tokens)
        if lead == "EXPLAIN" and words & (_MUTATE_KEYWORDS | _DDL_KEYWORDS):
            category = SqlCategory.mutate
    elif lead == "WITH":
        category = SqlCategory.mutate if words & _MUTATE_KEYWORDS else SqlCategory.read
    elif lead in _MUTATE_KEYWORDS:
        category = SqlCategory.mutate
    elif lead in _DDL_KEYWORDS:
        category = SqlCategory.ddl
    else:
        allowed = sorted(_READ_KEYWORDS | {"WITH"} | _MUTATE_KEYWORDS | _DDL_KEYWORDS)
        raise ValueError(f"Statement '{lead or tokens[0].value}' is not allowed. Allowed: {', '.join(allowed)}")

    identifiers = tuple(t.value for t in tokens if t.is_identifier)
    return ParsedStatement(
        sql=sql,
        category=category,
        leading_keyword=lead,
        tables=extract_tables(tokens),
        identifiers=identifiers,
    )


class SqlStatementPolicy:
    """Apply the collection tiers of ``StorePolicy`` to raw SQL statements."""

    def __init__(self, store_policy: Optional[StorePolicy] = None) -> None:
        self._store_policy = store_policy or StorePolicy()

    def validate(self, sql: str) -> Tuple[PolicyDecision, Optional[ParsedStatement]]:
        """
        Validate a SQL statement.

        Args:
            sql: The raw statement supplied by the model.

        Returns:
            The decision and, when the statement could be parsed, the parsed
            statement used to route execution.
        """
        try:
            stmt = parse_statement(sql)
        except ValueError as e:
            return PolicyDecision.deny(str(e)), None

        if stmt.category == SqlCategory.read:
            return PolicyDecision.allow(), stmt

        if not stmt.tables:
            return (
                PolicyDecision.deny(
                    f"Could not determine the target table of this {stmt.leading_keyword} statement. "
                    "Name the table explicitly."
                ),
                stmt,
            )

        protected = self._store_policy.config.protected_collections
        for ident in stmt.identifiers:
            if ident in protected or ident.lower() in protected:
                return self._store_policy.check_target(ident.lower(), write=True), stmt

        for table in stmt.tables:
            decision = self._store_policy.check_target(table, write=True)
            if not decision.allowed:
                return decision, stmt
        return PolicyDecision.allow(), stmt
