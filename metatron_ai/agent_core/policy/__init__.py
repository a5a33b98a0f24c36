"""Policy subsystem for model-issued data-store operations.

The policy layer provides *runtime* allow/deny decisions for operations the
model asks to run. It is separate from execution so that:

- Decisions are pure functions of the request (no I/O, no randomness).
- Executors can trust a prior validation without re-checking tiers.

Components
----------

- ``StorePolicy``: tier-based decisions for document/table operations.
- ``SqlStatementPolicy``: the same tiers applied to raw SQL statements after
  tokenizing them.
- ``CollectionPolicy``: the protected/managed collection sets and the
  namespace prefix.
- ``PolicyDecision``: allow/deny plus a reason the model can act on.
"""

from .models import (
    AGENT_MANAGED_COLLECTIONS,
    AGENT_NAMESPACE_PREFIX,
    PROTECTED_COLLECTIONS,
    CollectionPolicy,
    PolicyDecision,
)
from .sql_policy import ParsedStatement, SqlCategory, SqlStatementPolicy, parse_statement
from .store_policy import StorePolicy

__all__ = [
    "AGENT_MANAGED_COLLECTIONS",
    "AGENT_NAMESPACE_PREFIX",
    "PROTECTED_COLLECTIONS",
    "CollectionPolicy",
    "PolicyDecision",
    "ParsedStatement",
    "SqlCategory",
    "SqlStatementPolicy",
    "StorePolicy",
    "parse_statement",
]
