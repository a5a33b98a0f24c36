from __future__ import annotations

"""Execute raw SQL statements for the relational deployment mode.

Two phases, as in the document mode: ``SqlStatementPolicy`` decides first,
then the parsed statement is routed by category to the matching ``SqlStore``
primitive:

- ``read``   -> ``fetch_all``      -> ``{"rows": [...]}``
- ``mutate`` -> ``execute``        -> ``{"affectedRows": n}``
- ``ddl``    -> ``execute_script`` -> ``{"success": true}``
"""

from typing import Optional

from metatron_ai.core.logging_config import get_logger

from ..policy.sql_policy import SqlCategory, SqlStatementPolicy
from ..schemas.domain import ResultEnvelope
from ..stores.interfaces import SqlStore

logger = get_logger(__name__)


class SqlExecutor:
    """Validate and run SQL statements; never raises."""

    def __init__(self, store: SqlStore, policy: Optional[SqlStatementPolicy] = None) -> None:
        self._store = store
        self._policy = policy or SqlStatementPolicy()

    async def execute(self, sql: str) -> ResultEnvelope:
        """
        Validate and execute one statement.

        Args:
            sql: The raw statement from the model.

        Returns:
            ResultEnvelope: rows, affected row count or success flag; or ``{"error": ...}``.
        """
        decision, stmt = self._policy.validate(sql)
        if not decision.allowed or stmt is None:
            logger.info(f"SQL statement denied: {decision.reason}")
            return ResultEnvelope.failure(decision.reason or "Statement not allowed.")

        try:
            if stmt.category == SqlCategory.read:
                rows = await self._store.fetch_all(stmt.sql)
                return ResultEnvelope.success(rows=rows)
            if stmt.category == SqlCategory.mutate:
                affected = await self._store.execute(stmt.sql)
                return ResultEnvelope.success(affectedRows=affected)
            await self._store.execute_script(stmt.sql)
            return ResultEnvelope.success(success=True)
        except Exception as e:
            logger.warning(f"SQL {stmt.leading_keyword} failed: {e}")
            return ResultEnvelope.failure(str(e) or e.__class__.__name__)
