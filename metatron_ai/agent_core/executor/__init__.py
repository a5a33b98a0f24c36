"""Executors turning validated operations into result envelopes.

- ``DocumentExecutor``: one-to-one dispatch of ``OperationKind`` onto a
  ``DocumentStore``.
- ``SqlExecutor``: policy check plus category routing of raw SQL onto a
  ``SqlStore``.

Neither raises past its boundary; failures become ``{"error": message}``.
"""

from .document import DocumentExecutor
from .sql import SqlExecutor

__all__ = ["DocumentExecutor", "SqlExecutor"]
