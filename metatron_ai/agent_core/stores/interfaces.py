from __future__ import annotations

"""Store interface contracts.

The gateway depends on these Protocols instead of concrete persistence
implementations.

Contract guidelines
-------------------

- All methods are async.
- Document store methods are named after the operation kinds they serve and
  return the store's native values (rows, identifiers, counts) unchanged.
- Implementations raise on failure; executors and tool functions are the
  boundary that turns exceptions into error envelopes.
- One call is one read/write path; no transaction spans two calls.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from ..schemas.domain import MediaRecord


@dataclass(frozen=True)
class UpdateCounts:
    """Outcome of an update: how many documents matched and how many changed."""

    matched_count: int
    modified_count: int


class DocumentStore(Protocol):
    """Run named operations against named collections."""

    async def find(
        self,
        collection: str,
        filter: Dict[str, Any],
        *,
        projection: Optional[Dict[str, Any]] = None,
        sort: Optional[Dict[str, Any]] = None,
        skip: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        ...

    async def find_one(
        self,
        collection: str,
        filter: Dict[str, Any],
        *,
        projection: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        ...

    async def count(self, collection: str, filter: Dict[str, Any]) -> int:
        ...

    async def aggregate(self, collection: str, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        ...

    async def list_collections(self) -> List[str]:
        ...

    async def insert_one(self, collection: str, document: Dict[str, Any]) -> Any:
        """
        Insert one document.

        Returns:
            The store-assigned identifier of the new document.
        """
        ...

    async def insert_many(self, collection: str, documents: List[Dict[str, Any]]) -> List[Any]:
        """
        Insert several documents.

        Returns:
            The identifiers of the new documents, in input order.
        """
        ...

    async def update_one(self, collection: str, filter: Dict[str, Any], update: Any) -> UpdateCounts:
        ...

    async def update_many(self, collection: str, filter: Dict[str, Any], update: Any) -> UpdateCounts:
        ...

    async def delete_one(self, collection: str, filter: Dict[str, Any]) -> int:
        ...

    async def delete_many(self, collection: str, filter: Dict[str, Any]) -> int:
        ...

    async def create_collection(self, collection: str) -> None:
        ...

    async def create_index(
        self, collection: str, keys: Dict[str, Any], options: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Create an index.

        Returns:
            The name of the created index.
        """
        ...


class SqlStore(Protocol):
    """Execute raw SQL against the relational store."""

    async def fetch_all(self, sql: str) -> List[Dict[str, Any]]:
        """Run a read statement and return its rows as dictionaries."""
        ...

    async def execute(self, sql: str) -> int:
        """Run a mutating statement and return the number of affected rows."""
        ...

    async def execute_script(self, sql: str) -> None:
        """Run a schema statement (CREATE, ALTER, DROP)."""
        ...


class SettingsRepository(Protocol):
    """Key/value storage for settings documents."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...


class MediaRepository(Protocol):
    """Persist and look up generated media records."""

    async def add(self, record: MediaRecord) -> None:
        ...

    async def get(self, media_id: str) -> Optional[MediaRecord]:
        ...
