from __future__ import annotations

"""MongoDB implementation of ``DocumentStore``.

Wraps a PyMongo ``AsyncDatabase``. Rows are returned exactly as the driver
produces them (``_id`` stays an ``ObjectId`` or whatever the caller stored);
rendering them for the model is the envelope's job.

Usage
-----

>>> client = create_client("mongodb://localhost:27017")
>>> store = MongoDocumentStore(client["metatron"])
"""

from typing import Any, Dict, List, Optional, Tuple

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from .interfaces import UpdateCounts


def create_client(url: str, *, timeout_ms: int = 10_000) -> AsyncMongoClient:
    """Create an async client with server selection and socket timeouts applied."""
    return AsyncMongoClient(url, serverSelectionTimeoutMS=timeout_ms, socketTimeoutMS=timeout_ms)


def _key_list(spec: Dict[str, Any]) -> List[Tuple[str, Any]]:
    return list(spec.items())


class MongoDocumentStore:
    """``DocumentStore`` backed by a MongoDB database."""

    def __init__(self, database: AsyncDatabase) -> None:
        self._db = database

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
        cursor = self._db[collection].find(filter, projection)
        if sort:
            cursor = cursor.sort(_key_list(sort))
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return await cursor.to_list()

    async def find_one(
        self,
        collection: str,
        filter: Dict[str, Any],
        *,
        projection: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        return await self._db[collection].find_one(filter, projection)

    async def count(self, collection: str, filter: Dict[str, Any]) -> int:
        return await self._db[collection].count_documents(filter)

    async def aggregate(self, collection: str, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        cursor = await self._db[collection].aggregate(pipeline)
        return await cursor.to_list()

    async def list_collections(self) -> List[str]:
        return await self._db.list_collection_names()

    async def insert_one(self, collection: str, document: Dict[str, Any]) -> Any:
        result = await self._db[collection].insert_one(document)
        return result.inserted_id

    async def insert_many(self, collection: str, documents: List[Dict[str, Any]]) -> List[Any]:
        result = await self._db[collection].insert_many(documents)
        return list(result.inserted_ids)

    async def update_one(self, collection: str, filter: Dict[str, Any], update: Any) -> UpdateCounts:
        result = await self._db[collection].update_one(filter, update)
        return UpdateCounts(matched_count=result.matched_count, modified_count=result.modified_count)

    async def update_many(self, collection: str, filter: Dict[str, Any], update: Any) -> UpdateCounts:
        result = await self._db[collection].update_many(filter, update)
        return UpdateCounts(matched_count=result.matched_count, modified_count=result.modified_count)

    async def delete_one(self, collection: str, filter: Dict[str, Any]) -> int:
        result = await self._db[collection].delete_one(filter)
        return result.deleted_count

    async def delete_many(self, collection: str, filter: Dict[str, Any]) -> int:
        result = await self._db[collection].delete_many(filter)
        return result.deleted_count

    async def create_collection(self, collection: str) -> None:
        await self._db.create_collection(collection)

    async def create_index(
        self, collection: str, keys: Dict[str, Any], options: Optional[Dict[str, Any]] = None
    ) -> str:
        return await self._db[collection].create_index(_key_list(keys), **(options or {}))
