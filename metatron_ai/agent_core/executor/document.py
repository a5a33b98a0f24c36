from __future__ import annotations

"""Execute validated document-store operations.

``DocumentExecutor.execute`` maps each ``OperationKind`` one-to-one onto a
``DocumentStore`` call and wraps the outcome in a ``ResultEnvelope``. It never
raises: shape mismatches in the payload and every store failure come back as
``{"error": ...}``.

The executor assumes the request already passed ``StorePolicy``; it does not
re-check the target tier. The one write the target check cannot see is an
aggregation output stage, so ``aggregate`` pipelines are passed through
``StorePolicy.check_pipeline`` before they reach the store.
"""

import copy
from typing import Any, Awaitable, Callable, Dict, Optional

from metatron_ai.core.logging_config import get_logger

from ..policy.store_policy import StorePolicy
from ..schemas.domain import OperationKind, OperationPayload, OperationRequest, ResultEnvelope
from ..stores.interfaces import DocumentStore

logger = get_logger(__name__)

_Handler = Callable[[str, OperationPayload], Awaitable[ResultEnvelope]]


class DocumentExecutor:
    """Run ``OperationRequest`` objects against a ``DocumentStore``."""

    def __init__(self, store: DocumentStore, policy: Optional[StorePolicy] = None) -> None:
        self._store = store
        self._policy = policy or StorePolicy()
        self._handlers: Dict[OperationKind, _Handler] = {
            OperationKind.find: self._find,
            OperationKind.find_one: self._find_one,
            OperationKind.count: self._count,
            OperationKind.aggregate: self._aggregate,
            OperationKind.insert_one: self._insert_one,
            OperationKind.insert_many: self._insert_many,
            OperationKind.update_one: self._update_one,
            OperationKind.update_many: self._update_many,
            OperationKind.delete_one: self._delete_one,
            OperationKind.delete_many: self._delete_many,
            OperationKind.create_collection: self._create_collection,
            OperationKind.create_index: self._create_index,
        }

    async def execute(self, request: OperationRequest) -> ResultEnvelope:
        """
        Execute a single operation.

        Args:
            request: A request that passed policy validation. It is never modified.

        Returns:
            ResultEnvelope: the kind-specific success payload, or ``{"error": ...}``.
        """
        kind = request.operation_kind
        if kind is None:
            return ResultEnvelope.failure(f"Unknown operation: {request.kind}")

        try:
            if kind == OperationKind.list_collections:
                names = await self._store.list_collections()
                return ResultEnvelope.success(collections=list(names))

            handler = self._handlers[kind]
            return await handler(request.target or "", request.payload)
        except Exception as e:
            logger.warning(f"{kind.value} on '{request.target}' failed: {e}")
            return ResultEnvelope.failure(str(e) or e.__class__.__name__)

    async def _find(self, target: str, p: OperationPayload) -> ResultEnvelope:
        rows = await self._store.find(
            target, p.filter or {}, projection=p.projection, sort=p.sort, skip=p.skip, limit=p.limit
        )
        return ResultEnvelope.success(rows=rows)

    async def _find_one(self, target: str, p: OperationPayload) -> ResultEnvelope:
        row = await self._store.find_one(target, p.filter or {}, projection=p.projection)
        return ResultEnvelope.success(row=row)

    async def _count(self, target: str, p: OperationPayload) -> ResultEnvelope:
        count = await self._store.count(target, p.filter or {})
        return ResultEnvelope.success(count=count)

    async def _aggregate(self, target: str, p: OperationPayload) -> ResultEnvelope:
        if not isinstance(p.pipeline, list):
            return ResultEnvelope.failure("aggregate requires a pipeline array.")
        decision = self._policy.check_pipeline(p.pipeline)
        if not decision.allowed:
            logger.info(f"aggregate on '{target}' denied: {decision.reason}")
            return ResultEnvelope.failure(decision.reason or "Pipeline not allowed.")
        rows = await self._store.aggregate(target, p.pipeline)
        return ResultEnvelope.success(rows=rows)

    async def _insert_one(self, target: str, p: OperationPayload) -> ResultEnvelope:
        if not isinstance(p.data, dict):
            return ResultEnvelope.failure("insertOne requires a single data object.")
        inserted_id = await self._store.insert_one(target, copy.deepcopy(p.data))
        return ResultEnvelope.success(insertedId=inserted_id)

    async def _insert_many(self, target: str, p: OperationPayload) -> ResultEnvelope:
        if not isinstance(p.data, list) or not all(isinstance(d, dict) for d in p.data):
            return ResultEnvelope.failure("insertMany requires a data array of objects.")
        if not p.data:
            return ResultEnvelope.success(insertedCount=0, insertedIds=[])
        ids = await self._store.insert_many(target, copy.deepcopy(p.data))
        return ResultEnvelope.success(insertedCount=len(ids), insertedIds=ids)

    async def _update(self, target: str, p: OperationPayload, *, many: bool) -> ResultEnvelope:
        name = "updateMany" if many else "updateOne"
        if not p.update or not isinstance(p.update, (dict, list)):
            return ResultEnvelope.failure(f"{name} requires an update object.")
        fn = self._store.update_many if many else self._store.update_one
        counts = await fn(target, p.filter or {}, p.update)
        return ResultEnvelope.success(matchedCount=counts.matched_count, modifiedCount=counts.modified_count)

    async def _update_one(self, target: str, p: OperationPayload) -> ResultEnvelope:
        return await self._update(target, p, many=False)

    async def _update_many(self, target: str, p: OperationPayload) -> ResultEnvelope:
        return await self._update(target, p, many=True)

    async def _delete(self, target: str, p: OperationPayload, *, many: bool) -> ResultEnvelope:
        if p.filter is None:
            name = "deleteMany" if many else "deleteOne"
            return ResultEnvelope.failure(f"{name} requires a filter object.")
        fn = self._store.delete_many if many else self._store.delete_one
        deleted = await fn(target, p.filter)
        return ResultEnvelope.success(deletedCount=deleted)

    async def _delete_one(self, target: str, p: OperationPayload) -> ResultEnvelope:
        return await self._delete(target, p, many=False)

    async def _delete_many(self, target: str, p: OperationPayload) -> ResultEnvelope:
        return await self._delete(target, p, many=True)

    async def _create_collection(self, target: str, p: OperationPayload) -> ResultEnvelope:
        await self._store.create_collection(target)
        return ResultEnvelope.success(success=True)

    async def _create_index(self, target: str, p: OperationPayload) -> ResultEnvelope:
        if not p.index_spec:
            return ResultEnvelope.failure("createIndex requires an indexSpec object.")
        name: Any = await self._store.create_index(target, p.index_spec, p.index_options)
        return ResultEnvelope.success(success=True, indexName=name)
