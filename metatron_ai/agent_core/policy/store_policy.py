from __future__ import annotations

"""Allow/deny decisions for data-store operations requested by the model.

``StorePolicy`` is the authority the ``db_query`` tool consults before any
operation reaches an executor.

Design goals
------------

- ``validate`` decides purely from ``kind`` and ``target``; the payload is never
  inspected. ``check_pipeline`` applies the same write rules to the collections
  an aggregation writes through ``$out``/``$merge``; the executor calls it before
  running a pipeline.
- Classify targets by string comparison only (two fixed sets plus a prefix
  test), so the same request always yields the same decision and executors can
  trust a prior validation without looking the collection up.
- Phrase every denial so the model can correct itself, including the
  namespaced name to use when a write targets an unlisted collection.
"""

from typing import Any, List, Optional, Tuple

from ..schemas.domain import WRITE_KINDS, CollectionTier, OperationKind, OperationRequest
from .models import CollectionPolicy, PolicyDecision

_ALLOWED_KINDS = tuple(k.value for k in OperationKind)

# Aggregation stages that write their results into a collection.
_OUTPUT_STAGES = ("$out", "$merge")


def find_output_stages(value: Any) -> List[Tuple[str, Any]]:
    """Return every ``(stage, spec)`` pair for ``$out``/``$merge`` found anywhere in ``value``."""
    found: List[Tuple[str, Any]] = []
    if isinstance(value, dict):
        for key, inner in value.items():
            if key in _OUTPUT_STAGES:
                found.append((key, inner))
            found.extend(find_output_stages(inner))
    elif isinstance(value, list):
        for item in value:
            found.extend(find_output_stages(item))
    return found


def _output_collection(stage: str, spec: Any) -> Tuple[Optional[str], Optional[str]]:
    """Resolve the destination of an output stage to ``(collection, problem)``."""
    dest = spec.get("into") if stage == "$merge" and isinstance(spec, dict) else spec
    if isinstance(dest, str):
        return dest, None
    if isinstance(dest, dict):
        if "db" in dest:
            return None, f"{stage} into another database is not allowed. Name only the output collection."
        if isinstance(dest.get("coll"), str):
            return dest["coll"], None
    return None, f"{stage} must name its output collection."


class StorePolicy:
    """Tier-based policy for document/table operations."""

    def __init__(self, config: Optional[CollectionPolicy] = None) -> None:
        self._cfg = config or CollectionPolicy()

    @property
    def config(self) -> CollectionPolicy:
        """Return the underlying tier configuration."""
        return self._cfg

    def classify(self, target: str) -> CollectionTier:
        """
        Classify a collection/table name into its tier.

        Args:
            target: The collection or table name.

        Returns:
            The ``CollectionTier`` the name belongs to.
        """
        if target in self._cfg.protected_collections:
            return CollectionTier.core_protected
        if target in self._cfg.agent_managed_collections:
            return CollectionTier.agent_managed
        if target.startswith(self._cfg.namespace_prefix):
            return CollectionTier.agent_namespaced
        return CollectionTier.unmanaged

    def check_target(self, target: str, *, write: bool) -> PolicyDecision:
        """
        Decide whether ``target`` may be accessed for reading or writing.

        Reads are allowed for every non-empty name. Writes (including schema
        changes) are allowed only for agent-managed and agent-namespaced names.

        Args:
            target: The collection or table name.
            write: Whether the access mutates data or schema.

        Returns:
            A ``PolicyDecision``.
        """
        if not target:
            return PolicyDecision.deny("Collection name is required.")
        if not write:
            return PolicyDecision.allow()

        tier = self.classify(target)
        prefix = self._cfg.namespace_prefix
        if tier == CollectionTier.core_protected:
            return PolicyDecision.deny(
                f"Access denied: '{target}' is a protected core collection. You can only read from it. "
                f"Write operations are restricted to collections with the '{prefix}' prefix."
            )
        if tier == CollectionTier.unmanaged:
            managed = ", ".join(sorted(self._cfg.agent_managed_collections))
            return PolicyDecision.deny(
                f"Write operations are restricted to AI-managed collections ({managed}) "
                f"or collections with the '{prefix}' prefix. Use '{prefix}{target}' instead."
            )
        return PolicyDecision.allow()

    def validate(self, request: OperationRequest) -> PolicyDecision:
        """
        Validate an operation request.

        Rules are applied in order:
        1. The kind must be one of the allowed kinds.
        2. ``listCollections`` needs no target and is always allowed.
        3. Every other kind needs a non-empty target.
        4. Writes to core-protected collections are denied.
        5. Writes to collections that are neither agent-managed nor prefixed are
           denied with the prefixed name suggested.

        Args:
            request: The operation to validate. It is never modified.

        Returns:
            A ``PolicyDecision``.
        """
        kind = request.operation_kind
        if kind is None:
            return PolicyDecision.deny(
                f"Operation '{request.kind}' is not allowed. Allowed: {', '.join(_ALLOWED_KINDS)}"
            )

        if kind == OperationKind.list_collections:
            return PolicyDecision.allow()

        if not request.target:
            return PolicyDecision.deny("Collection name is required.")

        return self.check_target(request.target, write=kind in WRITE_KINDS)

    def check_pipeline(self, pipeline: Any) -> PolicyDecision:
        """
        Check the collections an aggregation pipeline writes to.

        Args:
            pipeline: The raw ``pipeline`` payload, scanned at any depth.

        Returns:
            A ``PolicyDecision``; denied when any output stage targets a
            collection the agent may not write.
        """
        for stage, spec in find_output_stages(pipeline):
            dest, problem = _output_collection(stage, spec)
            if problem is not None:
                return PolicyDecision.deny(problem)
            decision = self.check_target(dest or "", write=True)
            if not decision.allowed:
                return decision
        return PolicyDecision.allow()
