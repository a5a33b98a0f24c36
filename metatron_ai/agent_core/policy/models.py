from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional

from pydantic import Field

from ..schemas.base import BaseSchema

PROTECTED_COLLECTIONS: FrozenSet[str] = frozenset({"chats", "messages", "settings", "media", "attachments"})

AGENT_MANAGED_COLLECTIONS: FrozenSet[str] = frozenset(
    {
        "master",
        "contacts",
        "schedule",
        "whatsapp_permissions",
        "whatsapp_group_permissions",
        "cronjobs",
    }
)

AGENT_NAMESPACE_PREFIX = "ai_"


class CollectionPolicy(BaseSchema):
    """
    Tier tables for collection/table names.

    The defaults describe the assistant's own persistence (protected), the
    collections the agent keeps personal data in (managed) and the prefix that
    marks collections the agent created itself.
    """
    protected_collections: FrozenSet[str] = Field(
        default=PROTECTED_COLLECTIONS,
        description="Core collections. Read-only to the agent.",
    )
    agent_managed_collections: FrozenSet[str] = Field(
        default=AGENT_MANAGED_COLLECTIONS,
        description="Collections the agent may read and write.",
    )
    namespace_prefix: str = Field(
        default=AGENT_NAMESPACE_PREFIX,
        min_length=1,
        description="Prefix of collections created by the agent; writable.",
    )


@dataclass(frozen=True)
class PolicyDecision:
    """
    Result of a policy evaluation for a single operation.

    Attributes:
        allowed: Whether the operation may be executed.
        reason: Human-readable reason when denied, phrased so the model can retry.
    """
    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "PolicyDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "PolicyDecision":
        return cls(allowed=False, reason=reason)
