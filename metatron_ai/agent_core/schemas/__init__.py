"""Domain schemas shared by policy, executors and capabilities."""

from .base import BaseSchema, FrozenSchema
from .domain import (
    READ_KINDS,
    WRITE_KINDS,
    CollectionTier,
    ImageGenerationSettings,
    MediaInfo,
    MediaRecord,
    OperationKind,
    OperationPayload,
    OperationRequest,
    ResultEnvelope,
    ToolCall,
    ToolCallResult,
    ToolCapabilityBundle,
)

__all__ = [
    "BaseSchema",
    "FrozenSchema",
    "READ_KINDS",
    "WRITE_KINDS",
    "CollectionTier",
    "ImageGenerationSettings",
    "MediaInfo",
    "MediaRecord",
    "OperationKind",
    "OperationPayload",
    "OperationRequest",
    "ResultEnvelope",
    "ToolCall",
    "ToolCallResult",
    "ToolCapabilityBundle",
]
