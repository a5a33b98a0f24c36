"""Tool gateway runtime, policies, and persistence abstractions.

Design overview
---------------

Authorization and execution are kept apart:

- ``policy`` decides. ``StorePolicy`` classifies the target collection into a
  tier (core-protected, agent-managed, agent-namespaced, unmanaged) and
  allows or denies the operation kind. ``SqlStatementPolicy`` applies the same
  tiers to raw SQL after tokenizing it.
- ``executor`` acts. It only ever sees requests the policy allowed and turns
  every outcome into a ``ResultEnvelope``.

``capabilities`` wraps both behind the tools offered to the model, and
``gateway.ToolGateway`` dispatches the model's tool calls to them.

Typical usage
-------------

1. Build ``GatewayDeps`` once (notebook, executor, media stores), usually with
   ``create_gateway_deps(settings)``.
2. For every turn, call ``build_tool_registry(bundle, deps)`` and advertise
   ``registry.declarations()`` to the model.
3. Hand each tool call to ``ToolGateway(registry).dispatch(name, args)`` and
   return the string to the model.
"""

from .capabilities import GatewayDeps, ToolRegistry, build_tool_registry
from .factory import create_gateway_deps
from .gateway import ToolGateway
from .schemas.domain import (
    CollectionTier,
    ImageGenerationSettings,
    MediaInfo,
    OperationKind,
    OperationRequest,
    ResultEnvelope,
    ToolCall,
    ToolCallResult,
    ToolCapabilityBundle,
)

__all__ = [
    "CollectionTier",
    "GatewayDeps",
    "ImageGenerationSettings",
    "MediaInfo",
    "OperationKind",
    "OperationRequest",
    "ResultEnvelope",
    "ToolCall",
    "ToolCallResult",
    "ToolCapabilityBundle",
    "ToolGateway",
    "ToolRegistry",
    "build_tool_registry",
    "create_gateway_deps",
]
