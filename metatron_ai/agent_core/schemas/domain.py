from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional
from uuid import uuid4

from pydantic import Field

from .base import BaseSchema, FrozenSchema


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Return a fresh opaque identifier for persisted artifacts."""
    return uuid4().hex


class OperationKind(str, Enum):
    find = "find"
    find_one = "findOne"
    count = "count"
    aggregate = "aggregate"
    list_collections = "listCollections"
    insert_one = "insertOne"
    insert_many = "insertMany"
    update_one = "updateOne"
    update_many = "updateMany"
    delete_one = "deleteOne"
    delete_many = "deleteMany"
    create_collection = "createCollection"
    create_index = "createIndex"


READ_KINDS = frozenset(
    {
        OperationKind.find,
        OperationKind.find_one,
        OperationKind.count,
        OperationKind.aggregate,
        OperationKind.list_collections,
    }
)

WRITE_KINDS = frozenset(
    {
        OperationKind.insert_one,
        OperationKind.insert_many,
        OperationKind.update_one,
        OperationKind.update_many,
        OperationKind.delete_one,
        OperationKind.delete_many,
        OperationKind.create_collection,
        OperationKind.create_index,
    }
)

# Names the model has been seen to use for a kind.
KIND_ALIASES: Dict[str, OperationKind] = {
    "countDocuments": OperationKind.count,
}


def parse_kind(raw: Any) -> Optional[OperationKind]:
    """Map a raw ``operation`` value to an ``OperationKind``; ``None`` when unknown."""
    if isinstance(raw, OperationKind):
        return raw
    if not isinstance(raw, str):
        return None
    if raw in KIND_ALIASES:
        return KIND_ALIASES[raw]
    try:
        return OperationKind(raw)
    except ValueError:
        return None


class CollectionTier(str, Enum):
    core_protected = "core_protected"
    agent_managed = "agent_managed"
    agent_namespaced = "agent_namespaced"
    unmanaged = "unmanaged"


class OperationPayload(FrozenSchema):
    """Kind-specific arguments of an operation.

    Shapes are deliberately loose: the executor checks that the fields a kind
    needs are present and well-formed, and reports mismatches as error
    envelopes.
    """

    filter: Optional[Dict[str, Any]] = None
    data: Any = None
    update: Any = None
    sort: Optional[Dict[str, Any]] = None
    limit: Optional[int] = None
    skip: Optional[int] = None
    pipeline: Any = None
    projection: Optional[Dict[str, Any]] = None
    index_spec: Optional[Dict[str, Any]] = Field(default=None, alias="indexSpec")
    index_options: Optional[Dict[str, Any]] = Field(default=None, alias="indexOptions")


_PAYLOAD_KEYS = (
    "filter",
    "data",
    "update",
    "sort",
    "limit",
    "skip",
    "pipeline",
    "projection",
    "indexSpec",
    "indexOptions",
)


class OperationRequest(FrozenSchema):
    """A single data-store operation requested by the model.

    ``kind`` keeps the raw string when it is not a known ``OperationKind`` so
    that policy can reject it with a precise message.
    """

    kind: str
    target: Optional[str] = None
    payload: OperationPayload = Field(default_factory=OperationPayload)

    @property
    def operation_kind(self) -> Optional[OperationKind]:
        return parse_kind(self.kind)

    @classmethod
    def from_tool_args(cls, args: Mapping[str, Any]) -> "OperationRequest":
        """Build a request from raw tool-call arguments.

        The arguments are deep-copied so later changes to the caller's
        structure cannot reach the request. Unknown keys are ignored.
        """
        raw = copy.deepcopy(dict(args))
        op = raw.get("operation", raw.get("kind"))
        kind = parse_kind(op)
        target = raw.get("collection", raw.get("target"))
        payload = {k: raw[k] for k in _PAYLOAD_KEYS if raw.get(k) is not None}
        return cls(
            kind=kind.value if kind is not None else str(op or ""),
            target=str(target) if target is not None else None,
            payload=OperationPayload.model_validate(payload),
        )


@dataclass(frozen=True)
class ResultEnvelope:
    """The only value handed back from executors and tool functions.

    ``output`` is either the success payload or exactly ``{"error": message}``.
    """

    ok: bool
    output: Dict[str, Any]

    @classmethod
    def success(cls, **fields: Any) -> "ResultEnvelope":
        return cls(ok=True, output=fields)

    @classmethod
    def failure(cls, message: str) -> "ResultEnvelope":
        return cls(ok=False, output={"error": message})

    @property
    def error(self) -> Optional[str]:
        return None if self.ok else self.output.get("error")

    def to_json(self) -> str:
        """Serialize for the model; values JSON cannot encode are rendered with ``str``."""
        return json.dumps(self.output, default=str)


class ImageGenerationSettings(BaseSchema):
    """Image model selection and provider credentials for a turn."""

    primary_image_model: str = Field(alias="primaryImageModel")
    fallback_image_models: List[str] = Field(default_factory=list, alias="fallbackImageModels")
    api_keys: Dict[str, str] = Field(
        default_factory=dict,
        alias="apiKeys",
        description="Provider name ('gemini', 'openai') to API key.",
    )

    def models_to_try(self) -> List[str]:
        return [self.primary_image_model, *self.fallback_image_models]


@dataclass(frozen=True)
class MediaInfo:
    """Notification payload delivered after an image is generated or edited."""

    media_id: str
    filename: str
    prompt: str
    model: str


ImageNotifier = Callable[[MediaInfo], None]


@dataclass(frozen=True)
class ToolCapabilityBundle:
    """Per-turn input deciding which optional tools are offered.

    Attributes
    ----------
    brave_api_key:
        Credential for the web search tool.
    image_settings:
        Generation settings for the image tools.
    chat_id / message_id:
        Where generated artifacts are attached. Both are required, together
        with ``image_settings``, for the image tools to exist.
    on_image_generated:
        Optional callback receiving ``MediaInfo`` after a successful
        generation or edit.
    """

    brave_api_key: Optional[str] = None
    image_settings: Optional[ImageGenerationSettings] = None
    chat_id: Optional[str] = None
    message_id: Optional[str] = None
    on_image_generated: Optional[ImageNotifier] = field(default=None, compare=False)

    @property
    def has_web_search(self) -> bool:
        return bool(self.brave_api_key)

    @property
    def has_image_tools(self) -> bool:
        return self.image_settings is not None and bool(self.chat_id) and bool(self.message_id)


class MediaRecord(BaseSchema):
    """A persisted generated/edited image."""

    id: str = Field(default_factory=new_id)
    chat_id: str
    message_id: str
    filename: str
    prompt: str
    short_description: str
    mime_type: str
    size: int
    model: str
    source_media_id: Optional[str] = None
    created_at: datetime = Field(default_factory=_utc_now)


class ToolCall(BaseSchema):
    """A tool call as emitted by the model."""

    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


class ToolCallResult(BaseSchema):
    """The string returned to the model for one tool call."""

    name: str
    output: str
