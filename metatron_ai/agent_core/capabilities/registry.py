from __future__ import annotations

"""Tool registry and its per-turn builder.

The registry maps a tool name to the tool instance offered to the model for
one turn. It is built from a ``ToolCapabilityBundle`` by starting from the
base tool set and appending optional tools whose prerequisites are present
in the bundle.

The gateway uses this registry to resolve tool-call names; the streaming
layer uses ``declarations()`` to advertise the same tools to the model.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

import httpx

from metatron_ai.core.config import BraveSearchConfig, ImageProviderConfig

from ..executor import DocumentExecutor, SqlExecutor
from ..integrations import BraveSearchClient, ImageGenerator, MediaFileStore
from ..notebook import AgentNotebook
from ..policy import StorePolicy
from ..schemas.domain import ToolCapabilityBundle
from ..stores import MediaRepository
from .base import Tool
from .builtin import (
    DocumentQueryTool,
    EditImageTool,
    GenerateImageTool,
    SaveMemoryTool,
    SqlQueryTool,
    UpdateDbSchemaTool,
    WebSearchTool,
)

logger = logging.getLogger(__name__)


class ToolRegistry(Mapping[str, Tool]):
    """
    Read-only mapping of tool names to tools.

    Notes:
        - A later tool with the same name replaces an earlier one at construction.
        - Indexing a missing name raises ``KeyError``; ``get`` returns ``None``.
    """

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        self._tools: Dict[str, Tool] = {}
        for tool in tools:
            self._tools[tool.name] = tool

    def __getitem__(self, name: str) -> Tool:
        return self._tools[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def declarations(self) -> List[Dict[str, Any]]:
        """
        Function declarations for every registered tool, in registration order.

        Returns:
            A list of ``{"name", "description", "parameters"}`` dictionaries.
        """
        return [tool.declaration() for tool in self._tools.values()]


@dataclass(frozen=True)
class GatewayDeps:
    """
    Long-lived dependencies the registry builder wires into tools.

    Exactly one of ``document_executor`` (document mode) or ``sql_executor``
    (SQL mode) backs the ``db_query`` tool. ``media_repository`` and
    ``media_files`` are needed only when a bundle enables the image tools.
    ``http_client`` is shared by the web search and image clients when given.
    """

    notebook: AgentNotebook
    document_executor: Optional[DocumentExecutor] = None
    sql_executor: Optional[SqlExecutor] = None
    store_policy: Optional[StorePolicy] = None
    media_repository: Optional[MediaRepository] = None
    media_files: Optional[MediaFileStore] = None
    http_client: Optional[httpx.AsyncClient] = None
    brave_config: Optional[BraveSearchConfig] = None
    image_config: Optional[ImageProviderConfig] = None


class ToolRegistryBuilder:
    """Compose the tool set for one turn from a capability bundle."""

    def __init__(self, deps: GatewayDeps) -> None:
        if (deps.document_executor is None) == (deps.sql_executor is None):
            raise ValueError("Exactly one of document_executor or sql_executor must be configured")
        self._deps = deps

    def base_tools(self) -> List[Tool]:
        deps = self._deps
        if deps.sql_executor is not None:
            query_tool: Tool = SqlQueryTool(executor=deps.sql_executor)
        else:
            assert deps.document_executor is not None
            query_tool = DocumentQueryTool(
                policy=deps.store_policy or StorePolicy(),
                executor=deps.document_executor,
            )
        return [
            SaveMemoryTool(notebook=deps.notebook),
            UpdateDbSchemaTool(notebook=deps.notebook),
            query_tool,
        ]

    def web_search_tools(self, bundle: ToolCapabilityBundle) -> List[Tool]:
        if not bundle.has_web_search:
            return []
        client = BraveSearchClient(
            bundle.brave_api_key or "",
            config=self._deps.brave_config,
            client=self._deps.http_client,
        )
        return [WebSearchTool(client=client)]

    def image_tools(self, bundle: ToolCapabilityBundle) -> List[Tool]:
        if not bundle.has_image_tools:
            return []
        deps = self._deps
        if deps.media_repository is None or deps.media_files is None:
            raise ValueError("Image tools require media_repository and media_files")
        assert bundle.image_settings is not None and bundle.chat_id and bundle.message_id

        generator = ImageGenerator(bundle.image_settings, config=deps.image_config, client=deps.http_client)
        common = dict(
            generator=generator,
            files=deps.media_files,
            media=deps.media_repository,
            chat_id=bundle.chat_id,
            message_id=bundle.message_id,
            on_image_generated=bundle.on_image_generated,
        )
        return [GenerateImageTool(**common), EditImageTool(**common)]

    def build(self, bundle: ToolCapabilityBundle) -> ToolRegistry:
        tools = [*self.base_tools(), *self.web_search_tools(bundle), *self.image_tools(bundle)]
        registry = ToolRegistry(tools)
        logger.debug(f"Built tool registry: {list(registry)}")
        return registry


def build_tool_registry(bundle: ToolCapabilityBundle, deps: GatewayDeps) -> ToolRegistry:
    """
    Build the tools offered to the model for one turn.

    Args:
        bundle: Per-turn optional capabilities (search key, image settings, chat/message ids).
        deps: Long-lived store, notebook and media dependencies.

    Returns:
        A ``ToolRegistry`` with ``save_memory``, ``update_db_schema`` and ``db_query``;
        ``web_search`` when the bundle has a Brave key; ``generate_image`` and
        ``edit_image`` when it has image settings, a chat id and a message id.
    """
    return ToolRegistryBuilder(deps).build(bundle)
