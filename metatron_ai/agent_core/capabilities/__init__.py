"""Tools offered to the model and the per-turn registry that composes them."""

from .base import BaseTool, Tool
from .builtin import (
    DocumentQueryTool,
    EditImageTool,
    GenerateImageTool,
    SaveMemoryTool,
    SqlQueryTool,
    UpdateDbSchemaTool,
    WebSearchTool,
)
from .definitions import ToolDefinition
from .registry import GatewayDeps, ToolRegistry, ToolRegistryBuilder, build_tool_registry

__all__ = [
    "BaseTool",
    "DocumentQueryTool",
    "EditImageTool",
    "GatewayDeps",
    "GenerateImageTool",
    "SaveMemoryTool",
    "SqlQueryTool",
    "Tool",
    "ToolDefinition",
    "ToolRegistry",
    "ToolRegistryBuilder",
    "UpdateDbSchemaTool",
    "WebSearchTool",
    "build_tool_registry",
]
