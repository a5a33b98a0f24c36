"""Tool protocol and the shared invocation boundary.

A tool is the concrete execution unit behind one function the model can
call. The gateway resolves a tool-call name through a ``ToolRegistry`` and
invokes the tool with the raw argument mapping.

Tools should:

- validate arguments through their ``ToolDefinition.input_schema``,
- return a ``ResultEnvelope`` from ``run``; ``invoke`` serializes it,
- never let an ordinary exception escape ``invoke``. Cancellation is not an
  error and propagates.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Mapping, Protocol

from pydantic import ValidationError

from ..schemas.domain import ResultEnvelope
from .definitions import ToolDefinition

logger = logging.getLogger(__name__)


def format_validation_error(tool_name: str, exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        problems.append(f"{loc}: {err.get('msg')}")
    return f"Invalid arguments for {tool_name}: " + "; ".join(problems)


class Tool(Protocol):
    """Protocol for tools held by the registry."""

    definition: ClassVar[ToolDefinition]

    @property
    def name(self) -> str: ...

    def declaration(self) -> Dict[str, Any]: ...

    async def invoke(self, args: Mapping[str, Any]) -> str: ...


class BaseTool(ABC):
    """Validation and error wrapping around a tool's ``run`` method."""

    definition: ClassVar[ToolDefinition]

    @property
    def name(self) -> str:
        return self.definition.name

    def declaration(self) -> Dict[str, Any]:
        return self.definition.to_dict()

    async def invoke(self, args: Mapping[str, Any]) -> str:
        """
        Validate ``args`` and run the tool.

        Returns:
            The JSON result for the model: the success payload or ``{"error": message}``.
        """
        try:
            params = self.definition.input_schema.model_validate(dict(args))
        except ValidationError as e:
            return ResultEnvelope.failure(format_validation_error(self.name, e)).to_json()

        try:
            result = await self.run(params)
        except Exception as e:
            logger.warning(f"Tool {self.name} failed: {e}")
            result = ResultEnvelope.failure(str(e) or e.__class__.__name__)
        return result.to_json()

    @abstractmethod
    async def run(self, params: Any) -> ResultEnvelope:
        """Execute with validated ``params`` (an instance of the definition's input schema)."""
        ...


__all__ = ["BaseTool", "Tool", "format_validation_error"]
