"""Entry point for tool calls emitted by the model.

``ToolGateway`` resolves a tool-call name through the turn's ``ToolRegistry``
and always answers with a JSON string. Unknown tools, malformed arguments and
unexpected failures become ``{"error": message}`` so the model can read them
and correct itself. Calls in a batch are resolved one after another in the
order the model emitted them; ``asyncio.CancelledError`` aborts the batch.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, List, Mapping

from .capabilities.registry import ToolRegistry
from .schemas.domain import ResultEnvelope, ToolCall, ToolCallResult

logger = logging.getLogger(__name__)


class ToolGateway:
    """Dispatch tool calls to the tools registered for the current turn."""

    def __init__(self, registry: ToolRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def dispatch(self, name: str, args: Any) -> str:
        """
        Run one tool call.

        Args:
            name: Tool name as emitted by the model.
            args: Argument object; a JSON-encoded object string is accepted too.

        Returns:
            The tool's JSON result, or an error envelope.
        """
        tool = self._registry.get(name)
        if tool is None:
            logger.info(f"Model called unknown tool '{name}'")
            return ResultEnvelope.failure(
                f"Unknown tool '{name}'. Available tools: {', '.join(self._registry)}"
            ).to_json()

        if args is None:
            args = {}
        elif isinstance(args, (str, bytes)):
            try:
                args = json.loads(args) if args.strip() else {}
            except ValueError as e:
                return ResultEnvelope.failure(f"Arguments for {name} are not valid JSON: {e}").to_json()
        if not isinstance(args, Mapping):
            return ResultEnvelope.failure(f"Arguments for {name} must be an object").to_json()

        try:
            return await tool.invoke(args)
        except Exception as e:
            logger.exception(f"Tool {name} raised unexpectedly")
            return ResultEnvelope.failure(str(e) or e.__class__.__name__).to_json()

    async def dispatch_all(self, calls: Iterable[ToolCall]) -> List[ToolCallResult]:
        """Run ``calls`` sequentially, returning one result per call in the same order."""
        results: List[ToolCallResult] = []
        for call in calls:
            output = await self.dispatch(call.name, call.arguments)
            results.append(ToolCallResult(name=call.name, output=output))
        return results
