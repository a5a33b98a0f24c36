from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ClassVar, Optional

from ..executor import DocumentExecutor, SqlExecutor
from ..integrations import BraveSearchClient, ImageGenerator, MediaFileStore
from ..notebook import AgentNotebook
from ..policy import StorePolicy
from ..schemas.domain import ImageNotifier, MediaInfo, MediaRecord, OperationRequest, ResultEnvelope
from ..stores import MediaRepository
from .base import BaseTool
from .definitions import (
    DocumentQueryInput,
    EditImageInput,
    GenerateImageInput,
    SaveMemoryInput,
    SqlQueryInput,
    ToolDefinition,
    UpdateDbSchemaInput,
    WebSearchInput,
    document_query_tool,
    edit_image_tool,
    generate_image_tool,
    save_memory_tool,
    sql_query_tool,
    update_db_schema_tool,
    web_search_tool,
)

logger = logging.getLogger(__name__)


def default_short_description(prompt: str) -> str:
    """First five words of the prompt."""
    return " ".join(prompt.split()[:5])


@dataclass(frozen=True)
class SaveMemoryTool(BaseTool):
    """
    Replace the agent memory in the notebook.

    Memory longer than the notebook limit is rejected with an error envelope;
    the stored memory is left unchanged.
    """

    notebook: AgentNotebook
    definition: ClassVar[ToolDefinition] = save_memory_tool

    async def run(self, params: SaveMemoryInput) -> ResultEnvelope:
        await self.notebook.write_memory(params.memory)
        return ResultEnvelope.success(success=True, message="Memory updated successfully")


@dataclass(frozen=True)
class UpdateDbSchemaTool(BaseTool):
    """Replace the agent's notes about its custom collections."""

    notebook: AgentNotebook
    definition: ClassVar[ToolDefinition] = update_db_schema_tool

    async def run(self, params: UpdateDbSchemaInput) -> ResultEnvelope:
        await self.notebook.write_schema(params.db_schema)
        return ResultEnvelope.success(success=True, message="Schema updated successfully")


@dataclass(frozen=True)
class DocumentQueryTool(BaseTool):
    """
    Run one document-store operation after the policy allows it.

    The request is built from the model's raw arguments, validated by
    ``StorePolicy`` and only then handed to the executor. A denial is returned
    as ``{"error": reason}`` and nothing touches the store.
    """

    policy: StorePolicy
    executor: DocumentExecutor
    definition: ClassVar[ToolDefinition] = document_query_tool

    async def run(self, params: DocumentQueryInput) -> ResultEnvelope:
        request = OperationRequest.from_tool_args(params.model_dump(by_alias=True, exclude_none=True))
        decision = self.policy.validate(request)
        if not decision.allowed:
            logger.info(f"{request.kind} on '{request.target}' denied: {decision.reason}")
            return ResultEnvelope.failure(decision.reason or "Operation not allowed.")
        return await self.executor.execute(request)


@dataclass(frozen=True)
class SqlQueryTool(BaseTool):
    """Run one SQL statement; the executor applies the statement policy."""

    executor: SqlExecutor
    definition: ClassVar[ToolDefinition] = sql_query_tool

    async def run(self, params: SqlQueryInput) -> ResultEnvelope:
        return await self.executor.execute(params.sql)


@dataclass(frozen=True)
class WebSearchTool(BaseTool):
    """
    Search the web through Brave.

    Returns:
        ``{"results": [{"title", "url", "snippet"}, ...]}``; an upstream failure
        becomes an error envelope.
    """

    client: BraveSearchClient
    definition: ClassVar[ToolDefinition] = web_search_tool

    async def run(self, params: WebSearchInput) -> ResultEnvelope:
        results = await self.client.search(params.query)
        return ResultEnvelope.success(results=[r.model_dump() for r in results])


@dataclass(frozen=True)
class _ImageToolBase(BaseTool):
    generator: ImageGenerator
    files: MediaFileStore
    media: MediaRepository
    chat_id: str
    message_id: str
    on_image_generated: Optional[ImageNotifier] = None

    async def _store(
        self,
        *,
        b64_data: str,
        mime_type: str,
        model: str,
        prompt: str,
        short_description: str,
        source_media_id: Optional[str] = None,
    ) -> MediaRecord:
        saved = await self.files.save_base64(b64_data, mime_type)
        record = MediaRecord(
            chat_id=self.chat_id,
            message_id=self.message_id,
            filename=saved.filename,
            prompt=prompt,
            short_description=short_description or default_short_description(prompt),
            mime_type=mime_type,
            size=saved.size,
            model=model,
            source_media_id=source_media_id,
        )
        try:
            await self.media.add(record)
        except BaseException:
            # No record points at the file.
            await self.files.delete(saved.filename)
            raise

        if self.on_image_generated is not None:
            info = MediaInfo(media_id=record.id, filename=saved.filename, prompt=prompt, model=model)
            try:
                self.on_image_generated(info)
            except Exception:
                # A failing listener does not undo a persisted image.
                logger.exception(f"Image notification failed for media {record.id}")
        return record


@dataclass(frozen=True)
class GenerateImageTool(_ImageToolBase):
    """
    Generate an image, store it and attach it to the current message.

    The notification callback fires once, after the file and its media record
    are persisted. Failures anywhere before that produce an error envelope and
    no notification.
    """

    definition: ClassVar[ToolDefinition] = generate_image_tool

    async def run(self, params: GenerateImageInput) -> ResultEnvelope:
        image = await self.generator.generate(params.prompt)
        record = await self._store(
            b64_data=image.b64_data,
            mime_type=image.mime_type,
            model=image.model_used,
            prompt=params.prompt,
            short_description=params.short_description,
        )
        return ResultEnvelope.success(success=True, imageId=record.id, message="Image generated successfully")


@dataclass(frozen=True)
class EditImageTool(_ImageToolBase):
    """Edit a stored image; the result is a new media record pointing at its source."""

    definition: ClassVar[ToolDefinition] = edit_image_tool

    async def run(self, params: EditImageInput) -> ResultEnvelope:
        source = await self.media.get(params.image_id)
        if source is None:
            return ResultEnvelope.failure(f"Image with id {params.image_id} not found")

        loaded = await self.files.load(source.filename)
        image = await self.generator.edit(params.prompt, loaded.base64, loaded.mime_type)
        record = await self._store(
            b64_data=image.b64_data,
            mime_type=image.mime_type,
            model=image.model_used,
            prompt=params.prompt,
            short_description=params.short_description,
            source_media_id=source.id,
        )
        return ResultEnvelope.success(success=True, imageId=record.id, message="Image edited successfully")
