"""Tool definitions offered to the language model.

Each tool has a pydantic input model used for both the JSON schema advertised
to the model and the validation of the arguments it sends back. Inputs ignore
unknown keys; models routinely add fields nobody asked for.
"""

from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field


class ToolInput(BaseModel):
    """Base for tool argument models."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SaveMemoryInput(ToolInput):
    """Input schema for replacing the agent memory."""

    memory: str = Field(
        ...,
        description="The complete memory text. Replaces the previous memory; at most 4000 characters.",
    )


class UpdateDbSchemaInput(ToolInput):
    """Input schema for replacing the agent's database notes."""

    db_schema: str = Field(
        ...,
        alias="schema",
        description="Description of the custom collections/tables and their fields.",
    )


class SqlQueryInput(ToolInput):
    """Input schema for a raw SQL statement."""

    sql: str = Field(..., min_length=1, description="A single SQL statement")


class DocumentQueryInput(ToolInput):
    """Input schema for a document-store operation."""

    operation: str = Field(
        ...,
        description=(
            "One of: find, findOne, count, aggregate, listCollections, insertOne, insertMany, "
            "updateOne, updateMany, deleteOne, deleteMany, createCollection, createIndex"
        ),
    )
    collection: Optional[str] = Field(None, description="Target collection; not needed for listCollections")
    filter: Optional[Dict[str, Any]] = Field(None, description="Query filter")
    data: Any = Field(None, description="Document for insertOne, array of documents for insertMany")
    update: Any = Field(None, description="Update document, e.g. {\"$set\": {...}}")
    sort: Optional[Dict[str, Any]] = Field(None, description="Sort specification")
    limit: Optional[int] = Field(None, ge=0, description="Maximum number of documents")
    skip: Optional[int] = Field(None, ge=0, description="Number of documents to skip")
    pipeline: Optional[List[Dict[str, Any]]] = Field(None, description="Aggregation pipeline")
    projection: Optional[Dict[str, Any]] = Field(None, description="Fields to include or exclude")
    index_spec: Optional[Dict[str, Any]] = Field(None, alias="indexSpec", description="Index keys for createIndex")
    index_options: Optional[Dict[str, Any]] = Field(None, alias="indexOptions", description="Index options")


class WebSearchInput(ToolInput):
    """Input schema for a web search."""

    query: str = Field(..., min_length=1, description="Search query")


class GenerateImageInput(ToolInput):
    """Input schema for image generation."""

    prompt: str = Field(..., min_length=1, description="Detailed description of the image to generate")
    short_description: str = Field(
        default="",
        description="A few words describing the image; defaults to the start of the prompt",
    )


class EditImageInput(ToolInput):
    """Input schema for editing a previously generated or uploaded image."""

    image_id: str = Field(..., min_length=1, description="Id of the image to edit")
    prompt: str = Field(..., min_length=1, description="The change to make")
    short_description: str = Field(default="", description="A few words describing the result")


class ToolDefinition(BaseModel):
    """Name, description and input schema of one tool."""

    name: str = Field(..., description="Unique identifier for the tool")
    description: str = Field(..., description="What the tool does, as shown to the model")
    input_schema: Type[ToolInput] = Field(..., description="Pydantic model class for input validation")

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    def to_dict(self) -> Dict[str, Any]:
        """Declaration in the function-calling format: name, description, JSON schema parameters."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.input_schema.model_json_schema(by_alias=True),
        }


save_memory_tool = ToolDefinition(
    name="save_memory",
    description=(
        "Save important information about the user to persistent memory. The memory text replaces the "
        "previous memory entirely, so include everything worth keeping. Limit: 4000 characters."
    ),
    input_schema=SaveMemoryInput,
)

update_db_schema_tool = ToolDefinition(
    name="update_db_schema",
    description=(
        "Record the structure of the custom collections you created so you remember them in later "
        "conversations. Replaces the previous notes."
    ),
    input_schema=UpdateDbSchemaInput,
)

document_query_tool = ToolDefinition(
    name="db_query",
    description=(
        "Run a database operation. Core collections (chats, messages, settings, media, attachments) are "
        "read-only. You may write to master, contacts, schedule, whatsapp_permissions, "
        "whatsapp_group_permissions, cronjobs and any collection prefixed with 'ai_'."
    ),
    input_schema=DocumentQueryInput,
)

sql_query_tool = ToolDefinition(
    name="db_query",
    description=(
        "Execute a single SQL statement. Core tables (chats, messages, settings, media, attachments) are "
        "read-only. You may write to master, contacts, schedule, whatsapp_permissions, "
        "whatsapp_group_permissions, cronjobs and any table prefixed with 'ai_'."
    ),
    input_schema=SqlQueryInput,
)

web_search_tool = ToolDefinition(
    name="web_search",
    description="Search the web for current information. Returns titles, URLs and snippets.",
    input_schema=WebSearchInput,
)

generate_image_tool = ToolDefinition(
    name="generate_image",
    description="Generate an image from a text prompt. The image is attached to the current message.",
    input_schema=GenerateImageInput,
)

edit_image_tool = ToolDefinition(
    name="edit_image",
    description="Edit an existing image by id according to a prompt. The result is attached to the current message.",
    input_schema=EditImageInput,
)
