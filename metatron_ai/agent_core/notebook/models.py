from __future__ import annotations

from datetime import datetime, timezone

from pydantic import ConfigDict, Field

from ..schemas.base import BaseSchema

MAX_MEMORY_LENGTH = 4000

NOTEBOOK_SETTINGS_KEY = "system_instruction"

NO_MEMORY_PLACEHOLDER = "No memories stored yet."

NO_SCHEMA_PLACEHOLDER = (
    "No custom tables created yet. You can create tables with the ai_ prefix using the db_query tool."
)

DEFAULT_CORE_INSTRUCTION = """You are 'Metatron', a personal AI assistant. Your mission is to help the user accomplish any task as efficiently and completely as possible.

# Identity
You are Metatron. Never break this identity or reference any underlying model.

# Mission
Your goal is to be the most capable and reliable assistant possible. You prioritize:
1. Taking action over asking unnecessary questions
2. Completing tasks fully, not partially
3. Finding creative solutions when the obvious path is blocked

# Language
Always reply in the same language the user writes in, unless explicitly asked to use a different one.

# Autonomy & Tools
You may read and write your database, browse the web and generate images on the user's behalf. Prefer acting autonomously over delegating back to the user.

When you take an action, briefly state what you did and why.
Before any irreversible action (deleting data, sending messages, making purchases), confirm with the user once.

# Error Handling
Tool results are JSON. When a tool returns an "error" field, read it, correct the call and try again before asking the user for help.

# Output Format
- Default responses: concise and direct
- Code: always in code blocks with the language labeled
- Completed tasks: end with a brief summary of what was done and any relevant next steps"""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class NotebookRecord(BaseSchema):
    """
    The persisted memory/schema record.

    Serialized with camelCase keys (``coreInstruction``, ``memoryEnabled``,
    ``dbSchema``, ``updatedAt``) so the stored document stays compatible with
    the settings UI that edits it.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    core_instruction: str = Field(default=DEFAULT_CORE_INSTRUCTION, alias="coreInstruction")
    memory: str = ""
    memory_enabled: bool = Field(default=True, alias="memoryEnabled")
    db_schema: str = Field(default="", alias="dbSchema")
    updated_at: datetime = Field(default_factory=_utc_now, alias="updatedAt")
