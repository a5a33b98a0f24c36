"""Bounded memory/schema store the agent reads and mutates across turns."""

from .models import MAX_MEMORY_LENGTH, NotebookRecord
from .service import AgentNotebook, MemoryTooLongError

__all__ = ["AgentNotebook", "MAX_MEMORY_LENGTH", "MemoryTooLongError", "NotebookRecord"]
