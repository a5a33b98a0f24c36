"""Store interfaces and their MongoDB/SQLAlchemy implementations."""

from .interfaces import DocumentStore, MediaRepository, SettingsRepository, SqlStore, UpdateCounts

__all__ = [
    "DocumentStore",
    "MediaRepository",
    "SettingsRepository",
    "SqlStore",
    "UpdateCounts",
]
