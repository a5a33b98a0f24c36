"""Error types raised by the outbound integrations.

Purpose:
- Provide typed exceptions for web search, image generation and media file
  failures.
- Expose HTTP-oriented context (status code, response body) for diagnosis.

Tool functions catch these at their boundary and turn them into error
envelopes; they never reach the model as exceptions.
"""

from __future__ import annotations

from typing import Any, Optional


class IntegrationError(Exception):
    """Base error for outbound integration failures.

    Args:
        message: Human-readable error description.
        status_code: Optional HTTP status code associated with the failure.
        details: Optional structured payload from the upstream service.
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class WebSearchError(IntegrationError):
    """The search provider returned a non-2xx response or an unusable body."""


class ImageGenerationError(IntegrationError):
    """No configured image model produced an image."""


class MediaNotFoundError(IntegrationError):
    """A referenced media file does not exist on disk."""
