"""Outbound integrations: web search, image providers and media files."""

from .errors import ImageGenerationError, IntegrationError, MediaNotFoundError, WebSearchError
from .image_generation import GeneratedImage, ImageGenerator, provider_for_model
from .media_files import LoadedMedia, MediaFileStore, SavedMedia, ext_to_mime, mime_to_ext
from .web_search import BraveSearchClient, SearchResult

__all__ = [
    "BraveSearchClient",
    "GeneratedImage",
    "ImageGenerationError",
    "ImageGenerator",
    "IntegrationError",
    "LoadedMedia",
    "MediaFileStore",
    "MediaNotFoundError",
    "SavedMedia",
    "SearchResult",
    "WebSearchError",
    "ext_to_mime",
    "mime_to_ext",
    "provider_for_model",
]
