"""Image generation and editing over the Gemini and OpenAI REST APIs.

Model routing
-------------
Model ids starting with ``gemini`` go to the Gemini ``generateContent``
endpoint with image output enabled; every other id goes to the OpenAI images
API. Models are tried in order (primary first, then fallbacks). A model whose
provider has no API key is skipped. When every model fails, the last error is
raised as ``ImageGenerationError``.

Responses
---------
Both providers return base64 image data. OpenAI ``gpt-image*`` models return
``b64_json`` by default and reject ``response_format``; older models are asked
for ``b64_json`` explicitly. An edit response that carries a URL instead of
data is downloaded.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from metatron_ai.core.config import ImageProviderConfig

from ..schemas.domain import ImageGenerationSettings
from .errors import ImageGenerationError
from .media_files import mime_to_ext

logger = logging.getLogger(__name__)

GEMINI = "gemini"
OPENAI = "openai"


def provider_for_model(model: str) -> str:
    return GEMINI if model.startswith("gemini") else OPENAI


@dataclass(frozen=True)
class GeneratedImage:
    """Base64 image data and the model that produced it."""

    b64_data: str
    mime_type: str
    model_used: str


class ImageGenerator:
    """Generate or edit an image with the configured models."""

    def __init__(
        self,
        settings: ImageGenerationSettings,
        *,
        config: Optional[ImageProviderConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Create a generator.

        Args:
            settings: Model selection and provider API keys for the turn.
            config: Provider base URLs and timeout; defaults when omitted.
            client: Optional preconfigured ``httpx.AsyncClient``. Not closed by this class.
        """
        self._settings = settings
        self._cfg = config or ImageProviderConfig()
        self._client = client

    async def generate(self, prompt: str) -> GeneratedImage:
        """
        Generate an image from a text prompt.

        Raises:
            ImageGenerationError: If no model produced an image.
        """
        return await self._run_models("generate", prompt, None, None)

    async def edit(self, prompt: str, source_b64: str, source_mime_type: str) -> GeneratedImage:
        """
        Edit an existing image according to ``prompt``.

        Raises:
            ImageGenerationError: If no model produced an image.
        """
        return await self._run_models("edit", prompt, source_b64, source_mime_type)

    async def _run_models(
        self, action: str, prompt: str, source_b64: Optional[str], source_mime: Optional[str]
    ) -> GeneratedImage:
        last_error: Optional[Exception] = None
        for model in self._settings.models_to_try():
            provider = provider_for_model(model)
            api_key = self._settings.api_keys.get(provider)
            if not api_key:
                last_error = ImageGenerationError(f"No API key for {provider}")
                continue
            try:
                if provider == GEMINI:
                    b64, mime = await self._gemini(api_key, model, prompt, source_b64, source_mime)
                elif source_b64 is None:
                    b64, mime = await self._openai_generate(api_key, model, prompt)
                else:
                    b64, mime = await self._openai_edit(api_key, model, prompt, source_b64, source_mime or "image/png")
                return GeneratedImage(b64_data=b64, mime_type=mime, model_used=model)
            except Exception as e:
                last_error = e
                logger.error(f"Image {action} failed with model {model}: {e}")

        if last_error is None:
            raise ImageGenerationError("No image models configured")
        if isinstance(last_error, ImageGenerationError):
            raise last_error
        raise ImageGenerationError(str(last_error)) from last_error

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self._client is not None:
            resp = await self._client.request(method, url, **kwargs)
        else:
            async with httpx.AsyncClient(timeout=self._cfg.timeout) as client:
                resp = await client.request(method, url, **kwargs)
        if not resp.is_success:
            raise ImageGenerationError(
                f"Image API error {resp.status_code}: {resp.text or resp.reason_phrase}",
                status_code=resp.status_code,
                details=resp.text,
            )
        return resp

    async def _gemini(
        self,
        api_key: str,
        model: str,
        prompt: str,
        source_b64: Optional[str],
        source_mime: Optional[str],
    ) -> tuple[str, str]:
        parts: List[Dict[str, Any]] = []
        if source_b64 is not None:
            parts.append({"inlineData": {"data": source_b64, "mimeType": source_mime or "image/png"}})
        parts.append({"text": prompt})

        resp = await self._request(
            "POST",
            f"{self._cfg.gemini_base_url.rstrip('/')}/models/{model}:generateContent",
            headers={"x-goog-api-key": api_key, "Content-Type": "application/json"},
            json={
                "contents": [{"role": "user", "parts": parts}],
                "generationConfig": {"responseModalities": ["IMAGE", "TEXT"]},
            },
        )
        body = resp.json()
        candidates = body.get("candidates") or []
        out_parts = ((candidates[0].get("content") or {}).get("parts") if candidates else None) or []
        if not out_parts:
            raise ImageGenerationError("No response parts from Gemini image generation")
        for part in out_parts:
            inline = part.get("inlineData") or part.get("inline_data") or {}
            if inline.get("data"):
                return inline["data"], inline.get("mimeType") or inline.get("mime_type") or "image/png"
        raise ImageGenerationError("No image data in Gemini response")

    async def _openai_generate(self, api_key: str, model: str, prompt: str) -> tuple[str, str]:
        payload: Dict[str, Any] = {"model": model, "prompt": prompt, "n": 1, "size": "1024x1024"}
        if not model.startswith("gpt-image"):
            payload["response_format"] = "b64_json"
        resp = await self._request(
            "POST",
            f"{self._cfg.openai_base_url.rstrip('/')}/images/generations",
            headers={"Authorization": f"Bearer {api_key}"},
            json=payload,
        )
        items = resp.json().get("data") or []
        b64 = items[0].get("b64_json") if items else None
        if not b64:
            raise ImageGenerationError("No image data in OpenAI response")
        return b64, "image/png"

    async def _openai_edit(
        self, api_key: str, model: str, prompt: str, source_b64: str, source_mime: str
    ) -> tuple[str, str]:
        source = base64.b64decode(source_b64)
        resp = await self._request(
            "POST",
            f"{self._cfg.openai_base_url.rstrip('/')}/images/edits",
            headers={"Authorization": f"Bearer {api_key}"},
            data={"model": model, "prompt": prompt},
            files={"image": (f"source.{mime_to_ext(source_mime)}", source, source_mime)},
        )
        items = resp.json().get("data") or []
        first = items[0] if items else {}
        if first.get("b64_json"):
            return first["b64_json"], "image/png"
        if first.get("url"):
            image = await self._request("GET", first["url"])
            return base64.b64encode(image.content).decode("ascii"), "image/png"
        raise ImageGenerationError("No image data in OpenAI edit response")
