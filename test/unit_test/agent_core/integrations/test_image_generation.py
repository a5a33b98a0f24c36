from __future__ import annotations

import base64
import json
from typing import List

import httpx
import pytest

from metatron_ai.agent_core.integrations import ImageGenerationError, ImageGenerator, provider_for_model
from metatron_ai.agent_core.schemas.domain import ImageGenerationSettings
from metatron_ai.core.config import ImageProviderConfig

CONFIG = ImageProviderConfig(gemini_base_url="https://mock.gemini/v1beta", openai_base_url="https://mock.openai/v1")
PNG_B64 = base64.b64encode(b"\x89PNG fake").decode("ascii")


def _settings(primary: str, fallbacks: List[str] | None = None, **keys: str) -> ImageGenerationSettings:
    return ImageGenerationSettings(
        primary_image_model=primary, fallback_image_models=fallbacks or [], api_keys=keys
    )


def _gemini_ok(mime: str = "image/png") -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "candidates": [
                {"content": {"parts": [{"text": "Here you go"}, {"inlineData": {"mimeType": mime, "data": PNG_B64}}]}}
            ]
        },
    )


@pytest.mark.parametrize(
    ("model", "provider"),
    [("gemini-2.5-flash-image", "gemini"), ("gpt-image-1", "openai"), ("dall-e-3", "openai")],
)
def test_provider_for_model(model: str, provider: str) -> None:
    assert provider_for_model(model) == provider


@pytest.mark.asyncio
async def test_gemini_generate() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers["x-goog-api-key"]
        seen["body"] = json.loads(request.content)
        return _gemini_ok("image/jpeg")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        gen = ImageGenerator(_settings("gemini-img", gemini="g-key"), config=CONFIG, client=http)
        image = await gen.generate("a red fox")

    assert seen["url"] == "https://mock.gemini/v1beta/models/gemini-img:generateContent"
    assert seen["key"] == "g-key"
    assert seen["body"]["contents"][0]["parts"] == [{"text": "a red fox"}]
    assert seen["body"]["generationConfig"]["responseModalities"] == ["IMAGE", "TEXT"]
    assert (image.b64_data, image.mime_type, image.model_used) == (PNG_B64, "image/jpeg", "gemini-img")


@pytest.mark.asyncio
async def test_openai_generate_sets_response_format_only_for_legacy_models() -> None:
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer o-key"
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"data": [{"b64_json": PNG_B64}]})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        await ImageGenerator(_settings("gpt-image-1", openai="o-key"), config=CONFIG, client=http).generate("x")
        await ImageGenerator(_settings("dall-e-3", openai="o-key"), config=CONFIG, client=http).generate("x")

    assert "response_format" not in bodies[0]
    assert bodies[1]["response_format"] == "b64_json"
    assert bodies[1]["size"] == "1024x1024"


@pytest.mark.asyncio
async def test_falls_back_to_next_model_on_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if "mock.gemini" in str(request.url):
            return httpx.Response(500, text="overloaded")
        return httpx.Response(200, json={"data": [{"b64_json": PNG_B64}]})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        gen = ImageGenerator(
            _settings("gemini-img", ["gpt-image-1"], gemini="g", openai="o"), config=CONFIG, client=http
        )
        image = await gen.generate("x")

    assert image.model_used == "gpt-image-1"


@pytest.mark.asyncio
async def test_model_without_key_is_skipped() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        return _gemini_ok()

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        gen = ImageGenerator(_settings("gpt-image-1", ["gemini-img"], gemini="g"), config=CONFIG, client=http)
        image = await gen.generate("x")

    assert image.model_used == "gemini-img"
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_all_models_failing_raises_last_error() -> None:
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(400, text="bad prompt"))) as http:
        gen = ImageGenerator(_settings("gemini-img", ["dall-e-3"], gemini="g", openai="o"), config=CONFIG, client=http)
        with pytest.raises(ImageGenerationError, match="Image API error 400: bad prompt") as exc:
            await gen.generate("x")
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_no_keys_at_all() -> None:
    gen = ImageGenerator(_settings("gemini-img"), config=CONFIG)
    with pytest.raises(ImageGenerationError, match="No API key for gemini"):
        await gen.generate("x")


@pytest.mark.asyncio
async def test_gemini_response_without_image_is_error() -> None:
    body = {"candidates": [{"content": {"parts": [{"text": "I can't draw that"}]}}]}
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=body))) as http:
        gen = ImageGenerator(_settings("gemini-img", gemini="g"), config=CONFIG, client=http)
        with pytest.raises(ImageGenerationError, match="No image data in Gemini response"):
            await gen.generate("x")


@pytest.mark.asyncio
async def test_gemini_edit_sends_source_image() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["parts"] = json.loads(request.content)["contents"][0]["parts"]
        return _gemini_ok()

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        gen = ImageGenerator(_settings("gemini-img", gemini="g"), config=CONFIG, client=http)
        await gen.edit("make it blue", "c291cmNl", "image/webp")

    assert seen["parts"] == [
        {"inlineData": {"data": "c291cmNl", "mimeType": "image/webp"}},
        {"text": "make it blue"},
    ]


@pytest.mark.asyncio
async def test_openai_edit_downloads_url_result() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/images/edits"):
            seen["content_type"] = request.headers["content-type"]
            seen["body"] = request.content
            return httpx.Response(200, json={"data": [{"url": "https://mock.cdn/result.png"}]})
        assert str(request.url) == "https://mock.cdn/result.png"
        return httpx.Response(200, content=b"edited-bytes")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        gen = ImageGenerator(_settings("gpt-image-1", openai="o"), config=CONFIG, client=http)
        image = await gen.edit("add a hat", base64.b64encode(b"source-bytes").decode(), "image/jpeg")

    assert seen["content_type"].startswith("multipart/form-data")
    assert b"source-bytes" in seen["body"]
    assert b'filename="source.jpg"' in seen["body"]
    assert base64.b64decode(image.b64_data) == b"edited-bytes"
