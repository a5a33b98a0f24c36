from __future__ import annotations

import base64
from pathlib import Path

import pytest

from metatron_ai.agent_core.integrations import MediaFileStore, MediaNotFoundError, ext_to_mime, mime_to_ext


@pytest.mark.parametrize(
    ("mime", "ext"),
    [("image/png", "png"), ("image/jpeg", "jpg"), ("image/jpg", "jpg"), ("image/webp", "webp"), ("image/gif", "png")],
)
def test_mime_to_ext(mime: str, ext: str) -> None:
    assert mime_to_ext(mime) == ext


@pytest.mark.parametrize(
    ("name", "mime"),
    [("a.png", "image/png"), ("a.JPG", "image/jpeg"), ("a.jpeg", "image/jpeg"), ("a.webp", "image/webp"), ("a", "image/png")],
)
def test_ext_to_mime(name: str, mime: str) -> None:
    assert ext_to_mime(name) == mime


@pytest.mark.asyncio
async def test_save_creates_directory_and_loads_back(tmp_path: Path) -> None:
    store = MediaFileStore(tmp_path / "media" / "nested")
    saved = await store.save_base64(base64.b64encode(b"jpeg-bytes").decode(), "image/jpeg")

    assert saved.filename.endswith(".jpg")
    assert saved.size == len(b"jpeg-bytes")
    assert saved.path.read_bytes() == b"jpeg-bytes"

    loaded = await store.load(saved.filename)
    assert loaded.data == b"jpeg-bytes"
    assert loaded.mime_type == "image/jpeg"
    assert base64.b64decode(loaded.base64) == b"jpeg-bytes"


@pytest.mark.asyncio
async def test_each_save_gets_a_new_name(tmp_path: Path) -> None:
    store = MediaFileStore(tmp_path)
    a = await store.save(b"1", "image/png")
    b = await store.save(b"1", "image/png")
    assert a.filename != b.filename


@pytest.mark.asyncio
async def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(MediaNotFoundError, match="Media file not found: nope.png"):
        await MediaFileStore(tmp_path).load("nope.png")


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["../secret.png", "sub/a.png", "/etc/passwd", ""])
async def test_load_rejects_paths(tmp_path: Path, name: str) -> None:
    with pytest.raises(MediaNotFoundError, match="Invalid media filename"):
        await MediaFileStore(tmp_path).load(name)


@pytest.mark.asyncio
async def test_delete_removes_file_and_ignores_missing(tmp_path: Path) -> None:
    store = MediaFileStore(tmp_path)
    saved = await store.save(b"x", "image/png")

    await store.delete(saved.filename)
    await store.delete(saved.filename)

    assert not saved.path.exists()
    with pytest.raises(MediaNotFoundError):
        await store.delete("../escape.png")
