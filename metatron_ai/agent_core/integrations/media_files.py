"""Media file storage for generated and edited images.

Images are written under the configured media directory as
``<random id>.<ext>`` where the extension follows the MIME type
(``jpg``, ``webp``, otherwise ``png``).
"""

from __future__ import annotations

import asyncio
import base64
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from ..schemas.domain import new_id
from .errors import MediaNotFoundError


def mime_to_ext(mime_type: str) -> str:
    if "jpeg" in mime_type or "jpg" in mime_type:
        return "jpg"
    if "webp" in mime_type:
        return "webp"
    return "png"


def ext_to_mime(filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "png"
    if ext in ("jpg", "jpeg"):
        return "image/jpeg"
    if ext == "webp":
        return "image/webp"
    return "image/png"


@dataclass(frozen=True)
class SavedMedia:
    filename: str
    path: Path
    size: int


@dataclass(frozen=True)
class LoadedMedia:
    data: bytes
    mime_type: str

    @property
    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


class MediaFileStore:
    """Write and read image files in one directory."""

    def __init__(self, directory: Union[str, Path]) -> None:
        self._dir = Path(directory)

    @property
    def directory(self) -> Path:
        return self._dir

    def _path_for(self, filename: str) -> Path:
        # Only bare file names are accepted; stored records never contain paths.
        name = Path(filename).name
        if not name or name != filename:
            raise MediaNotFoundError(f"Invalid media filename: {filename}")
        return self._dir / name

    async def save(self, data: bytes, mime_type: str) -> SavedMedia:
        """
        Write image bytes to a new file.

        Args:
            data: Decoded image bytes.
            mime_type: MIME type used to pick the file extension.

        Returns:
            SavedMedia with the generated file name, full path and size.
        """
        filename = f"{new_id()}.{mime_to_ext(mime_type)}"
        path = self._dir / filename
        await asyncio.to_thread(self._write, path, data)
        return SavedMedia(filename=filename, path=path, size=len(data))

    async def save_base64(self, b64: str, mime_type: str) -> SavedMedia:
        return await self.save(base64.b64decode(b64), mime_type)

    async def load(self, filename: str) -> LoadedMedia:
        """
        Read an image previously written by ``save``.

        Raises:
            MediaNotFoundError: If the file does not exist or the name is not a bare file name.
        """
        path = self._path_for(filename)
        if not path.is_file():
            raise MediaNotFoundError(f"Media file not found: {filename}")
        data = await asyncio.to_thread(path.read_bytes)
        return LoadedMedia(data=data, mime_type=ext_to_mime(filename))

    async def delete(self, filename: str) -> None:
        """Remove a stored file; a missing file is not an error."""
        path = self._path_for(filename)
        await asyncio.to_thread(path.unlink, missing_ok=True)

    def _write(self, path: Path, data: bytes) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
