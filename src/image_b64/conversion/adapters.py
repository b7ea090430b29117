import asyncio
import mimetypes
import os
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Callable

import pyperclip
from loguru import logger

from .errors import ReadError
from .interfaces import ByteSource, ClipboardGateway, DownloadHost
from .models import RawFile


class MemoryByteSource(ByteSource):
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)

    async def read(self, start: int = 0, end: int | None = None) -> bytes:
        return self._data[start:end]


class PathByteSource(ByteSource):
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    async def read(self, start: int = 0, end: int | None = None) -> bytes:
        def _read() -> bytes:
            with self._path.open("rb") as f:
                f.seek(start)
                return f.read() if end is None else f.read(max(end - start, 0))

        return await asyncio.to_thread(_read)


def raw_file_from_bytes(name: str, media_type: str, data: bytes) -> RawFile:
    return RawFile(name=name, media_type=media_type, size=len(data), source=MemoryByteSource(data))


def raw_file_from_path(path: str | Path, media_type: str | None = None) -> RawFile:
    """Describe a file on disk; the media type is guessed from the extension when omitted."""
    p = Path(path)
    try:
        size = p.stat().st_size
    except OSError as e:
        raise ReadError() from e
    if media_type is None:
        media_type = mimetypes.guess_type(p.name)[0] or "application/octet-stream"
    return RawFile(name=p.name, media_type=media_type, size=size, source=PathByteSource(p))


class LocalDownloadHost(DownloadHost):
    """Download host backed by the local filesystem.

    Object URLs are ``file://`` URIs of staged copies in a private temporary
    directory; triggering a download copies the staged file into
    ``download_dir`` under the requested name.
    """

    def __init__(self, download_dir: str | Path) -> None:
        self._download_dir = Path(download_dir).expanduser()
        self._staging = Path(tempfile.mkdtemp(prefix="image_b64_"))
        self._urls: dict[str, Path] = {}

    @property
    def download_dir(self) -> Path:
        return self._download_dir

    def supports_blobs(self) -> bool:
        return True

    def supports_object_urls(self) -> bool:
        return self._staging.is_dir()

    def supports_download_attribute(self) -> bool:
        try:
            self._download_dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return os.access(self._download_dir, os.W_OK)

    def create_object_url(self, data: bytes, mime_type: str) -> str:
        staged = self._staging / f"{uuid.uuid4().hex}.blob"
        staged.write_bytes(data)
        url = staged.as_uri()
        self._urls[url] = staged
        return url

    def revoke_object_url(self, url: str) -> None:
        staged = self._urls.pop(url, None)
        if staged is not None:
            staged.unlink(missing_ok=True)

    def trigger_download(self, url: str, file_name: str) -> None:
        staged = self._urls.get(url)
        if staged is None:
            raise FileNotFoundError(f"object URL {url} is not active")
        target = self._download_dir / Path(file_name).name
        shutil.copyfile(staged, target)
        logger.debug(f"Saved download to {target}")

    def open_fallback_view(self, text: str) -> str:
        fd, path = tempfile.mkstemp(prefix="base64_view_", suffix=".txt")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        return path

    @property
    def active_urls(self) -> list[str]:
        return list(self._urls)

    def close(self) -> None:
        self._urls.clear()
        shutil.rmtree(self._staging, ignore_errors=True)


class SystemClipboard(ClipboardGateway):
    """Primary clipboard backed by the operating system via pyperclip."""

    def is_available(self) -> bool:
        return True

    async def write_text(self, text: str) -> bool:
        try:
            await asyncio.to_thread(pyperclip.copy, text)
        except pyperclip.PyperclipException as e:
            logger.warning(f"System clipboard unavailable: {e}")
            return False
        return True


class ManualSelectionClipboard(ClipboardGateway):
    """Presents the text so the user can select and copy it by hand."""

    def __init__(self, present: Callable[[str], object]) -> None:
        self._present = present

    def is_available(self) -> bool:
        return True

    async def write_text(self, text: str) -> bool:
        self._present(text)
        return True
