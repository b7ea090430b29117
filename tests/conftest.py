# -*- coding: utf-8 -*-
"""Shared pytest fixtures for the conversion core."""

from __future__ import annotations

import struct
import sys
import zlib
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from image_b64.conversion.models import RawFile  # noqa: E402


def png_chunk(chunk_type: bytes, data: bytes) -> bytes:
    crc = zlib.crc32(chunk_type + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + chunk_type + data + struct.pack(">I", crc)


def make_png(total_size: int = 2048) -> bytes:
    signature = b"\x89PNG\r\n\x1a\n"
    ihdr = png_chunk(b"IHDR", struct.pack(">IIBBBBB", 1, 1, 8, 0, 0, 0, 0))
    iend = png_chunk(b"IEND", b"")
    filler = max(total_size - len(signature) - len(ihdr) - len(iend) - 12, 0)
    idat = png_chunk(b"IDAT", bytes(i % 251 for i in range(filler)))
    return signature + ihdr + idat + iend


def make_jpeg(total_size: int = 1024) -> bytes:
    body = bytes(i % 253 for i in range(max(total_size - 6, 0)))
    return b"\xff\xd8\xff\xe0" + body + b"\xff\xd9"


class FailingByteSource:
    def __init__(self, fail_after_prefix: bool = False, data: bytes = b"") -> None:
        self.fail_after_prefix = fail_after_prefix
        self.data = data
        self.reads: list[tuple[int, int | None]] = []

    async def read(self, start: int = 0, end: int | None = None) -> bytes:
        self.reads.append((start, end))
        if self.fail_after_prefix and end is not None:
            return self.data[start:end]
        raise PermissionError("read denied")


class RecordingByteSource:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.reads: list[tuple[int, int | None]] = []

    async def read(self, start: int = 0, end: int | None = None) -> bytes:
        self.reads.append((start, end))
        return self.data[start:end]


class FakeDownloadHost:
    def __init__(self, *, blobs: bool = True, object_urls: bool = True, download_attribute: bool = True) -> None:
        self.blobs = blobs
        self.object_urls = object_urls
        self.download_attribute = download_attribute
        self.created: dict[str, bytes] = {}
        self.revoked: list[str] = []
        self.downloads: list[tuple[str, str]] = []
        self.fallback_views: list[str] = []

    def supports_blobs(self) -> bool:
        return self.blobs

    def supports_object_urls(self) -> bool:
        return self.object_urls

    def supports_download_attribute(self) -> bool:
        return self.download_attribute

    def create_object_url(self, data: bytes, mime_type: str) -> str:
        url = f"blob:test/{len(self.created) + 1}"
        self.created[url] = data
        return url

    def revoke_object_url(self, url: str) -> None:
        self.revoked.append(url)

    def trigger_download(self, url: str, file_name: str) -> None:
        self.downloads.append((url, file_name))

    def open_fallback_view(self, text: str) -> str:
        self.fallback_views.append(text)
        return "/tmp/view.txt"


class FakeClipboard:
    def __init__(self, *, available: bool = True, accepts: bool = True, raises: bool = False) -> None:
        self.available = available
        self.accepts = accepts
        self.raises = raises
        self.written: list[str] = []

    def is_available(self) -> bool:
        return self.available

    async def write_text(self, text: str) -> bool:
        if self.raises:
            raise RuntimeError("clipboard denied")
        if self.accepts:
            self.written.append(text)
        return self.accepts


def raw_file(data: bytes, media_type: str = "image/png", name: str = "photo.png") -> RawFile:
    return RawFile(name=name, media_type=media_type, size=len(data), source=RecordingByteSource(data))


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_jpeg()


@pytest.fixture
def download_host() -> FakeDownloadHost:
    return FakeDownloadHost()
