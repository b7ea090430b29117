import asyncio
import base64
import re
import unicodedata

from loguru import logger

from .errors import EncodeError, ReadError
from .models import EncodedArtifact, RawFile

_SCRIPT_BLOCK = re.compile(r"<(script|style|iframe|object)\b.*?(</\1\s*>|$)", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"<[^>]*>?")
_UNSAFE_CHARS = re.compile(r"[<>\"'`/\\]")
FALLBACK_FILE_NAME = "image"


def sanitize_file_name(name: str) -> str:
    """Strip markup and path/control characters from a user-supplied file name."""
    cleaned = _SCRIPT_BLOCK.sub("", name or "")
    cleaned = _TAG.sub("", cleaned)
    cleaned = "".join(ch for ch in cleaned if unicodedata.category(ch)[0] != "C")
    cleaned = _UNSAFE_CHARS.sub("", cleaned).strip().lstrip(".")
    return cleaned or FALLBACK_FILE_NAME


class Base64Encoder:
    """Reads a validated file fully into memory and renders it as Base64."""

    async def encode(self, file: RawFile) -> EncodedArtifact:
        try:
            data = await file.read()
        except OSError as e:
            raise ReadError() from e

        try:
            text = await asyncio.to_thread(lambda: base64.b64encode(data).decode("ascii"))
        except (TypeError, ValueError) as e:
            raise EncodeError() from e

        logger.debug(f"Encoded {len(data)} bytes into {len(text)} Base64 characters")
        return EncodedArtifact(
            base64_text=text,
            source_file_name=sanitize_file_name(file.name),
            source_byte_length=len(data),
            media_type=file.media_type.strip().lower(),
        )
