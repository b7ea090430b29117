"""
Artifact serializer: turns a Base64 payload into a downloadable text file.

Each ``serialize`` call walks ``pending -> validating -> generating ->
downloading -> completed`` (or ``error`` from any step) and reports every
transition to an optional progress callback.
"""

import re
import threading
from datetime import datetime
from typing import Callable

from loguru import logger

from .. import config
from .errors import PAYLOAD_TOO_LARGE_MESSAGE, ErrorKind, message_for
from .interfaces import DownloadHost
from .models import (
    Compatibility,
    DownloadOutcome,
    DownloadProgress,
    DownloadStatus,
    ValidationOutcome,
)

ProgressCallback = Callable[[DownloadProgress], object]

TEXT_MIME_TYPE = "text/plain;charset=utf-8"
FILE_NAME_PREFIX = "base64_conversion"

_WHITESPACE = re.compile(r"\s+")
_BASE64 = re.compile(r"[A-Za-z0-9+/]*={0,2}")


def clean_base64(text: str) -> str:
    """Remove whitespace and line breaks inserted by line-wrapping producers."""
    return _WHITESPACE.sub("", text)


def validate_base64(text: str, *, max_bytes: int = config.MAX_FILE_BYTES) -> ValidationOutcome:
    if not text or not text.strip():
        return ValidationOutcome.fail(ErrorKind.EMPTY_CONTENT)
    cleaned = clean_base64(text)
    if not _BASE64.fullmatch(cleaned):
        return ValidationOutcome.fail(ErrorKind.INVALID_CHARACTERS)
    if len(cleaned) % 4 != 0:
        return ValidationOutcome.fail(ErrorKind.INCOMPLETE_ENCODING)
    if len(cleaned.encode("utf-8")) > max_bytes:
        limit_mb = round(max_bytes / (1024 * 1024), 2)
        return ValidationOutcome.fail(
            ErrorKind.SIZE_LIMIT_EXCEEDED,
            PAYLOAD_TOO_LARGE_MESSAGE.format(limit_mb=f"{limit_mb:g}"),
        )
    return ValidationOutcome.ok()


def generate_file_name(now: datetime | None = None) -> str:
    """Timestamped name, unique down to the millisecond."""
    now = now or datetime.now()
    return f"{FILE_NAME_PREFIX}_{now:%Y%m%d_%H%M%S}_{now.microsecond // 1000:03d}.txt"


def detect_compatibility(host: DownloadHost) -> Compatibility:
    try:
        if not host.supports_blobs() or not host.supports_object_urls():
            return Compatibility.INCOMPATIBLE
        if not host.supports_download_attribute():
            return Compatibility.PARTIAL
        return Compatibility.COMPATIBLE
    except Exception as e:
        logger.warning(f"Download capability probe failed: {e}")
        return Compatibility.INCOMPATIBLE


class ArtifactSerializer:
    def __init__(
        self,
        host: DownloadHost,
        *,
        max_bytes: int = config.MAX_FILE_BYTES,
        revoke_after: float = config.OBJECT_URL_TTL_SEC,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._host = host
        self._max_bytes = max_bytes
        self._revoke_after = revoke_after
        self._clock = clock

    async def serialize(self, base64_text: str, on_progress: ProgressCallback | None = None) -> DownloadOutcome:
        status = DownloadStatus.PENDING

        def notify(next_status: DownloadStatus, error: str | None = None) -> None:
            nonlocal status
            status = next_status
            if on_progress is None:
                return
            try:
                on_progress(DownloadProgress(next_status, error))
            except Exception as e:
                logger.warning(f"Download progress callback raised: {e}")

        try:
            notify(DownloadStatus.VALIDATING)
            outcome = validate_base64(base64_text, max_bytes=self._max_bytes)
            if not outcome.valid:
                logger.info(f"Download rejected: {outcome.reason.value}")
                notify(DownloadStatus.ERROR, outcome.message)
                return DownloadOutcome(success=False, error=outcome.message)

            cleaned = clean_base64(base64_text)
            payload = cleaned.encode("utf-8")

            notify(DownloadStatus.GENERATING)
            file_name = generate_file_name(self._clock())

            compatibility = detect_compatibility(self._host)
            if compatibility is not Compatibility.COMPATIBLE:
                return self._fall_back(cleaned, compatibility, notify)

            notify(DownloadStatus.DOWNLOADING)
            url = self._host.create_object_url(payload, TEXT_MIME_TYPE)
            try:
                self._host.trigger_download(url, file_name)
            finally:
                self._schedule_revoke(url)

            notify(DownloadStatus.COMPLETED)
            logger.info(f"Generated {file_name} ({len(payload)} bytes)")
            return DownloadOutcome(success=True, file_name=file_name, byte_size=len(payload))
        except Exception as e:
            logger.error(f"Download failed while {status.value}: {e}")
            message = str(e) or message_for(ErrorKind.DOWNLOAD_FAILED)
            notify(DownloadStatus.ERROR, message)
            return DownloadOutcome(success=False, error=message)

    def _fall_back(self, cleaned: str, compatibility: Compatibility, notify: Callable[..., None]) -> DownloadOutcome:
        logger.warning(f"Automatic download unavailable ({compatibility.value}); opening fallback view")
        location = self._host.open_fallback_view(cleaned)
        message = message_for(ErrorKind.DOWNLOAD_UNSUPPORTED, location=location)
        notify(DownloadStatus.ERROR, message)
        return DownloadOutcome(
            success=False,
            error=message,
            degraded=True,
            fallback_location=location,
        )

    def _schedule_revoke(self, url: str) -> None:
        def revoke() -> None:
            try:
                self._host.revoke_object_url(url)
            except Exception as e:
                logger.warning(f"Could not revoke object URL {url}: {e}")

        # daemon timer: the caller's event loop may close before the grace period ends
        timer = threading.Timer(self._revoke_after, revoke)
        timer.daemon = True
        timer.start()
