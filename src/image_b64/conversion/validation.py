"""
Byte-level checks that establish a file really is the JPEG or PNG it claims to be.

Signature checks look only at the leading magic bytes. The PNG structural
check is shallow: it confirms the IHDR chunk comes first and an IEND marker
closes the file, without verifying chunk CRCs.
"""

from loguru import logger

from .. import config
from .errors import (
    JPEG_SIGNATURE_MESSAGE,
    PNG_SIGNATURE_MESSAGE,
    ErrorKind,
    ReadError,
    message_for,
)
from .models import ImageFormat, RawFile, ValidationOutcome

JPEG_SIGNATURE = b"\xff\xd8\xff"
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
SIGNATURE_LEN = {ImageFormat.JPEG: len(JPEG_SIGNATURE), ImageFormat.PNG: len(PNG_SIGNATURE)}

IHDR = b"IHDR"
IEND = b"IEND"
# chunk length + type + CRC of the closing IEND chunk
IEND_TAIL_LEN = 12

_FORMAT_BY_MEDIA_TYPE = {
    "image/jpeg": ImageFormat.JPEG,
    "image/jpg": ImageFormat.JPEG,
    "image/png": ImageFormat.PNG,
}


def identify_format(data: bytes) -> ImageFormat:
    """Identify the image format from leading bytes; never raises on bad input."""
    if data[: len(JPEG_SIGNATURE)] == JPEG_SIGNATURE:
        return ImageFormat.JPEG
    if data[: len(PNG_SIGNATURE)] == PNG_SIGNATURE:
        return ImageFormat.PNG
    return ImageFormat.UNKNOWN


def check_png_structure(data: bytes) -> bool:
    if data[: len(PNG_SIGNATURE)] != PNG_SIGNATURE:
        return False
    # signature (8) + IHDR length field (4), then the 4-byte chunk type
    ihdr_type_start = len(PNG_SIGNATURE) + 4
    if data[ihdr_type_start : ihdr_type_start + 4] != IHDR:
        return False
    tail_start = max(len(data) - IEND_TAIL_LEN, ihdr_type_start + 4)
    return data.rfind(IEND, tail_start) != -1


def declared_format(media_type: str) -> ImageFormat:
    return _FORMAT_BY_MEDIA_TYPE.get((media_type or "").strip().lower(), ImageFormat.UNKNOWN)


async def read_signature(file: RawFile, expected: ImageFormat) -> bytes:
    """Read only the prefix needed to confirm the expected format."""
    length = SIGNATURE_LEN.get(expected, len(PNG_SIGNATURE))
    try:
        return await file.read(0, length)
    except OSError as e:
        raise ReadError() from e


class FileValidator:
    """Runs the pre-read checks, then the signature and PNG structure checks."""

    def __init__(
        self,
        *,
        max_bytes: int = config.MAX_FILE_BYTES,
        accepted_types: frozenset[str] = config.ACCEPTED_MEDIA_TYPES,
    ) -> None:
        self._max_bytes = max_bytes
        self._accepted_types = accepted_types

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def check_declared(self, file: RawFile) -> ValidationOutcome:
        """Size and media-type checks; performs no reads."""
        if file.size > self._max_bytes:
            limit_mb = round(self._max_bytes / (1024 * 1024), 2)
            return ValidationOutcome.fail(
                ErrorKind.SIZE_LIMIT_EXCEEDED,
                message_for(ErrorKind.SIZE_LIMIT_EXCEEDED, limit_mb=f"{limit_mb:g}"),
            )
        media_type = (file.media_type or "").strip().lower()
        if media_type not in self._accepted_types or declared_format(media_type) is ImageFormat.UNKNOWN:
            return ValidationOutcome.fail(ErrorKind.UNSUPPORTED_MEDIA_TYPE)
        return ValidationOutcome.ok()

    async def validate(self, file: RawFile) -> ValidationOutcome:
        """Validate a file end to end.

        Raises ReadError when the bytes cannot be read; every other failure
        is reported through the returned outcome.
        """
        outcome = self.check_declared(file)
        if not outcome.valid:
            logger.debug(f"Rejected before read: {outcome.reason.value}")
            return outcome

        expected = declared_format(file.media_type)
        actual = identify_format(await read_signature(file, expected))
        if actual is not expected:
            logger.debug(f"Signature mismatch: declared {expected.value}, found {actual.value}")
            message = PNG_SIGNATURE_MESSAGE if expected is ImageFormat.PNG else JPEG_SIGNATURE_MESSAGE
            return ValidationOutcome.fail(ErrorKind.SIGNATURE_MISMATCH, message)

        if expected is ImageFormat.PNG:
            try:
                data = await file.read()
            except OSError as e:
                raise ReadError() from e
            if not check_png_structure(data):
                logger.debug("PNG chunk structure check failed")
                return ValidationOutcome.fail(ErrorKind.STRUCTURAL_DEFECT)

        return ValidationOutcome.ok()
