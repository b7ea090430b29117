"""
Error kinds raised or reported by the conversion core.

Every kind maps to a human-readable message; callers render messages and
dispatch on ``kind`` when they need to branch programmatically.
"""

from enum import Enum


class ErrorKind(str, Enum):
    SIZE_LIMIT_EXCEEDED = "size_limit_exceeded"
    UNSUPPORTED_MEDIA_TYPE = "unsupported_media_type"
    SIGNATURE_MISMATCH = "signature_mismatch"
    STRUCTURAL_DEFECT = "structural_defect"
    READ_ERROR = "read_error"
    ENCODE_ERROR = "encode_error"
    EMPTY_CONTENT = "empty_content"
    INVALID_CHARACTERS = "invalid_characters"
    INCOMPLETE_ENCODING = "incomplete_encoding"
    CLIPBOARD_UNAVAILABLE = "clipboard_unavailable"
    DOWNLOAD_UNSUPPORTED = "download_unsupported"
    DOWNLOAD_FAILED = "download_failed"


MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.SIZE_LIMIT_EXCEEDED: "File must be at most {limit_mb}MB",
    ErrorKind.UNSUPPORTED_MEDIA_TYPE: "Only JPG/JPEG/PNG files are accepted",
    ErrorKind.SIGNATURE_MISMATCH: "The file content does not match its declared type",
    ErrorKind.STRUCTURAL_DEFECT: "Invalid PNG chunk structure",
    ErrorKind.READ_ERROR: "Could not read the selected file",
    ErrorKind.ENCODE_ERROR: "Failed to process the file. Please try again",
    ErrorKind.EMPTY_CONTENT: "There is no Base64 content to download",
    ErrorKind.INVALID_CHARACTERS: "Base64 string contains invalid characters",
    ErrorKind.INCOMPLETE_ENCODING: "Base64 string is incomplete, check that the conversion has finished",
    ErrorKind.CLIPBOARD_UNAVAILABLE: "Could not copy to the clipboard",
    ErrorKind.DOWNLOAD_UNSUPPORTED: (
        "Automatic download is not supported in this environment. "
        "The content was opened at {location} for manual copy"
    ),
    ErrorKind.DOWNLOAD_FAILED: "Failed to generate the TXT file",
}

# Format-specific wording for signature failures
JPEG_SIGNATURE_MESSAGE = "The file does not have a valid JPG structure"
PNG_SIGNATURE_MESSAGE = "The PNG file header is corrupted"
PAYLOAD_TOO_LARGE_MESSAGE = "Content exceeds the {limit_mb}MB limit and cannot be generated"
NO_FILE_MESSAGE = "No file selected"

_DEFAULT_PARAMS: dict[str, object] = {"limit_mb": 10, "location": "a separate view"}


def message_for(kind: ErrorKind, **params: object) -> str:
    return MESSAGES[kind].format(**{**_DEFAULT_PARAMS, **params})


class ConverterError(Exception):
    """Base class for failures surfaced by the conversion core."""

    kind: ErrorKind = ErrorKind.ENCODE_ERROR

    def __init__(self, message: str | None = None, **params: object) -> None:
        self.message = message or message_for(self.kind, **params)
        super().__init__(self.message)


class SizeLimitExceeded(ConverterError):
    kind = ErrorKind.SIZE_LIMIT_EXCEEDED


class UnsupportedMediaType(ConverterError):
    kind = ErrorKind.UNSUPPORTED_MEDIA_TYPE


class SignatureMismatch(ConverterError):
    kind = ErrorKind.SIGNATURE_MISMATCH


class StructuralDefect(ConverterError):
    kind = ErrorKind.STRUCTURAL_DEFECT


class ReadError(ConverterError):
    """The underlying byte source failed (disk, permission, abort)."""

    kind = ErrorKind.READ_ERROR


class EncodeError(ConverterError):
    kind = ErrorKind.ENCODE_ERROR


class EmptyContent(ConverterError):
    kind = ErrorKind.EMPTY_CONTENT


class InvalidCharacters(ConverterError):
    kind = ErrorKind.INVALID_CHARACTERS


class IncompleteEncoding(ConverterError):
    kind = ErrorKind.INCOMPLETE_ENCODING


class ClipboardUnavailable(ConverterError):
    kind = ErrorKind.CLIPBOARD_UNAVAILABLE


class DownloadUnsupported(ConverterError):
    kind = ErrorKind.DOWNLOAD_UNSUPPORTED


ERRORS_BY_KIND: dict[ErrorKind, type[ConverterError]] = {
    cls.kind: cls
    for cls in (
        SizeLimitExceeded,
        UnsupportedMediaType,
        SignatureMismatch,
        StructuralDefect,
        ReadError,
        EncodeError,
        EmptyContent,
        InvalidCharacters,
        IncompleteEncoding,
        ClipboardUnavailable,
        DownloadUnsupported,
    )
}


class SessionError(RuntimeError):
    """Raised when the orchestrator is driven out of order by its caller."""
