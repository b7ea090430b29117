from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .errors import ERRORS_BY_KIND, ErrorKind, message_for
from .interfaces import ByteSource


class ImageFormat(str, Enum):
    JPEG = "jpeg"
    PNG = "png"
    UNKNOWN = "unknown"


class ConversionStatus(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    CONVERTING = "converting"
    COMPLETED = "completed"
    ERROR = "error"


class DownloadStatus(str, Enum):
    PENDING = "pending"
    VALIDATING = "validating"
    GENERATING = "generating"
    DOWNLOADING = "downloading"
    COMPLETED = "completed"
    ERROR = "error"


class Compatibility(str, Enum):
    COMPATIBLE = "compatible"
    PARTIAL = "partial"
    INCOMPATIBLE = "incompatible"


@dataclass(frozen=True)
class RawFile:
    """A user-selected file: declared metadata plus a way to read its bytes."""

    name: str
    media_type: str
    size: int
    source: ByteSource

    async def read(self, start: int = 0, end: int | None = None) -> bytes:
        return await self.source.read(start, end)


@dataclass(frozen=True)
class ValidationOutcome:
    valid: bool
    reason: ErrorKind | None = None
    message: str | None = None

    @classmethod
    def ok(cls) -> "ValidationOutcome":
        return cls(True)

    @classmethod
    def fail(cls, reason: ErrorKind, message: str | None = None) -> "ValidationOutcome":
        return cls(False, reason, message or message_for(reason))

    def raise_if_invalid(self) -> None:
        if self.valid:
            return
        if self.reason is None:
            raise ValueError("invalid outcome without a reason")
        raise ERRORS_BY_KIND[self.reason](self.message)


@dataclass(frozen=True)
class EncodedArtifact:
    base64_text: str
    source_file_name: str
    source_byte_length: int
    media_type: str
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def data_uri(self) -> str:
        return f"data:{self.media_type};base64,{self.base64_text}"


@dataclass(frozen=True)
class _TaggedState:
    status: Enum
    error: str | None = None

    def __post_init__(self) -> None:
        is_error = self.status.value == "error"
        if is_error and not self.error:
            raise ValueError("error status requires a message")
        if not is_error and self.error is not None:
            raise ValueError(f"{self.status.value} status cannot carry an error")


@dataclass(frozen=True)
class ConversionState(_TaggedState):
    status: ConversionStatus = ConversionStatus.IDLE

    @classmethod
    def idle(cls) -> "ConversionState":
        return cls(ConversionStatus.IDLE)

    @classmethod
    def validating(cls) -> "ConversionState":
        return cls(ConversionStatus.VALIDATING)

    @classmethod
    def converting(cls) -> "ConversionState":
        return cls(ConversionStatus.CONVERTING)

    @classmethod
    def completed(cls) -> "ConversionState":
        return cls(ConversionStatus.COMPLETED)

    @classmethod
    def failed(cls, message: str) -> "ConversionState":
        return cls(ConversionStatus.ERROR, message)

    @property
    def busy(self) -> bool:
        return self.status in (ConversionStatus.VALIDATING, ConversionStatus.CONVERTING)


@dataclass(frozen=True)
class DownloadProgress(_TaggedState):
    status: DownloadStatus = DownloadStatus.PENDING


@dataclass(frozen=True)
class DownloadOutcome:
    success: bool
    file_name: str | None = None
    byte_size: int | None = None
    error: str | None = None
    # set when the payload was handed to a fallback view instead of a download
    degraded: bool = False
    fallback_location: str | None = None


@dataclass(frozen=True)
class CopyOutcome:
    success: bool
    used_fallback: bool = False
    error: str | None = None
