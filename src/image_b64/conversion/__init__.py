"""
Domain layer for image-to-Base64 conversion.
Provides interfaces (gateways), validators, the encoder, the artifact
serializer and a service orchestrating a conversion session, abstracting
file access, clipboard and download primitives so front-ends can use the
same core logic.
"""

from .download import ArtifactSerializer
from .encoder import Base64Encoder
from .errors import ConverterError, ErrorKind, SessionError
from .interfaces import ByteSource, ClipboardGateway, DownloadHost
from .models import (
    ConversionState,
    ConversionStatus,
    CopyOutcome,
    DownloadOutcome,
    DownloadProgress,
    DownloadStatus,
    EncodedArtifact,
    ImageFormat,
    RawFile,
    ValidationOutcome,
)
from .service import ConversionService, ConversionSession
from .validation import FileValidator, check_png_structure, identify_format
