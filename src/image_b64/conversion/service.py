import uuid
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from .download import ArtifactSerializer, ProgressCallback
from .encoder import Base64Encoder
from .errors import NO_FILE_MESSAGE, ConverterError, ErrorKind, SessionError, message_for
from .interfaces import ClipboardGateway
from .models import (
    ConversionState,
    ConversionStatus,
    CopyOutcome,
    DownloadOutcome,
    EncodedArtifact,
    RawFile,
)
from .validation import FileValidator


@dataclass
class ConversionSession:
    """Mutable state of one file's conversion; discarded on reset or reselection."""

    file: RawFile
    state: ConversionState = field(default_factory=ConversionState.idle)
    artifact: EncodedArtifact | None = None
    busy: bool = False
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=datetime.now)

    def transition(self, state: ConversionState, artifact: EncodedArtifact | None = None) -> None:
        if (state.status is ConversionStatus.COMPLETED) != (artifact is not None):
            raise ValueError("an artifact exists if and only if the conversion completed")
        logger.debug(f"Session {self.id[:8]}: {self.state.status.value} -> {state.status.value}")
        self.state = state
        self.artifact = artifact


class ConversionService:
    """Orchestrates validation, encoding and serialization for a single session.

    The service is not reentrant: while one operation is in flight on the
    current session, starting another raises SessionError. Resetting or
    selecting a new file detaches the current session, so work still in
    flight for it can finish without touching the new one.
    """

    def __init__(
        self,
        serializer: ArtifactSerializer,
        clipboard: ClipboardGateway,
        *,
        selection_fallback: ClipboardGateway | None = None,
        validator: FileValidator | None = None,
        encoder: Base64Encoder | None = None,
    ) -> None:
        self._serializer = serializer
        self._clipboard = clipboard
        self._selection_fallback = selection_fallback
        self._validator = validator or FileValidator()
        self._encoder = encoder or Base64Encoder()
        self._session: ConversionSession | None = None

    @property
    def session(self) -> ConversionSession | None:
        return self._session

    @property
    def state(self) -> ConversionState:
        return self._session.state if self._session else ConversionState.idle()

    @property
    def file(self) -> RawFile | None:
        return self._session.file if self._session else None

    @property
    def artifact(self) -> EncodedArtifact | None:
        return self._session.artifact if self._session else None

    def select_file(self, file: RawFile | None) -> None:
        if file is None:
            self.reset()
            return
        logger.info(f"Selected file ({file.media_type}, {file.size} bytes)")
        self._session = ConversionSession(file=file)

    def reset(self) -> None:
        if self._session is not None:
            logger.debug(f"Session {self._session.id[:8]} discarded")
        self._session = None

    async def validate(self) -> bool:
        """Validate the selected file without converting it."""
        session = self._begin({ConversionStatus.IDLE})
        try:
            session.transition(ConversionState.validating())
            try:
                outcome = await self._validator.validate(session.file)
            except ConverterError as e:
                self._fail(session, e.message)
                return False
            if not outcome.valid:
                self._fail(session, outcome.message)
            elif not self._superseded(session):
                session.transition(ConversionState.idle())
            return outcome.valid
        finally:
            session.busy = False

    async def convert(self) -> ConversionState:
        session = self._begin({ConversionStatus.IDLE})
        try:
            session.transition(ConversionState.validating())
            try:
                outcome = await self._validator.validate(session.file)
                if self._superseded(session):
                    return self.state
                outcome.raise_if_invalid()

                session.transition(ConversionState.converting())
                artifact = await self._encoder.encode(session.file)
            except ConverterError as e:
                logger.info(f"Conversion failed: {e.kind.value}")
                self._fail(session, e.message)
                return self.state
            except Exception as e:
                logger.error(f"Unexpected conversion failure: {e}")
                self._fail(session, message_for(ErrorKind.ENCODE_ERROR))
                return self.state
            if self._superseded(session):
                return self.state
            session.transition(ConversionState.completed(), artifact)
            logger.info(f"Conversion completed ({artifact.source_byte_length} bytes)")
            return session.state
        finally:
            session.busy = False

    async def copy_result(self) -> CopyOutcome:
        session = self._begin({ConversionStatus.COMPLETED})
        try:
            text = self._artifact_of(session).base64_text
            if self._clipboard.is_available() and await self._try_copy(self._clipboard, text):
                return CopyOutcome(success=True)
            fallback = self._selection_fallback
            if fallback is not None and fallback.is_available() and await self._try_copy(fallback, text):
                return CopyOutcome(success=True, used_fallback=True)
            return CopyOutcome(success=False, error=message_for(ErrorKind.CLIPBOARD_UNAVAILABLE))
        finally:
            session.busy = False

    async def download_result(self, on_progress: ProgressCallback | None = None) -> DownloadOutcome:
        session = self._begin({ConversionStatus.COMPLETED})
        try:
            return await self._serializer.serialize(self._artifact_of(session).base64_text, on_progress)
        finally:
            session.busy = False

    def _begin(self, allowed: set[ConversionStatus]) -> ConversionSession:
        session = self._session
        if session is None:
            raise SessionError(NO_FILE_MESSAGE)
        if session.busy:
            raise SessionError("another operation is already running for this file")
        if session.state.status not in allowed:
            expected = ", ".join(sorted(s.value for s in allowed))
            raise SessionError(f"operation requires state {expected}, current state is {session.state.status.value}")
        session.busy = True
        return session

    @staticmethod
    def _artifact_of(session: ConversionSession) -> EncodedArtifact:
        if session.artifact is None:
            raise SessionError("completed session has no artifact")
        return session.artifact

    def _superseded(self, session: ConversionSession) -> bool:
        if self._session is session:
            return False
        logger.debug(f"Session {session.id[:8]} was superseded; dropping its result")
        return True

    def _fail(self, session: ConversionSession, message: str | None) -> None:
        if self._superseded(session):
            return
        session.transition(ConversionState.failed(message or message_for(ErrorKind.ENCODE_ERROR)))

    @staticmethod
    async def _try_copy(clipboard: ClipboardGateway, text: str) -> bool:
        try:
            return await clipboard.write_text(text)
        except Exception as e:
            logger.warning(f"Clipboard write failed: {e}")
            return False
