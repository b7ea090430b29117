from typing import Protocol


class ByteSource(Protocol):
    async def read(self, start: int = 0, end: int | None = None) -> bytes:
        """Return bytes ``[start:end)`` of the underlying file.
        Implementations raise OSError (or a subclass) when the read fails.
        """


class ClipboardGateway(Protocol):
    def is_available(self) -> bool:
        ...

    async def write_text(self, text: str) -> bool:
        """Place text on the clipboard; return False when the host refused it."""


class DownloadHost(Protocol):
    """Host environment primitives used to hand a text artifact to the user."""

    def supports_blobs(self) -> bool:
        ...

    def supports_object_urls(self) -> bool:
        ...

    def supports_download_attribute(self) -> bool:
        ...

    def create_object_url(self, data: bytes, mime_type: str) -> str:
        ...

    def revoke_object_url(self, url: str) -> None:
        ...

    def trigger_download(self, url: str, file_name: str) -> None:
        ...

    def open_fallback_view(self, text: str) -> str:
        """Present text as inert, pre-formatted content and return where it was opened."""
