import asyncio
import html

import streamlit as st
from streamlit.runtime.uploaded_file_manager import UploadedFile

from image_b64 import config
from image_b64.conversion import (
    ArtifactSerializer,
    ConversionService,
    ConversionStatus,
    DownloadHost,
    DownloadProgress,
    RawFile,
    SessionError,
)
from image_b64.conversion.adapters import ManualSelectionClipboard, SystemClipboard, raw_file_from_bytes
from image_b64.conversion.encoder import sanitize_file_name
from image_b64.logging_setup import configure_logging

SUPPORTED_EXTENSIONS = ["jpg", "jpeg", "png"]


def format_file_size(size_bytes: int) -> str:
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.2f} KB"
    return f"{size_bytes / (1024 * 1024):.2f} MB"


def file_caption(file: RawFile) -> str:
    return f"**{sanitize_file_name(file.name)}** · {format_file_size(file.size)}"


class StreamlitDownloadHost(DownloadHost):
    """Hands artifacts to the browser through ``st.download_button``."""

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}
        self._counter = 0

    def supports_blobs(self) -> bool:
        return True

    def supports_object_urls(self) -> bool:
        return True

    def supports_download_attribute(self) -> bool:
        return hasattr(st, "download_button")

    def create_object_url(self, data: bytes, mime_type: str) -> str:
        self._counter += 1
        url = f"blob:streamlit/{self._counter}"
        self._blobs[url] = data
        return url

    def revoke_object_url(self, url: str) -> None:
        self._blobs.pop(url, None)

    def trigger_download(self, url: str, file_name: str) -> None:
        st.session_state["pending_download"] = (file_name, self._blobs[url])

    def open_fallback_view(self, text: str) -> str:
        st.session_state["fallback_text"] = text
        return "the preview panel below"


def _present_for_selection(text: str) -> None:
    st.session_state["selection_text"] = text


def _service() -> ConversionService:
    if "service" not in st.session_state:
        serializer = ArtifactSerializer(StreamlitDownloadHost())
        st.session_state["service"] = ConversionService(
            serializer,
            SystemClipboard(),
            selection_fallback=ManualSelectionClipboard(_present_for_selection),
        )
    return st.session_state["service"]


def _reset_state() -> None:
    _service().reset()
    for key in ["file_id", "pending_download", "fallback_text", "selection_text"]:
        if key in st.session_state:
            del st.session_state[key]
    # Bump the uploader key to clear any previously uploaded file widget state
    st.session_state["upload_key"] = st.session_state.get("upload_key", 0) + 1


def _sync_selection(service: ConversionService, uploaded: UploadedFile | None) -> None:
    file_id = getattr(uploaded, "file_id", None) or (uploaded.name if uploaded else None)
    if file_id == st.session_state.get("file_id"):
        return
    st.session_state["file_id"] = file_id
    for key in ["pending_download", "fallback_text", "selection_text"]:
        st.session_state.pop(key, None)
    if uploaded is None:
        service.select_file(None)
        return
    service.select_file(raw_file_from_bytes(uploaded.name, uploaded.type or "", uploaded.getvalue()))


def main() -> None:
    configure_logging()
    st.set_page_config(page_title="Image to Base64", page_icon="🖼️", layout="centered")
    st.title("🖼️ Image to Base64")
    st.caption(f"JPG or PNG, up to {config.MAX_FILE_MB}MB")

    service = _service()

    if st.button("Restart", type="secondary"):
        _reset_state()
        st.rerun()

    if "upload_key" not in st.session_state:
        st.session_state["upload_key"] = 0
    uploaded = st.file_uploader(
        "Select an image",
        type=SUPPORTED_EXTENSIONS,
        key=f"uploader-{st.session_state['upload_key']}",
    )
    _sync_selection(service, uploaded)

    if service.file is not None:
        st.write(file_caption(service.file))

    state = service.state
    if service.file is not None and state.status is ConversionStatus.IDLE:
        if st.button("Convert to Base64", type="primary"):
            with st.spinner("Validating and converting..."):
                state = asyncio.run(service.convert())

    if state.status is ConversionStatus.ERROR:
        st.error(state.error)
        return

    artifact = service.artifact
    if artifact is None:
        return

    st.success("Conversion complete!")
    shown = artifact.data_uri if config.SHOW_DATA_URI else artifact.base64_text
    st.text_area("Base64", shown, height=200)

    col1, col2 = st.columns([1, 1])
    with col1:
        if st.button("Copy"):
            try:
                outcome = asyncio.run(service.copy_result())
            except SessionError as e:
                st.error(str(e))
            else:
                if outcome.success and not outcome.used_fallback:
                    st.toast("Copied to clipboard", icon="✅")
                elif not outcome.success:
                    st.error(outcome.error)
    with col2:
        if st.button("Prepare TXT download"):
            steps: list[str] = []

            def on_progress(progress: DownloadProgress) -> None:
                steps.append(progress.status.value)

            outcome = asyncio.run(service.download_result(on_progress))
            st.caption(" → ".join(steps))
            if outcome.degraded:
                st.warning(outcome.error)
            elif not outcome.success:
                st.error(outcome.error)

    if pending := st.session_state.get("pending_download"):
        file_name, data = pending
        st.download_button(label=f"Download {file_name}", data=data, file_name=file_name, mime="text/plain")

    if text := st.session_state.get("selection_text"):
        st.info("Clipboard access is unavailable. Select the text below and copy it manually.")
        st.code(text, language=None)

    if text := st.session_state.get("fallback_text"):
        with st.expander("Base64 content", expanded=True):
            st.markdown(
                f'<pre style="word-wrap: break-word; white-space: pre-wrap;">{html.escape(text)}</pre>',
                unsafe_allow_html=True,
            )


def run() -> None:
    """Launch the Streamlit UI.

    Serves on $HOST:$PORT (default 127.0.0.1:8501).
    """
    import os
    import sys

    from streamlit.web import cli as stcli

    host = os.getenv("HOST", "127.0.0.1")
    port = os.getenv("PORT", "8501")
    sys.argv = ["streamlit", "run", __file__, "--server.address", host, "--server.port", port]
    sys.exit(stcli.main())


if __name__ == "__main__":
    main()
