import os
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# Global configuration defaults
MAX_FILE_MB = int(os.getenv("IMAGE_B64_MAX_FILE_MB", "10"))
MAX_FILE_BYTES = MAX_FILE_MB * 1024 * 1024
ACCEPTED_MEDIA_TYPES = frozenset(
    t.strip().lower()
    for t in os.getenv("IMAGE_B64_ACCEPTED_TYPES", "image/jpeg,image/jpg,image/png").split(",")
    if t.strip()
)
OBJECT_URL_TTL_SEC = float(os.getenv("IMAGE_B64_OBJECT_URL_TTL_SEC", "30"))
DOWNLOAD_DIR = Path(os.getenv("IMAGE_B64_DOWNLOAD_DIR", str(Path.home() / "Downloads"))).expanduser()
LOG_LEVEL = os.getenv("IMAGE_B64_LOG_LEVEL", "INFO").upper()
SHOW_DATA_URI = _env_bool("IMAGE_B64_DATA_URI")
