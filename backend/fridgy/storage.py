import logging
import mimetypes
from pathlib import Path

from fridgy.core.config import settings

logger = logging.getLogger(__name__)

MEDIA_URL_PREFIX = "/media"


def media_root() -> Path:
    return Path(settings.MEDIA_DIR).resolve()


def save_uploaded_image(analysis_id: str, content: bytes, content_type: str) -> str | None:
    """Write the fridge photo under MEDIA_DIR and return its public URL, or None when disabled."""
    if not settings.STORE_UPLOADED_IMAGES:
        return None
    extension = mimetypes.guess_extension(content_type or "") or ".bin"
    root = media_root()
    root.mkdir(parents=True, exist_ok=True)
    filename = f"{analysis_id}{extension}"
    try:
        (root / filename).write_bytes(content)
    except OSError as exc:
        logger.error("Could not store uploaded image for analysis %s: %s", analysis_id, exc)
        return None
    return f"{MEDIA_URL_PREFIX}/{filename}"
