import re
import time
from pathlib import Path

from fastapi import UploadFile

from barbershop.errors import InvalidRequest

UPLOADS_URL_PREFIX = "/uploads"
CHUNK_SIZE = 64 * 1024

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_name(filename: str) -> str:
    name = _UNSAFE_CHARS.sub("-", Path(filename or "photo").name).strip(".-")
    return name or "photo"


async def save_image(upload: UploadFile, upload_dir: str, max_bytes: int) -> str:
    """Store an uploaded image and return its public path under /uploads."""
    if not (upload.content_type or "").startswith("image/"):
        raise InvalidRequest("Only images are allowed")

    target_dir = Path(upload_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    filename = f"{int(time.time() * 1000)}-{_safe_name(upload.filename)}"
    target = target_dir / filename

    written = 0
    with target.open("wb") as handle:
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                handle.close()
                target.unlink(missing_ok=True)
                raise InvalidRequest("Image exceeds the maximum upload size")
            handle.write(chunk)

    return f"{UPLOADS_URL_PREFIX}/{filename}"


def absolute_url(base_url: str, path: str | None) -> str | None:
    if not path:
        return None
    if path.startswith(("http://", "https://")):
        return path
    relative = path if path.startswith("/") else f"/{path}"
    return f"{base_url.rstrip('/')}{relative}"
