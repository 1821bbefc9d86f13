"""Local filesystem storage for uploaded images."""

import secrets
import time
from pathlib import Path, PurePosixPath

from fastapi import UploadFile
from structlog import get_logger

from app.core.exceptions import BadRequestException

logger = get_logger(__name__)

ALLOWED_MIME_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}


class MediaStorage:
    """Stores images under a root directory and hands out stable URLs.

    A file saved into ``folder`` is served at ``<url_prefix>/<folder>/<name>``.
    """

    def __init__(self, root: str | Path, url_prefix: str = "/uploads", max_bytes: int = 0):
        """Initialize storage rooted at ``root``."""
        self.root = Path(root).resolve()
        self.url_prefix = "/" + url_prefix.strip("/")
        self.max_bytes = max_bytes

    def _extension_for(self, upload: UploadFile) -> str:
        suffix = PurePosixPath(upload.filename or "").suffix.lower()
        content_type = (upload.content_type or "").lower()

        if content_type not in ALLOWED_MIME_TYPES and suffix not in ALLOWED_EXTENSIONS:
            raise BadRequestException(
                "Only image files (jpeg, jpg, png, gif, webp) are allowed!"
            )

        if suffix in ALLOWED_EXTENSIONS:
            return suffix
        return ALLOWED_MIME_TYPES[content_type]

    async def save(self, upload: UploadFile, folder: str) -> str:
        """
        Store an uploaded image.

        Args:
            upload: Uploaded file from a multipart request
            folder: Sub-directory, e.g. ``doctors`` or ``blogs``

        Returns:
            URL under which the image is served

        Raises:
            BadRequestException: If the file is not an image or is too large
        """
        extension = self._extension_for(upload)
        # Read one byte past the limit so oversized uploads are never buffered whole
        data = await upload.read(self.max_bytes + 1 if self.max_bytes else -1)

        if self.max_bytes and len(data) > self.max_bytes:
            raise BadRequestException(
                f"Image exceeds the maximum size of {self.max_bytes // (1024 * 1024)}MB"
            )

        filename = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{extension}"
        directory = self.root / folder
        directory.mkdir(parents=True, exist_ok=True)
        (directory / filename).write_bytes(data)

        logger.info("media_saved", folder=folder, filename=filename, size=len(data))
        return f"{self.url_prefix}/{folder}/{filename}"

    def path_for(self, url: str) -> Path | None:
        """Resolve a stored URL back to its file, or None for foreign URLs."""
        prefix = self.url_prefix + "/"
        if not url or not url.startswith(prefix):
            return None

        path = (self.root / url[len(prefix) :]).resolve()
        if not path.is_relative_to(self.root):
            return None
        return path

    def delete(self, url: str) -> bool:
        """
        Remove a previously stored image.

        Args:
            url: URL returned by :meth:`save`

        Returns:
            True if a file was removed
        """
        path = self.path_for(url)
        if path is None or not path.is_file():
            return False

        path.unlink()
        logger.info("media_deleted", path=str(path))
        return True
