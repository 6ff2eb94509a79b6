"""
Image blob store for listing pictures.
Stores validated image bytes on local disk and hands out opaque references.
"""

import io
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os
from PIL import Image, UnidentifiedImageError

from property_exchange.config import get_settings
from property_exchange.utils.exceptions import (
    ValidationError,
    UnsupportedFileTypeError,
    FileSizeExceededError,
)

settings = get_settings()


class LocalBlobStore:
    """
    Filesystem-backed blob store.

    References are paths relative to the storage root, e.g.
    ``listings/4b1c...e2.jpg``. ``delete`` is idempotent: removing a blob
    that is already gone is a no-op reported as ``False``.
    """

    # Pillow format name -> (mime type, file extension)
    SUPPORTED_FORMATS = {
        "JPEG": ("image/jpeg", ".jpg"),
        "PNG": ("image/png", ".png"),
        "WEBP": ("image/webp", ".webp"),
    }

    def __init__(
        self,
        base_dir: Optional[Path] = None,
        media_url: Optional[str] = None,
        max_size: Optional[int] = None
    ):
        self.base_dir = Path(base_dir or settings.upload_dir).resolve()
        self.media_url = (media_url or settings.media_url).rstrip("/")
        self.max_size = max_size or settings.max_image_size
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def validate_image(self, content: bytes) -> str:
        """
        Validate image bytes.

        Returns:
            File extension matching the detected format

        Raises:
            ValidationError: If the payload is empty, too large or not an accepted image
        """
        if not content:
            raise ValidationError("Image file is empty")

        if len(content) > self.max_size:
            raise FileSizeExceededError(len(content), self.max_size)

        try:
            with Image.open(io.BytesIO(content)) as img:
                detected = img.format
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ValidationError(f"Invalid image file: {str(e)}")

        if detected not in self.SUPPORTED_FORMATS:
            supported = [mime for mime, _ in self.SUPPORTED_FORMATS.values()]
            raise UnsupportedFileTypeError(str(detected).lower(), supported)

        mime_type, extension = self.SUPPORTED_FORMATS[detected]
        if mime_type not in settings.allowed_image_types:
            raise UnsupportedFileTypeError(mime_type, settings.allowed_image_types)
        return extension

    def _resolve(self, ref: str) -> Path:
        """Map a reference to a path, refusing anything outside the root."""
        path = (self.base_dir / ref).resolve()
        if self.base_dir not in path.parents:
            raise ValidationError(f"Invalid blob reference: {ref}")
        return path

    async def store(self, content: bytes, filename: Optional[str] = None) -> str:
        """
        Validate and persist image bytes.

        Args:
            content: Raw image bytes
            filename: Original filename, informational only

        Returns:
            Reference of the stored blob
        """
        extension = self.validate_image(content)
        ref = f"listings/{uuid.uuid4()}{extension}"
        path = self._resolve(ref)
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            if path.exists():
                path.unlink()
            raise ValidationError(f"Failed to save image file: {str(e)}")

        return ref

    async def delete(self, ref: str) -> bool:
        """
        Remove a blob.

        Returns:
            True if a file was removed, False if it was already absent

        Raises:
            OSError: On I/O failures other than a missing file
        """
        path = self._resolve(ref)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return False
        return True

    async def exists(self, ref: str) -> bool:
        return await aiofiles.os.path.exists(self._resolve(ref))

    def url(self, ref: Optional[str]) -> Optional[str]:
        if not ref:
            return None
        return f"{self.media_url}/{ref}"


_default_store: Optional[LocalBlobStore] = None


def get_blob_store() -> LocalBlobStore:
    """Process-wide blob store rooted at the configured upload directory."""
    global _default_store
    if _default_store is None:
        _default_store = LocalBlobStore()
    return _default_store
