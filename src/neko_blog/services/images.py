"""Files behind post images.

Uploads land in the staging directory under a random name. Creating a post
copies each staged file into the storage directory; the staged copy is then
queued for removal through the cache clean-up stream.
"""

from __future__ import annotations

import logging
import shutil
import uuid
from pathlib import Path
from typing import BinaryIO

from neko_blog.core.errors import ParameterError
from neko_blog.core.settings import settings

logger = logging.getLogger(__name__)

_SUFFIXES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

_CHUNK_SIZE = 64 * 1024


class ImageStore:
    """Reads and writes image files in the staging and storage directories."""

    def __init__(self, staging_dir: str | Path | None = None, storage_dir: str | Path | None = None) -> None:
        self._staging_dir = Path(staging_dir) if staging_dir else None
        self._storage_dir = Path(storage_dir) if storage_dir else None

    @property
    def staging_dir(self) -> Path:
        return self._staging_dir or Path(settings.image_staging_dir)

    @property
    def storage_dir(self) -> Path:
        return self._storage_dir or Path(settings.image_storage_dir)

    @staticmethod
    def _safe_name(filename: str) -> str:
        name = Path(filename).name
        if not name or name != filename:
            raise ParameterError("invalid image file name")
        return name

    def staged_path(self, filename: str) -> Path:
        return self.staging_dir / self._safe_name(filename)

    def stored_path(self, filename: str) -> Path:
        return self.storage_dir / self._safe_name(filename)

    def save_upload(self, source: BinaryIO, content_type: str | None) -> str:
        """Write an uploaded image into the staging directory.

        Returns:
            The generated file name.

        Raises:
            ParameterError: If the type is not allowed, the upload is empty or
                it is larger than ``IMAGE_MAX_BYTES``.
        """
        if content_type not in settings.image_allowed_types or content_type not in _SUFFIXES:
            raise ParameterError("unsupported image type")

        filename = f"{uuid.uuid4().hex}{_SUFFIXES[content_type]}"
        self.staging_dir.mkdir(parents=True, exist_ok=True)
        target = self.staged_path(filename)

        written = 0
        try:
            with target.open("wb") as out:
                while True:
                    chunk = source.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > settings.image_max_bytes:
                        raise ParameterError(
                            f"image is larger than {settings.image_max_bytes} bytes"
                        )
                    out.write(chunk)
            if written == 0:
                raise ParameterError("image is empty")
        except Exception:
            target.unlink(missing_ok=True)
            raise

        logger.debug("Staged image file %s (%d bytes)", filename, written)
        return filename

    def promote(self, filename: str) -> None:
        """Copy a staged file into permanent storage.

        Raises:
            ParameterError: If the staged file is missing.
        """
        source = self.staged_path(filename)
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        try:
            shutil.copyfile(source, self.stored_path(filename))
        except FileNotFoundError as err:
            raise ParameterError(f"image {filename} is not available") from err

    def remove_stored(self, filename: str) -> None:
        self.stored_path(filename).unlink(missing_ok=True)

    def remove_staged(self, filename: str) -> None:
        """Delete a staged file; a file that is already gone counts as removed."""
        self.staged_path(filename).unlink(missing_ok=True)
