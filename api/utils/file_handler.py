"""
File Upload Handler
===================

Async contact photo upload handling with validation and cleanup.
"""

import aiofiles
import logging
import uuid
from pathlib import Path
from typing import Optional
from fastapi import UploadFile

from config import Settings, get_settings
from exceptions import PhotoTooLargeError, UnsupportedPhotoFormatError


# Set up module logger
logger = logging.getLogger(__name__)

# Prefix of the photo reference stored on contacts
PHOTO_PREFIX = "contact/images/"


class FileHandler:
    """Store uploaded contact photos on disk."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize FileHandler with settings from config."""
        self.settings = settings or get_settings()
        self.upload_dir = Path(self.settings.upload_dir)
        self.upload_dir.mkdir(parents=True, exist_ok=True)

        self.max_size_bytes = self.settings.max_photo_size_mb * 1024 * 1024
        self.allowed_formats = [fmt.lower() for fmt in self.settings.allowed_photo_formats]

    async def save_photo(self, upload_file: UploadFile) -> str:
        """
        Save an uploaded photo under a random name.

        Args:
            upload_file: FastAPI UploadFile object from request

        Returns:
            The stored photo reference, e.g. "contact/images/<name>.png"

        Raises:
            UnsupportedPhotoFormatError: If file format is not allowed
            PhotoTooLargeError: If file size exceeds limit
        """
        filename = upload_file.filename or ""
        file_ext = Path(filename).suffix.lower()
        if file_ext not in self.allowed_formats:
            raise UnsupportedPhotoFormatError(filename, file_ext, self.allowed_formats)

        stored_name = f"{uuid.uuid4().hex}{file_ext}"
        target_path = self.upload_dir / stored_name

        # Save file with size validation (chunked upload)
        total_size = 0
        chunk_size = 8192  # 8KB chunks

        try:
            async with aiofiles.open(target_path, 'wb') as f:
                while True:
                    chunk = await upload_file.read(chunk_size)
                    if not chunk:
                        break

                    total_size += len(chunk)
                    if total_size > self.max_size_bytes:
                        raise PhotoTooLargeError(filename, self.settings.max_photo_size_mb)

                    await f.write(chunk)
        except BaseException:
            # Never leave a partial file behind
            target_path.unlink(missing_ok=True)
            raise

        logger.info(f"Stored photo {stored_name} ({total_size} bytes)")
        return f"{PHOTO_PREFIX}{stored_name}"

    def path_for(self, photo: str) -> Optional[Path]:
        """
        Map a stored photo reference to its file, if it is an upload.

        The default photo and references outside the upload directory
        return None.
        """
        if not photo or photo == self.settings.default_contact_photo:
            return None
        if not photo.startswith(PHOTO_PREFIX):
            return None
        name = photo[len(PHOTO_PREFIX):]
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            return None
        return self.upload_dir / name

    def cleanup_photo(self, photo: Optional[str]) -> None:
        """
        Delete an uploaded photo file.

        Note:
            This is a best-effort cleanup. Errors are logged but not raised
            so a failed unlink never fails the request that replaced or
            removed the contact.
        """
        path = self.path_for(photo or "")
        if path is None:
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not delete photo {path}: {e}")
