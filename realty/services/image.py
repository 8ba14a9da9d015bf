"""
Image storage for listing pictures.
Validates uploads with Pillow and writes them under the upload directory with aiofiles.
"""

import io
import uuid
import logging
from pathlib import Path
from typing import List, Dict, Optional
from PIL import Image, UnidentifiedImageError
import aiofiles
import aiofiles.os
from fastapi import UploadFile

from realty.config import settings

logger = logging.getLogger(__name__)

# Directory, relative to the upload root, that holds listing images
IMAGE_SUBDIR = "properties"

# Pillow format names accepted for each allowed extension family
PIL_FORMATS = {"JPEG", "PNG", "WEBP"}

IMAGE_MESSAGES = {
    "mimes": "Images must be in JPEG, PNG, JPG, or WebP format.",
    "image": "Each file must be an image.",
    "max": "Each image must be smaller than 2MB.",
    "count": "You may upload at most {limit} images at a time.",
}


class ImageUpload:
    """An uploaded file held in memory until it is validated and stored."""

    def __init__(self, filename: str, content: bytes, content_type: Optional[str] = None):
        self.filename = filename or ""
        self.content = content
        self.content_type = content_type

    @classmethod
    async def from_upload_file(cls, file: UploadFile, limit: Optional[int] = None) -> "ImageUpload":
        # One byte past the limit is enough to fail the size check
        limit = limit if limit is not None else settings.max_image_size
        await file.seek(0)
        content = await file.read(limit + 1)
        return cls(file.filename or "", content, file.content_type)

    @property
    def extension(self) -> str:
        return Path(self.filename).suffix.lower().lstrip(".")

    @property
    def size(self) -> int:
        return len(self.content)

    def __repr__(self) -> str:
        return f"<ImageUpload(filename={self.filename}, size={self.size})>"


class ImageStorage:
    """Local-disk storage for listing images, served under the storage URL prefix."""

    def __init__(self, upload_dir: Optional[str] = None):
        self.upload_dir = Path(upload_dir or settings.upload_dir)
        self.max_file_size = settings.max_image_size
        self.allowed_extensions = [ext.lower() for ext in settings.allowed_image_extensions]
        self.max_files = settings.max_images_per_upload

    def validate(self, uploads: List[ImageUpload]) -> List[Dict[str, str]]:
        """
        Check every upload and return one error entry per rejected file.

        Fields are named ``images.<index>``; a submission over the file limit adds an
        ``images`` entry. Nothing is raised so callers can merge these with their own
        field errors.
        """
        errors: List[Dict[str, str]] = []

        if len(uploads) > self.max_files:
            errors.append({
                "field": "images",
                "message": IMAGE_MESSAGES["count"].format(limit=self.max_files)
            })

        for index, upload in enumerate(uploads):
            message = self._validate_one(upload)
            if message:
                errors.append({"field": f"images.{index}", "message": message})

        return errors

    def _validate_one(self, upload: ImageUpload) -> Optional[str]:
        if upload.extension not in self.allowed_extensions:
            return IMAGE_MESSAGES["mimes"]

        if upload.size > self.max_file_size:
            return IMAGE_MESSAGES["max"]

        try:
            with Image.open(io.BytesIO(upload.content)) as img:
                img.verify()
                if img.format not in PIL_FORMATS:
                    return IMAGE_MESSAGES["mimes"]
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
            return IMAGE_MESSAGES["image"]

        return None

    async def store(self, upload: ImageUpload) -> str:
        """
        Write an upload to disk under a fresh unique name.

        Returns:
            Storage path relative to the upload directory, e.g. ``properties/<uuid>.jpg``
        """
        relative_path = f"{IMAGE_SUBDIR}/{uuid.uuid4()}.{upload.extension}"
        file_path = self.upload_dir / relative_path

        await aiofiles.os.makedirs(file_path.parent, exist_ok=True)
        async with aiofiles.open(file_path, "wb") as f:
            await f.write(upload.content)

        logger.debug(f"Stored image {upload.filename} at {relative_path}")
        return relative_path

    async def delete(self, relative_path: str) -> bool:
        """
        Remove a stored file. Failures are logged and reported, never raised.

        Returns:
            True if the file was removed
        """
        file_path = self.upload_dir / relative_path
        try:
            await aiofiles.os.remove(file_path)
            logger.debug(f"Deleted image file {relative_path}")
            return True
        except OSError as e:
            logger.warning(f"Failed to delete image file {relative_path}: {e}")
            return False

    def exists(self, relative_path: str) -> bool:
        return (self.upload_dir / relative_path).is_file()
