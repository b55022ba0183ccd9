"""
Image upload storage shared by the photo and feedback endpoints.

Files are streamed to UPLOAD_DIR under a UUID name and served back from
``/uploads/<name>``.
"""
from __future__ import annotations

import logging
import os
import uuid
from typing import List

import aiofiles
from fastapi import HTTPException, UploadFile, status

from garden_catalog.config import settings
from garden_catalog.utils.helpers import safe_remove

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def upload_url(filename: str) -> str:
    return f"/uploads/{filename}"


def remove_uploads(filenames: List[str]) -> None:
    """Delete stored uploads that ended up with no owning row."""
    for filename in filenames:
        safe_remove(os.path.join(settings.UPLOAD_DIR, filename))


def check_image_type(file: UploadFile) -> str:
    """Return the normalised content type, or raise 400 for anything but an image."""
    content_type = (file.content_type or "").lower()
    if content_type not in settings.ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only image files (JPEG, PNG, GIF, WebP) are allowed",
        )
    return content_type


async def store_image_upload(file: UploadFile) -> str:
    """
    Validate and save one uploaded image.  Returns the stored filename.

    Raises HTTPException 400 for a non-image type and 413 when the file
    exceeds MAX_UPLOAD_SIZE.
    """
    content_type = check_image_type(file)
    suffix = _EXTENSIONS.get(content_type, "")
    stored_name = f"{uuid.uuid4().hex}{suffix}"
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    file_path = os.path.join(settings.UPLOAD_DIR, stored_name)
    file_size = 0

    # Stream to disk while enforcing the size limit
    async with aiofiles.open(file_path, "wb") as out:
        while True:
            chunk = await file.read(256 * 1024)
            if not chunk:
                break
            file_size += len(chunk)
            if file_size > settings.MAX_UPLOAD_SIZE:
                await out.close()
                safe_remove(file_path)
                raise HTTPException(
                    status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    detail=(
                        f"File exceeds the {settings.MAX_UPLOAD_SIZE // (1024 * 1024)} MB "
                        "size limit."
                    ),
                )
            await out.write(chunk)

    logger.info("Saved %r -> %s (%d bytes)", file.filename, file_path, file_size)
    return stored_name
