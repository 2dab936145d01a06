"""
File storage for user uploads.

Files are written through Django's default storage under ``uploads/`` and
served from ``MEDIA_URL``. Names are generated as
``{field}-{timestamp}-{random}{ext}`` so client filenames never reach disk.
"""

import logging
import os
import secrets
import time
from contextlib import contextmanager
from typing import Any, Dict

from django.conf import settings
from django.core.files.storage import default_storage

from apps.common.utils import format_file_size

from .exceptions import (
    FileSizeExceeded,
    InvalidFileType,
    InvalidFilename,
    NoFileUploaded,
    UploadedFileNotFound,
)

logger = logging.getLogger(__name__)

UPLOAD_DIR = "uploads"

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".pdf", ".doc", ".docx"}

IMAGE_MIME_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
}

DOCUMENT_MIME_TYPES = IMAGE_MIME_TYPES | {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


def max_file_size() -> int:
    return getattr(settings, "UPLOAD_MAX_FILE_SIZE", 10 * 1024 * 1024)


def is_image(mimetype: str) -> bool:
    return (mimetype or "").startswith("image/")


def validate_upload(upload, allowed_mime_types=None, images_only=False):
    """Check presence, extension, mimetype and size of an uploaded file."""
    if upload is None:
        raise NoFileUploaded()

    extension = os.path.splitext(upload.name or "")[1].lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise InvalidFileType(f"File type {extension or 'unknown'} is not allowed")

    mimetype = getattr(upload, "content_type", "") or ""
    if images_only and not is_image(mimetype):
        raise InvalidFileType("Only image files are allowed")
    if allowed_mime_types is not None and mimetype not in allowed_mime_types:
        raise InvalidFileType(f"File type {mimetype or 'unknown'} is not allowed")

    if upload.size > max_file_size():
        raise FileSizeExceeded(
            f"File size exceeds the maximum allowed limit of {format_file_size(max_file_size())}"
        )


def generate_filename(field_name: str, original_name: str) -> str:
    extension = os.path.splitext(original_name)[1].lower()
    timestamp = int(time.time() * 1000)
    suffix = secrets.randbelow(10**9)
    return f"{field_name}-{timestamp}-{suffix}{extension}"


def public_url(filename: str) -> str:
    return f"{settings.MEDIA_URL}{UPLOAD_DIR}/{filename}"


def clean_filename(filename: str) -> str:
    """Reject names that could escape the upload directory."""
    if (
        not filename
        or filename != os.path.basename(filename)
        or filename == "."
        or ".." in filename
        or "\\" in filename
    ):
        raise InvalidFilename()
    return filename


def save_upload(upload, field_name: str = "file", allowed_mime_types=None, images_only=False) -> Dict[str, Any]:
    """
    Validate and persist an uploaded file.

    Returns the metadata the API reports back: filename, original name,
    mimetype, size and public URL.
    """
    validate_upload(upload, allowed_mime_types=allowed_mime_types, images_only=images_only)

    filename = generate_filename(field_name, upload.name)
    stored = default_storage.save(f"{UPLOAD_DIR}/{filename}", upload)
    filename = os.path.basename(stored)

    logger.info(f"Stored upload {filename} ({upload.content_type}, {upload.size} bytes)")

    return {
        "filename": filename,
        "original_name": upload.name,
        "mimetype": upload.content_type,
        "size": upload.size,
        "url": public_url(filename),
    }


@contextmanager
def discard_on_error(stored: Dict[str, Any]):
    """Delete a freshly stored upload when the block recording it raises."""
    try:
        yield stored
    except Exception:
        default_storage.delete(f"{UPLOAD_DIR}/{stored['filename']}")
        logger.warning(f"Discarded upload {stored['filename']} after a failed save")
        raise


def file_info(filename: str) -> Dict[str, Any]:
    filename = clean_filename(filename)
    path = f"{UPLOAD_DIR}/{filename}"
    if not default_storage.exists(path):
        raise UploadedFileNotFound()

    return {
        "filename": filename,
        "size": format_file_size(default_storage.size(path)),
        "url": public_url(filename),
    }


def delete_file(filename: str) -> None:
    filename = clean_filename(filename)
    path = f"{UPLOAD_DIR}/{filename}"
    if not default_storage.exists(path):
        raise UploadedFileNotFound()

    default_storage.delete(path)
    logger.info(f"Deleted upload {filename}")

