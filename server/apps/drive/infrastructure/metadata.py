"""Metadata extraction utilities for uploaded content."""

import mimetypes
import uuid
from typing import BinaryIO, Final

from django.core.files.base import File as DjangoFile

_SIZE_UNITS: Final = ('B', 'KB', 'MB', 'GB', 'TB')
_UNIT_STEP: Final = 1024


def detect_mime_type(filename: str) -> str:
    """Detect MIME type from filename extension.

    Args:
        filename: Filename with extension.

    Returns:
        MIME type string (e.g., 'image/jpeg', 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        return 'application/octet-stream'
    return mime_type


def get_file_size(file_obj: BinaryIO | DjangoFile) -> int:
    """Get file size from file object.

    Args:
        file_obj: File-like object.

    Returns:
        File size in bytes.
    """
    if hasattr(file_obj, 'size'):
        return file_obj.size
    file_size = len(file_obj.read())
    file_obj.seek(0)
    return file_size


def build_blob_key(owner_id: int, filename: str) -> str:
    """Build a storage key for newly uploaded content.

    Keys are prefixed with the owner id and a random component, so two
    uploads with the same name never share a key.

    Args:
        owner_id: Owner's user ID.
        filename: Original filename.

    Returns:
        Key such as '7/1b9d6bcd-.../report.pdf'.
    """
    return f'{owner_id}/{uuid.uuid4()}/{filename}'


def format_file_size(size_bytes: int) -> str:
    """Format bytes in human-readable format.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Formatted size string with two decimals (e.g., '1.50 MB').
    """
    size = float(size_bytes)
    unit_index = 0
    while size >= _UNIT_STEP and unit_index < len(_SIZE_UNITS) - 1:
        size /= _UNIT_STEP
        unit_index += 1
    return f'{size:.2f} {_SIZE_UNITS[unit_index]}'
