"""JSON representations of drive items.

Keys use camelCase, as consumed by the web dashboard.
"""

from typing import Any

from server.apps.drive.infrastructure.metadata import format_file_size
from server.apps.drive.logic.storage_usage import StorageUsage
from server.apps.drive.models import File, Folder, ItemKind


def _optional_id(value: object) -> str | None:
    return None if value is None else str(value)


def serialize_folder(folder: Folder) -> dict[str, Any]:
    """Represent a folder."""
    return {
        'id': str(folder.id),
        'name': folder.name,
        'kind': ItemKind.FOLDER.value,
        'createdAt': folder.created_at.isoformat(),
        'modifiedAt': folder.modified_at.isoformat(),
        'parentId': _optional_id(folder.parent_id),
    }


def serialize_file(file_instance: File) -> dict[str, Any]:
    """Represent a file, ``type`` being its content category."""
    return {
        'id': str(file_instance.id),
        'name': file_instance.name,
        'kind': ItemKind.FILE.value,
        'type': file_instance.content_type,
        'mimeType': file_instance.mime_type,
        'size': file_instance.size,
        'formattedSize': format_file_size(file_instance.size),
        'url': file_instance.url or None,
        'createdAt': file_instance.created_at.isoformat(),
        'modifiedAt': file_instance.modified_at.isoformat(),
        'parentId': _optional_id(file_instance.parent_id),
    }


def serialize_item(item: Folder | File) -> dict[str, Any]:
    """Represent either kind of item."""
    if item.kind == ItemKind.FOLDER:
        return serialize_folder(item)
    return serialize_file(item)


def serialize_storage_usage(usage: StorageUsage) -> dict[str, Any]:
    """Represent a storage usage summary."""
    return {
        'storageUsed': usage.used_bytes,
        'storageLimit': usage.limit_bytes,
        'storagePercentage': round(usage.percentage, 2),
        'formattedUsed': format_file_size(usage.used_bytes),
        'formattedLimit': format_file_size(usage.limit_bytes),
        'fileCount': usage.file_count,
        'folderCount': usage.folder_count,
        'typeDistribution': usage.type_distribution,
    }
