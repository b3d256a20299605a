"""Business logic for file content: upload, download, listing and search."""

import logging
import uuid
from dataclasses import dataclass
from typing import Any, BinaryIO, Final

from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from django.core.files.base import File as DjangoFile
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import QuerySet

from server.apps.drive.exceptions import (
    DependencyFailureError,
    FileTooLargeError,
    InvalidOperationError,
    NameConflictError,
)
from server.apps.drive.infrastructure.blob_store import get_blob_store
from server.apps.drive.infrastructure.metadata import (
    build_blob_key,
    detect_mime_type,
    get_file_size,
)
from server.apps.drive.logic.item_operations import get_item
from server.apps.drive.logic.naming import (
    classify_content_type,
    ensure_valid_name,
)
from server.apps.drive.logic.storage_usage import check_quota
from server.apps.drive.logic.tree import find_sibling_by_name, get_owned_folder
from server.apps.drive.models import File, Folder, ItemKind

# User type for Django's dynamic user model
_User = Any

# Errors raised by the S3 client and the file objects it reads
_STORAGE_ERRORS: Final = (BotoCoreError, ClientError, OSError)

_SEARCH_FOLDER_LIMIT: Final = 20
_SEARCH_FILE_LIMIT: Final = 30

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DirectoryListing:
    """Direct children of one folder."""

    folders: QuerySet[Folder]
    files: QuerySet[File]


def upload_file(
    owner: _User,
    parent_id: uuid.UUID | None,
    file_obj: BinaryIO | DjangoFile,
    filename: str | None = None,
) -> File:
    """Upload file content and create its record.

    Transaction safety: upload to storage first, then create the DB record.
    If the DB transaction fails, the uploaded content is deleted from
    storage (rollback).

    Args:
        owner: Owner of the file.
        parent_id: Destination folder, ``None`` for the root.
        file_obj: File-like object to upload.
        filename: Name of the new file, defaults to ``file_obj.name``.

    Returns:
        Created File instance.

    Raises:
        InvalidNameError: If the name is not valid.
        ItemNotFoundError: If the folder is not owned by ``owner``.
        FileTooLargeError: If the content exceeds the upload limit.
        QuotaExceededError: If the content exceeds the storage quota.
        NameConflictError: If the folder already holds a file with the name.
        DependencyFailureError: If storage or database fail.
    """
    name = filename or getattr(file_obj, 'name', '') or ''
    ensure_valid_name(name)

    parent = None
    if parent_id is not None:
        parent = get_owned_folder(owner, parent_id)

    file_size = get_file_size(file_obj)
    if file_size > settings.DRIVE_MAX_UPLOAD_BYTES:
        raise FileTooLargeError(file_size, settings.DRIVE_MAX_UPLOAD_BYTES)
    check_quota(owner, file_size)

    # Checked before uploading so a conflict leaves nothing in storage
    if find_sibling_by_name(name, parent_id, owner, ItemKind.FILE):
        raise NameConflictError(ItemKind.FILE, name)

    store = get_blob_store()

    # Step 1: Upload to storage first
    try:
        blob = store.upload(file_obj, build_blob_key(owner.pk, name))
    except _STORAGE_ERRORS as error:
        logger.exception('Failed to upload content for file: %s', name)
        raise DependencyFailureError('Failed to store file content') from error

    # Step 2: Create database record (in transaction)
    try:
        with transaction.atomic():
            file_instance = File.objects.create(
                owner=owner,
                name=name,
                parent=parent,
                size=file_size,
                content_type=classify_content_type(name),
                mime_type=detect_mime_type(name),
                blob_key=blob.key,
                url=blob.url,
            )
    except IntegrityError as error:
        # A concurrent upload took the name
        store.rollback_upload(blob.key)
        raise NameConflictError(ItemKind.FILE, name) from error
    except DatabaseError as error:
        logger.exception(
            'Database transaction failed, rolling back storage upload: %s',
            blob.key,
        )
        store.rollback_upload(blob.key)
        raise DependencyFailureError('Failed to save file record') from error

    logger.info(
        'File uploaded: "%s" (ID: %s, size: %d, key: %s)',
        name,
        file_instance.id,
        file_size,
        blob.key,
    )
    return file_instance


def get_download_url(owner: _User, file_id: uuid.UUID) -> str:
    """Get a time-limited download URL for a file.

    Args:
        owner: Owner of the file.
        file_id: File to download.

    Returns:
        Signed URL valid for ``DRIVE_SIGNED_URL_TTL`` seconds.

    Raises:
        ItemNotFoundError: If the file is not owned by ``owner``.
        DependencyFailureError: If the URL cannot be signed.
    """
    file_instance = get_item(owner, file_id, ItemKind.FILE)
    try:
        return get_blob_store().sign(
            file_instance.blob_key,
            settings.DRIVE_SIGNED_URL_TTL,
        )
    except _STORAGE_ERRORS as error:
        logger.exception('Failed to sign URL for file %s', file_id)
        raise DependencyFailureError('Failed to create download URL') from error


def list_directory(
    owner: _User,
    parent_id: uuid.UUID | None = None,
) -> DirectoryListing:
    """List folders and files directly inside a folder.

    Args:
        owner: Owner of the items.
        parent_id: Folder to list, ``None`` for the root.

    Returns:
        DirectoryListing with both kinds ordered by name.

    Raises:
        ItemNotFoundError: If the folder is not owned by ``owner``.
    """
    if parent_id is not None:
        get_owned_folder(owner, parent_id)

    logger.debug('Listing folder %s for user %s', parent_id, owner.pk)
    return DirectoryListing(
        folders=Folder.objects.owned_by(owner).children_of(parent_id),
        files=File.objects.owned_by(owner).children_of(parent_id),
    )


def search_items(owner: _User, query: str) -> DirectoryListing:
    """Find folders and files whose names contain ``query``.

    Matching is a case-insensitive substring search over all of the
    owner's items, regardless of location.

    Args:
        owner: Owner of the items.
        query: Text to look for.

    Returns:
        DirectoryListing with at most 20 folders and 30 files, by name.

    Raises:
        InvalidOperationError: If the query is too short.
    """
    query = query.strip()
    if len(query) < settings.DRIVE_SEARCH_MIN_LENGTH:
        raise InvalidOperationError(
            'Search query must be at least '
            f'{settings.DRIVE_SEARCH_MIN_LENGTH} characters',
        )

    return DirectoryListing(
        folders=Folder.objects.owned_by(owner).filter(
            name__icontains=query,
        ).order_by('name')[:_SEARCH_FOLDER_LIMIT],
        files=File.objects.owned_by(owner).filter(
            name__icontains=query,
        ).order_by('name')[:_SEARCH_FILE_LIMIT],
    )
