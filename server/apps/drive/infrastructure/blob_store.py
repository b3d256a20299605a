"""Blob store for file contents, backed by S3-compatible storage."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, final, override

from django.core.files.storage import default_storage
from storages.backends.s3 import S3Storage

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BlobRef:
    """Handle of stored content."""

    key: str
    url: str


@final
class BlobStore(S3Storage):
    """S3 storage backend holding the bytes of drive files.

    Records keep the ``BlobRef`` returned by ``upload``; several records
    may share one key, see ``server.apps.drive.signals``.
    """

    def upload(self, content: Any, destination_hint: str) -> BlobRef:
        """Store content and return its key and access URL.

        Args:
            content: File-like object to store.
            destination_hint: Preferred key; the backend may alter it to
                avoid overwriting existing content.

        Returns:
            BlobRef with the actual key and its URL.
        """
        key = self.save(destination_hint, content)
        logger.info('Stored blob %s', key)
        return BlobRef(key=key, url=self.url(key))

    def sign(self, key: str, ttl_seconds: int) -> str:
        """Create a time-limited download URL."""
        logger.debug('Signing URL for %s (ttl=%d)', key, ttl_seconds)
        return self.url(key, expire=ttl_seconds)

    @override
    def delete(self, name: str) -> None:
        logger.info('Deleting blob %s', name)
        super().delete(name)

    def rollback_upload(self, name: str) -> None:
        """Remove content whose record was never committed.

        Best effort: a failure only leaves an orphan behind for the
        ``cleanup_orphaned_blobs`` command.

        Args:
            name: Key of the content to delete.
        """
        try:
            self.delete(name)
        except Exception:
            logger.exception('Failed to roll back upload, orphaned: %s', name)

    def list_keys(
        self,
        prefix: str = '',
        modified_before: datetime | None = None,
    ) -> list[str]:
        """List stored keys, optionally under a prefix.

        Args:
            prefix: Key prefix to filter by.
            modified_before: Only include objects last written at or
                before this moment.

        Returns:
            Keys of all stored objects matching the filters.
        """
        return [
            stored.key
            for stored in self.bucket.objects.filter(Prefix=prefix)
            if modified_before is None or stored.last_modified <= modified_before
        ]


def get_blob_store() -> BlobStore:
    """Get the configured blob store.

    Returns:
        BlobStore instance configured by ``STORAGES['default']``.
    """
    return default_storage  # type: ignore[return-value]
