"""Signal handlers for drive app."""

import logging
from functools import partial

from django.db import transaction
from django.db.models.signals import post_delete
from django.dispatch import receiver

from server.apps.drive.infrastructure.blob_store import get_blob_store
from server.apps.drive.models import File

logger = logging.getLogger(__name__)


def delete_blob_if_unreferenced(blob_key: str) -> None:
    """Delete stored content once no file record refers to it.

    Copies share the stored content of their original, so the content
    stays as long as any record still uses the key.

    Args:
        blob_key: Key of the content in the blob store.
    """
    if File.objects.filter(blob_key=blob_key).exists():
        logger.info('Blob still referenced, keeping: %s', blob_key)
        return

    try:
        get_blob_store().delete(blob_key)
    except Exception:
        # Log error but don't raise - DB delete already succeeded
        # Orphaned content is removed by cleanup_orphaned_blobs
        logger.exception(
            'Failed to delete blob from storage (orphaned): %s',
            blob_key,
        )


@receiver(post_delete, sender=File)
def delete_file_content(
    sender: type[File],
    instance: File,
    **kwargs: object,
) -> None:
    """Schedule removal of stored content when a File record is deleted.

    Runs after the surrounding transaction commits, so a rolled back
    delete never loses content.

    Args:
        sender: The File model class.
        instance: The File instance being deleted.
        **kwargs: Additional signal arguments.
    """
    if not instance.blob_key:
        return

    logger.debug('Scheduling blob cleanup: %s', instance.blob_key)
    transaction.on_commit(
        partial(delete_blob_if_unreferenced, instance.blob_key),
    )
