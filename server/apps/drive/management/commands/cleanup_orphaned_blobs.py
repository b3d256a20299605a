"""Management command to delete stored content no file record refers to."""

import logging
from datetime import timedelta
from typing import Any, Final

from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from server.apps.drive.infrastructure.blob_store import get_blob_store
from server.apps.drive.models import File

_DEFAULT_BATCH_SIZE: Final = 1000

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Delete blobs left behind by failed deletes or rolled back uploads."""

    help = 'Delete stored blobs that no file record references'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )
        parser.add_argument(
            '--prefix',
            default='',
            help='Only inspect keys under this prefix (e.g. a user id)',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=_DEFAULT_BATCH_SIZE,
            help=f'Max blobs to delete (default: {_DEFAULT_BATCH_SIZE})',
        )
        parser.add_argument(
            '--min-age',
            type=int,
            default=None,
            help=(
                'Skip blobs written less than this many seconds ago '
                '(default: DRIVE_ORPHAN_MIN_AGE_SECONDS)'
            ),
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the cleanup command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        dry_run = options['dry_run']
        batch_size = options['batch_size']
        store = get_blob_store()

        min_age = options['min_age']
        if min_age is None:
            min_age = settings.DRIVE_ORPHAN_MIN_AGE_SECONDS

        # Younger content may belong to an upload still being committed
        stored_keys = store.list_keys(
            options['prefix'],
            modified_before=timezone.now() - timedelta(seconds=min_age),
        )
        referenced = set(
            File.objects.filter(blob_key__in=stored_keys).values_list(
                'blob_key',
                flat=True,
            ),
        )
        orphaned = [key for key in stored_keys if key not in referenced]

        self.stdout.write(
            f'Found {len(orphaned)} orphaned blobs '
            f'out of {len(stored_keys)} stored',
        )

        count = 0
        failed = 0

        for key in orphaned[:batch_size]:
            if dry_run:
                self.stdout.write(f'Would delete: {key}')
                count += 1
                continue

            try:
                store.delete(key)
                count += 1
            except Exception as exc:
                self.stderr.write(f'Failed to delete {key}: {exc}')
                logger.exception('Failed to delete orphaned blob: %s', key)
                failed += 1

        if dry_run:
            self.stdout.write(
                self.style.SUCCESS(f'Would delete {count} orphaned blobs'),
            )
        else:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Deleted {count} orphaned blobs, {failed} failed',
                ),
            )
