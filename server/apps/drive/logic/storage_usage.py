"""Business logic for storage usage and quota checks."""

import logging
from dataclasses import dataclass, field
from typing import Any

from django.conf import settings
from django.db.models import Count, Sum

from server.apps.drive.exceptions import QuotaExceededError
from server.apps.drive.models import File, Folder

# User type for Django's dynamic user model
_User = Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StorageUsage:
    """Storage consumed by one user."""

    used_bytes: int
    limit_bytes: int
    file_count: int = 0
    folder_count: int = 0
    type_distribution: dict[str, int] = field(default_factory=dict)

    @property
    def percentage(self) -> float:
        """Share of the limit in use, capped at 100."""
        if self.limit_bytes == 0:
            return 0.0
        return min(100.0, self.used_bytes / self.limit_bytes * 100)

    def available_bytes(self) -> int:
        """Get available storage space.

        Returns:
            Available bytes (never negative).
        """
        return max(0, self.limit_bytes - self.used_bytes)

    def has_space_for(self, size_bytes: int) -> bool:
        """Check if there's enough space for the given size.

        Args:
            size_bytes: Size to check in bytes.

        Returns:
            True if there's enough space, False otherwise.
        """
        return self.used_bytes + size_bytes <= self.limit_bytes


def _used_bytes(owner: _User) -> int:
    total = File.objects.owned_by(owner).aggregate(total=Sum('size'))['total']
    return total or 0


def get_storage_usage(owner: _User) -> StorageUsage:
    """Summarize a user's storage.

    Copies that share stored content count at full size, as each of them
    is a separate file for the user.

    Args:
        owner: User to summarize.

    Returns:
        StorageUsage with totals and per-category byte counts.
    """
    files = File.objects.owned_by(owner)
    totals = files.aggregate(total=Sum('size'), count=Count('id'))
    distribution = {
        row['content_type']: row['total']
        for row in files.order_by().values('content_type').annotate(
            total=Sum('size'),
        )
    }
    return StorageUsage(
        used_bytes=totals['total'] or 0,
        limit_bytes=settings.DRIVE_STORAGE_LIMIT_BYTES,
        file_count=totals['count'],
        folder_count=Folder.objects.owned_by(owner).count(),
        type_distribution=distribution,
    )


def check_quota(owner: _User, size_bytes: int) -> None:
    """Check if user has enough quota for new content.

    Args:
        owner: User to check quota for.
        size_bytes: Size of the new content in bytes.

    Raises:
        QuotaExceededError: If the content would exceed the limit.
    """
    usage = StorageUsage(
        used_bytes=_used_bytes(owner),
        limit_bytes=settings.DRIVE_STORAGE_LIMIT_BYTES,
    )
    if usage.has_space_for(size_bytes):
        return

    logger.warning(
        'Quota exceeded for user %s: need %d, have %d available',
        owner.pk,
        size_bytes,
        usage.available_bytes(),
    )
    raise QuotaExceededError(
        quota_bytes=usage.limit_bytes,
        used_bytes=usage.used_bytes,
        required_bytes=size_bytes,
    )
