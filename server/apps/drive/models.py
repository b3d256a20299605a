"""Database models for drive app."""

import uuid
from typing import Final, final, override

from django.conf import settings
from django.db import models

# Constants for field max lengths
_NAME_MAX_LENGTH: Final = 255
_MIME_TYPE_MAX_LENGTH: Final = 255
_BLOB_KEY_MAX_LENGTH: Final = 1024
_URL_MAX_LENGTH: Final = 2048
_CONTENT_TYPE_MAX_LENGTH: Final = 16


class ItemKind(models.TextChoices):
    """Discriminates the two kinds of tree items."""

    FILE = 'file', 'File'
    FOLDER = 'folder', 'Folder'


class ContentCategory(models.TextChoices):
    """Coarse content category shown in listings and usage stats."""

    IMAGE = 'image', 'Image'
    DOCUMENT = 'document', 'Document'
    SPREADSHEET = 'spreadsheet', 'Spreadsheet'
    PDF = 'pdf', 'PDF'
    CODE = 'code', 'Code'
    WORD = 'word', 'Word'
    OTHER = 'other', 'Other'


class DriveItemQuerySet(models.QuerySet):
    """Owner-scoped lookups shared by folders and files."""

    def owned_by(self, owner: object) -> 'DriveItemQuerySet':
        """Restrict to items belonging to ``owner``."""
        return self.filter(owner=owner)

    def children_of(self, parent_id: uuid.UUID | None) -> 'DriveItemQuerySet':
        """Restrict to direct children of a folder (``None`` is the root)."""
        if parent_id is None:
            return self.filter(parent__isnull=True)
        return self.filter(parent_id=parent_id)


def _sibling_constraints(prefix: str) -> list[models.UniqueConstraint]:
    """Unique names among siblings of one owner.

    SQL treats NULL values as distinct, so root-level items need their
    own partial constraint.
    """
    return [
        models.UniqueConstraint(
            fields=['owner', 'parent', 'name'],
            name=f'{prefix}_owner_parent_name_unique',
        ),
        models.UniqueConstraint(
            fields=['owner', 'name'],
            condition=models.Q(parent__isnull=True),
            name=f'{prefix}_owner_root_name_unique',
        ),
    ]


@final
class Folder(models.Model):
    """Folder in a user's drive.

    Folders form a tree per owner through the ``parent`` link; ``None``
    means the folder sits at the root. The tree must never contain a
    cycle, see ``server.apps.drive.logic.tree``.
    """

    kind: Final = ItemKind.FOLDER

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='folders',
        db_index=True,
    )

    name = models.CharField(max_length=_NAME_MAX_LENGTH)

    # Children must be removed before their parent
    parent = models.ForeignKey(
        'self',
        on_delete=models.RESTRICT,
        related_name='subfolders',
        null=True,
        blank=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    modified_at = models.DateTimeField(auto_now=True)

    objects = DriveItemQuerySet.as_manager()

    class Meta:
        """Model metadata."""

        verbose_name = 'Folder'  # type: ignore[mutable-override]
        verbose_name_plural = 'Folders'  # type: ignore[mutable-override]
        ordering = ['name']

        indexes = [
            models.Index(
                fields=['owner', 'parent'],
                name='folders_owner_parent_idx',
            ),
        ]

        constraints = _sibling_constraints('folders')

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner_id}:{self.name}'


@final
class File(models.Model):
    """File metadata; the content lives in the blob store under ``blob_key``.

    Several records may share one ``blob_key`` (copies alias the stored
    content), so stored content is only removed once no record points at
    it any more.
    """

    kind: Final = ItemKind.FILE

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='drive_files',
        db_index=True,
    )

    name = models.CharField(max_length=_NAME_MAX_LENGTH)

    parent = models.ForeignKey(
        Folder,
        on_delete=models.RESTRICT,
        related_name='files',
        null=True,
        blank=True,
    )

    size = models.BigIntegerField(help_text='File size in bytes')

    content_type = models.CharField(
        max_length=_CONTENT_TYPE_MAX_LENGTH,
        choices=ContentCategory.choices,
        default=ContentCategory.OTHER,
    )

    mime_type = models.CharField(
        max_length=_MIME_TYPE_MAX_LENGTH,
        default='application/octet-stream',
    )

    blob_key = models.CharField(
        max_length=_BLOB_KEY_MAX_LENGTH,
        db_index=True,
        help_text='Key of the content in the blob store',
    )

    # Cached access URL, may be stale when signed
    url = models.URLField(max_length=_URL_MAX_LENGTH, blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    modified_at = models.DateTimeField(auto_now=True)

    objects = DriveItemQuerySet.as_manager()

    class Meta:
        """Model metadata."""

        verbose_name = 'File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Files'  # type: ignore[mutable-override]
        ordering = ['name']

        indexes = [
            models.Index(
                fields=['owner', 'parent'],
                name='files_owner_parent_idx',
            ),
        ]

        constraints = [
            *_sibling_constraints('files'),
            models.CheckConstraint(
                condition=models.Q(size__gte=0),
                name='files_size_non_negative',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner_id}:{self.name}'

    def get_extension(self) -> str:
        """Extract file extension.

        Example: 'report.PDF' -> 'pdf'

        Returns:
            Extension without dot (lowercase).
        """
        _, dot, extension = self.name.rpartition('.')
        if not dot:
            return ''
        return extension.lower()
