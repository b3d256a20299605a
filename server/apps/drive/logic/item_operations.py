"""Business logic for tree mutations: create, rename, move, copy, delete.

Each operation is one database transaction. Checks run before any write,
and the sibling-name database constraints remain the final guard: a
constraint violation at write time is reported as ``NameConflictError``
and the whole transaction is rolled back.
"""

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from django.core.exceptions import ValidationError
from django.db import DatabaseError, IntegrityError, transaction

from server.apps.drive.exceptions import (
    DependencyFailureError,
    InvalidOperationError,
    ItemNotFoundError,
    NameConflictError,
)
from server.apps.drive.logic.naming import ensure_valid_name, generate_copy_name
from server.apps.drive.logic.storage_usage import check_quota
from server.apps.drive.logic.tree import (
    find_sibling_by_name,
    get_owned_folder,
    is_descendant,
    iter_descendant_levels,
    list_sibling_names,
    lock_owner_tree,
)
from server.apps.drive.models import File, Folder, ItemKind

# User type for Django's dynamic user model
_User = Any

_Item = Folder | File

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DeletionResult:
    """Number of records removed by ``delete_item``."""

    folders: int
    files: int


def _model_for(kind: ItemKind) -> type[Folder] | type[File]:
    if kind == ItemKind.FOLDER:
        return Folder
    return File


@contextmanager
def _unit_of_work(operation: str) -> Iterator[None]:
    """Run a block in a transaction, reporting DB failures uniformly.

    Args:
        operation: Short description used in logs and errors.

    Raises:
        DependencyFailureError: If the database fails unexpectedly.
    """
    try:
        with transaction.atomic():
            yield
    except DatabaseError as error:
        logger.exception('Database failure during %s', operation)
        raise DependencyFailureError(f'Failed to {operation}') from error


def _save_item(item: _Item, update_fields: list[str]) -> None:
    """Save changed fields in a savepoint.

    Raises:
        NameConflictError: If a sibling constraint rejects the write.
    """
    try:
        with transaction.atomic():
            item.save(update_fields=update_fields)
    except IntegrityError as error:
        logger.warning(
            'Sibling name constraint rejected %s "%s"',
            item.kind,
            item.name,
        )
        raise NameConflictError(item.kind, item.name) from error


def _create_item(model: type[Folder] | type[File], **fields: Any) -> Any:
    """Insert a record in a savepoint.

    Raises:
        NameConflictError: If a sibling constraint rejects the insert.
    """
    try:
        with transaction.atomic():
            return model.objects.create(**fields)
    except IntegrityError as error:
        logger.warning(
            'Sibling name constraint rejected new %s "%s"',
            model.kind,
            fields['name'],
        )
        raise NameConflictError(model.kind, fields['name']) from error


def _ensure_name_free(
    name: str,
    parent_id: uuid.UUID | None,
    owner: _User,
    kind: ItemKind,
    exclude_id: uuid.UUID | None = None,
) -> None:
    if find_sibling_by_name(name, parent_id, owner, kind, exclude_id):
        logger.info(
            'Name conflict for %s "%s" in folder %s',
            kind,
            name,
            parent_id,
        )
        raise NameConflictError(kind, name)


def _get_target_folder(
    owner: _User,
    target_folder_id: uuid.UUID | None,
) -> Folder | None:
    if target_folder_id is None:
        return None
    return get_owned_folder(owner, target_folder_id)


def get_item(
    owner: _User,
    item_id: uuid.UUID,
    kind: ItemKind,
    *,
    for_update: bool = False,
) -> _Item:
    """Fetch a file or folder belonging to ``owner``.

    Args:
        owner: Expected owner.
        item_id: Item identifier.
        kind: Item kind.
        for_update: Lock the row until the surrounding transaction ends.

    Returns:
        Folder or File instance.

    Raises:
        ItemNotFoundError: If the item is missing or owned by someone else.
    """
    model = _model_for(kind)
    queryset = model.objects.owned_by(owner)
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(id=item_id)
    except (model.DoesNotExist, ValidationError) as error:
        raise ItemNotFoundError(kind, item_id) from error


def create_folder(
    owner: _User,
    name: str,
    parent_id: uuid.UUID | None = None,
) -> Folder:
    """Create a folder.

    Args:
        owner: Owner of the new folder.
        name: Folder name.
        parent_id: Parent folder, ``None`` for the root.

    Returns:
        Created Folder instance.

    Raises:
        InvalidNameError: If the name is not valid.
        ItemNotFoundError: If the parent folder is not owned by ``owner``.
        NameConflictError: If a sibling folder has the same name.
    """
    ensure_valid_name(name)

    with _unit_of_work('create folder'):
        parent = _get_target_folder(owner, parent_id)
        _ensure_name_free(name, parent_id, owner, ItemKind.FOLDER)
        folder = _create_item(Folder, owner=owner, name=name, parent=parent)

    logger.info(
        'Folder created: "%s" (ID: %s, parent: %s)',
        name,
        folder.id,
        parent_id,
    )
    return folder


def rename_item(
    owner: _User,
    item_id: uuid.UUID,
    kind: ItemKind,
    new_name: str,
) -> _Item:
    """Rename a file or folder in place.

    Renaming to the current name is a no-op and leaves ``modified_at``
    untouched.

    Args:
        owner: Owner of the item.
        item_id: Item to rename.
        kind: Item kind.
        new_name: New name.

    Returns:
        The (possibly unchanged) item.

    Raises:
        ItemNotFoundError: If the item is not owned by ``owner``.
        InvalidNameError: If the new name is not valid.
        NameConflictError: If a sibling of the same kind uses the name.
    """
    with _unit_of_work('rename item'):
        item = get_item(owner, item_id, kind, for_update=True)
        ensure_valid_name(new_name)
        if item.name == new_name:
            logger.debug('Rename of %s %s is a no-op', kind, item_id)
            return item

        _ensure_name_free(new_name, item.parent_id, owner, kind, item.id)
        old_name = item.name
        item.name = new_name
        _save_item(item, ['name', 'modified_at'])

    logger.info(
        'Renamed %s %s: "%s" -> "%s"',
        kind,
        item_id,
        old_name,
        new_name,
    )
    return item


def move_item(
    owner: _User,
    item_id: uuid.UUID,
    kind: ItemKind,
    target_folder_id: uuid.UUID | None,
) -> _Item:
    """Move a file or folder into another folder.

    Moving an item to the folder it already sits in is a no-op and leaves
    ``modified_at`` untouched.

    Args:
        owner: Owner of the item and target.
        item_id: Item to move.
        kind: Item kind.
        target_folder_id: Destination folder, ``None`` for the root.

    Returns:
        The moved item.

    Raises:
        ItemNotFoundError: If the item or the target is not owned by
            ``owner``.
        InvalidOperationError: If a folder would be moved into itself or
            one of its descendants.
        NameConflictError: If the target already holds a same-kind item
            with the same name.
    """
    with _unit_of_work('move item'):
        if kind == ItemKind.FOLDER:
            lock_owner_tree(owner)
        item = get_item(owner, item_id, kind, for_update=True)
        target = _get_target_folder(owner, target_folder_id)
        target_id = target.id if target else None

        if kind == ItemKind.FOLDER and is_descendant(owner, item.id, target_id):
            logger.warning(
                'Rejected move of folder %s into its own subtree (%s)',
                item_id,
                target_folder_id,
            )
            raise InvalidOperationError(
                'Cannot move a folder into itself or its own subfolder',
            )

        if item.parent_id == target_id:
            logger.debug('Move of %s %s is a no-op', kind, item_id)
            return item

        _ensure_name_free(item.name, target_id, owner, kind, item.id)
        old_parent_id = item.parent_id
        item.parent = target
        _save_item(item, ['parent', 'modified_at'])

    logger.info(
        'Moved %s %s: %s -> %s',
        kind,
        item_id,
        old_parent_id,
        target_folder_id,
    )
    return item


def _clone_file(source: File, name: str, parent: Folder | None) -> File:
    """Create a new record sharing the source's stored content."""
    return _create_item(
        File,
        owner=source.owner,
        name=name,
        parent=parent,
        size=source.size,
        content_type=source.content_type,
        mime_type=source.mime_type,
        blob_key=source.blob_key,
        url=source.url,
    )


def _copy_folder_tree(
    owner: _User,
    source: Folder,
    copy_name: str,
    target: Folder | None,
) -> Folder:
    """Clone a folder with all of its descendants.

    The subtree is read completely before the first insert, so copying a
    folder into its own subtree does not pick up the fresh clones.
    """
    levels = list(iter_descendant_levels(owner, source.id))
    source_folder_ids = [
        source.id,
        *(folder.id for level in levels for folder in level),
    ]
    source_files = list(
        File.objects.owned_by(owner).filter(parent_id__in=source_folder_ids),
    )
    check_quota(owner, sum(file_instance.size for file_instance in source_files))

    root_copy = _create_item(Folder, owner=owner, name=copy_name, parent=target)

    # Original folder id -> its clone
    clones: dict[uuid.UUID, Folder] = {source.id: root_copy}
    for level in levels:
        for folder in level:
            clones[folder.id] = _create_item(
                Folder,
                owner=owner,
                name=folder.name,
                parent=clones[folder.parent_id],
            )

    for file_instance in source_files:
        _clone_file(
            file_instance,
            name=file_instance.name,
            parent=clones[file_instance.parent_id],
        )

    logger.debug(
        'Cloned folder %s: %d folders, %d files',
        source.id,
        len(clones),
        len(source_files),
    )
    return root_copy


def copy_item(
    owner: _User,
    item_id: uuid.UUID,
    kind: ItemKind,
    target_folder_id: uuid.UUID | None,
) -> _Item:
    """Copy a file or a whole folder subtree into a folder.

    The copy is named ``'<name> (copy)'`` or ``'<name> (copy N)'``. Copied
    files share the stored content of their originals. Either every record
    of the copy is committed or none is.

    Args:
        owner: Owner of the item and target.
        item_id: Item to copy.
        kind: Item kind.
        target_folder_id: Destination folder, ``None`` for the root.

    Returns:
        The new file, or the root of the new folder subtree.

    Raises:
        ItemNotFoundError: If the item or the target is not owned by
            ``owner``.
        QuotaExceededError: If the copied files exceed the storage quota.
        NameConflictError: If a concurrent write took the generated name.
    """
    with _unit_of_work('copy item'):
        item = get_item(owner, item_id, kind)
        target = _get_target_folder(owner, target_folder_id)
        copy_name = generate_copy_name(
            item.name,
            list_sibling_names(target.id if target else None, owner, kind),
        )
        ensure_valid_name(copy_name)

        if kind == ItemKind.FILE:
            check_quota(owner, item.size)
            copied = _clone_file(item, name=copy_name, parent=target)
        else:
            copied = _copy_folder_tree(owner, item, copy_name, target)

    logger.info(
        'Copied %s %s to %s as "%s" (ID: %s)',
        kind,
        item_id,
        target_folder_id,
        copy_name,
        copied.id,
    )
    return copied


def delete_item(
    owner: _User,
    item_id: uuid.UUID,
    kind: ItemKind,
) -> DeletionResult:
    """Delete a file, or a folder with everything inside it.

    Files go first, then folders from the deepest level up, so no record
    ever points at a deleted parent. Stored content is removed after
    commit by the ``post_delete`` handler in signals.py.

    Args:
        owner: Owner of the item.
        item_id: Item to delete.
        kind: Item kind.

    Returns:
        DeletionResult with the number of removed folders and files.

    Raises:
        ItemNotFoundError: If the item is not owned by ``owner``.
    """
    with _unit_of_work('delete item'):
        item = get_item(owner, item_id, kind, for_update=True)

        if kind == ItemKind.FILE:
            item.delete()
            result = DeletionResult(folders=0, files=1)
        else:
            levels = list(iter_descendant_levels(owner, item.id))
            folder_ids = [
                item.id,
                *(folder.id for level in levels for folder in level),
            ]
            deleted_files, _ = File.objects.owned_by(owner).filter(
                parent_id__in=folder_ids,
            ).delete()
            for level in reversed(levels):
                Folder.objects.owned_by(owner).filter(
                    id__in=[folder.id for folder in level],
                ).delete()
            item.delete()
            result = DeletionResult(
                folders=len(folder_ids),
                files=deleted_files,
            )

    logger.info(
        'Deleted %s %s: %d folders, %d files',
        kind,
        item_id,
        result.folders,
        result.files,
    )
    return result
