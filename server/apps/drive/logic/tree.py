"""Folder tree integrity: ancestry, descendants and sibling lookups.

All traversals are iterative and bounded by ``DRIVE_MAX_TREE_DEPTH``, so
a corrupted parent chain surfaces as ``TreeIntegrityError`` instead of
looping forever.
"""

import logging
import uuid
from collections.abc import Iterator
from typing import Any

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError

from server.apps.drive.exceptions import ItemNotFoundError, TreeIntegrityError
from server.apps.drive.models import File, Folder, ItemKind

# User type for Django's dynamic user model
_User = Any

logger = logging.getLogger(__name__)


def _max_depth() -> int:
    return settings.DRIVE_MAX_TREE_DEPTH


def get_owned_folder(owner: _User, folder_id: uuid.UUID) -> Folder:
    """Fetch a folder belonging to ``owner``.

    Args:
        owner: Expected owner.
        folder_id: Folder identifier.

    Returns:
        Folder instance.

    Raises:
        ItemNotFoundError: If the folder is missing or owned by someone else.
    """
    try:
        return Folder.objects.owned_by(owner).get(id=folder_id)
    except (Folder.DoesNotExist, ValidationError) as error:
        raise ItemNotFoundError(ItemKind.FOLDER, folder_id) from error


def lock_owner_tree(owner: _User) -> None:
    """Serialize structural changes to one owner's folder tree.

    Locks the owner's user row until the surrounding transaction ends.
    Ancestor walks read unlocked rows, so two concurrent folder moves
    could otherwise each pass the cycle check and together form a cycle.
    """
    user_rows = get_user_model().objects.select_for_update().filter(pk=owner.pk)
    list(user_rows.values_list('pk', flat=True))


def iter_ancestors(owner: _User, folder_id: uuid.UUID) -> Iterator[Folder]:
    """Yield the folder and then each of its ancestors up to the root.

    Args:
        owner: Owner of the folders.
        folder_id: Folder to start from.

    Yields:
        Folders from ``folder_id`` upwards.

    Raises:
        ItemNotFoundError: If the start folder is not owned by ``owner``.
        TreeIntegrityError: If the parent chain loops or exceeds the
            configured depth.
    """
    current: Folder | None = get_owned_folder(owner, folder_id)
    visited: set[uuid.UUID] = set()
    while current is not None:
        if current.id in visited:
            logger.warning(
                'Cycle detected in folder tree of user %s at folder %s',
                owner.pk,
                current.id,
            )
            raise TreeIntegrityError('Folder hierarchy contains a cycle')
        if len(visited) >= _max_depth():
            logger.warning(
                'Folder %s is nested deeper than %d levels',
                folder_id,
                _max_depth(),
            )
            raise TreeIntegrityError('Folder hierarchy is nested too deeply')
        visited.add(current.id)
        yield current

        if current.parent_id is None:
            return
        current = Folder.objects.owned_by(owner).filter(
            id=current.parent_id,
        ).first()


def get_folder_path(owner: _User, folder_id: uuid.UUID) -> list[Folder]:
    """Get the chain of folders from the root down to ``folder_id``.

    Args:
        owner: Owner of the folders.
        folder_id: Innermost folder.

    Returns:
        Folders ordered root first (breadcrumbs).
    """
    path = list(iter_ancestors(owner, folder_id))
    path.reverse()
    return path


def is_descendant(
    owner: _User,
    candidate_ancestor_id: uuid.UUID,
    start_folder_id: uuid.UUID | None,
) -> bool:
    """Check whether ``start_folder_id`` lies inside ``candidate_ancestor_id``.

    A folder counts as its own descendant, so moving a folder into itself
    is rejected by the same check as moving it into a subfolder.

    Args:
        owner: Owner of both folders.
        candidate_ancestor_id: Folder that might contain the start folder.
        start_folder_id: Folder whose parent chain is walked; ``None``
            (the root) is never a descendant.

    Returns:
        True if the candidate appears on the start folder's parent chain.

    Raises:
        ItemNotFoundError: If either folder is not owned by ``owner``.
    """
    get_owned_folder(owner, candidate_ancestor_id)
    if start_folder_id is None:
        return False

    return any(
        folder.id == candidate_ancestor_id
        for folder in iter_ancestors(owner, start_folder_id)
    )


def iter_descendant_levels(
    owner: _User,
    folder_id: uuid.UUID,
) -> Iterator[list[Folder]]:
    """Yield descendant folders one tree level at a time.

    The first level holds the direct subfolders of ``folder_id``. Each
    level is fetched with a single query.

    Args:
        owner: Owner of the folders.
        folder_id: Folder whose subtree is walked (not included).

    Yields:
        Non-empty lists of folders, shallowest level first.

    Raises:
        TreeIntegrityError: If a folder is reached twice or the subtree
            is deeper than the configured depth.
    """
    visited = {folder_id}
    frontier = [folder_id]
    depth = 0
    while frontier:
        level = list(
            Folder.objects.owned_by(owner).filter(parent_id__in=frontier),
        )
        if not level:
            return

        depth += 1
        if depth > _max_depth():
            logger.warning(
                'Subtree of folder %s is deeper than %d levels',
                folder_id,
                _max_depth(),
            )
            raise TreeIntegrityError('Folder hierarchy is nested too deeply')
        if any(folder.id in visited for folder in level):
            raise TreeIntegrityError('Folder hierarchy contains a cycle')

        visited.update(folder.id for folder in level)
        logger.debug(
            'Folder %s: %d descendants at depth %d',
            folder_id,
            len(level),
            depth,
        )
        yield level
        frontier = [folder.id for folder in level]


def enumerate_descendant_folders(
    owner: _User,
    folder_id: uuid.UUID,
) -> list[Folder]:
    """Collect every folder below ``folder_id``.

    Args:
        owner: Owner of the folders.
        folder_id: Root of the subtree (not included).

    Returns:
        All descendant folders, shallowest first.
    """
    return [
        folder
        for level in iter_descendant_levels(owner, folder_id)
        for folder in level
    ]


def find_sibling_by_name(
    name: str,
    parent_id: uuid.UUID | None,
    owner: _User,
    kind: ItemKind,
    exclude_id: uuid.UUID | None = None,
) -> Folder | File | None:
    """Find an item of ``kind`` named exactly ``name`` in a folder.

    Matching is exact and case-sensitive. Folders and files have separate
    name spaces.

    Args:
        name: Name to look for.
        parent_id: Folder to search in, ``None`` for the root.
        owner: Owner of the items.
        kind: Which name space to search.
        exclude_id: Item to ignore (the one being renamed or moved).

    Returns:
        The conflicting item, or None.
    """
    model = Folder if kind == ItemKind.FOLDER else File
    siblings = model.objects.owned_by(owner).children_of(parent_id).filter(
        name=name,
    )
    if exclude_id is not None:
        siblings = siblings.exclude(id=exclude_id)
    return siblings.first()


def list_sibling_names(
    parent_id: uuid.UUID | None,
    owner: _User,
    kind: ItemKind,
) -> set[str]:
    """Get the names of all ``kind`` items directly inside a folder.

    Args:
        parent_id: Folder to list, ``None`` for the root.
        owner: Owner of the items.
        kind: Which name space to list.

    Returns:
        Set of names.
    """
    model = Folder if kind == ItemKind.FOLDER else File
    return set(
        model.objects.owned_by(owner).children_of(parent_id).values_list(
            'name',
            flat=True,
        ),
    )
