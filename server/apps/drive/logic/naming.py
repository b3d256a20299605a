"""Name validation and collision-free copy names."""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Final

from server.apps.drive.exceptions import InvalidNameError
from server.apps.drive.models import ContentCategory

_MAX_NAME_LENGTH: Final = 255

# Control characters and characters rejected by common filesystems
_FORBIDDEN_CHARACTERS: Final = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

_RESERVED_NAMES: Final = frozenset((
    'CON',
    'PRN',
    'AUX',
    'NUL',
    *(f'COM{number}' for number in range(1, 10)),
    *(f'LPT{number}' for number in range(1, 10)),
))

_EXTENSION_CATEGORIES: Final = {
    **dict.fromkeys(('jpg', 'jpeg', 'png', 'gif', 'webp'), ContentCategory.IMAGE),
    'pdf': ContentCategory.PDF,
    **dict.fromkeys(('doc', 'docx'), ContentCategory.WORD),
    **dict.fromkeys(('xls', 'xlsx', 'csv'), ContentCategory.SPREADSHEET),
    **dict.fromkeys(
        ('js', 'ts', 'html', 'css', 'json', 'php', 'py'),
        ContentCategory.CODE,
    ),
    **dict.fromkeys(('txt', 'md'), ContentCategory.DOCUMENT),
}


@dataclass(frozen=True, slots=True)
class NameValidation:
    """Outcome of ``validate_name``."""

    valid: bool
    reason: str | None = None


def validate_name(name: str) -> NameValidation:
    """Check that a name is portable across common filesystems.

    Args:
        name: Proposed file or folder name.

    Returns:
        NameValidation with ``valid`` set and, when invalid, a reason.
    """
    if not name or not name.strip():
        return NameValidation(valid=False, reason='name cannot be empty')

    if _FORBIDDEN_CHARACTERS.search(name):
        return NameValidation(
            valid=False,
            reason='name contains forbidden characters',
        )

    # Device names are reserved with any extension ("con.txt")
    if name.split('.', 1)[0].upper() in _RESERVED_NAMES:
        return NameValidation(valid=False, reason='name is reserved')

    if len(name) > _MAX_NAME_LENGTH:
        return NameValidation(
            valid=False,
            reason=f'name is longer than {_MAX_NAME_LENGTH} characters',
        )

    return NameValidation(valid=True)


def ensure_valid_name(name: str) -> None:
    """Raise if ``name`` fails ``validate_name``.

    Raises:
        InvalidNameError: If the name is not valid.
    """
    validation = validate_name(name)
    if not validation.valid:
        raise InvalidNameError(name, validation.reason or 'invalid name')


def generate_copy_name(base_name: str, existing_names: Iterable[str]) -> str:
    """Generate a name for a copy of ``base_name`` unused among siblings.

    Returns ``'X (copy)'`` when free, otherwise ``'X (copy N)'`` where N is
    one more than the highest copy number already present (a bare
    ``'(copy)'`` counts as 1). Long base names are shortened so the
    result never exceeds the name length limit.

    Args:
        base_name: Name of the item being copied.
        existing_names: Names of same-kind items in the destination.

    Returns:
        Name for the new copy.
    """
    names = set(existing_names)
    first_copy = _with_suffix(base_name, ' (copy)')
    if first_copy not in names:
        return first_copy

    pattern = re.compile(
        r'{base} \(copy(?: (?P<number>\d+))?\)'.format(
            base=re.escape(base_name),
        ),
    )
    highest = 1
    for name in names:
        match = pattern.fullmatch(name)
        if match is None:
            continue
        number = match.group('number')
        highest = max(highest, int(number) if number else 1)

    # A shortened base may collide with earlier shortened copies
    number = highest + 1
    candidate = _with_suffix(base_name, f' (copy {number})')
    while candidate in names:
        number += 1
        candidate = _with_suffix(base_name, f' (copy {number})')
    return candidate


def _with_suffix(base_name: str, suffix: str) -> str:
    return base_name[:_MAX_NAME_LENGTH - len(suffix)] + suffix


def classify_content_type(filename: str) -> ContentCategory:
    """Map a filename to its content category by extension.

    Args:
        filename: File name with extension (e.g., 'report.pdf').

    Returns:
        Matching ContentCategory, ``OTHER`` when unknown.
    """
    _, dot, extension = filename.rpartition('.')
    if not dot:
        return ContentCategory.OTHER
    return _EXTENSION_CATEGORIES.get(extension.lower(), ContentCategory.OTHER)
