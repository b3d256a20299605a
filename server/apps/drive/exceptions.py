"""Exceptions for drive app.

Every expected failure of a drive operation is a ``DriveError`` subclass
carrying a stable ``code`` and the HTTP status the view layer answers with.
"""

from typing import ClassVar


class DriveError(Exception):
    """Base class for failures of drive operations."""

    code: ClassVar[str] = 'drive_error'
    status_code: ClassVar[int] = 500


class UnauthorizedError(DriveError):
    """Raised when the request carries no authenticated user."""

    code = 'unauthorized'
    status_code = 401

    def __init__(self, message: str = 'Authentication required') -> None:
        """Initialize UnauthorizedError."""
        super().__init__(message)


class ItemNotFoundError(DriveError):
    """Raised when an item is missing or belongs to another user.

    Both cases produce the same error so callers cannot probe for items
    owned by somebody else.
    """

    code = 'not_found'
    status_code = 404

    def __init__(self, kind: str, item_id: object) -> None:
        """Initialize ItemNotFoundError.

        Args:
            kind: Item kind ('file' or 'folder').
            item_id: Requested identifier.
        """
        self.kind = kind
        self.item_id = item_id
        super().__init__(f'{kind.capitalize()} not found or access denied')


class InvalidNameError(DriveError):
    """Raised when a file or folder name fails validation."""

    code = 'invalid_name'
    status_code = 400

    def __init__(self, name: str, reason: str) -> None:
        """Initialize InvalidNameError.

        Args:
            name: Rejected name.
            reason: Human readable rejection reason.
        """
        self.name = name
        self.reason = reason
        super().__init__(f'Invalid name: {reason}')


class NameConflictError(DriveError):
    """Raised when a sibling of the same kind already uses the name."""

    code = 'conflict'
    status_code = 409

    def __init__(self, kind: str, name: str) -> None:
        """Initialize NameConflictError.

        Args:
            kind: Item kind ('file' or 'folder').
            name: Conflicting name.
        """
        self.kind = kind
        self.name = name
        super().__init__(
            f'A {kind} named "{name}" already exists in this location',
        )


class InvalidOperationError(DriveError):
    """Raised when an operation is structurally disallowed."""

    code = 'invalid_operation'
    status_code = 400


class TreeIntegrityError(InvalidOperationError):
    """Raised when a stored parent chain is cyclic or too deep."""

    code = 'tree_integrity'


class DependencyFailureError(DriveError):
    """Raised when the database or the blob store fails unexpectedly."""

    code = 'dependency_failure'
    status_code = 502


class FileTooLargeError(DriveError):
    """Raised when an upload exceeds the per-file size limit."""

    code = 'file_too_large'
    status_code = 413

    def __init__(self, size_bytes: int, limit_bytes: int) -> None:
        """Initialize FileTooLargeError.

        Args:
            size_bytes: Size of the rejected upload.
            limit_bytes: Configured maximum upload size.
        """
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f'File too large: {size_bytes} bytes '
            f'(maximum: {limit_bytes} bytes)',
        )


class QuotaExceededError(DriveError):
    """Raised when upload would exceed user's storage quota."""

    code = 'quota_exceeded'
    status_code = 413

    def __init__(
        self,
        quota_bytes: int,
        used_bytes: int,
        required_bytes: int,
    ) -> None:
        """Initialize QuotaExceededError.

        Args:
            quota_bytes: Total quota limit in bytes.
            used_bytes: Currently used bytes.
            required_bytes: Bytes needed for the operation.
        """
        self.quota_bytes = quota_bytes
        self.used_bytes = used_bytes
        self.required_bytes = required_bytes

        available = max(0, quota_bytes - used_bytes)
        super().__init__(
            f'Quota exceeded: need {required_bytes} bytes, '
            f'only {available} bytes available '
            f'(quota: {quota_bytes}, used: {used_bytes})',
        )


class BadRequestError(DriveError):
    """Raised when a request body or parameter cannot be parsed."""

    code = 'bad_request'
    status_code = 400
