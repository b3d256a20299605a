"""Drive (folders and files) settings."""

from server.settings.components import config

# Per-user storage limit, 10 GB by default
DRIVE_STORAGE_LIMIT_BYTES = config(
    'DRIVE_STORAGE_LIMIT_BYTES',
    cast=int,
    default=10 * 1024 * 1024 * 1024,
)

# Largest single upload, 10 MB by default
DRIVE_MAX_UPLOAD_BYTES = config(
    'DRIVE_MAX_UPLOAD_BYTES',
    cast=int,
    default=10 * 1024 * 1024,
)

# Upper bound on parent-chain hops and descendant levels walked
DRIVE_MAX_TREE_DEPTH = config('DRIVE_MAX_TREE_DEPTH', cast=int, default=256)

# Lifetime of signed download URLs, in seconds
DRIVE_SIGNED_URL_TTL = config('DRIVE_SIGNED_URL_TTL', cast=int, default=3600)

DRIVE_SEARCH_MIN_LENGTH = config('DRIVE_SEARCH_MIN_LENGTH', cast=int, default=2)

# Stored content younger than this may belong to an upload whose record
# is not committed yet, so orphan cleanup leaves it alone
DRIVE_ORPHAN_MIN_AGE_SECONDS = config(
    'DRIVE_ORPHAN_MIN_AGE_SECONDS',
    cast=int,
    default=3600,
)
