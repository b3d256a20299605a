"""Business logic layer for drive app.

This package contains all business logic for the folder tree:
- Name validation and copy naming
- Tree integrity checks (ancestry, descendants, siblings)
- Create, rename, move, copy and delete of files and folders
- File upload, download links, listing and search
- Storage usage and quota

All business logic should be implemented here, separate from
models (data layer), infrastructure (external systems) and views.
"""
