"""Infrastructure layer for drive app.

This package contains integrations with external systems:
- Blob store backed by S3-compatible storage (MinIO/R2/S3)
- Metadata extraction for uploaded content

Keep infrastructure concerns separate from business logic.
"""
