"""Tests for metadata utilities."""

from io import BytesIO

import pytest
from django.core.files.base import ContentFile

from server.apps.drive.infrastructure.metadata import (
    build_blob_key,
    detect_mime_type,
    format_file_size,
    get_file_size,
)


def test_detect_mime_type():
    """Test MIME type detection from filename."""
    assert detect_mime_type('test.pdf') == 'application/pdf'
    assert detect_mime_type('test.txt') == 'text/plain'
    assert detect_mime_type('test.jpg') == 'image/jpeg'
    assert detect_mime_type('test.png') == 'image/png'


def test_detect_mime_type_unknown():
    """Test MIME type detection for unknown extension."""
    assert detect_mime_type('test.unknown') == 'application/octet-stream'
    assert detect_mime_type('README') == 'application/octet-stream'


def test_get_file_size_django_file():
    """Test size of Django file objects."""
    assert get_file_size(ContentFile(b'12345')) == 5


def test_get_file_size_stream_is_rewound():
    """Test size of plain streams leaves them readable from the start."""
    stream = BytesIO(b'hello world')

    assert get_file_size(stream) == 11
    assert stream.read() == b'hello world'


def test_build_blob_key():
    """Test keys are owner-prefixed and unique per call."""
    first = build_blob_key(7, 'report.pdf')
    second = build_blob_key(7, 'report.pdf')

    assert first.startswith('7/')
    assert first.endswith('/report.pdf')
    assert first != second


@pytest.mark.parametrize(('size', 'expected'), [
    (0, '0.00 B'),
    (512, '512.00 B'),
    (1024, '1.00 KB'),
    (1536, '1.50 KB'),
    (10 * 1024 * 1024, '10.00 MB'),
    (10 * 1024 ** 3, '10.00 GB'),
    (2048 * 1024 ** 4, '2048.00 TB'),
])
def test_format_file_size(size, expected):
    """Test human readable sizes."""
    assert format_file_size(size) == expected
