"""Shared fixtures for drive app tests."""

import uuid

import boto3
import pytest
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.files.base import ContentFile
from moto import mock_aws

from server.apps.drive.infrastructure.metadata import detect_mime_type
from server.apps.drive.logic.naming import classify_content_type
from server.apps.drive.models import File, Folder

User = get_user_model()


@pytest.fixture
def user(db):
    """Create test user.

    Returns:
        User instance for testing.
    """
    return User.objects.create_user(
        username='testuser',
        password='testpass123',
        email='test@example.com',
    )


@pytest.fixture
def other_user(db):
    """Create second test user for isolation tests.

    Returns:
        Second user instance.
    """
    return User.objects.create_user(
        username='otheruser',
        password='testpass123',
        email='other@example.com',
    )


@pytest.fixture
def bucket_name():
    """Name of the bucket configured for the blob store."""
    return settings.STORAGES['default']['OPTIONS']['bucket_name']


@pytest.fixture
def mock_s3(bucket_name):
    """Mock S3 service with the drive bucket.

    Yields:
        boto3 S3 resource with the bucket created.
    """
    with mock_aws():
        conn = boto3.resource('s3', region_name='us-east-1')
        conn.create_bucket(Bucket=bucket_name)

        yield conn


@pytest.fixture
def make_folder(user):
    """Factory creating folders directly in the database.

    Returns:
        Callable ``(name, parent=None, owner=None) -> Folder``.
    """
    def factory(name, parent=None, owner=None):
        return Folder.objects.create(
            owner=owner or user,
            name=name,
            parent=parent,
        )
    return factory


@pytest.fixture
def make_file(user):
    """Factory creating file records directly in the database.

    Returns:
        Callable ``(name, parent=None, owner=None, size=100, blob_key=None)``.
    """
    def factory(name, parent=None, owner=None, size=100, blob_key=None):
        file_owner = owner or user
        return File.objects.create(
            owner=file_owner,
            name=name,
            parent=parent,
            size=size,
            content_type=classify_content_type(name),
            mime_type=detect_mime_type(name),
            blob_key=blob_key or f'{file_owner.pk}/{uuid.uuid4()}/{name}',
        )
    return factory


@pytest.fixture
def sample_file_content():
    """Sample file content for testing.

    Returns:
        ContentFile with test data.
    """
    return ContentFile(b'test file content', name='notes.txt')
