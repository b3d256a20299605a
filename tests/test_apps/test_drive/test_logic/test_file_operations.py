"""Tests for upload, download, listing and search business logic."""

import uuid
from unittest import mock

import pytest
from botocore.exceptions import ClientError
from django.core.files.base import ContentFile
from django.db import OperationalError

from server.apps.drive.exceptions import (
    DependencyFailureError,
    FileTooLargeError,
    InvalidNameError,
    InvalidOperationError,
    ItemNotFoundError,
    NameConflictError,
    QuotaExceededError,
)
from server.apps.drive.logic.file_operations import (
    get_download_url,
    list_directory,
    search_items,
    upload_file,
)
from server.apps.drive.models import ContentCategory, File


def _stored_keys(mock_s3, bucket_name):
    return [stored.key for stored in mock_s3.Bucket(bucket_name).objects.all()]


@pytest.mark.django_db
def test_upload_file_success(user, mock_s3, bucket_name, sample_file_content):
    """Test successful file upload (S3 + DB)."""
    file_instance = upload_file(user, None, sample_file_content)

    assert file_instance.id is not None
    assert file_instance.owner == user
    assert file_instance.name == 'notes.txt'
    assert file_instance.parent is None
    assert file_instance.size == len(b'test file content')
    assert file_instance.mime_type == 'text/plain'
    assert file_instance.content_type == ContentCategory.DOCUMENT
    assert file_instance.blob_key.startswith(f'{user.pk}/')
    assert file_instance.url

    assert _stored_keys(mock_s3, bucket_name) == [file_instance.blob_key]


@pytest.mark.django_db
def test_upload_file_into_folder(user, mock_s3, make_folder):
    """Test uploading into a folder with an explicit name."""
    folder = make_folder('Photos')

    file_instance = upload_file(
        user,
        folder.id,
        ContentFile(b'\x89PNG', name='ignored.bin'),
        filename='cat.png',
    )

    assert file_instance.parent == folder
    assert file_instance.name == 'cat.png'
    assert file_instance.content_type == ContentCategory.IMAGE


@pytest.mark.django_db
def test_upload_file_invalid_name(user, mock_s3, bucket_name):
    """Test an invalid name stores nothing."""
    with pytest.raises(InvalidNameError):
        upload_file(user, None, ContentFile(b'data', name='bad:name.txt'))

    assert File.objects.count() == 0
    assert _stored_keys(mock_s3, bucket_name) == []


@pytest.mark.django_db
def test_upload_file_foreign_folder(user, other_user, mock_s3, make_folder):
    """Test uploading into another user's folder fails as not found."""
    foreign = make_folder('Theirs', owner=other_user)

    with pytest.raises(ItemNotFoundError):
        upload_file(user, foreign.id, ContentFile(b'data', name='a.txt'))


@pytest.mark.django_db
def test_upload_file_too_large(user, mock_s3, bucket_name, settings):
    """Test uploads over the size limit are rejected before storing."""
    settings.DRIVE_MAX_UPLOAD_BYTES = 10

    with pytest.raises(FileTooLargeError) as error:
        upload_file(user, None, ContentFile(b'x' * 11, name='big.bin'))

    assert error.value.size_bytes == 11
    assert error.value.limit_bytes == 10
    assert _stored_keys(mock_s3, bucket_name) == []


@pytest.mark.django_db
def test_upload_file_quota_exceeded(
    user,
    mock_s3,
    bucket_name,
    make_file,
    settings,
):
    """Test uploads over the storage quota are rejected before storing."""
    settings.DRIVE_STORAGE_LIMIT_BYTES = 120
    make_file('existing.bin', size=100)

    with pytest.raises(QuotaExceededError):
        upload_file(user, None, ContentFile(b'x' * 50, name='new.bin'))

    assert File.objects.count() == 1
    assert _stored_keys(mock_s3, bucket_name) == []


@pytest.mark.django_db
def test_upload_file_name_conflict(user, mock_s3, bucket_name, make_file):
    """Test uploading a duplicate name stores nothing."""
    make_file('notes.txt')

    with pytest.raises(NameConflictError):
        upload_file(user, None, ContentFile(b'data', name='notes.txt'))

    assert File.objects.count() == 1
    assert _stored_keys(mock_s3, bucket_name) == []


@pytest.mark.django_db
def test_upload_file_storage_failure(user, mock_s3, sample_file_content):
    """Test a storage failure is reported as a dependency failure."""
    error_response = {'Error': {'Code': 'InternalError', 'Message': 'boom'}}

    with mock.patch(
        'server.apps.drive.infrastructure.blob_store.BlobStore.upload',
        side_effect=ClientError(error_response, 'PutObject'),
    ):
        with pytest.raises(DependencyFailureError):
            upload_file(user, None, sample_file_content)

    assert File.objects.count() == 0


@pytest.mark.django_db
def test_upload_file_db_failure_rolls_back_storage(
    user,
    mock_s3,
    bucket_name,
    sample_file_content,
):
    """Test stored content is removed when the record cannot be saved."""
    with mock.patch.object(
        File.objects,
        'create',
        side_effect=OperationalError('database is locked'),
    ):
        with pytest.raises(DependencyFailureError):
            upload_file(user, None, sample_file_content)

    assert File.objects.count() == 0
    assert _stored_keys(mock_s3, bucket_name) == []


@pytest.mark.django_db
def test_get_download_url(user, mock_s3, sample_file_content):
    """Test a signed URL is produced for an owned file."""
    file_instance = upload_file(user, None, sample_file_content)

    url = get_download_url(user, file_instance.id)

    assert file_instance.blob_key.split('/')[-1] in url
    assert 'Expires=' in url or 'X-Amz-Expires=' in url


@pytest.mark.django_db
def test_get_download_url_foreign_file(user, other_user, make_file):
    """Test another user's file cannot be downloaded."""
    foreign = make_file('a.txt', owner=other_user)

    with pytest.raises(ItemNotFoundError):
        get_download_url(user, foreign.id)


@pytest.mark.django_db
class TestListDirectory:
    """Tests for list_directory."""

    def test_list_root(self, user, other_user, make_folder, make_file):
        """Test only direct children of the root are listed."""
        docs = make_folder('Docs')
        make_folder('Nested', parent=docs)
        make_file('root.txt')
        make_file('nested.txt', parent=docs)
        make_folder('Theirs', owner=other_user)

        listing = list_directory(user)

        assert [folder.name for folder in listing.folders] == ['Docs']
        assert [file.name for file in listing.files] == ['root.txt']

    def test_list_folder_sorted(self, user, make_folder, make_file):
        """Test children of a folder are ordered by name."""
        docs = make_folder('Docs')
        make_file('b.txt', parent=docs)
        make_file('a.txt', parent=docs)
        make_folder('Zeta', parent=docs)
        make_folder('Alpha', parent=docs)

        listing = list_directory(user, docs.id)

        assert [folder.name for folder in listing.folders] == ['Alpha', 'Zeta']
        assert [file.name for file in listing.files] == ['a.txt', 'b.txt']

    def test_list_missing_folder(self, user):
        """Test listing an unknown folder fails."""
        with pytest.raises(ItemNotFoundError):
            list_directory(user, uuid.uuid4())


@pytest.mark.django_db
class TestSearchItems:
    """Tests for search_items."""

    def test_case_insensitive_substring(
        self,
        user,
        other_user,
        make_folder,
        make_file,
    ):
        """Test matching ignores case and location, not ownership."""
        archive = make_folder('Archive')
        make_folder('Reports 2024', parent=archive)
        make_file('annual-report.pdf', parent=archive)
        make_file('notes.txt')
        make_file('report.pdf', owner=other_user)

        results = search_items(user, '  REPORT ')

        assert [folder.name for folder in results.folders] == ['Reports 2024']
        assert [file.name for file in results.files] == ['annual-report.pdf']

    def test_result_limits(self, user, make_folder, make_file):
        """Test results are capped per kind."""
        for index in range(25):
            make_folder(f'match folder {index:02d}')
        for index in range(35):
            make_file(f'match file {index:02d}')

        results = search_items(user, 'match')

        assert len(results.folders) == 20
        assert len(results.files) == 30

    @pytest.mark.parametrize('query', ['', ' ', 'a', ' a '])
    def test_query_too_short(self, user, query):
        """Test short queries are rejected."""
        with pytest.raises(InvalidOperationError):
            search_items(user, query)
