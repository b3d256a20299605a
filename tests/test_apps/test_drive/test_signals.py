"""Tests for stored content cleanup on file deletion."""

from unittest import mock

import pytest
from django.core.files.base import ContentFile

from server.apps.drive.infrastructure.blob_store import get_blob_store
from server.apps.drive.logic.item_operations import copy_item, delete_item
from server.apps.drive.models import ItemKind


@pytest.fixture
def stored_file(make_file, mock_s3):
    """File record with content in the mocked bucket."""
    blob = get_blob_store().upload(ContentFile(b'payload'), '1/abc/a.txt')
    return make_file('a.txt', blob_key=blob.key)


@pytest.mark.django_db
def test_delete_removes_content_after_commit(
    user,
    stored_file,
    django_capture_on_commit_callbacks,
):
    """Test content is removed once the delete commits."""
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        delete_item(user, stored_file.id, ItemKind.FILE)

    assert len(callbacks) == 1
    assert not get_blob_store().exists(stored_file.blob_key)


@pytest.mark.django_db
def test_content_kept_without_commit(
    user,
    stored_file,
    django_capture_on_commit_callbacks,
):
    """Test nothing is removed before commit."""
    with django_capture_on_commit_callbacks(execute=False) as callbacks:
        delete_item(user, stored_file.id, ItemKind.FILE)

    assert len(callbacks) == 1
    assert get_blob_store().exists(stored_file.blob_key)


@pytest.mark.django_db
def test_copy_keeps_shared_content(
    user,
    stored_file,
    django_capture_on_commit_callbacks,
):
    """Test deleting one of two aliases keeps the content."""
    copied = copy_item(user, stored_file.id, ItemKind.FILE, None)

    with django_capture_on_commit_callbacks(execute=True):
        delete_item(user, stored_file.id, ItemKind.FILE)

    assert get_blob_store().exists(stored_file.blob_key)

    with django_capture_on_commit_callbacks(execute=True):
        delete_item(user, copied.id, ItemKind.FILE)

    assert not get_blob_store().exists(stored_file.blob_key)


@pytest.mark.django_db
def test_folder_delete_removes_nested_content(
    user,
    make_folder,
    make_file,
    mock_s3,
    django_capture_on_commit_callbacks,
):
    """Test deleting a folder removes content of every nested file."""
    store = get_blob_store()
    folder = make_folder('Docs')
    child = make_folder('Nested', parent=folder)
    keys = [
        store.upload(ContentFile(b'one'), '1/a/one.txt').key,
        store.upload(ContentFile(b'two'), '1/b/two.txt').key,
    ]
    make_file('one.txt', parent=folder, blob_key=keys[0])
    make_file('two.txt', parent=child, blob_key=keys[1])

    with django_capture_on_commit_callbacks(execute=True):
        delete_item(user, folder.id, ItemKind.FOLDER)

    assert not any(store.exists(key) for key in keys)


@pytest.mark.django_db
def test_storage_failure_does_not_raise(
    user,
    stored_file,
    django_capture_on_commit_callbacks,
):
    """Test a failing content delete leaves the record deleted."""
    with mock.patch(
        'server.apps.drive.infrastructure.blob_store.BlobStore.delete',
        side_effect=RuntimeError('storage down'),
    ):
        with django_capture_on_commit_callbacks(execute=True):
            delete_item(user, stored_file.id, ItemKind.FILE)

    assert get_blob_store().exists(stored_file.blob_key)
