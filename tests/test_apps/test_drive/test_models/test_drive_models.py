"""Tests for Folder and File models."""

import pytest
from django.contrib.auth import get_user_model
from django.db import IntegrityError

from server.apps.drive.models import File, Folder, ItemKind


@pytest.mark.django_db
def test_folder_str(user, make_folder):
    """Test Folder __str__ method."""
    folder = make_folder('Docs')

    assert str(folder) == f'{user.pk}:Docs'


@pytest.mark.django_db
def test_file_str(user, make_file):
    """Test File __str__ method."""
    file_instance = make_file('report.pdf')

    assert str(file_instance) == f'{user.pk}:report.pdf'


@pytest.mark.django_db
@pytest.mark.parametrize(('name', 'expected'), [
    ('report.PDF', 'pdf'),
    ('archive.tar.gz', 'gz'),
    ('README', ''),
])
def test_file_get_extension(make_file, name, expected):
    """Test get_extension method extracts extension correctly."""
    assert make_file(name).get_extension() == expected


def test_item_kinds():
    """Test both models report their kind."""
    assert Folder.kind == ItemKind.FOLDER
    assert File.kind == ItemKind.FILE


@pytest.mark.django_db
def test_duplicate_root_folder_rejected(make_folder):
    """Test root-level siblings must have unique names."""
    make_folder('Docs')

    with pytest.raises(IntegrityError):
        make_folder('Docs')


@pytest.mark.django_db
def test_duplicate_nested_file_rejected(make_folder, make_file):
    """Test siblings inside a folder must have unique names."""
    parent = make_folder('Parent')
    make_file('a.txt', parent=parent)

    with pytest.raises(IntegrityError):
        make_file('a.txt', parent=parent)


@pytest.mark.django_db
def test_negative_size_rejected(make_file):
    """Test file size cannot be negative."""
    with pytest.raises(IntegrityError):
        make_file('a.txt', size=-1)


@pytest.mark.django_db
def test_default_ordering_by_name(user, make_folder):
    """Test folders are ordered by name."""
    make_folder('b')
    make_folder('a')

    assert list(Folder.objects.values_list('name', flat=True)) == ['a', 'b']


@pytest.mark.django_db
def test_deleting_user_removes_drive(user, make_folder, make_file):
    """Test removing a user removes their whole tree."""
    parent = make_folder('Parent')
    child = make_folder('Child', parent=parent)
    make_file('a.txt', parent=child)

    get_user_model().objects.filter(pk=user.pk).delete()

    assert not Folder.objects.exists()
    assert not File.objects.exists()
