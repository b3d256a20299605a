"""Drive URL configuration."""

from django.urls import path

from server.apps.drive import views
from server.apps.drive.models import ItemKind

app_name = 'drive'

_FOLDER = {'kind': ItemKind.FOLDER}
_FILE = {'kind': ItemKind.FILE}

urlpatterns = [
    # Folders
    path('folders/', views.folders, name='folders'),
    path(
        'folders/<uuid:item_id>/',
        views.item_detail,
        _FOLDER,
        name='folder-detail',
    ),
    path(
        'folders/<uuid:item_id>/move/',
        views.move_item,
        _FOLDER,
        name='folder-move',
    ),
    path(
        'folders/<uuid:item_id>/copy/',
        views.copy_item,
        _FOLDER,
        name='folder-copy',
    ),
    path('folders/<uuid:item_id>/path/', views.folder_path, name='folder-path'),

    # Files
    path('files/', views.files, name='files'),
    path('files/upload/', views.upload, name='file-upload'),
    path(
        'files/<uuid:item_id>/',
        views.item_detail,
        _FILE,
        name='file-detail',
    ),
    path('files/<uuid:item_id>/move/', views.move_item, _FILE, name='file-move'),
    path('files/<uuid:item_id>/copy/', views.copy_item, _FILE, name='file-copy'),
    path(
        'files/<uuid:item_id>/download/',
        views.download,
        name='file-download',
    ),

    # Search and usage
    path('search/', views.search, name='search'),
    path('storage/', views.storage, name='storage'),
]
