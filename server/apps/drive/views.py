"""JSON endpoints for folders and files.

Views only translate HTTP to calls into ``server.apps.drive.logic`` and
``DriveError`` subclasses back to HTTP status codes.
"""

import json
import logging
import uuid
from collections.abc import Callable
from functools import wraps
from typing import Any

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from server.apps.drive.exceptions import BadRequestError, DriveError, UnauthorizedError
from server.apps.drive.logic import file_operations, item_operations, storage_usage
from server.apps.drive.logic.tree import get_folder_path
from server.apps.drive.models import ItemKind
from server.apps.drive.serializers import (
    serialize_file,
    serialize_folder,
    serialize_item,
    serialize_storage_usage,
)

logger = logging.getLogger(__name__)

_View = Callable[..., HttpResponse]


def drive_endpoint(view: _View) -> _View:
    """Require an authenticated user and render ``DriveError`` as JSON."""
    @wraps(view)
    def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> HttpResponse:
        try:
            if not request.user.is_authenticated:
                raise UnauthorizedError()
            return view(request, *args, **kwargs)
        except DriveError as error:
            logger.info(
                '%s %s failed: %s (%s)',
                request.method,
                request.path,
                error,
                error.code,
            )
            return JsonResponse(
                {'error': str(error), 'code': error.code},
                status=error.status_code,
            )
    return wrapper


def _read_json(request: HttpRequest) -> dict[str, Any]:
    try:
        body = json.loads(request.body or b'{}')
    except (json.JSONDecodeError, UnicodeDecodeError) as error:
        raise BadRequestError('Request body must be valid JSON') from error
    if not isinstance(body, dict):
        raise BadRequestError('Request body must be a JSON object')
    return body


def _parse_folder_id(raw_value: Any) -> uuid.UUID | None:
    """Parse an optional folder id; empty and ``null`` mean the root."""
    if raw_value in (None, ''):
        return None
    try:
        return uuid.UUID(str(raw_value))
    except ValueError as error:
        raise BadRequestError(f'Invalid folder id: {raw_value}') from error


@require_http_methods(['GET', 'POST'])
@drive_endpoint
def folders(request: HttpRequest) -> HttpResponse:
    """List subfolders of ``?parentId=`` or create a folder."""
    if request.method == 'GET':
        parent_id = _parse_folder_id(request.GET.get('parentId'))
        listing = file_operations.list_directory(request.user, parent_id)
        return JsonResponse(
            {'folders': [serialize_folder(folder) for folder in listing.folders]},
        )

    body = _read_json(request)
    folder = item_operations.create_folder(
        request.user,
        str(body.get('name') or ''),
        _parse_folder_id(body.get('parentId')),
    )
    return JsonResponse(serialize_folder(folder), status=201)


@require_GET
@drive_endpoint
def files(request: HttpRequest) -> HttpResponse:
    """List files directly inside ``?folderId=``."""
    folder_id = _parse_folder_id(request.GET.get('folderId'))
    listing = file_operations.list_directory(request.user, folder_id)
    return JsonResponse(
        {'files': [serialize_file(file_instance) for file_instance in listing.files]},
    )


@require_http_methods(['GET', 'PATCH', 'DELETE'])
@drive_endpoint
def item_detail(
    request: HttpRequest,
    item_id: uuid.UUID,
    kind: ItemKind,
) -> HttpResponse:
    """Get, rename (``{"name": ...}``) or delete a file or folder."""
    if request.method == 'GET':
        item = item_operations.get_item(request.user, item_id, kind)
        return JsonResponse(serialize_item(item))

    if request.method == 'PATCH':
        body = _read_json(request)
        item = item_operations.rename_item(
            request.user,
            item_id,
            kind,
            str(body.get('name') or ''),
        )
        return JsonResponse(serialize_item(item))

    result = item_operations.delete_item(request.user, item_id, kind)
    return JsonResponse({
        'message': f'{kind.label} deleted successfully',
        'deletedFolders': result.folders,
        'deletedFiles': result.files,
    })


@require_POST
@drive_endpoint
def move_item(
    request: HttpRequest,
    item_id: uuid.UUID,
    kind: ItemKind,
) -> HttpResponse:
    """Move an item into ``{"targetFolderId": ...}`` (null is the root)."""
    body = _read_json(request)
    item = item_operations.move_item(
        request.user,
        item_id,
        kind,
        _parse_folder_id(body.get('targetFolderId')),
    )
    return JsonResponse(serialize_item(item))


@require_POST
@drive_endpoint
def copy_item(
    request: HttpRequest,
    item_id: uuid.UUID,
    kind: ItemKind,
) -> HttpResponse:
    """Copy an item into ``{"targetFolderId": ...}`` (null is the root)."""
    body = _read_json(request)
    item = item_operations.copy_item(
        request.user,
        item_id,
        kind,
        _parse_folder_id(body.get('targetFolderId')),
    )
    return JsonResponse(serialize_item(item), status=201)


@require_GET
@drive_endpoint
def folder_path(request: HttpRequest, item_id: uuid.UUID) -> HttpResponse:
    """Breadcrumbs from the root down to a folder."""
    path = get_folder_path(request.user, item_id)
    return JsonResponse({'path': [serialize_folder(folder) for folder in path]})


@require_POST
@drive_endpoint
def upload(request: HttpRequest) -> HttpResponse:
    """Upload multipart ``file`` into ``folderId``."""
    uploaded = request.FILES.get('file')
    if uploaded is None:
        raise BadRequestError('No file provided')

    file_instance = file_operations.upload_file(
        request.user,
        _parse_folder_id(request.POST.get('folderId')),
        uploaded,
    )
    return JsonResponse(serialize_file(file_instance), status=201)


@require_GET
@drive_endpoint
def download(request: HttpRequest, item_id: uuid.UUID) -> HttpResponse:
    """Return a signed download URL."""
    url = file_operations.get_download_url(request.user, item_id)
    return JsonResponse({'url': url})


@require_GET
@drive_endpoint
def search(request: HttpRequest) -> HttpResponse:
    """Search names of the user's folders and files."""
    results = file_operations.search_items(
        request.user,
        request.GET.get('query', ''),
    )
    return JsonResponse({
        'folders': [serialize_folder(folder) for folder in results.folders],
        'files': [serialize_file(file_instance) for file_instance in results.files],
    })


@require_GET
@drive_endpoint
def storage(request: HttpRequest) -> HttpResponse:
    """Storage usage summary."""
    usage = storage_usage.get_storage_usage(request.user)
    return JsonResponse(serialize_storage_usage(usage))
