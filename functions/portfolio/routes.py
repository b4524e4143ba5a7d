"""
HTTP routes for the portfolio API.

The JSON endpoints read and replace whole blobs; there is no per-record
access and no merge. Writes are guarded by the static admin bearer token.
"""

from __future__ import annotations

import json
import logging
import re
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import Response, StreamingResponse

from portfolio.config import Settings, get_settings
from portfolio.dependencies import get_storage_client, require_admin_token
from portfolio.schemas import ErrorResponse, SaveResponse, UploadResponse
from portfolio.storage import IMMUTABLE_CACHE_CONTROL, StorageClient

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_IMAGE_CONTENT_TYPE = "image/jpeg"
_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._\-()\s]")
_UNSAFE_SLUG_CHARS = re.compile(r"[^a-zA-Z0-9._\-]")

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def sanitize_filename(name: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("", name or "").strip()


def sanitize_slug(slug: str) -> str:
    """Reduce a folder name to a single path segment that cannot escape the prefix."""
    cleaned = _UNSAFE_SLUG_CHARS.sub("", (slug or "").strip())
    return cleaned.strip(".")


def _read_blob(storage: StorageClient, key: str) -> Response:
    body = storage.get_bytes(key)
    if body is None:
        # Nothing published yet; clients fall back to their own sources.
        body = b"[]"
    return Response(content=body, media_type="application/json")


async def _replace_blob(request: Request, storage: StorageClient, key: str) -> SaveResponse:
    body = await request.body()
    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise HTTPException(status_code=400, detail="Expected a JSON array")

    try:
        storage.put_object(key, body, "application/json")
    except Exception as exc:
        logger.exception("Failed to save %s", key)
        raise HTTPException(status_code=500, detail=str(exc) or "Save failed") from exc
    logger.info("Saved %s (%d records)", key, len(payload))
    return SaveResponse()


@router.get("/projects")
def get_projects(
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_settings),
):
    return _read_blob(storage, settings.projects_key)


@router.put(
    "/projects",
    response_model=SaveResponse,
    responses=_ERROR_RESPONSES,
    dependencies=[Depends(require_admin_token)],
)
async def put_projects(
    request: Request,
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_settings),
):
    return await _replace_blob(request, storage, settings.projects_key)


@router.get("/categories")
def get_categories(
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_settings),
):
    return _read_blob(storage, settings.categories_key)


@router.put(
    "/categories",
    response_model=SaveResponse,
    responses=_ERROR_RESPONSES,
    dependencies=[Depends(require_admin_token)],
)
async def put_categories(
    request: Request,
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_settings),
):
    return await _replace_blob(request, storage, settings.categories_key)


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses=_ERROR_RESPONSES,
    dependencies=[Depends(require_admin_token)],
)
async def upload_image(
    file: UploadFile | None = File(None),
    slug: str | None = Form(None),
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_settings),
):
    if file is None or not slug:
        raise HTTPException(status_code=400, detail="Missing file or slug")

    filename = sanitize_filename(file.filename or "")
    folder = sanitize_slug(slug)
    if not filename or not folder:
        raise HTTPException(status_code=400, detail="Invalid file name or slug")

    key = f"{settings.image_prefix}/{folder}/{filename}"
    data = await file.read()
    try:
        storage.put_object(
            key,
            data,
            file.content_type or DEFAULT_IMAGE_CONTENT_TYPE,
            cache_control=IMMUTABLE_CACHE_CONTROL,
        )
    except Exception as exc:
        logger.exception("Upload of %s failed", key)
        raise HTTPException(status_code=500, detail=str(exc) or "Upload failed") from exc

    url = f"{settings.api_prefix}/image/{folder}/{quote(filename)}"
    logger.info("Uploaded %s (%d bytes)", key, len(data))
    return UploadResponse(url=url, key=key)


@router.get("/image/{path:path}")
def get_image(
    path: str,
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_settings),
):
    if not path:
        raise HTTPException(status_code=404, detail="Not found")
    stored = storage.get_object(f"{settings.image_prefix}/{path}")
    if stored is None:
        raise HTTPException(status_code=404, detail="Not found")

    headers = {"Cache-Control": IMMUTABLE_CACHE_CONTROL}
    if stored.etag:
        headers["ETag"] = stored.etag
    return StreamingResponse(
        stored.body,
        media_type=stored.content_type or DEFAULT_IMAGE_CONTENT_TYPE,
        headers=headers,
    )
