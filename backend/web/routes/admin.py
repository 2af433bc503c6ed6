"""
Admin write API (session cookie required).

Why:
    The admin forms save documents and upload images through these
    endpoints. Every request is authenticated (one shared admin identity)
    and browser writes must be same-origin.

Behavior:
    - 401 `{"error": "unauthorized"}` without a valid session
    - 400 on validation errors; `fields` names every missing field, image
      rejections carry the reason code in `detail`
    - 404 for unknown ids on delete
    - 502 `{"error": "store_error"}` when the object store call fails
    - 503 when no object store is configured
    - All responses are `Cache-Control: private, no-store`

Notes:
    Image endpoints run ingestion (validation, HEIC/HEIF normalization)
    before any store call.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, Response
from minio.error import S3Error
from pydantic import BaseModel, ConfigDict, Field
from urllib3.exceptions import HTTPError as TransportError

from backend.content.errors import ContentValidationError, StoreNotConfiguredError
from backend.media.ingest import (
    ImageRejectedError,
    IngestedImage,
    UploadSource,
    decode_data_url,
    ingest_batch,
    ingest_data_url,
)
from backend.storage.config import get_cover_max_upload_bytes, get_media_max_upload_bytes
from backend.storage.keys import is_valid_id
from backend.storage.ports import PartialDeleteError
from backend.web.components.markdown import render_markdown_safe
from backend.web.storage_wiring import get_content_service, get_image_converter

from .security import _csrf_guard, _json_private, _private_error, _require_admin

admin_router = APIRouter(tags=["Admin"])
logger = logging.getLogger("kitchen.web.admin")

MARKDOWN_KINDS = ("blogs", "recipes")
_STORE_ERRORS = (S3Error, PartialDeleteError, TransportError, OSError)


# --- Payloads -------------------------------------------------------------------

class MarkdownUpsertPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    slug: Optional[str] = None
    title: Optional[str] = None
    date: Optional[str] = None
    excerpt: Optional[str] = None
    body: Optional[str] = None
    cook_time: Optional[str] = Field(default=None, alias="cookTime")
    difficulty: Optional[str] = None
    servings: Optional[Union[str, int]] = None
    category: Optional[str] = None
    tags: Optional[Union[List[str], str]] = None
    published: Optional[bool] = None
    cover_image: Optional[str] = Field(default=None, alias="coverImage")


class HomeKitchenUpsertPayload(BaseModel):
    slug: Optional[str] = None
    title: Optional[str] = None
    holiday: Optional[str] = None
    date: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    tags: Optional[Union[List[str], str]] = None
    published: Optional[bool] = None


class ActivityUpsertPayload(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    location: Optional[str] = None
    link: Optional[str] = None
    date: Optional[str] = None
    order: int = 0
    published: bool = False


class CoverPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    data_url: str = Field(alias="dataUrl")
    filename: Optional[str] = None


class GalleryImagePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    slug: str
    image_index: int = Field(alias="imageIndex", ge=0)
    data_url: str = Field(alias="dataUrl")
    filename: Optional[str] = None


class GalleryFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data_url: str = Field(alias="dataUrl")
    filename: Optional[str] = None


class GalleryBatchPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    slug: str
    start_index: int = Field(default=0, alias="startIndex", ge=0)
    files: List[GalleryFile] = Field(default_factory=list)


class ActivityImagePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    data_url: str = Field(alias="dataUrl")
    filename: Optional[str] = None


class PreviewPayload(BaseModel):
    body: str = ""


# --- Helpers --------------------------------------------------------------------

def _guard(request: Request) -> JSONResponse | None:
    _, error = _require_admin(request)
    if error:
        return error
    return _csrf_guard(request)


def _error_response(exc: Exception) -> JSONResponse:
    """Map domain and store errors onto the admin error contract."""
    if isinstance(exc, ContentValidationError):
        return _private_error(
            {"error": "bad_request", "detail": exc.reason, "fields": list(exc.fields)}, status_code=400
        )
    if isinstance(exc, ImageRejectedError):
        return _private_error({"error": "bad_request", "detail": exc.reason}, status_code=400)
    if isinstance(exc, StoreNotConfiguredError):
        return _private_error({"error": "storage_not_configured"}, status_code=503)
    if isinstance(exc, LookupError):
        return _private_error({"error": "not_found", "detail": str(exc.args[0]) if exc.args else None}, status_code=404)
    logger.warning("admin store call failed: %s: %s", exc.__class__.__name__, exc)
    return _private_error({"error": "store_error"}, status_code=502)


_HANDLED = (ContentValidationError, ImageRejectedError, StoreNotConfiguredError, LookupError) + _STORE_ERRORS


def _unknown_kind(kind: str) -> JSONResponse | None:
    if kind not in MARKDOWN_KINDS:
        return _private_error({"error": "not_found"}, status_code=404)
    return None


# --- Home kitchen -----------------------------------------------------------------

@admin_router.get("/api/admin/home-kitchen")
def admin_list_home_kitchen(
    request: Request,
    holiday: str | None = None,
    page: int = 1,
    page_size: int = Query(50, alias="pageSize"),
):
    _, error = _require_admin(request)
    if error:
        return error
    try:
        result = get_content_service().home_kitchen.list(
            include_drafts=True, holiday=holiday, page=page, page_size=page_size
        )
    except _HANDLED as exc:
        return _error_response(exc)
    return _json_private(result.to_dict())


@admin_router.get("/api/admin/home-kitchen/{slug}")
def admin_get_home_kitchen(request: Request, slug: str):
    _, error = _require_admin(request)
    if error:
        return error
    try:
        post = get_content_service().home_kitchen.get(slug)
    except _HANDLED as exc:
        return _error_response(exc)
    if post is None:
        return _private_error({"error": "not_found"}, status_code=404)
    return _json_private(post.to_dict())


@admin_router.post("/api/admin/home-kitchen/upsert")
def admin_upsert_home_kitchen(request: Request, payload: HomeKitchenUpsertPayload):
    error = _guard(request)
    if error:
        return error
    try:
        slug = get_content_service().save_home_kitchen(payload.model_dump())
    except _HANDLED as exc:
        return _error_response(exc)
    return _json_private({"ok": True, "slug": slug})


@admin_router.post("/api/admin/home-kitchen/delete")
def admin_delete_home_kitchen(request: Request, slug: str = Query(...)):
    error = _guard(request)
    if error:
        return error
    try:
        get_content_service().home_kitchen.delete(slug)
    except ValueError:
        return _private_error({"error": "bad_request", "detail": "invalid_id"}, status_code=400)
    except _HANDLED as exc:
        return _error_response(exc)
    return _json_private({"ok": True})


@admin_router.post("/api/admin/home-kitchen/images")
def admin_upload_home_kitchen_image(request: Request, payload: GalleryImagePayload):
    """Upload one gallery image at `imageIndex`; returns its URL."""
    error = _guard(request)
    if error:
        return error
    try:
        image = ingest_data_url(
            payload.data_url,
            max_bytes=get_media_max_upload_bytes(),
            converter=get_image_converter(),
            filename=payload.filename,
        )
        url = get_content_service().home_kitchen.upload_image(
            payload.slug, payload.image_index, image.body, image.content_type
        )
    except ValueError as exc:
        if isinstance(exc, (ImageRejectedError, ContentValidationError)):
            return _error_response(exc)
        return _private_error({"error": "bad_request", "detail": "invalid_id"}, status_code=400)
    except _HANDLED as exc:
        return _error_response(exc)
    return _json_private({"ok": True, "url": url})


@admin_router.post("/api/admin/home-kitchen/images/batch")
async def admin_upload_home_kitchen_batch(request: Request, payload: GalleryBatchPayload):
    """Upload several gallery images concurrently starting at `startIndex`.

    Failures are isolated per file; the response lists every file with
    either its URL or the rejection reason.
    """
    error = _guard(request)
    if error:
        return error
    repo = get_content_service().home_kitchen
    if not repo.configured:
        return _error_response(StoreNotConfiguredError())
    if not is_valid_id(payload.slug):
        return _private_error({"error": "bad_request", "detail": "invalid_id"}, status_code=400)
    sources: List[UploadSource] = []
    decode_errors: dict[int, str] = {}
    for idx, item in enumerate(payload.files):
        try:
            content_type, data = decode_data_url(item.data_url)
        except ImageRejectedError as exc:
            decode_errors[idx] = exc.reason
            content_type, data = None, b""
        sources.append(UploadSource(data=data, content_type=content_type, filename=item.filename))

    def _upload(index: int, image: IngestedImage) -> str:
        return repo.upload_image(payload.slug, payload.start_index + index, image.body, image.content_type)

    results = await ingest_batch(
        sources,
        _upload,
        max_bytes=get_media_max_upload_bytes(),
        converter=get_image_converter(),
    )
    items = []
    for result in results:
        reason = decode_errors.get(result.index, result.error)
        items.append(
            {
                "index": payload.start_index + result.index,
                "url": None if reason else result.url,
                "error": reason,
            }
        )
    return _json_private({"ok": all(i["error"] is None for i in items), "items": items})


# --- Activities -------------------------------------------------------------------

@admin_router.get("/api/admin/activities")
def admin_list_activities(request: Request):
    _, error = _require_admin(request)
    if error:
        return error
    try:
        activities = get_content_service().activities.list(include_drafts=True)
    except _HANDLED as exc:
        return _error_response(exc)
    except ValueError:
        return _private_error({"error": "store_error", "detail": "invalid_index"}, status_code=502)
    return _json_private({"items": [a.to_dict() for a in activities]})


@admin_router.post("/api/admin/activities/upsert")
def admin_upsert_activity(request: Request, payload: ActivityUpsertPayload):
    error = _guard(request)
    if error:
        return error
    try:
        activity = get_content_service().save_activity(payload.model_dump())
    except _HANDLED as exc:
        return _error_response(exc)
    except ValueError:
        return _private_error({"error": "store_error", "detail": "invalid_index"}, status_code=502)
    return _json_private({"ok": True, "activity": activity.to_dict()})


@admin_router.post("/api/admin/activities/delete")
def admin_delete_activity(request: Request, id: str = Query(...)):
    error = _guard(request)
    if error:
        return error
    try:
        get_content_service().activities.delete(id)
    except _HANDLED as exc:
        return _error_response(exc)
    except ValueError:
        return _private_error({"error": "store_error", "detail": "invalid_index"}, status_code=502)
    return _json_private({"ok": True})


@admin_router.post("/api/admin/activities/image")
def admin_upload_activity_image(request: Request, payload: ActivityImagePayload):
    """Upload the activity image; stored as `activities/images/{id}.jpg`."""
    error = _guard(request)
    if error:
        return error
    try:
        image = ingest_data_url(
            payload.data_url,
            max_bytes=get_media_max_upload_bytes(),
            converter=get_image_converter(),
            filename=payload.filename,
        )
        url = get_content_service().activities.upload_image(payload.id, image.body)
    except ValueError as exc:
        if isinstance(exc, (ImageRejectedError, ContentValidationError)):
            return _error_response(exc)
        return _private_error({"error": "bad_request", "detail": "invalid_id"}, status_code=400)
    except _HANDLED as exc:
        return _error_response(exc)
    return _json_private({"ok": True, "url": url})


@admin_router.get("/api/admin/activities/image/{activity_id}")
def admin_get_activity_image(request: Request, activity_id: str):
    _, error = _require_admin(request)
    if error:
        return error
    try:
        obj = get_content_service().activities.get_image(activity_id)
    except _HANDLED as exc:
        return _error_response(exc)
    if obj is None:
        return _private_error({"error": "not_found"}, status_code=404)
    return Response(
        content=obj.body,
        media_type=obj.content_type or "image/jpeg",
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )


# --- Preview ----------------------------------------------------------------------

@admin_router.post("/api/admin/preview")
def admin_preview(request: Request, payload: PreviewPayload):
    """Render markdown to sanitized HTML for the editor preview pane."""
    _, error = _require_admin(request)
    if error:
        return error
    return _json_private({"html": render_markdown_safe(payload.body)})


# --- Blogs and recipes --------------------------------------------------------------

@admin_router.get("/api/admin/{kind}")
def admin_list_markdown(
    request: Request,
    kind: str,
    category: str | None = None,
    page: int = 1,
    page_size: int = Query(50, alias="pageSize"),
):
    _, error = _require_admin(request)
    if error:
        return error
    unknown = _unknown_kind(kind)
    if unknown:
        return unknown
    try:
        result = get_content_service().markdown_repo(kind).list(
            include_drafts=True, category=category, page=page, page_size=page_size
        )
    except _HANDLED as exc:
        return _error_response(exc)
    return _json_private(result.to_dict())


@admin_router.get("/api/admin/{kind}/{doc_id}")
def admin_get_markdown(request: Request, kind: str, doc_id: str):
    _, error = _require_admin(request)
    if error:
        return error
    unknown = _unknown_kind(kind)
    if unknown:
        return unknown
    try:
        doc = get_content_service().markdown_repo(kind).get(doc_id)
    except _HANDLED as exc:
        return _error_response(exc)
    if doc is None:
        return _private_error({"error": "not_found"}, status_code=404)
    return _json_private(doc.to_dict())


@admin_router.post("/api/admin/{kind}/upsert")
def admin_upsert_markdown(request: Request, kind: str, payload: MarkdownUpsertPayload):
    """Create or overwrite a blog post/recipe; returns the effective id."""
    error = _guard(request)
    if error:
        return error
    unknown = _unknown_kind(kind)
    if unknown:
        return unknown
    try:
        doc_id = get_content_service().save_markdown(kind, payload.model_dump(by_alias=True))
    except _HANDLED as exc:
        return _error_response(exc)
    return _json_private({"ok": True, "id": doc_id})


@admin_router.post("/api/admin/{kind}/delete")
def admin_delete_markdown(request: Request, kind: str, id: str = Query(...)):
    error = _guard(request)
    if error:
        return error
    unknown = _unknown_kind(kind)
    if unknown:
        return unknown
    try:
        get_content_service().markdown_repo(kind).delete(id)
    except ValueError:
        return _private_error({"error": "bad_request", "detail": "invalid_id"}, status_code=400)
    except _HANDLED as exc:
        return _error_response(exc)
    return _json_private({"ok": True})


@admin_router.post("/api/admin/{kind}/cover")
def admin_upload_cover(request: Request, kind: str, payload: CoverPayload):
    """Upload the cover image to `{root}/{id}/images/cover.jpg`."""
    error = _guard(request)
    if error:
        return error
    unknown = _unknown_kind(kind)
    if unknown:
        return unknown
    try:
        image = ingest_data_url(
            payload.data_url,
            max_bytes=get_cover_max_upload_bytes(),
            converter=get_image_converter(),
            filename=payload.filename,
        )
        url = get_content_service().markdown_repo(kind).upload_cover(payload.id, image.body, image.content_type)
    except ValueError as exc:
        if isinstance(exc, (ImageRejectedError, ContentValidationError)):
            return _error_response(exc)
        return _private_error({"error": "bad_request", "detail": "invalid_id"}, status_code=400)
    except _HANDLED as exc:
        return _error_response(exc)
    return _json_private({"ok": True, "url": url})
