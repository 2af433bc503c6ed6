"""
Public read API (no session; drafts are never returned).

Behavior:
    - A missing store or a failing store call renders as an empty result;
      public pages never surface internal errors. Failures are logged.
    - Detail endpoints return 404 for absent and for unpublished content.
    - Handlers are sync so FastAPI runs the blocking store calls in its
      thread pool.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse, Response

from backend.content.domain import DEFAULT_PAGE_SIZE, paginate
from backend.content.holidays import HOLIDAYS, OTHER
from backend.web.storage_wiring import get_content_service

public_router = APIRouter(tags=["Public"])
logger = logging.getLogger("kitchen.web.public")

MEDIA_CACHE_CONTROL = "public, max-age=31536000, immutable"


def _not_found() -> JSONResponse:
    return JSONResponse({"error": "not_found"}, status_code=404)


def _empty_page(page: int, page_size: int) -> dict:
    return paginate([], page, page_size).to_dict()


def _list_markdown(kind: str, page: int, page_size: int, category: str | None) -> dict:
    repo = get_content_service().markdown_repo(kind)
    try:
        return repo.list(include_drafts=False, category=category, page=page, page_size=page_size).to_dict()
    except Exception as exc:
        logger.warning("public %s listing failed: %s: %s", kind, exc.__class__.__name__, exc)
        return _empty_page(page, page_size)


def _get_markdown(kind: str, doc_id: str):
    repo = get_content_service().markdown_repo(kind)
    try:
        doc = repo.get(doc_id)
    except Exception as exc:
        logger.warning("public %s fetch failed: %s: %s", kind, exc.__class__.__name__, exc)
        doc = None
    if doc is None or not doc.published:
        return _not_found()
    return doc.to_dict()


@public_router.get("/api/blogs")
def list_blogs(
    page: int = 1,
    page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize"),
    category: str | None = None,
):
    return _list_markdown("blogs", page, page_size, category)


@public_router.get("/api/blogs/{doc_id}")
def get_blog(doc_id: str):
    return _get_markdown("blogs", doc_id)


@public_router.get("/api/recipes")
def list_recipes(
    page: int = 1,
    page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize"),
    category: str | None = None,
):
    return _list_markdown("recipes", page, page_size, category)


@public_router.get("/api/recipes/{doc_id}")
def get_recipe(doc_id: str):
    return _get_markdown("recipes", doc_id)


@public_router.get("/api/home-kitchen")
def list_home_kitchen(
    holiday: str | None = None,
    page: int = 1,
    page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize"),
):
    repo = get_content_service().home_kitchen
    try:
        return repo.list(include_drafts=False, holiday=holiday, page=page, page_size=page_size).to_dict()
    except Exception as exc:
        logger.warning("public home kitchen listing failed: %s: %s", exc.__class__.__name__, exc)
        return _empty_page(page, page_size)


@public_router.get("/api/home-kitchen/holidays")
def list_holidays():
    """Holiday catalog in display order with published post counts."""
    try:
        counts = get_content_service().home_kitchen.count_by_holiday()
    except Exception as exc:
        logger.warning("holiday counts failed: %s: %s", exc.__class__.__name__, exc)
        counts = {}
    items = [dict(h.to_dict(), count=counts.get(h.name, 0)) for h in HOLIDAYS]
    return {"items": items, "other": counts.get(OTHER, 0)}


@public_router.get("/api/home-kitchen/{slug}")
def get_home_kitchen(slug: str):
    try:
        post = get_content_service().home_kitchen.get(slug)
    except Exception as exc:
        logger.warning("home kitchen fetch failed: %s: %s", exc.__class__.__name__, exc)
        post = None
    if post is None or not post.published:
        return _not_found()
    return post.to_dict()


@public_router.get("/api/activities")
def list_activities():
    try:
        activities = get_content_service().activities.list(include_drafts=False)
    except Exception as exc:
        logger.warning("activities listing failed: %s: %s", exc.__class__.__name__, exc)
        activities = []
    return {"items": [a.to_dict() for a in activities]}


@public_router.get("/api/media/{key:path}")
def get_media(key: str):
    """Serve stored image bytes when no public host fronts the bucket."""
    try:
        obj = get_content_service().get_media(key)
    except Exception as exc:
        logger.warning("media fetch failed key=%s: %s", key, exc.__class__.__name__)
        obj = None
    if obj is None:
        return _not_found()
    return Response(
        content=obj.body,
        media_type=obj.content_type or "application/octet-stream",
        headers={"Cache-Control": MEDIA_CACHE_CONTROL},
    )


@public_router.get("/health")
def health_check():
    # Security: include no-store to avoid caching any runtime status.
    store = "configured" if get_content_service().store is not None else "not_configured"
    return JSONResponse({"status": "healthy", "store": store}, headers={"Cache-Control": "private, no-store"})
