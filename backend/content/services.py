"""
Admin write use cases: validate a submitted payload, build the typed
document and hand it to the repository.

Validation runs before any store I/O and reports every missing field at
once (`ContentValidationError.fields`). Payload keys follow the JSON API
(camelCase).
"""
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Type, TypeVar

from backend.storage.keys import is_proxyable_image_key, is_valid_id
from backend.storage.ports import ObjectNotFoundError, ObjectStore, StoredObject

from .activities import ActivityRepository
from .domain import Activity, BlogPost, HomeKitchenPost, MarkdownDocument, Recipe, parse_tags
from .errors import ContentValidationError
from .holidays import resolve_holiday_name
from .home_kitchen import HomeKitchenRepository
from .identity import generate_id, resolve_id, slugify_title
from .repository import MarkdownRepository

D = TypeVar("D", bound=MarkdownDocument)


def _raw(payload: Mapping[str, Any], name: str) -> str:
    value = payload.get(name)
    return "" if value is None else str(value)


def _text(payload: Mapping[str, Any], name: str) -> str:
    return _raw(payload, name).strip()


def _missing(payload: Mapping[str, Any], names: List[str]) -> List[str]:
    return [n for n in names if not _text(payload, n)]


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _checked_id(value: str) -> str:
    if not is_valid_id(value):
        raise ContentValidationError(["id"], reason="invalid_id")
    return value


def build_markdown_document(doc_type: Type[D], payload: Mapping[str, Any]) -> D:
    """Blog/recipe payload -> document; title and date are required when published."""
    published = _as_bool(payload.get("published"), False)
    if published:
        missing = _missing(payload, ["title", "date"])
        if missing:
            raise ContentValidationError(missing)
    doc_id = _checked_id(resolve_id(explicit_id=_text(payload, "id"), slug=_text(payload, "slug")))
    return doc_type(
        id=doc_id,
        title=_raw(payload, "title"),
        date=_text(payload, "date"),
        excerpt=_raw(payload, "excerpt"),
        body=str(payload.get("body") or ""),
        cook_time=_text(payload, "cookTime") or None,
        difficulty=_text(payload, "difficulty") or None,
        servings=_text(payload, "servings") or None,
        category=_text(payload, "category") or None,
        tags=parse_tags(payload.get("tags")),
        published=published,
        cover_image=_text(payload, "coverImage") or None,
    )


def build_home_kitchen_post(payload: Mapping[str, Any]) -> HomeKitchenPost:
    """Title, holiday, date, description and at least one image are required."""
    missing = _missing(payload, ["title", "holiday", "date", "description"])
    images = [str(i) for i in (payload.get("images") or []) if i]
    if not images:
        missing.append("images")
    if missing:
        raise ContentValidationError(missing)
    title = _raw(payload, "title")
    slug = _text(payload, "slug") or slugify_title(title) or generate_id()
    return HomeKitchenPost(
        slug=_checked_id(slug),
        title=title,
        holiday=resolve_holiday_name(_text(payload, "holiday")),
        date=_text(payload, "date"),
        description=_raw(payload, "description"),
        location=_text(payload, "location") or None,
        images=images,
        tags=parse_tags(payload.get("tags")),
        published=_as_bool(payload.get("published"), True),
    )


def build_activity(payload: Mapping[str, Any]) -> Activity:
    """Id, title and description are required."""
    missing = _missing(payload, ["id", "title", "description"])
    if missing:
        raise ContentValidationError(missing)
    data = dict(payload)
    data["id"] = _checked_id(_text(payload, "id"))
    data["published"] = _as_bool(payload.get("published"), False)
    return Activity.from_dict(data)


class ContentService:
    """Admin-facing facade over the four repositories."""

    def __init__(
        self,
        *,
        blogs: MarkdownRepository,
        recipes: MarkdownRepository,
        home_kitchen: HomeKitchenRepository,
        activities: ActivityRepository,
        store: ObjectStore | None = None,
    ):
        self.store = store
        self.blogs = blogs
        self.recipes = recipes
        self.home_kitchen = home_kitchen
        self.activities = activities

    def get_media(self, key: str) -> Optional[StoredObject]:
        """Raw image bytes for the proxy; None when absent, unconfigured or not an image key."""
        if self.store is None or not is_proxyable_image_key(key):
            return None
        try:
            return self.store.get_object(key)
        except ObjectNotFoundError:
            return None

    def markdown_repo(self, kind: str) -> MarkdownRepository:
        if kind == "blogs":
            return self.blogs
        if kind == "recipes":
            return self.recipes
        raise LookupError("unknown_kind")

    def save_markdown(self, kind: str, payload: Mapping[str, Any]) -> str:
        repo = self.markdown_repo(kind)
        doc = build_markdown_document(repo.doc_type, payload)
        return repo.upsert(doc)

    def save_home_kitchen(self, payload: Mapping[str, Any]) -> str:
        return self.home_kitchen.upsert(build_home_kitchen_post(payload))

    def save_activity(self, payload: Mapping[str, Any]) -> Activity:
        activity = build_activity(payload)
        self.activities.upsert(activity)
        return activity


def build_content_service(store: ObjectStore | None, *, public_host: str | None = None) -> ContentService:
    """Wire the four repositories against one store."""
    return ContentService(
        blogs=MarkdownRepository(store, BlogPost, public_host=public_host),
        recipes=MarkdownRepository(store, Recipe, public_host=public_host),
        home_kitchen=HomeKitchenRepository(store, public_host=public_host),
        activities=ActivityRepository(store, public_host=public_host),
        store=store,
    )


__all__ = [
    "ContentService",
    "build_content_service",
    "build_markdown_document",
    "build_home_kitchen_post",
    "build_activity",
]
