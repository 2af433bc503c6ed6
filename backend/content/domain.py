"""
Content domain types.

Why:
    Each content kind is its own dataclass so the repositories can be generic
    over (key root, encoding) without sharing one loose structure with a pile
    of optional fields.

Notes:
    - Field names are snake_case in Python; `to_dict()` renders the
      camelCase names used by the stored documents and the JSON API.
    - `cover_url`/`cover_key` on markdown documents are derived on read and
      never written back into the document.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from math import ceil
from typing import Any, ClassVar, Dict, Generic, List, Mapping, Optional, TypeVar

from backend.storage.keys import BLOGS_ROOT, HOME_KITCHEN_ROOT, RECIPES_ROOT

T = TypeVar("T")

MAX_PAGE_SIZE = 50
DEFAULT_PAGE_SIZE = 10


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_tags(value: Any) -> List[str]:
    """Accept a list or a comma separated string; drop empty entries."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(v) for v in value if v is not None]
    else:
        return []
    return [t.strip() for t in items if t.strip()]


@dataclass
class MarkdownDocument:
    """Front-matter + markdown body document (blog posts and recipes)."""

    root: ClassVar[str] = ""
    ext: ClassVar[str] = "mdx"

    id: str
    title: str = ""
    date: str = ""
    excerpt: str = ""
    body: str = ""
    cook_time: Optional[str] = None
    difficulty: Optional[str] = None
    servings: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    published: bool = False
    cover_image: Optional[str] = None
    cover_url: Optional[str] = None
    cover_key: Optional[str] = None

    @classmethod
    def from_front_matter(cls, doc_id: str, data: Mapping[str, Any], body: str):
        return cls(
            id=doc_id,
            title=str(data.get("title") or ""),
            date=str(data.get("date") or ""),
            excerpt=str(data.get("excerpt") or ""),
            body=body,
            cook_time=_opt_str(data.get("cookTime")),
            difficulty=_opt_str(data.get("difficulty")),
            servings=_opt_str(data.get("servings")),
            category=_opt_str(data.get("category")),
            tags=parse_tags(data.get("tags")),
            published=data.get("published") is True,
            cover_image=_opt_str(data.get("coverImage")),
        )

    def front_matter(self) -> Dict[str, Any]:
        """Return the front-matter mapping; only fields that carry a value."""
        fm: Dict[str, Any] = {}
        if self.title:
            fm["title"] = self.title
        if self.date:
            fm["date"] = self.date
        if self.excerpt:
            fm["excerpt"] = self.excerpt
        if self.cook_time:
            fm["cookTime"] = self.cook_time
        if self.difficulty:
            fm["difficulty"] = self.difficulty
        if self.servings:
            fm["servings"] = self.servings
        if self.category:
            fm["category"] = self.category
        if self.tags:
            fm["tags"] = list(self.tags)
        fm["published"] = bool(self.published)
        if self.cover_image:
            fm["coverImage"] = self.cover_image
        return fm

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "date": self.date,
            "excerpt": self.excerpt,
            "body": self.body,
            "cookTime": self.cook_time,
            "difficulty": self.difficulty,
            "servings": self.servings,
            "category": self.category,
            "tags": list(self.tags),
            "published": self.published,
            "coverImage": self.cover_url or self.cover_image,
        }


@dataclass
class BlogPost(MarkdownDocument):
    root: ClassVar[str] = BLOGS_ROOT


@dataclass
class Recipe(MarkdownDocument):
    root: ClassVar[str] = RECIPES_ROOT


@dataclass
class HomeKitchenPost:
    """Holiday meal post stored as JSON; `images` keeps upload order."""

    root: ClassVar[str] = HOME_KITCHEN_ROOT
    ext: ClassVar[str] = "json"

    slug: str
    title: str = ""
    holiday: str = ""
    date: str = ""
    description: str = ""
    location: Optional[str] = None
    images: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    published: bool = True

    @property
    def id(self) -> str:
        return self.slug

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "HomeKitchenPost":
        images = data.get("images") or []
        return cls(
            slug=str(data.get("slug") or ""),
            title=str(data.get("title") or ""),
            holiday=str(data.get("holiday") or ""),
            date=str(data.get("date") or ""),
            description=str(data.get("description") or ""),
            location=_opt_str(data.get("location")),
            images=[str(i) for i in images if i],
            tags=parse_tags(data.get("tags")),
            # Only an explicit false hides a post.
            published=data.get("published") is not False,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slug": self.slug,
            "title": self.title,
            "holiday": self.holiday,
            "date": self.date,
            "description": self.description,
            "location": self.location,
            "images": list(self.images),
            "tags": list(self.tags),
            "published": self.published,
        }


@dataclass
class Activity:
    """Carousel entry; all activities share one JSON index document."""

    id: str
    title: str = ""
    description: str = ""
    image: str = ""
    location: Optional[str] = None
    link: Optional[str] = None
    date: str = ""
    order: int = 0
    published: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Activity":
        try:
            order = int(data.get("order") or 0)
        except (TypeError, ValueError):
            order = 0
        return cls(
            id=str(data.get("id") or ""),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            image=str(data.get("image") or ""),
            location=_opt_str(data.get("location")),
            link=_opt_str(data.get("link")),
            date=str(data.get("date") or ""),
            order=order,
            published=bool(data.get("published")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "image": self.image,
            "location": self.location,
            "link": self.link,
            "date": self.date,
            "order": self.order,
            "published": self.published,
        }


@dataclass
class ListPage(Generic[T]):
    items: List[T]
    total: int
    page: int
    page_size: int

    @property
    def page_count(self) -> int:
        return max(1, ceil(self.total / self.page_size))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],  # type: ignore[attr-defined]
            "total": self.total,
            "page": self.page,
            "pageSize": self.page_size,
            "pageCount": self.page_count,
        }


def clamp_page(page: Any) -> int:
    try:
        value = int(page)
    except (TypeError, ValueError):
        return 1
    return max(1, value)


def clamp_page_size(page_size: Any, default: int = DEFAULT_PAGE_SIZE) -> int:
    try:
        value = int(page_size)
    except (TypeError, ValueError):
        return default
    return min(MAX_PAGE_SIZE, max(1, value))


def paginate(items: List[T], page: Any = 1, page_size: Any = DEFAULT_PAGE_SIZE) -> ListPage[T]:
    """Slice an already filtered and sorted list into one page."""
    p = clamp_page(page)
    size = clamp_page_size(page_size)
    start = (p - 1) * size
    return ListPage(items=items[start:start + size], total=len(items), page=p, page_size=size)


def sort_by_date_desc(items: List[T]) -> List[T]:
    """Newest first; ISO dates compare correctly as strings. Stable for ties."""
    return sorted(items, key=lambda item: getattr(item, "date", "") or "", reverse=True)


__all__ = [
    "MarkdownDocument",
    "BlogPost",
    "Recipe",
    "HomeKitchenPost",
    "Activity",
    "ListPage",
    "parse_tags",
    "paginate",
    "sort_by_date_desc",
    "clamp_page",
    "clamp_page_size",
    "MAX_PAGE_SIZE",
    "DEFAULT_PAGE_SIZE",
]
