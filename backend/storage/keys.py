"""
Helpers to generate the object store key layout.

Why:
    The key layout is the on-disk contract shared with already stored
    content, so every path shape is built here and nowhere else.

Conventions:
    - Markdown kinds:  {root}/{id}/post.mdx, {root}/{id}/images/cover.jpg
    - Galleries:       {root}/{id}/images/image-{index}.{ext}
    - Home kitchen:    HomeKitchen/{id}/post.json
    - Activities:      activities/index.json, activities/images/{id}.jpg

Security:
    - Ids are checked against a conservative segment pattern so a caller can
      never address keys outside its own `{root}/{id}/` prefix.
"""
from __future__ import annotations

import re
from urllib.parse import quote

BLOGS_ROOT = "Blogs"
RECIPES_ROOT = "Recipes"
HOME_KITCHEN_ROOT = "HomeKitchen"
ACTIVITIES_ROOT = "activities"

ACTIVITIES_INDEX_KEY = f"{ACTIVITIES_ROOT}/index.json"
MEDIA_PROXY_PREFIX = "/api/media/"

IMAGE_KEY_PATTERN = re.compile(r"\.(png|jpe?g|webp|gif|avif|heic|heif)$", re.IGNORECASE)

_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")

_EXTENSIONS_BY_TYPE = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/pjpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/avif": "avif",
    "image/heic": "heic",
    "image/heif": "heif",
}


def is_valid_id(value: str) -> bool:
    """Return True when `value` is usable as a single key segment."""
    return bool(value) and bool(_ID_RE.match(value)) and ".." not in value


def _checked(content_id: str) -> str:
    if not is_valid_id(content_id):
        raise ValueError("invalid_id")
    return content_id


def content_prefix(root: str, content_id: str) -> str:
    """Return `{root}/{id}/`, the prefix owning a document and its images."""
    return f"{root}/{_checked(content_id)}/"


def document_key(root: str, content_id: str, ext: str) -> str:
    return f"{content_prefix(root, content_id)}post.{ext}"


def images_prefix(root: str, content_id: str) -> str:
    return f"{content_prefix(root, content_id)}images/"


def cover_key(root: str, content_id: str) -> str:
    return f"{images_prefix(root, content_id)}cover.jpg"


def gallery_image_key(root: str, content_id: str, index: int, ext: str = "jpg") -> str:
    if index < 0:
        raise ValueError("invalid_image_index")
    return f"{images_prefix(root, content_id)}image-{index}.{ext}"


def activity_image_key(activity_id: str) -> str:
    return f"{ACTIVITIES_ROOT}/images/{_checked(activity_id)}.jpg"


def id_from_document_key(root: str, key: str, ext: str) -> str | None:
    """Inverse of `document_key`; None when `key` is not a document key of `root`."""
    head = f"{root}/"
    tail = f"/post.{ext}"
    if not key.startswith(head) or not key.endswith(tail):
        return None
    middle = key[len(head): -len(tail)]
    if "/" in middle or not middle:
        return None
    return middle


def extension_for_content_type(content_type: str | None, default: str = "jpg") -> str:
    """Map an image MIME type to the file extension used in keys."""
    base = (content_type or "").split(";", 1)[0].strip().lower()
    return _EXTENSIONS_BY_TYPE.get(base, default)


def build_public_url(public_host: str | None, key: str) -> str | None:
    """Return `{publicHost}/{urlEncodedKey}` or None without a public host."""
    if not public_host:
        return None
    return f"{public_host.rstrip('/')}/{quote(key, safe='/')}"


def build_proxy_path(key: str) -> str:
    """Return the image proxy path served by the web adapter for `key`."""
    return f"{MEDIA_PROXY_PREFIX}{quote(key, safe='/')}"


def is_proxyable_image_key(key: str) -> bool:
    """Only image objects below the known roots may be served by the proxy."""
    if ".." in key or key.startswith("/"):
        return False
    if not IMAGE_KEY_PATTERN.search(key):
        return False
    parts = key.split("/")
    if parts[0] == ACTIVITIES_ROOT:
        return len(parts) == 3 and parts[1] == "images"
    if parts[0] in (BLOGS_ROOT, RECIPES_ROOT, HOME_KITCHEN_ROOT):
        return len(parts) == 4 and parts[2] == "images"
    return False


__all__ = [
    "BLOGS_ROOT",
    "RECIPES_ROOT",
    "HOME_KITCHEN_ROOT",
    "ACTIVITIES_ROOT",
    "ACTIVITIES_INDEX_KEY",
    "IMAGE_KEY_PATTERN",
    "is_valid_id",
    "content_prefix",
    "document_key",
    "images_prefix",
    "cover_key",
    "gallery_image_key",
    "activity_image_key",
    "id_from_document_key",
    "extension_for_content_type",
    "build_public_url",
    "build_proxy_path",
    "is_proxyable_image_key",
]
