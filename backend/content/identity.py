"""
Content identifiers.

Deterministic ids map legacy slug-addressed content onto stable UUID-shaped
identifiers without a lookup table: `md5(slug)` reshaped into 8-4-4-4-12
groups. Fresh content without a slug gets a random UUID.
"""
from __future__ import annotations

import hashlib
import re
import uuid

_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")


def _as_uuid_shape(hex32: str) -> str:
    return f"{hex32[0:8]}-{hex32[8:12]}-{hex32[12:16]}-{hex32[16:20]}-{hex32[20:32]}"


def derive_id(slug: str, explicit_id: str | None = None) -> str:
    """Return `explicit_id` as-is when given, else the md5-derived id of `slug`.

    The explicit id is trusted and not re-validated as a UUID.
    """
    if explicit_id:
        return explicit_id
    digest = hashlib.md5(slug.encode("utf-8")).hexdigest()
    return _as_uuid_shape(digest)


def generate_id() -> str:
    """Return a fresh random id in the same hyphenated format."""
    return str(uuid.uuid4())


def resolve_id(*, explicit_id: str | None = None, slug: str | None = None) -> str:
    """Pick the effective id for an upsert.

    explicit id > id derived from slug > freshly generated id.
    """
    explicit = (explicit_id or "").strip()
    if explicit:
        return explicit
    slug_value = (slug or "").strip()
    if slug_value:
        return derive_id(slug_value)
    return generate_id()


def slugify_title(title: str) -> str:
    """Lowercase `title` and collapse non-alphanumeric runs into single dashes."""
    return _NON_SLUG_RE.sub("-", (title or "").lower()).strip("-")


__all__ = ["derive_id", "generate_id", "resolve_id", "slugify_title"]
