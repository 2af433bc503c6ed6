"""Home kitchen posts: `HomeKitchen/{slug}/post.json` plus an ordered gallery."""
from __future__ import annotations

import json
import logging
from typing import Dict, List, Optional

from backend.storage.keys import (
    HOME_KITCHEN_ROOT,
    MEDIA_PROXY_PREFIX,
    content_prefix,
    document_key,
    extension_for_content_type,
    gallery_image_key,
    id_from_document_key,
    is_valid_id,
)
from backend.storage.ports import ObjectNotFoundError

from .domain import DEFAULT_PAGE_SIZE, HomeKitchenPost, ListPage, paginate, sort_by_date_desc
from .holidays import OTHER, resolve_holiday_name
from .repository import RepositoryBase, is_absolute_url

_log = logging.getLogger("kitchen.content")

JSON_CONTENT_TYPE = "application/json"


class HomeKitchenRepository(RepositoryBase):
    root = HOME_KITCHEN_ROOT

    def _slugs(self) -> List[str]:
        store = self._require_store()
        out: List[str] = []
        for key in store.list_keys(f"{self.root}/"):
            slug = id_from_document_key(self.root, key, HomeKitchenPost.ext)
            if slug is not None:
                if not is_valid_id(slug):
                    _log.warning("skipping post with unusable slug key=%s", key)
                    continue
                out.append(slug)
        return out

    def _load(self, slug: str) -> Optional[HomeKitchenPost]:
        store = self._require_store()
        key = document_key(self.root, slug, HomeKitchenPost.ext)
        try:
            obj = store.get_object(key)
        except ObjectNotFoundError:
            return None
        try:
            data = json.loads(obj.body.decode("utf-8"))
        except ValueError as exc:
            _log.warning("skipping unparseable post key=%s error=%s", key, exc.__class__.__name__)
            return None
        if not isinstance(data, dict):
            _log.warning("skipping unparseable post key=%s error=not_an_object", key)
            return None
        post = HomeKitchenPost.from_dict(data)
        # The folder name is authoritative for addressing.
        post.slug = slug
        return post

    def _resolve_images(self, post: HomeKitchenPost) -> None:
        resolved: List[str] = []
        for idx, image in enumerate(post.images):
            if is_absolute_url(image) or image.startswith(MEDIA_PROXY_PREFIX):
                resolved.append(image)
            else:
                resolved.append(self.url_for(gallery_image_key(self.root, post.slug, idx)))
        post.images = resolved

    def _all(self, include_drafts: bool) -> List[HomeKitchenPost]:
        posts: List[HomeKitchenPost] = []
        for slug in self._slugs():
            post = self._load(slug)
            if post is None:
                continue
            if not include_drafts and not post.published:
                continue
            posts.append(post)
        return posts

    def list(
        self,
        *,
        include_drafts: bool = False,
        holiday: str | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> ListPage[HomeKitchenPost]:
        """Posts newest first; `holiday` accepts a catalog name or slug."""
        if self._store is None:
            return paginate([], page, page_size)
        posts = self._all(include_drafts)
        if holiday:
            wanted = resolve_holiday_name(holiday)
            posts = [p for p in posts if p.holiday == wanted]
        result = paginate(sort_by_date_desc(posts), page, page_size)
        for post in result.items:
            self._resolve_images(post)
        return result

    def get(self, slug: str) -> Optional[HomeKitchenPost]:
        if self._store is None or not is_valid_id(slug):
            return None
        post = self._load(slug)
        if post is not None:
            self._resolve_images(post)
        return post

    def count_by_holiday(self) -> Dict[str, int]:
        """Published post counts per holiday name; empty holiday counts as `Other`."""
        if self._store is None:
            return {}
        counts: Dict[str, int] = {}
        for post in self._all(include_drafts=False):
            name = post.holiday.strip() or OTHER
            counts[name] = counts.get(name, 0) + 1
        return counts

    def upsert(self, post: HomeKitchenPost) -> str:
        store = self._require_store()
        key = document_key(self.root, post.slug, HomeKitchenPost.ext)
        payload = json.dumps(post.to_dict(), indent=2, ensure_ascii=False)
        store.put_object(key, payload.encode("utf-8"), JSON_CONTENT_TYPE)
        _log.info("upserted key=%s images=%d", key, len(post.images))
        return post.slug

    def upload_image(self, slug: str, index: int, body: bytes, content_type: str) -> str:
        """Store gallery image `index`; the extension follows `content_type`."""
        store = self._require_store()
        ext = extension_for_content_type(content_type)
        key = gallery_image_key(self.root, slug, index, ext)
        store.put_object(key, body, content_type or "image/jpeg")
        return self.url_for(key)

    def delete(self, slug: str) -> None:
        self._delete_prefix(content_prefix(self.root, slug))


__all__ = ["HomeKitchenRepository"]
