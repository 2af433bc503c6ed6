"""
Content repositories over the object store.

Intent:
    Map each content kind onto its key prefix convention and offer
    list/get/upsert/delete with draft filtering, pagination and cover/image
    resolution. The store only moves bytes; every rule about what a key
    means lives here.

Behavior:
    - Without a store (`store is None`) reads return empty results and writes
      raise `StoreNotConfiguredError`.
    - Store I/O errors propagate unchanged; there are no retries.
    - Writes are unconditional overwrites (last write wins).
    - Deletes remove every key under `{root}/{id}/`; a failing batch is
      reported, not rolled back.
"""
from __future__ import annotations

import logging
from typing import Generic, List, Optional, Type, TypeVar

from backend.storage.keys import (
    IMAGE_KEY_PATTERN,
    build_proxy_path,
    build_public_url,
    content_prefix,
    cover_key,
    document_key,
    id_from_document_key,
    images_prefix,
    is_valid_id,
)
from backend.storage.ports import ObjectNotFoundError, ObjectStore

from . import frontmatter
from .domain import (
    DEFAULT_PAGE_SIZE,
    ListPage,
    MarkdownDocument,
    paginate,
    sort_by_date_desc,
)
from .errors import StoreNotConfiguredError

_log = logging.getLogger("kitchen.content")

MARKDOWN_CONTENT_TYPE = "text/markdown; charset=utf-8"

D = TypeVar("D", bound=MarkdownDocument)


def is_absolute_url(value: str | None) -> bool:
    return bool(value) and value.lower().startswith(("http://", "https://"))


class RepositoryBase:
    """Shared plumbing: store presence, URL building, prefix deletes."""

    def __init__(self, store: ObjectStore | None, *, public_host: str | None = None):
        self._store = store
        self._public_host = (public_host or "").rstrip("/") or None

    @property
    def configured(self) -> bool:
        return self._store is not None

    def _require_store(self) -> ObjectStore:
        if self._store is None:
            raise StoreNotConfiguredError()
        return self._store

    def url_for(self, key: str) -> str:
        """Public URL of `key`, or the image proxy path without a public host."""
        return build_public_url(self._public_host, key) or build_proxy_path(key)

    def _delete_prefix(self, prefix: str) -> List[str]:
        store = self._require_store()
        keys = store.list_keys(prefix)
        if keys:
            store.delete_objects(keys)
        _log.info("deleted prefix=%s keys=%d", prefix, len(keys))
        return keys


class MarkdownRepository(RepositoryBase, Generic[D]):
    """Repository for front-matter documents at `{root}/{id}/post.mdx`."""

    def __init__(self, store: ObjectStore | None, doc_type: Type[D], *, public_host: str | None = None):
        super().__init__(store, public_host=public_host)
        self._doc_type = doc_type
        self._root = doc_type.root
        self._ext = doc_type.ext

    @property
    def root(self) -> str:
        return self._root

    @property
    def doc_type(self) -> Type[D]:
        return self._doc_type

    # --- reads ----------------------------------------------------------------

    def list_ids(self) -> List[str]:
        """Ids of every stored document (drafts included); no document fetches."""
        if self._store is None:
            return []
        ids: List[str] = []
        for key in self._store.list_keys(f"{self._root}/"):
            doc_id = id_from_document_key(self._root, key, self._ext)
            if doc_id is not None:
                if not is_valid_id(doc_id):
                    _log.warning("skipping document with unusable id key=%s", key)
                    continue
                ids.append(doc_id)
        return ids

    def list(
        self,
        *,
        include_drafts: bool = False,
        category: str | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> ListPage[D]:
        if self._store is None:
            return paginate([], page, page_size)
        docs: List[D] = []
        for doc_id in self.list_ids():
            doc = self._load(doc_id)
            if doc is None:
                continue
            if not include_drafts and not doc.published:
                continue
            if category and (doc.category or "").strip().lower() != category.strip().lower():
                continue
            docs.append(doc)
        result = paginate(sort_by_date_desc(docs), page, page_size)
        for doc in result.items:
            self._resolve_cover(doc)
        return result

    def get(self, doc_id: str) -> Optional[D]:
        """Return the document or None when absent (drafts included)."""
        if self._store is None or not is_valid_id(doc_id):
            return None
        doc = self._load(doc_id)
        if doc is not None:
            self._resolve_cover(doc)
        return doc

    def _load(self, doc_id: str) -> Optional[D]:
        store = self._require_store()
        key = document_key(self._root, doc_id, self._ext)
        try:
            obj = store.get_object(key)
        except ObjectNotFoundError:
            return None
        try:
            data, body = frontmatter.parse(obj.body.decode("utf-8"))
        except (UnicodeDecodeError, frontmatter.FrontMatterError) as exc:
            _log.warning("skipping unparseable document key=%s error=%s", key, exc.__class__.__name__)
            return None
        return self._doc_type.from_front_matter(doc_id, data, body)

    def _resolve_cover(self, doc: D) -> None:
        if is_absolute_url(doc.cover_image):
            doc.cover_url = doc.cover_image
            return
        store = self._require_store()
        images = [k for k in store.list_keys(images_prefix(self._root, doc.id)) if IMAGE_KEY_PATTERN.search(k)]
        if not images:
            doc.cover_url = doc.cover_image or None
            return
        chosen = next((k for k in images if k.rsplit("/", 1)[-1].lower().startswith("cover.")), images[0])
        doc.cover_key = chosen
        doc.cover_url = self.url_for(chosen)

    # --- writes ---------------------------------------------------------------

    def upsert(self, doc: D) -> str:
        """Overwrite the document key; returns the effective id."""
        store = self._require_store()
        key = document_key(self._root, doc.id, self._ext)
        text = frontmatter.dump(doc.front_matter(), doc.body)
        store.put_object(key, text.encode("utf-8"), MARKDOWN_CONTENT_TYPE)
        _log.info("upserted key=%s published=%s", key, doc.published)
        return doc.id

    def upload_cover(self, doc_id: str, body: bytes, content_type: str) -> str:
        """Store the cover at `images/cover.jpg` and return its URL."""
        store = self._require_store()
        key = cover_key(self._root, doc_id)
        store.put_object(key, body, content_type or "image/jpeg")
        return self.url_for(key)

    def delete(self, doc_id: str) -> None:
        """Delete the document and every image under its prefix."""
        self._delete_prefix(content_prefix(self._root, doc_id))


__all__ = ["RepositoryBase", "MarkdownRepository", "MARKDOWN_CONTENT_TYPE", "is_absolute_url"]
