"""In-memory object store for tests and offline development."""
from __future__ import annotations

from typing import Dict, Iterable, List, Tuple
import threading

from .ports import ObjectNotFoundError, StoredObject


class InMemoryObjectStore:
    """Dict-backed `ObjectStore` with S3-like lexicographic listing.

    `page_size` emulates paginated listings so callers exercising
    continuation behaviour see the same results as against a real bucket.
    """

    def __init__(self, page_size: int = 1000):
        self._objects: Dict[str, Tuple[bytes, str]] = {}
        self._lock = threading.Lock()
        self.page_size = page_size
        self.list_calls = 0

    def get_object(self, key: str) -> StoredObject:
        with self._lock:
            item = self._objects.get(key)
        if item is None:
            raise ObjectNotFoundError(key)
        return StoredObject(body=item[0], content_type=item[1])

    def put_object(self, key: str, body: bytes, content_type: str) -> None:
        with self._lock:
            self._objects[key] = (bytes(body), content_type)

    def list_page(self, prefix: str, start_after: str | None = None) -> Tuple[List[str], str | None]:
        """Return one page of keys and the continuation marker (or None)."""
        with self._lock:
            keys = sorted(k for k in self._objects if k.startswith(prefix))
        if start_after is not None:
            keys = [k for k in keys if k > start_after]
        page = keys[: self.page_size]
        token = page[-1] if len(keys) > self.page_size else None
        return page, token

    def list_keys(self, prefix: str) -> List[str]:
        out: List[str] = []
        token: str | None = None
        while True:
            self.list_calls += 1
            page, token = self.list_page(prefix, token)
            out.extend(page)
            if token is None:
                return out

    def delete_objects(self, keys: Iterable[str]) -> None:
        with self._lock:
            for key in keys:
                self._objects.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._objects)


__all__ = ["InMemoryObjectStore"]
