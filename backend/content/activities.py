"""
Activities: one JSON array at `activities/index.json` plus one image per id.

Concurrency:
    Every write is a read-modify-write of the whole index. `mutate()` runs
    that cycle under a process-local lock, so writers inside one process are
    serialized. Writers in different processes still race (last write wins);
    there is no conditional write against the store.
"""
from __future__ import annotations

import json
import logging
import threading
from typing import Callable, List, Optional

from backend.storage.keys import ACTIVITIES_INDEX_KEY, activity_image_key, is_valid_id
from backend.storage.ports import ObjectNotFoundError, StoredObject

from .domain import Activity, sort_by_date_desc
from .home_kitchen import JSON_CONTENT_TYPE
from .repository import RepositoryBase

_log = logging.getLogger("kitchen.content")

_index_lock = threading.Lock()


class ActivityRepository(RepositoryBase):

    def _read_index(self) -> List[Activity]:
        store = self._require_store()
        try:
            obj = store.get_object(ACTIVITIES_INDEX_KEY)
        except ObjectNotFoundError:
            return []
        if not obj.body.strip():
            return []
        data = json.loads(obj.body.decode("utf-8"))
        if not isinstance(data, list):
            raise ValueError("activities_index_not_a_list")
        return [Activity.from_dict(item) for item in data if isinstance(item, dict)]

    def _write_index(self, activities: List[Activity]) -> None:
        store = self._require_store()
        payload = json.dumps([a.to_dict() for a in activities], indent=2, ensure_ascii=False)
        store.put_object(ACTIVITIES_INDEX_KEY, payload.encode("utf-8"), JSON_CONTENT_TYPE)

    def list(self, *, include_drafts: bool = False) -> List[Activity]:
        """All activities newest first; `order` is stored but not used for sorting."""
        if self._store is None:
            return []
        activities = self._read_index()
        if not include_drafts:
            activities = [a for a in activities if a.published]
        return sort_by_date_desc(activities)

    def get(self, activity_id: str) -> Optional[Activity]:
        if self._store is None:
            return None
        return next((a for a in self._read_index() if a.id == activity_id), None)

    def mutate(self, transform: Callable[[List[Activity]], List[Activity]]) -> List[Activity]:
        """Read the index, apply `transform`, write the result back.

        `transform` may raise to abort; nothing is written in that case.
        """
        self._require_store()
        with _index_lock:
            current = self._read_index()
            updated = transform(list(current))
            self._write_index(updated)
        return updated

    def upsert(self, activity: Activity) -> str:
        """Replace the entry with the same id, or append a new one."""

        def _apply(items: List[Activity]) -> List[Activity]:
            for idx, existing in enumerate(items):
                if existing.id == activity.id:
                    items[idx] = activity
                    return items
            items.append(activity)
            return items

        self.mutate(_apply)
        _log.info("upserted activity id=%s", activity.id)
        return activity.id

    def delete(self, activity_id: str) -> None:
        """Remove the entry and its image; LookupError when the id is unknown."""
        store = self._require_store()

        def _apply(items: List[Activity]) -> List[Activity]:
            if not any(a.id == activity_id for a in items):
                raise LookupError("activity_not_found")
            if is_valid_id(activity_id):
                store.delete_objects([activity_image_key(activity_id)])
            return [a for a in items if a.id != activity_id]

        self.mutate(_apply)
        _log.info("deleted activity id=%s", activity_id)

    def upload_image(self, activity_id: str, body: bytes) -> str:
        """Store the activity image; always `{id}.jpg` as `image/jpeg`."""
        store = self._require_store()
        key = activity_image_key(activity_id)
        store.put_object(key, body, "image/jpeg")
        return self.url_for(key)

    def get_image(self, activity_id: str) -> Optional[StoredObject]:
        if self._store is None or not is_valid_id(activity_id):
            return None
        try:
            return self._store.get_object(activity_image_key(activity_id))
        except ObjectNotFoundError:
            return None


__all__ = ["ActivityRepository"]
