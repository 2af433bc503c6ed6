"""
Activities index: one JSON array, read-modify-write under a lock.
"""
from __future__ import annotations

import json
import threading

import pytest

from backend.content.activities import ActivityRepository
from backend.content.domain import Activity
from backend.storage.keys import ACTIVITIES_INDEX_KEY
from backend.storage.memory_store import InMemoryObjectStore


@pytest.fixture
def repo(store: InMemoryObjectStore) -> ActivityRepository:
    return ActivityRepository(store, public_host="https://cdn.example.com")


def _activity(activity_id: str, date: str, *, published: bool = True, order: int = 0) -> Activity:
    return Activity(
        id=activity_id,
        title=f"Activity {activity_id}",
        description="Cooking class",
        date=date,
        order=order,
        published=published,
    )


def _index(store: InMemoryObjectStore) -> list:
    return json.loads(store.get_object(ACTIVITIES_INDEX_KEY).body)


def test_missing_index_lists_empty(repo: ActivityRepository):
    assert repo.list() == []
    assert repo.get("a1") is None


def test_upsert_appends_then_replaces(store: InMemoryObjectStore, repo: ActivityRepository):
    repo.upsert(_activity("a1", "2024-01-01"))
    repo.upsert(_activity("a2", "2024-02-01"))
    updated = _activity("a1", "2024-01-01")
    updated.title = "Renamed"
    repo.upsert(updated)

    stored = _index(store)
    assert [item["id"] for item in stored] == ["a1", "a2"]
    assert stored[0]["title"] == "Renamed"


def test_list_sorts_by_date_and_ignores_order(repo: ActivityRepository):
    repo.upsert(_activity("old", "2023-05-01", order=1))
    repo.upsert(_activity("new", "2024-05-01", order=9))
    repo.upsert(_activity("draft", "2025-01-01", published=False))
    assert [a.id for a in repo.list()] == ["new", "old"]
    assert [a.id for a in repo.list(include_drafts=True)] == ["draft", "new", "old"]


def test_order_field_is_preserved(store: InMemoryObjectStore, repo: ActivityRepository):
    repo.upsert(_activity("a1", "2024-01-01", order=7))
    assert _index(store)[0]["order"] == 7


def test_delete_removes_entry_and_image(store: InMemoryObjectStore, repo: ActivityRepository):
    repo.upsert(_activity("a1", "2024-01-01"))
    repo.upsert(_activity("a2", "2024-01-02"))
    repo.upload_image("a1", b"\xff\xd8")
    repo.delete("a1")
    assert [item["id"] for item in _index(store)] == ["a2"]
    assert "activities/images/a1.jpg" not in store.keys()


def test_delete_unknown_id_raises_and_writes_nothing(store: InMemoryObjectStore, repo: ActivityRepository):
    repo.upsert(_activity("a1", "2024-01-01"))
    before = store.get_object(ACTIVITIES_INDEX_KEY).body
    with pytest.raises(LookupError):
        repo.delete("nope")
    assert store.get_object(ACTIVITIES_INDEX_KEY).body == before


def test_image_is_always_jpeg(store: InMemoryObjectStore, repo: ActivityRepository):
    url = repo.upload_image("a1", b"png-bytes")
    assert url == "https://cdn.example.com/activities/images/a1.jpg"
    obj = repo.get_image("a1")
    assert obj.content_type == "image/jpeg"
    assert obj.body == b"png-bytes"
    assert repo.get_image("missing") is None


def test_mutate_abort_leaves_index_untouched(store: InMemoryObjectStore, repo: ActivityRepository):
    repo.upsert(_activity("a1", "2024-01-01"))

    def _boom(items):
        raise RuntimeError("abort")

    with pytest.raises(RuntimeError):
        repo.mutate(_boom)
    assert [item["id"] for item in _index(store)] == ["a1"]


def test_concurrent_upserts_in_one_process_are_not_lost(store: InMemoryObjectStore, repo: ActivityRepository):
    threads = [
        threading.Thread(target=repo.upsert, args=(_activity(f"a{idx}", f"2024-01-{idx + 1:02d}"),))
        for idx in range(20)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(_index(store)) == 20


def test_corrupt_index_is_an_error(store: InMemoryObjectStore, repo: ActivityRepository):
    store.put_object(ACTIVITIES_INDEX_KEY, b'{"not": "a list"}', "application/json")
    with pytest.raises(ValueError):
        repo.list()


def test_without_store():
    repo = ActivityRepository(None)
    assert repo.list() == []
    assert repo.get_image("a1") is None
