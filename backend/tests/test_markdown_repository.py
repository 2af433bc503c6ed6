"""
Blog/recipe repository over the in-memory store.

Expected:
  - Public listings hide drafts; admin listings include them.
  - Pages are newest first and `pageCount = max(1, ceil(total / pageSize))`.
  - Covers resolve to `cover.*`, else the first image; absolute URLs win.
  - Deleting a document removes every key under its prefix.
  - Without a store, reads are empty and writes fail with a typed error.
"""
from __future__ import annotations

import pytest

from backend.content.domain import BlogPost, Recipe
from backend.content.errors import StoreNotConfiguredError
from backend.content.identity import derive_id
from backend.content.repository import MarkdownRepository
from backend.content.services import build_markdown_document
from backend.storage.memory_store import InMemoryObjectStore

HOST = "https://cdn.example.com"


def _recipe(doc_id: str, date: str, *, published: bool = True, **extra) -> Recipe:
    return Recipe(id=doc_id, title=doc_id.title(), date=date, published=published, body=f"# {doc_id}\n", **extra)


@pytest.fixture
def recipes(store: InMemoryObjectStore) -> MarkdownRepository:
    return MarkdownRepository(store, Recipe, public_host=HOST)


def test_lemon_cake_draft_is_hidden_publicly_but_listed_for_admin(recipes: MarkdownRepository):
    doc = build_markdown_document(
        Recipe, {"slug": "lemon-cake", "title": "Lemon Cake", "date": "2024-03-01", "published": False}
    )
    recipes.upsert(doc)

    assert recipes.list(include_drafts=False).items == []
    admin_items = recipes.list(include_drafts=True).items
    assert [d.id for d in admin_items] == [derive_id("lemon-cake")]
    assert admin_items[0].title == "Lemon Cake"


def test_upsert_then_get_round_trips_fields(recipes: MarkdownRepository):
    doc = _recipe(
        "r1",
        "2024-05-02",
        excerpt="Quick one",
        cook_time="30 min",
        difficulty="easy",
        servings="4",
        category="Dessert",
        tags=["citrus", "cake"],
    )
    recipes.upsert(doc)
    loaded = recipes.get("r1")
    assert loaded is not None
    assert (loaded.title, loaded.date, loaded.excerpt, loaded.body) == ("R1", "2024-05-02", "Quick one", "# r1\n")
    assert (loaded.cook_time, loaded.difficulty, loaded.servings) == ("30 min", "easy", "4")
    assert loaded.category == "Dessert"
    assert loaded.tags == ["citrus", "cake"]
    assert loaded.published is True


def test_get_returns_drafts_and_none_for_unknown(recipes: MarkdownRepository):
    recipes.upsert(_recipe("draft", "2024-01-01", published=False))
    assert recipes.get("draft").published is False
    assert recipes.get("missing") is None
    assert recipes.get("../escape") is None


def test_only_literal_true_publishes(store: InMemoryObjectStore, recipes: MarkdownRepository):
    store.put_object("Recipes/quoted/post.mdx", b"---\ntitle: Q\npublished: 'true'\n---\n", "text/markdown")
    store.put_object("Recipes/absent/post.mdx", b"---\ntitle: A\n---\n", "text/markdown")
    assert recipes.list().items == []
    assert {d.id for d in recipes.list(include_drafts=True).items} == {"quoted", "absent"}


def test_listing_is_newest_first_and_paginated(recipes: MarkdownRepository):
    dates = ["2024-01-05", "2024-03-01", "2023-12-24", "2024-02-14", "2024-03-15"]
    for idx, date in enumerate(dates):
        recipes.upsert(_recipe(f"r{idx}", date))

    first = recipes.list(page=1, page_size=2)
    assert [d.date for d in first.items] == ["2024-03-15", "2024-03-01"]
    assert (first.total, first.page, first.page_size, first.page_count) == (5, 1, 2, 3)

    last = recipes.list(page=3, page_size=2)
    assert [d.date for d in last.items] == ["2023-12-24"]

    beyond = recipes.list(page=9, page_size=2)
    assert beyond.items == [] and beyond.total == 5


def test_page_size_is_clamped(recipes: MarkdownRepository):
    for idx in range(3):
        recipes.upsert(_recipe(f"r{idx}", f"2024-01-0{idx + 1}"))
    assert recipes.list(page_size=500).page_size == 50
    assert recipes.list(page_size=0).page_size == 1
    assert recipes.list(page=-4).page == 1


def test_empty_listing_has_one_page(recipes: MarkdownRepository):
    result = recipes.list()
    assert result.to_dict() == {"items": [], "total": 0, "page": 1, "pageSize": 10, "pageCount": 1}


def test_listing_follows_store_continuation():
    store = InMemoryObjectStore(page_size=2)
    repo = MarkdownRepository(store, BlogPost, public_host=HOST)
    for idx in range(7):
        repo.upsert(BlogPost(id=f"b{idx}", title=f"B{idx}", date=f"2024-01-1{idx}", published=True))
    assert repo.list(page_size=50).total == 7
    assert sorted(repo.list_ids()) == [f"b{idx}" for idx in range(7)]


def test_category_filter_is_case_insensitive(recipes: MarkdownRepository):
    recipes.upsert(_recipe("cake", "2024-01-01", category="Dessert"))
    recipes.upsert(_recipe("soup", "2024-01-02", category="Soup"))
    assert [d.id for d in recipes.list(category="dessert").items] == ["cake"]


def test_unparseable_documents_are_skipped(store: InMemoryObjectStore, recipes: MarkdownRepository):
    recipes.upsert(_recipe("ok", "2024-01-01"))
    store.put_object("Recipes/broken/post.mdx", b"---\n- not\n- a mapping\n---\n", "text/markdown")
    store.put_object("Recipes/binary/post.mdx", b"\xff\xfe\x00", "text/markdown")
    assert [d.id for d in recipes.list().items] == ["ok"]


def test_folders_with_unusable_ids_are_skipped(store: InMemoryObjectStore, recipes: MarkdownRepository):
    recipes.upsert(_recipe("good", "2024-01-01"))
    store.put_object("Recipes/legacy post/post.mdx", b"---\ntitle: Old\npublished: true\n---\n", "text/markdown")
    assert recipes.list_ids() == ["good"]
    assert [d.id for d in recipes.list().items] == ["good"]


def test_cover_prefers_cover_file_then_first_image(store: InMemoryObjectStore, recipes: MarkdownRepository):
    recipes.upsert(_recipe("with-cover", "2024-01-02"))
    store.put_object("Recipes/with-cover/images/a-step.jpg", b"1", "image/jpeg")
    store.put_object("Recipes/with-cover/images/cover.png", b"2", "image/png")
    recipes.upsert(_recipe("no-cover", "2024-01-01"))
    store.put_object("Recipes/no-cover/images/image-1.webp", b"3", "image/webp")
    store.put_object("Recipes/no-cover/images/notes.txt", b"4", "text/plain")

    by_id = {d.id: d for d in recipes.list().items}
    assert by_id["with-cover"].cover_url == f"{HOST}/Recipes/with-cover/images/cover.png"
    assert by_id["with-cover"].cover_key == "Recipes/with-cover/images/cover.png"
    assert by_id["no-cover"].cover_url == f"{HOST}/Recipes/no-cover/images/image-1.webp"


def test_absolute_cover_image_is_used_verbatim(store: InMemoryObjectStore, recipes: MarkdownRepository):
    recipes.upsert(_recipe("ext", "2024-01-01", cover_image="https://images.example.org/pie.jpg"))
    store.put_object("Recipes/ext/images/cover.jpg", b"1", "image/jpeg")
    doc = recipes.get("ext")
    assert doc.cover_url == "https://images.example.org/pie.jpg"
    assert doc.to_dict()["coverImage"] == "https://images.example.org/pie.jpg"


def test_cover_url_uses_proxy_path_without_public_host(store: InMemoryObjectStore):
    repo = MarkdownRepository(store, Recipe, public_host=None)
    repo.upsert(_recipe("r", "2024-01-01"))
    url = repo.upload_cover("r", b"\xff\xd8", "image/jpeg")
    assert url == "/api/media/Recipes/r/images/cover.jpg"
    assert repo.get("r").cover_url == url


def test_cover_is_not_written_back_into_document(store: InMemoryObjectStore, recipes: MarkdownRepository):
    recipes.upsert(_recipe("r", "2024-01-01"))
    recipes.upload_cover("r", b"\xff\xd8", "image/jpeg")
    doc = recipes.get("r")
    recipes.upsert(doc)
    assert b"coverImage" not in store.get_object("Recipes/r/post.mdx").body


def test_delete_removes_document_and_images(store: InMemoryObjectStore, recipes: MarkdownRepository):
    recipes.upsert(_recipe("gone", "2024-01-01"))
    recipes.upload_cover("gone", b"\xff\xd8", "image/jpeg")
    store.put_object("Recipes/gone/images/image-0.jpg", b"1", "image/jpeg")
    recipes.upsert(_recipe("kept", "2024-01-01"))

    recipes.delete("gone")
    assert [k for k in store.keys() if k.startswith("Recipes/gone/")] == []
    assert recipes.get("kept") is not None


def test_kinds_do_not_see_each_other(store: InMemoryObjectStore, recipes: MarkdownRepository):
    blogs = MarkdownRepository(store, BlogPost, public_host=HOST)
    blogs.upsert(BlogPost(id="b", title="B", date="2024-01-01", published=True))
    assert recipes.list().total == 0
    assert blogs.list().total == 1


def test_without_store_reads_are_empty_and_writes_fail():
    repo = MarkdownRepository(None, Recipe)
    assert repo.configured is False
    assert repo.list().items == []
    assert repo.list_ids() == []
    assert repo.get("r") is None
    with pytest.raises(StoreNotConfiguredError):
        repo.upsert(_recipe("r", "2024-01-01"))
    with pytest.raises(StoreNotConfiguredError):
        repo.delete("r")
