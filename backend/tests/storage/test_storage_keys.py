"""
Object key layout.

Expected:
  - Every kind maps onto `{root}/{id}/...` and nothing escapes that prefix.
  - Public URLs encode the key; without a public host the proxy path is used.
  - Only image keys below the known roots are proxyable.
"""

from __future__ import annotations

import pytest

from backend.storage import keys


def test_document_and_image_keys():
    doc_id = "0b1e7c1a-3f2d-4c7e-9a11-7d1f9c2b6e10"
    assert keys.document_key(keys.RECIPES_ROOT, doc_id, "mdx") == f"Recipes/{doc_id}/post.mdx"
    assert keys.cover_key(keys.BLOGS_ROOT, doc_id) == f"Blogs/{doc_id}/images/cover.jpg"
    assert keys.gallery_image_key(keys.HOME_KITCHEN_ROOT, "thanksgiving-2024", 2) == (
        "HomeKitchen/thanksgiving-2024/images/image-2.jpg"
    )
    assert keys.gallery_image_key(keys.HOME_KITCHEN_ROOT, "easter", 0, "png").endswith("image-0.png")
    assert keys.activity_image_key("a1") == "activities/images/a1.jpg"
    assert keys.ACTIVITIES_INDEX_KEY == "activities/index.json"


@pytest.mark.parametrize("bad", ["", "../etc", "a/b", "..", "-leading", "x" * 200])
def test_invalid_ids_are_rejected(bad: str):
    assert keys.is_valid_id(bad) is False
    with pytest.raises(ValueError):
        keys.content_prefix(keys.BLOGS_ROOT, bad)


def test_negative_gallery_index_rejected():
    with pytest.raises(ValueError):
        keys.gallery_image_key(keys.HOME_KITCHEN_ROOT, "easter", -1)


def test_id_from_document_key_is_inverse():
    key = keys.document_key(keys.BLOGS_ROOT, "abc", "mdx")
    assert keys.id_from_document_key(keys.BLOGS_ROOT, key, "mdx") == "abc"
    assert keys.id_from_document_key(keys.BLOGS_ROOT, "Blogs/abc/images/cover.jpg", "mdx") is None
    assert keys.id_from_document_key(keys.BLOGS_ROOT, "Recipes/abc/post.mdx", "mdx") is None
    assert keys.id_from_document_key(keys.BLOGS_ROOT, "Blogs/a/b/post.mdx", "mdx") is None


def test_extension_for_content_type():
    assert keys.extension_for_content_type("image/png") == "png"
    assert keys.extension_for_content_type("image/jpeg; charset=binary") == "jpg"
    assert keys.extension_for_content_type("image/heic") == "heic"
    assert keys.extension_for_content_type(None) == "jpg"
    assert keys.extension_for_content_type("application/x-unknown") == "jpg"


def test_public_url_encodes_key_and_trims_host():
    url = keys.build_public_url("https://cdn.example.com/", "HomeKitchen/new year/images/image-0.jpg")
    assert url == "https://cdn.example.com/HomeKitchen/new%20year/images/image-0.jpg"
    assert keys.build_public_url(None, "Blogs/a/images/cover.jpg") is None
    assert keys.build_proxy_path("Blogs/a/images/cover.jpg") == "/api/media/Blogs/a/images/cover.jpg"


@pytest.mark.parametrize(
    "key,expected",
    [
        ("Blogs/a/images/cover.jpg", True),
        ("HomeKitchen/easter/images/image-1.heic", True),
        ("Recipes/a/images/cover.HEIF", True),
        ("Recipes/a/images/image-3.webp", True),
        ("HomeKitchen/easter/images/image-0.PNG", True),
        ("activities/images/a1.jpg", True),
        ("activities/index.json", False),
        ("Blogs/a/post.mdx", False),
        ("Blogs/../secret/images/x.jpg", False),
        ("/Blogs/a/images/cover.jpg", False),
        ("Private/a/images/cover.jpg", False),
    ],
)
def test_proxyable_image_keys(key: str, expected: bool):
    assert keys.is_proxyable_image_key(key) is expected
