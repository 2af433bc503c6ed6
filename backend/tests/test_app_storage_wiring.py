"""
App wiring: object store, content service and session guard

Why:
    Routes obtain their collaborators lazily from `storage_wiring`. This test
    verifies that the environment decides what gets built: a MinIO-backed
    service when R2_* is complete, a store-less service otherwise, and a
    session guard only when the admin credential is configured.

Notes:
    - Building the MinIO client performs no network call, so the test stays
      offline.
"""
from __future__ import annotations

import pytest

from backend.storage.minio_store import MinioObjectStore
from backend.web import storage_wiring


def test_service_without_store_env():
    service = storage_wiring.get_content_service()
    assert service.store is None
    assert service.recipes.configured is False
    assert storage_wiring.get_content_service() is service


def test_service_with_store_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("R2_ENDPOINT", "http://localhost:9000")
    monkeypatch.setenv("R2_ACCESS_KEY_ID", "minio")
    monkeypatch.setenv("R2_SECRET_ACCESS_KEY", "minio-secret")
    monkeypatch.setenv("R2_BUCKET", "kitchen")
    monkeypatch.setenv("R2_PUBLIC_HOST", "https://cdn.example.com")
    service = storage_wiring.get_content_service()
    assert isinstance(service.store, MinioObjectStore)
    assert service.blogs.url_for("Blogs/a/images/cover.jpg") == "https://cdn.example.com/Blogs/a/images/cover.jpg"


def test_session_guard_requires_admin_config(monkeypatch: pytest.MonkeyPatch):
    assert storage_wiring.get_admin_config() is None
    assert storage_wiring.get_session_guard() is None
    monkeypatch.setenv("ADMIN_USERNAME", "chef")
    monkeypatch.setenv("ADMIN_PASSWORD", "pw")
    monkeypatch.setenv("ADMIN_JWT_SECRET", "j" * 40)
    monkeypatch.setenv("ADMIN_SESSION_TTL_SECONDS", "60")
    storage_wiring.reset_wiring()
    guard = storage_wiring.get_session_guard()
    assert guard is not None
    assert guard.ttl_seconds == 60
    assert guard.verify(guard.issue("chef")).username == "chef"


def test_set_helpers_override_lazy_wiring(fake_converter):
    storage_wiring.set_image_converter(fake_converter)
    assert storage_wiring.get_image_converter() is fake_converter
    storage_wiring.reset_wiring()
    assert storage_wiring.get_image_converter() is not fake_converter
