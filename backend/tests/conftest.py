"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend, keep every test independent of
the developer's environment (no real bucket, no real admin secret) and give
tests an in-memory object store plus fake image converters.
"""
from __future__ import annotations

from io import BytesIO

import pytest
from PIL import Image

from backend.content.services import ContentService, build_content_service
from backend.storage.memory_store import InMemoryObjectStore
from backend.web import storage_wiring

PUBLIC_HOST = "https://cdn.example.com"

ADMIN_USERNAME = "chef"
ADMIN_PASSWORD = "s3cret-kitchen-pass"
ADMIN_SECRET = "x" * 48

_ENV_VARS = (
    "R2_ENDPOINT",
    "R2_ACCESS_KEY_ID",
    "R2_SECRET_ACCESS_KEY",
    "R2_BUCKET",
    "R2_REGION",
    "R2_PUBLIC_HOST",
    "ADMIN_USERNAME",
    "ADMIN_PASSWORD",
    "ADMIN_JWT_SECRET",
    "ADMIN_SESSION_TTL_SECONDS",
    "MEDIA_MAX_UPLOAD_BYTES",
    "MEDIA_COVER_MAX_BYTES",
    "MEDIA_JPEG_QUALITY",
    "AUTO_CREATE_STORAGE_BUCKETS",
    "STRICT_CSRF_ADMIN",
    "KITCHEN_TRUST_PROXY",
)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch):
    """Start every test from a dev environment without store or admin config."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("KITCHEN_ENV", "dev")
    storage_wiring.reset_wiring()
    yield
    storage_wiring.reset_wiring()


class FakeConverter:
    """Records calls and returns a recognizable JPEG stand-in."""

    def __init__(self):
        self.calls: list[str] = []

    def convert(self, data: bytes, declared_type: str) -> bytes:
        self.calls.append(declared_type)
        return b"\xff\xd8converted:" + data


class FailingConverter:
    def convert(self, data: bytes, declared_type: str) -> bytes:
        raise OSError("cannot identify image file")


@pytest.fixture
def fake_converter() -> FakeConverter:
    return FakeConverter()


@pytest.fixture
def failing_converter() -> FailingConverter:
    return FailingConverter()


@pytest.fixture
def store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def public_host() -> str:
    return PUBLIC_HOST


@pytest.fixture
def service(store: InMemoryObjectStore) -> ContentService:
    return build_content_service(store, public_host=PUBLIC_HOST)


@pytest.fixture
def admin_env(monkeypatch: pytest.MonkeyPatch) -> dict:
    monkeypatch.setenv("ADMIN_USERNAME", ADMIN_USERNAME)
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.setenv("ADMIN_JWT_SECRET", ADMIN_SECRET)
    storage_wiring.reset_wiring()
    return {"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD, "secret": ADMIN_SECRET}


@pytest.fixture
def wired(service: ContentService, admin_env: dict, fake_converter: FakeConverter) -> FakeConverter:
    """Route the web app to the in-memory service and a fake converter."""
    storage_wiring.set_content_service(service)
    storage_wiring.set_image_converter(fake_converter)
    return fake_converter


@pytest.fixture
def admin_headers(wired) -> dict:
    """Cookie header carrying a valid admin session for the wired app."""
    token = storage_wiring.get_session_guard().issue(ADMIN_USERNAME)
    return {"Cookie": f"admin_auth={token}"}


@pytest.fixture
def png_bytes() -> bytes:
    out = BytesIO()
    Image.new("RGB", (4, 3), "red").save(out, format="PNG")
    return out.getvalue()
