"""
Shared wiring of the object store, content service and admin session guard.

Why:
    Routes need one content service, one image converter and one session
    guard per process. They are built lazily from the environment on first
    use so importing the app never touches the network, and tests can swap
    any of them with the `set_*` helpers.

Security:
    Store credentials and the JWT secret stay server-side; routes only ever
    receive the built objects.
"""
from __future__ import annotations

import logging

from backend.content.services import ContentService, build_content_service
from backend.identity_access.credentials import AdminConfig, load_admin_config
from backend.identity_access.tokens import SessionGuard
from backend.media.ingest import HeifConverter, ImageConverter
from backend.storage.bootstrap import build_object_store
from backend.storage.config import get_jpeg_quality, get_public_host, load_store_config

logger = logging.getLogger("kitchen.web")

_SERVICE: ContentService | None = None
_CONVERTER: ImageConverter | None = None
_ADMIN: AdminConfig | None = None
_ADMIN_LOADED = False
_GUARD: SessionGuard | None = None


def wire_content_service() -> ContentService:
    """Build the content service from the environment (store may be absent)."""
    cfg = load_store_config()
    store = build_object_store(cfg)
    public_host = cfg.public_host if cfg is not None else get_public_host()
    return build_content_service(store, public_host=public_host)


def get_content_service() -> ContentService:
    global _SERVICE
    if _SERVICE is None:
        _SERVICE = wire_content_service()
    return _SERVICE


def set_content_service(service: ContentService | None) -> None:
    """Allow tests to provide a service (e.g., backed by an in-memory store)."""
    global _SERVICE
    _SERVICE = service


def get_image_converter() -> ImageConverter:
    global _CONVERTER
    if _CONVERTER is None:
        _CONVERTER = HeifConverter(quality=get_jpeg_quality())
    return _CONVERTER


def set_image_converter(converter: ImageConverter | None) -> None:
    global _CONVERTER
    _CONVERTER = converter


def get_admin_config() -> AdminConfig | None:
    global _ADMIN, _ADMIN_LOADED
    if not _ADMIN_LOADED:
        _ADMIN = load_admin_config()
        _ADMIN_LOADED = True
        if _ADMIN is None:
            logger.info("Admin login not configured; admin endpoints will reject all requests")
    return _ADMIN


def get_session_guard() -> SessionGuard | None:
    """Session guard bound to the configured secret, or None without admin config."""
    global _GUARD
    if _GUARD is None:
        admin = get_admin_config()
        if admin is None:
            return None
        _GUARD = SessionGuard(admin.jwt_secret, ttl_seconds=admin.session_ttl_seconds)
    return _GUARD


def set_session_guard(guard: SessionGuard | None) -> None:
    global _GUARD
    _GUARD = guard


def reset_wiring() -> None:
    """Forget every lazily built object; the next access re-reads the environment."""
    global _SERVICE, _CONVERTER, _ADMIN, _ADMIN_LOADED, _GUARD
    _SERVICE = None
    _CONVERTER = None
    _ADMIN = None
    _ADMIN_LOADED = False
    _GUARD = None
