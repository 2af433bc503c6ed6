"""
Centralized object store configuration.

Intent:
    Provide a single source of truth for the S3-compatible store (Cloudflare
    R2 in production, MinIO locally) and the upload size limits used by the
    media pipeline. Configuration is read once into a frozen dataclass and
    passed into repositories; absence of a store is a typed state (`None`),
    not an exception raised from a client constructor.

Behavior:
    - `load_store_config()` returns `StoreConfig` when endpoint, credentials
      and bucket are all present, otherwise `None` (partial configuration is
      logged with the names of the missing variables).
    - Size limits read env overrides and clamp them to a contract maximum.

Permissions:
    Pure configuration; no external calls or privileges required.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import os

_log = logging.getLogger("kitchen.storage")

_REQUIRED_STORE_VARS = ("R2_ENDPOINT", "R2_ACCESS_KEY_ID", "R2_SECRET_ACCESS_KEY", "R2_BUCKET")


@dataclass(frozen=True)
class StoreConfig:
    endpoint: str
    access_key: str
    secret_key: str
    bucket: str
    region: str = "auto"
    public_host: str | None = None

    def __repr__(self) -> str:  # keep credentials out of logs and tracebacks
        return (
            f"StoreConfig(endpoint={self.endpoint!r}, bucket={self.bucket!r}, "
            f"region={self.region!r}, public_host={self.public_host!r})"
        )


def _env(name: str) -> str:
    return (os.getenv(name) or "").strip()


def load_store_config() -> StoreConfig | None:
    """Return the configured object store, or None when not configured.

    Env:
        R2_ENDPOINT, R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY, R2_BUCKET (required),
        R2_REGION (default "auto"), R2_PUBLIC_HOST (optional).
    """
    values = {name: _env(name) for name in _REQUIRED_STORE_VARS}
    missing = [name for name, value in values.items() if not value]
    if missing:
        if len(missing) < len(_REQUIRED_STORE_VARS):
            _log.warning("Object store partially configured; missing: %s", ", ".join(missing))
        return None
    return StoreConfig(
        endpoint=values["R2_ENDPOINT"],
        access_key=values["R2_ACCESS_KEY_ID"],
        secret_key=values["R2_SECRET_ACCESS_KEY"],
        bucket=values["R2_BUCKET"],
        region=_env("R2_REGION") or "auto",
        public_host=get_public_host(),
    )


def get_public_host() -> str | None:
    """Return R2_PUBLIC_HOST without a trailing slash, or None."""
    host = _env("R2_PUBLIC_HOST").rstrip("/")
    return host or None


# --- Size limits --------------------------------------------------------------

def _parse_int_env(name: str, default: int, *, contract_max: int | None = None) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if value <= 0:
        return default
    if isinstance(contract_max, int) and contract_max > 0:
        value = min(value, contract_max)
    return value


def get_media_max_upload_bytes() -> int:
    """Maximum size of a single gallery/activity image (default/clamped 10 MiB)."""
    contract_max = 10 * 1024 * 1024
    return _parse_int_env("MEDIA_MAX_UPLOAD_BYTES", contract_max, contract_max=contract_max)


def get_cover_max_upload_bytes() -> int:
    """Maximum size of a cover image (default/clamped 5 MiB)."""
    contract_max = 5 * 1024 * 1024
    return _parse_int_env("MEDIA_COVER_MAX_BYTES", contract_max, contract_max=contract_max)


def get_jpeg_quality() -> int:
    """JPEG quality used when converting HEIC/HEIF uploads (1..95, default 70)."""
    return _parse_int_env("MEDIA_JPEG_QUALITY", 70, contract_max=95)


__all__ = [
    "StoreConfig",
    "load_store_config",
    "get_public_host",
    "get_media_max_upload_bytes",
    "get_cover_max_upload_bytes",
    "get_jpeg_quality",
]
