"""
Object store wiring and bootstrap helpers.

Intent:
    Build the object store adapter once at startup from `StoreConfig` and,
    for local MinIO development, make sure the configured bucket exists.

Security & Safety:
    - Bucket creation is controlled by `AUTO_CREATE_STORAGE_BUCKETS=true` and
      never runs in prod-like environments.
    - Idempotent: checks for the bucket first and creates it only if missing.
"""
from __future__ import annotations

import logging
import os
from typing import Any

from .config import StoreConfig, load_store_config
from .ports import ObjectStore

_log = logging.getLogger("kitchen.storage")


def _env_flag(name: str, default: str = "false") -> bool:
    return (os.getenv(name, default) or "").strip().lower() == "true"


def _is_prod_like() -> bool:
    env = (os.getenv("KITCHEN_ENV") or "dev").strip().lower()
    return env in {"prod", "production", "stage", "staging"}


def ensure_bucket(client: Any, bucket: str) -> bool:
    """Ensure `bucket` exists on `client`; create it when missing.

    Returns True when the bucket exists afterwards. Errors are logged and
    reported as False so a flaky local store never blocks startup.
    """
    try:
        if client.bucket_exists(bucket):
            _log.debug("bucket '%s' already exists", bucket)
            return True
        client.make_bucket(bucket)
        _log.info("created bucket '%s'", bucket)
        return True
    except Exception as exc:
        _log.warning("ensure bucket '%s' failed: error=%s", bucket, type(exc).__name__)
        return False


def build_object_store(cfg: StoreConfig | None = None) -> ObjectStore | None:
    """Return the configured object store adapter, or None when not configured.

    Behavior:
        - Reads configuration from the environment when `cfg` is omitted.
        - Returns None (store-not-configured state) instead of raising.
        - Optionally provisions the bucket in dev when
          AUTO_CREATE_STORAGE_BUCKETS=true.

    Logging:
        - On success, logs an info message naming the bucket.
        - On adapter construction failure, logs a warning and returns None.
    """
    cfg = cfg if cfg is not None else load_store_config()
    if cfg is None:
        _log.info("Object store not configured; read endpoints will render empty results")
        return None
    try:
        from .minio_store import MinioObjectStore

        store = MinioObjectStore.from_config(cfg)
    except Exception as exc:
        _log.warning("Object store wiring failed: %s: %s", exc.__class__.__name__, str(exc))
        return None
    if _env_flag("AUTO_CREATE_STORAGE_BUCKETS") and not _is_prod_like():
        ensure_bucket(store.client, cfg.bucket)
    _log.info("Object store wired: bucket=%s", cfg.bucket)
    return store


__all__ = ["build_object_store", "ensure_bucket"]
