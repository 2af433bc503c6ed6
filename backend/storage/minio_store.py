"""
S3-compatible object store adapter built on the MinIO client.

This adapter implements `ObjectStore` against any S3-compatible endpoint
(Cloudflare R2 in production, a local MinIO container in development).

- The endpoint URL scheme decides TLS (`https://` -> secure).
- Listing is recursive and the client follows continuation tokens itself.
- Batch deletes report per-key failures; any failure raises
  `PartialDeleteError` after the whole batch has been attempted.

Security:
- Credentials stay server-side; clients only ever see public URLs or the
  image proxy path.
"""
from __future__ import annotations

from io import BytesIO
from typing import Any, Iterable, List
from urllib.parse import urlparse
import logging

from minio import Minio
from minio.deleteobjects import DeleteObject
from minio.error import S3Error

from .config import StoreConfig
from .ports import ObjectNotFoundError, PartialDeleteError, StoredObject

_log = logging.getLogger("kitchen.storage")

_MISSING_KEY_CODES = {"NoSuchKey", "NoSuchObject", "NotFound"}


def _split_endpoint(endpoint: str) -> tuple[str, bool]:
    """Return (host[:port], secure) for an endpoint given with or without scheme."""
    raw = endpoint.strip()
    if "://" not in raw:
        return raw.rstrip("/"), True
    parsed = urlparse(raw)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(f"invalid store endpoint: {endpoint!r}")
    return parsed.netloc, parsed.scheme == "https"


def create_minio_client(cfg: StoreConfig) -> Minio:
    host, secure = _split_endpoint(cfg.endpoint)
    return Minio(
        host,
        access_key=cfg.access_key,
        secret_key=cfg.secret_key,
        secure=secure,
        region=cfg.region,
    )


class MinioObjectStore:
    """Object store adapter using a `minio.Minio` client for one bucket."""

    def __init__(self, client: Any, bucket: str):
        # Duck-typed so tests can pass a fake exposing the same methods.
        self._client = client
        self._bucket = bucket

    @classmethod
    def from_config(cls, cfg: StoreConfig) -> "MinioObjectStore":
        return cls(create_minio_client(cfg), cfg.bucket)

    @property
    def bucket(self) -> str:
        return self._bucket

    @property
    def client(self) -> Any:
        return self._client

    def get_object(self, key: str) -> StoredObject:
        try:
            response = self._client.get_object(self._bucket, key)
        except S3Error as exc:
            if exc.code in _MISSING_KEY_CODES:
                raise ObjectNotFoundError(key) from exc
            raise
        try:
            body = response.read()
            content_type = response.headers.get("Content-Type")
        finally:
            response.close()
            response.release_conn()
        return StoredObject(body=body, content_type=content_type)

    def put_object(self, key: str, body: bytes, content_type: str) -> None:
        self._client.put_object(
            self._bucket,
            key,
            BytesIO(body),
            len(body),
            content_type=content_type,
        )

    def list_keys(self, prefix: str) -> List[str]:
        objects = self._client.list_objects(self._bucket, prefix=prefix, recursive=True)
        return [obj.object_name for obj in objects if not getattr(obj, "is_dir", False)]

    def delete_objects(self, keys: Iterable[str]) -> None:
        targets = [DeleteObject(k) for k in keys]
        if not targets:
            return
        # remove_objects is lazy: errors only surface while iterating.
        failed: List[str] = []
        for error in self._client.remove_objects(self._bucket, targets):
            failed.append(str(getattr(error, "name", "") or getattr(error, "object_name", "")))
            _log.warning("delete failed: key=%s code=%s", failed[-1], getattr(error, "code", "?"))
        if failed:
            raise PartialDeleteError(failed)


__all__ = ["MinioObjectStore", "create_minio_client"]
