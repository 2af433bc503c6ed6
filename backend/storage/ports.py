"""
Object store port used by the content repositories.

Keep this small and framework-agnostic so tests can supply simple fakes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Protocol


class ObjectNotFoundError(LookupError):
    """Raised by adapters when a key does not exist."""

    def __init__(self, key: str):
        super().__init__(f"object_not_found: {key}")
        self.key = key


class PartialDeleteError(RuntimeError):
    """Raised when a batch delete reports per-key failures.

    Keys that were deleted stay deleted; nothing is rolled back.
    """

    def __init__(self, failed_keys: List[str]):
        super().__init__(f"delete_failed: {', '.join(failed_keys)}")
        self.failed_keys = failed_keys


@dataclass(frozen=True)
class StoredObject:
    body: bytes
    content_type: str | None


class ObjectStore(Protocol):
    """Minimal get/put/list/delete interface against a single bucket.

    Intent:
        Repositories express the key layout; the store only moves bytes. No
        business rules, no retries: failures propagate to the caller.

    Contract:
        - `get_object` raises `ObjectNotFoundError` for absent keys.
        - `list_keys` returns every key under `prefix`, following
          continuation tokens until the listing is exhausted, in the store's
          listing order (lexicographic for S3-compatible stores).
        - `delete_objects` is a batch delete; it is not transactional.
    """

    def get_object(self, key: str) -> StoredObject: ...

    def put_object(self, key: str, body: bytes, content_type: str) -> None: ...

    def list_keys(self, prefix: str) -> List[str]: ...

    def delete_objects(self, keys: Iterable[str]) -> None: ...


__all__ = ["ObjectStore", "ObjectNotFoundError", "PartialDeleteError", "StoredObject"]
