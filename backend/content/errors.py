"""Error taxonomy shared by the content repositories and services."""
from __future__ import annotations

from typing import Iterable


class StoreNotConfiguredError(RuntimeError):
    """A write was attempted while no object store is configured."""

    def __init__(self) -> None:
        super().__init__("storage_not_configured")


class ContentValidationError(ValueError):
    """Rejected before any store I/O; `fields` names every offending field."""

    def __init__(self, fields: Iterable[str], reason: str = "missing_required_fields"):
        self.fields = tuple(fields)
        self.reason = reason
        super().__init__(f"{reason}: {', '.join(self.fields)}")


__all__ = ["StoreNotConfiguredError", "ContentValidationError"]
