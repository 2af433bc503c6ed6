"""
Image ingestion: validate, normalize (HEIC/HEIF -> JPEG), hand off bytes.

Pipeline:
- Reject empty or oversized payloads before any store call.
- Accept a declared `image/*` MIME type, or a `.heic`/`.heif` filename when
  the client could not name the type.
- Convert HEIC/HEIF to JPEG through an injected `ImageConverter`. Any
  conversion failure falls back to the original bytes and type; the upload
  is never blocked by the codec.
- Formats browsers render natively pass through untouched.

Design:
- The converter is a one-method protocol so the pipeline is testable without
  a HEIF codec. `HeifConverter` is the Pillow + pillow-heif implementation.
- `ingest_batch` runs per-file work concurrently in worker threads and
  isolates failures per file.
"""
from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import re
from dataclasses import dataclass
from io import BytesIO
from typing import Awaitable, Callable, List, Optional, Protocol, Sequence

from PIL import Image

_log = logging.getLogger("kitchen.media")

ACCEPTED_EXTENSIONS = (".heic", ".heif")
_HEIF_TYPES = {"image/heic", "image/heif", "image/heic-sequence", "image/heif-sequence"}
_DATA_URL_RE = re.compile(r"^data:([^;,]+)(?:;[^,]*)?;base64,(.*)$", re.DOTALL)

JPEG_CONTENT_TYPE = "image/jpeg"


class ImageRejectedError(ValueError):
    """Upload refused before reaching the store; `reason` is a stable code."""

    def __init__(self, reason: str, detail: str | None = None):
        self.reason = reason
        super().__init__(reason if detail is None else f"{reason}: {detail}")


class ImageConverter(Protocol):
    def convert(self, data: bytes, declared_type: str) -> bytes: ...


class HeifConverter:
    """Decode HEIC/HEIF with pillow-heif and re-encode as RGB JPEG."""

    def __init__(self, quality: int = 70):
        self.quality = max(1, min(95, int(quality)))
        import pillow_heif

        pillow_heif.register_heif_opener()

    def convert(self, data: bytes, declared_type: str) -> bytes:
        with Image.open(BytesIO(data)) as img:
            rgb = img.convert("RGB")
        out = BytesIO()
        rgb.save(out, format="JPEG", quality=self.quality)
        return out.getvalue()


@dataclass(frozen=True)
class IngestedImage:
    body: bytes
    content_type: str
    converted: bool = False


def _base_type(content_type: str | None) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


def _has_heif_extension(filename: str | None) -> bool:
    return bool(filename) and filename.lower().endswith(ACCEPTED_EXTENSIONS)


def needs_conversion(content_type: str | None, filename: str | None = None) -> bool:
    return _base_type(content_type) in _HEIF_TYPES or _has_heif_extension(filename)


def validate_type(content_type: str | None, filename: str | None = None) -> bool:
    """True for `image/*`, or for a HEIC/HEIF filename with a missing/odd MIME type."""
    if _base_type(content_type).startswith("image/"):
        return True
    return _has_heif_extension(filename)


def validate_size(size: int, max_bytes: int) -> None:
    if size <= 0:
        raise ImageRejectedError("empty_file")
    if size > max_bytes:
        raise ImageRejectedError("size_exceeded", f"{size} > {max_bytes}")


def normalize(
    data: bytes,
    content_type: str | None,
    converter: ImageConverter | None,
    *,
    filename: str | None = None,
) -> IngestedImage:
    """Convert HEIC/HEIF to JPEG; on any failure return the original bytes."""
    declared = _base_type(content_type) or "application/octet-stream"
    if not needs_conversion(content_type, filename) or converter is None:
        return IngestedImage(body=data, content_type=declared)
    try:
        jpeg = converter.convert(data, declared)
    except Exception as exc:
        _log.warning(
            "image conversion failed, storing original bytes: type=%s error=%s",
            declared,
            exc.__class__.__name__,
        )
        return IngestedImage(body=data, content_type=declared)
    return IngestedImage(body=jpeg, content_type=JPEG_CONTENT_TYPE, converted=True)


def decode_data_url(data_url: str) -> tuple[str, bytes]:
    """Split `data:<type>;base64,<payload>` into (type, bytes)."""
    match = _DATA_URL_RE.match((data_url or "").strip())
    if not match:
        raise ImageRejectedError("invalid_data_url")
    try:
        body = base64.b64decode(match.group(2), validate=False)
    except (binascii.Error, ValueError) as exc:
        raise ImageRejectedError("invalid_data_url") from exc
    return match.group(1).strip().lower(), body


def ingest(
    data: bytes,
    content_type: str | None,
    *,
    max_bytes: int,
    converter: ImageConverter | None,
    filename: str | None = None,
) -> IngestedImage:
    """Validate size and type, then normalize. Raises `ImageRejectedError`."""
    validate_size(len(data), max_bytes)
    if not validate_type(content_type, filename):
        raise ImageRejectedError("mime_not_allowed", _base_type(content_type) or "unknown")
    return normalize(data, content_type, converter, filename=filename)


def ingest_data_url(
    data_url: str,
    *,
    max_bytes: int,
    converter: ImageConverter | None,
    filename: str | None = None,
) -> IngestedImage:
    content_type, data = decode_data_url(data_url)
    return ingest(data, content_type, max_bytes=max_bytes, converter=converter, filename=filename)


@dataclass(frozen=True)
class UploadSource:
    data: bytes
    content_type: str | None
    filename: str | None = None


@dataclass(frozen=True)
class BatchItemResult:
    index: int
    url: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def ingest_batch(
    sources: Sequence[UploadSource],
    upload: Callable[[int, IngestedImage], str],
    *,
    max_bytes: int,
    converter: ImageConverter | None,
) -> List[BatchItemResult]:
    """Ingest and upload every source concurrently; one failure never sinks the rest.

    `upload(index, image)` is a blocking store call returning the image URL.
    Results come back in input order.
    """

    def _one(index: int, source: UploadSource) -> str:
        image = ingest(
            source.data,
            source.content_type,
            max_bytes=max_bytes,
            converter=converter,
            filename=source.filename,
        )
        return upload(index, image)

    tasks: List[Awaitable[str]] = [asyncio.to_thread(_one, idx, src) for idx, src in enumerate(sources)]
    outcomes = await asyncio.gather(*tasks, return_exceptions=True)
    results: List[BatchItemResult] = []
    for idx, outcome in enumerate(outcomes):
        if isinstance(outcome, BaseException):
            reason = outcome.reason if isinstance(outcome, ImageRejectedError) else outcome.__class__.__name__
            _log.warning("batch upload item failed: index=%d reason=%s", idx, reason)
            results.append(BatchItemResult(index=idx, error=reason))
        else:
            results.append(BatchItemResult(index=idx, url=outcome))
    return results


__all__ = [
    "ImageRejectedError",
    "ImageConverter",
    "HeifConverter",
    "IngestedImage",
    "UploadSource",
    "BatchItemResult",
    "validate_type",
    "validate_size",
    "needs_conversion",
    "normalize",
    "decode_data_url",
    "ingest",
    "ingest_data_url",
    "ingest_batch",
]
