"""
Image ingestion pipeline.

Expected:
  - Empty, oversized and non-image uploads are rejected before any store call.
  - HEIC/HEIF is converted to JPEG; a failing converter falls back to the
    original bytes and type instead of blocking the upload.
  - Batch uploads isolate failures per file and keep input order.
"""
from __future__ import annotations

import base64

import pytest

from backend.media import ingest as media


def test_validate_type():
    assert media.validate_type("image/png") is True
    assert media.validate_type("IMAGE/HEIC; foo=bar") is True
    assert media.validate_type("", "IMG_0001.HEIC") is True
    assert media.validate_type("application/octet-stream", "photo.heif") is True
    assert media.validate_type("application/pdf", "doc.pdf") is False


@pytest.mark.parametrize("size,reason", [(0, "empty_file"), (11, "size_exceeded")])
def test_validate_size_rejects(size: int, reason: str):
    with pytest.raises(media.ImageRejectedError) as err:
        media.validate_size(size, 10)
    assert err.value.reason == reason


def test_validate_size_accepts_boundary():
    media.validate_size(10, 10)


def test_browser_formats_pass_through(fake_converter):
    result = media.normalize(b"png", "image/png", fake_converter)
    assert result == media.IngestedImage(body=b"png", content_type="image/png", converted=False)
    assert fake_converter.calls == []


def test_heic_is_converted(fake_converter):
    result = media.normalize(b"heic", "image/heic", fake_converter)
    assert result.converted is True
    assert result.content_type == "image/jpeg"
    assert result.body.startswith(b"\xff\xd8")
    assert fake_converter.calls == ["image/heic"]


def test_heic_detected_by_filename(fake_converter):
    result = media.normalize(b"heic", "application/octet-stream", fake_converter, filename="IMG_1.heic")
    assert result.converted is True


def test_conversion_failure_falls_back_to_original(failing_converter, caplog: pytest.LogCaptureFixture):
    with caplog.at_level("WARNING", logger="kitchen.media"):
        result = media.normalize(b"heic", "image/heic", failing_converter)
    assert result == media.IngestedImage(body=b"heic", content_type="image/heic", converted=False)
    assert "conversion failed" in caplog.text


def test_heif_converter_outputs_jpeg(png_bytes: bytes):
    converter = media.HeifConverter(quality=80)
    jpeg = converter.convert(png_bytes, "image/heic")
    assert jpeg[:2] == b"\xff\xd8"


def test_heif_converter_rejects_garbage():
    converter = media.HeifConverter()
    with pytest.raises(OSError):
        converter.convert(b"definitely not an image", "image/heic")


def test_ingest_rejects_non_images(fake_converter):
    with pytest.raises(media.ImageRejectedError) as err:
        media.ingest(b"%PDF", "application/pdf", max_bytes=100, converter=fake_converter)
    assert err.value.reason == "mime_not_allowed"


def test_data_url_round_trip(fake_converter):
    payload = base64.b64encode(b"heic-bytes").decode()
    result = media.ingest_data_url(f"data:image/heic;base64,{payload}", max_bytes=100, converter=fake_converter)
    assert result.content_type == "image/jpeg"
    assert fake_converter.calls == ["image/heic"]


@pytest.mark.parametrize("bad", ["", "not a data url", "data:image/png,plain"])
def test_invalid_data_url(bad: str):
    with pytest.raises(media.ImageRejectedError) as err:
        media.decode_data_url(bad)
    assert err.value.reason == "invalid_data_url"


@pytest.mark.anyio
async def test_batch_isolates_failures(fake_converter):
    uploaded: dict[int, bytes] = {}

    def _upload(index: int, image: media.IngestedImage) -> str:
        if image.body == b"store-fails":
            raise OSError("connection reset")
        uploaded[index] = image.body
        return f"https://cdn.example.com/image-{index}.jpg"

    sources = [
        media.UploadSource(data=b"first", content_type="image/jpeg"),
        media.UploadSource(data=b"", content_type="image/jpeg"),
        media.UploadSource(data=b"store-fails", content_type="image/png"),
        media.UploadSource(data=b"heic", content_type="image/heic"),
    ]
    results = await media.ingest_batch(sources, _upload, max_bytes=100, converter=fake_converter)

    assert [r.index for r in results] == [0, 1, 2, 3]
    assert [r.ok for r in results] == [True, False, False, True]
    assert results[1].error == "empty_file"
    assert results[2].error == "OSError"
    assert results[3].url == "https://cdn.example.com/image-3.jpg"
    assert uploaded[3].startswith(b"\xff\xd8")
