"""Tests for reading, validating and encoding room photos."""

import io
import base64

import pytest
from PIL import Image

from forma.handlers.error_handler import InputValidationError
from forma.models.design import RoomImage
from forma.services.encoding_service.image_encoder import ImageEncoder


@pytest.fixture
def encoder(settings):
    return ImageEncoder(settings=settings)


def test_absent_image_reads_and_encodes_to_none(encoder):
    assert encoder.read(None) is None
    assert encoder.encode(None) is None


def test_encode_is_base64_of_the_bytes(encoder):
    image = RoomImage(data=b"\x01\x02\x03", mime_type="image/jpeg")
    item = encoder.encode(image)

    assert item.mime_type == "image/jpeg"
    assert base64.b64decode(item.data_b64) == b"\x01\x02\x03"


def test_read_bytes_with_declared_type(encoder, make_png):
    data = make_png()
    image = encoder.read(data, filename="room.png", mime_type="image/png")

    assert image.data == data
    assert image.mime_type == "image/png"
    assert image.filename == "room.png"


def test_read_detects_type_when_not_declared(encoder, make_png):
    image = encoder.read(io.BytesIO(make_png()), mime_type="application/octet-stream")

    assert image.mime_type == "image/png"


def test_read_from_path(encoder, make_png, tmp_path):
    path = tmp_path / "room.png"
    path.write_bytes(make_png())

    image = encoder.read(path)

    assert image.filename == "room.png"
    assert image.mime_type == "image/png"


def test_missing_path_raises_os_error(encoder, tmp_path):
    with pytest.raises(OSError):
        encoder.read(tmp_path / "missing.png")


def test_jpg_alias_is_normalized(encoder):
    buf = io.BytesIO()
    Image.new("RGB", (4, 4)).save(buf, format="JPEG")

    assert encoder.read(buf.getvalue(), mime_type="image/jpg").mime_type == "image/jpeg"


def test_empty_payload_is_rejected(encoder):
    with pytest.raises(InputValidationError):
        encoder.read(b"")


def test_unsupported_type_is_rejected(encoder):
    with pytest.raises(InputValidationError) as exc_info:
        encoder.read(b"GIF89a....", mime_type="image/gif")

    assert exc_info.value.details == {"field": "roomImage"}


def test_corrupt_image_is_rejected(encoder, make_png):
    truncated = make_png()[:20]

    with pytest.raises(InputValidationError):
        encoder.read(truncated, mime_type="image/png")


def test_unrecognised_bytes_are_rejected(encoder):
    with pytest.raises(InputValidationError):
        encoder.read(b"definitely not an image")


def test_oversize_upload_is_rejected(settings, make_png):
    settings.max_upload_size_mb = 0
    encoder = ImageEncoder(settings=settings)

    with pytest.raises(InputValidationError) as exc_info:
        encoder.read(make_png())

    assert "too large" in exc_info.value.message
