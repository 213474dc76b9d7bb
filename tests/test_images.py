"""
Image normalizer behaviour: width cap, proportional height, inline JPEG output.
"""

import base64
import io

from unittest.mock import patch

import pytest
from PIL import Image

from folioadmin.core.images import (
    ImageNormalizationError,
    is_inline_image,
    normalize_image,
    target_size,
)


def _decode(data_url):
    header, payload = data_url.split(",", 1)
    img = Image.open(io.BytesIO(base64.b64decode(payload)))
    img.load()
    return header[len("data:"):-len(";base64")], img


@pytest.mark.parametrize("width,height,expected_height", [
    (1600, 900, 450),
    (2000, 1333, 533),
    (801, 601, 600),
    (4000, 1000, 200),
])
def test_wide_images_are_capped_at_800(make_image, width, height, expected_height):
    data_url = normalize_image(make_image(width, height))
    mime, img = _decode(data_url)

    assert mime == "image/jpeg"
    assert img.format == "JPEG"
    assert img.size == (800, expected_height)


def test_narrow_images_are_upscaled_to_800(make_image):
    """Images under the cap are still scaled to exactly 800 wide."""
    _, img = _decode(normalize_image(make_image(400, 300)))
    assert img.size == (800, 600)

    _, img = _decode(normalize_image(make_image(100, 333)))
    assert img.size == (800, round(333 * 8))


def test_upscale_can_be_disabled(make_image):
    _, img = _decode(normalize_image(make_image(400, 300), upscale=False))
    assert img.size == (400, 300)

    _, img = _decode(normalize_image(make_image(1200, 600), upscale=False))
    assert img.size == (800, 400)


def test_output_is_well_formed_inline_jpeg(make_image):
    data_url = normalize_image(make_image(1024, 768, fmt="JPEG"))

    assert data_url.startswith("data:image/jpeg;base64,")
    assert is_inline_image(data_url)
    assert _decode(data_url)[1].width == 800


def test_accepts_file_like_objects(make_image):
    data_url = normalize_image(io.BytesIO(make_image(900, 900, fmt="GIF", mode="P", color=1)))
    assert _decode(data_url)[1].size == (800, 800)


def test_transparency_is_flattened_onto_black(make_image):
    data_url = normalize_image(make_image(1000, 500, mode="RGBA", color=(255, 255, 255, 0)))
    _, img = _decode(data_url)

    assert img.mode == "RGB"
    r, g, b = img.getpixel((400, 200))
    assert max(r, g, b) < 16


def test_quality_factor_changes_output_size():
    # Noisy content so JPEG quality actually matters
    img = Image.effect_noise((1200, 800), 64).convert("RGB")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    raw = buffer.getvalue()

    low = normalize_image(raw, quality=0.3)
    default = normalize_image(raw)
    assert len(low) < len(default)


def test_undecodable_upload_raises():
    with pytest.raises(ImageNormalizationError):
        normalize_image(b"definitely not an image")


def test_empty_upload_raises():
    with pytest.raises(ImageNormalizationError):
        normalize_image(io.BytesIO(b""))


def test_read_failure_raises():
    class BrokenStream:
        def read(self):
            raise OSError("disk went away")

    with pytest.raises(ImageNormalizationError):
        normalize_image(BrokenStream())


def test_target_size_rejects_empty_dimensions():
    with pytest.raises(ImageNormalizationError):
        target_size(0, 100)


@pytest.mark.parametrize("value", [
    "",
    None,
    "https://example.com/cat.jpg",
    "data:text/plain;base64,aGVsbG8=",
    "data:image/jpeg;base64,@@@",
    "data:image/jpeg;base64,abc",
])
def test_is_inline_image_rejects_malformed_values(value):
    assert not is_inline_image(value)


@pytest.mark.parametrize("width,height", [(100, 10000), (1, 10000)])
def test_tall_narrow_sources_are_rejected_before_encoding(width, height):
    with pytest.raises(ImageNormalizationError):
        target_size(width, height)


def test_tall_narrow_upload_is_rejected(make_image):
    # 100x10000 would upscale to 800x80000, past the JPEG size limit
    with pytest.raises(ImageNormalizationError):
        normalize_image(make_image(100, 10000))


def test_tall_narrow_upload_is_fine_without_upscaling(make_image):
    _, img = _decode(normalize_image(make_image(100, 10000), upscale=False))
    assert img.size == (100, 10000)


def test_output_area_is_bounded(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100000)
    with pytest.raises(ImageNormalizationError):
        target_size(1600, 900)


def test_encode_failure_raises(make_image):
    raw = make_image(1200, 900)
    with patch.object(Image.Image, "save", side_effect=OSError("broken data stream")):
        with pytest.raises(ImageNormalizationError):
            normalize_image(raw)
