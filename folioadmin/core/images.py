"""
Image Normalization
===================

Turns an uploaded image into a width-capped JPEG data URL that can be stored
directly in a text column.
"""

import base64
import binascii
import io
import re

from PIL import Image, ImageOps

MAX_WIDTH = 800
JPEG_QUALITY = 0.7
# Largest side a baseline JPEG can encode
JPEG_MAX_DIMENSION = 65500

_DATA_URL = re.compile(r'^data:(image/[a-z0-9.+-]+);base64,([A-Za-z0-9+/=\s]+)$')


class ImageNormalizationError(Exception):
    """The upload could not be read or decoded as an image."""


def target_size(width, height, max_width=MAX_WIDTH, upscale=True):
    """Output dimensions for a source image.

    The width is always brought to ``max_width`` (including upscaling narrow
    images) unless ``upscale`` is False, in which case narrow images keep
    their size. Height follows the same scale factor. Raises
    ImageNormalizationError when the result cannot be encoded as a JPEG.
    """
    if width <= 0 or height <= 0:
        raise ImageNormalizationError(f'Invalid image dimensions {width}x{height}')
    if not upscale and width <= max_width:
        size = (width, height)
    else:
        size = (max_width, max(1, round(height * max_width / width)))

    out_w, out_h = size
    if out_w > JPEG_MAX_DIMENSION or out_h > JPEG_MAX_DIMENSION:
        raise ImageNormalizationError(
            f'Image {width}x{height} would scale to {out_w}x{out_h}, too large for JPEG')
    if Image.MAX_IMAGE_PIXELS and out_w * out_h > Image.MAX_IMAGE_PIXELS:
        raise ImageNormalizationError(
            f'Image {width}x{height} would scale to {out_w}x{out_h} pixels')
    return size


def _read(source):
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    try:
        data = source.read()
    except (OSError, ValueError) as e:
        raise ImageNormalizationError(f'Could not read upload: {e}') from e
    if not data:
        raise ImageNormalizationError('Upload is empty')
    return data


def _flatten(img):
    """Composite onto an opaque black surface, matching a canvas JPEG export."""
    if img.mode in ('RGBA', 'LA') or (img.mode == 'P' and 'transparency' in img.info):
        img = img.convert('RGBA')
        surface = Image.new('RGB', img.size, (0, 0, 0))
        surface.paste(img, (0, 0), img)
        return surface
    if img.mode != 'RGB':
        return img.convert('RGB')
    return img


def normalize_image(source, max_width=MAX_WIDTH, quality=JPEG_QUALITY, upscale=True):
    """
    Downscale and re-encode an uploaded image as an inline JPEG.

    Args:
        source: Raw bytes or a binary file-like object (e.g. a FileStorage).
        max_width: Output width in pixels.
        quality: JPEG quality factor between 0 and 1.
        upscale: Scale images narrower than max_width up to it.

    Returns:
        str: ``data:image/jpeg;base64,...``

    Raises:
        ImageNormalizationError: the upload is unreadable, not an image, or
            too large to encode.
    """
    data = _read(source)

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            img = _flatten(img)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageNormalizationError(f'Could not decode image: {e}') from e

    size = target_size(img.width, img.height, max_width, upscale)

    buffer = io.BytesIO()
    try:
        if size != img.size:
            img = img.resize(size, Image.LANCZOS)
        img.save(buffer, format='JPEG', quality=int(round(quality * 100)))
    except (OSError, ValueError, MemoryError) as e:
        raise ImageNormalizationError(f'Could not encode image: {e}') from e
    payload = base64.b64encode(buffer.getvalue()).decode('ascii')
    buffer.close()

    return f'data:image/jpeg;base64,{payload}'


def is_inline_image(value):
    """True for a well-formed ``data:image/...;base64,`` string."""
    if not isinstance(value, str):
        return False
    match = _DATA_URL.match(value)
    if not match:
        return False
    try:
        base64.b64decode(re.sub(r'\s', '', match.group(2)), validate=True)
    except (binascii.Error, ValueError):
        return False
    return True

