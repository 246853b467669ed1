"""
Image normalization for the recognition request.

Raw image bytes of any format Pillow understands are decoded, downscaled so
the longest side is at most MAX_IMAGE_DIMENSION pixels (never upscaled),
re-encoded as JPEG at JPEG_QUALITY and finally base64-encoded for transport
inside a data URL.

Functions:
    decode_image: Decode raw bytes into a loaded PIL image
    target_size: Compute the bounded output dimensions for a given size
    normalize_image: Raw bytes -> normalized JPEG bytes (None on failure)
    encode_transport: JPEG bytes -> base64 text
    process_image_to_base64: Raw bytes -> base64 JPEG text (None on failure)
    process_image_to_base64_async: Same as above, run on a worker thread
"""

import asyncio
import base64
import io
import logging
import math

from PIL import Image

try:
    from cli.lib.constants import JPEG_QUALITY, MAX_IMAGE_DIMENSION
    from cli.lib.errors import ImageDecodeError
except ImportError:
    from lib.constants import JPEG_QUALITY, MAX_IMAGE_DIMENSION
    from lib.errors import ImageDecodeError

logger = logging.getLogger(__name__)

# Modes Pillow can write as JPEG without conversion
_JPEG_MODES = ("RGB", "L")


def decode_image(image_bytes: bytes) -> Image.Image:
    """
    Decode raw image bytes into a fully loaded PIL image.

    Raises:
        ImageDecodeError: If the bytes are empty, the format is unrecognized
            or the pixel data is corrupt.
    """
    if not image_bytes:
        raise ImageDecodeError("image data is empty")
    try:
        image = Image.open(io.BytesIO(image_bytes))
        # Image.open is lazy; force the pixel data so corrupt payloads fail here
        image.load()
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(f"could not decode image: {exc}") from exc
    return image


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def target_size(width: int, height: int, max_dimension: int = MAX_IMAGE_DIMENSION) -> tuple[int, int]:
    """
    Return the output (width, height) for an image of the given size.

    Images whose longest side is within `max_dimension` keep their size.
    Larger images are scaled by max_dimension / longest side, each side
    rounded to the nearest integer (and kept at least one pixel).
    """
    longest_side = max(width, height)
    if longest_side <= max_dimension:
        return width, height

    scale = max_dimension / longest_side
    new_width = max(1, _round_half_up(width * scale))
    new_height = max(1, _round_half_up(height * scale))
    return new_width, new_height


def _to_jpeg_bytes(image: Image.Image, quality: int) -> bytes:
    if image.mode not in _JPEG_MODES:
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def normalize_image(
    image_bytes: bytes,
    max_dimension: int = MAX_IMAGE_DIMENSION,
    quality: int = JPEG_QUALITY,
) -> bytes | None:
    """
    Decode, bound and re-encode an image as JPEG.

    Args:
        image_bytes: Raw image data (JPEG, PNG, GIF, WebP, BMP, ...)
        max_dimension: Upper bound for the longest side of the output
        quality: JPEG quality used for the re-encode

    Returns:
        The JPEG-encoded bytes, or None if the image could not be decoded,
        resized or encoded. Failures are logged, never raised.
    """
    try:
        with decode_image(image_bytes) as image:
            new_size = target_size(image.width, image.height, max_dimension)
            if new_size != image.size:
                logger.debug("Resizing image from %sx%s to %sx%s", image.width, image.height, *new_size)
                resized = image.resize(new_size, resample=Image.Resampling.BILINEAR)
                return _to_jpeg_bytes(resized, quality)
            return _to_jpeg_bytes(image, quality)
    except ImageDecodeError as exc:
        logger.debug("Image normalization failed: %s", exc)
        return None
    except Exception:  # noqa: BLE001
        logger.debug("Image normalization failed", exc_info=True)
        return None


def encode_transport(jpeg_bytes: bytes) -> str:
    """Base64-encode normalized JPEG bytes as ASCII text for a data URL."""
    return base64.b64encode(jpeg_bytes).decode("ascii")


def process_image_to_base64(image_bytes: bytes) -> str | None:
    """
    Normalize raw image bytes and return them as base64 JPEG text.

    Returns None if the image could not be processed.
    """
    jpeg_bytes = normalize_image(image_bytes)
    if jpeg_bytes is None:
        return None
    return encode_transport(jpeg_bytes)


async def process_image_to_base64_async(image_bytes: bytes) -> str | None:
    """
    Asynchronous variant of `process_image_to_base64`.

    The CPU-bound work runs on a worker thread so an event loop driving the
    caller is not blocked. The algorithm is identical to the sync version.
    """
    return await asyncio.to_thread(process_image_to_base64, image_bytes)
