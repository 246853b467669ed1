"""
Tests for the image_processing library module.

Covers dimension bounding, JPEG re-encoding, base64 transport encoding and
the failure policy (undecodable input yields None, never an exception).
"""

import asyncio
import base64
import io
from unittest.mock import patch

import pytest
from PIL import Image

from cli.lib.constants import JPEG_QUALITY
from cli.lib.errors import ImageDecodeError
from cli.lib.image_processing import (
    decode_image,
    encode_transport,
    normalize_image,
    process_image_to_base64,
    process_image_to_base64_async,
    target_size,
)


def make_image_bytes(size, mode="RGB", fmt="PNG", color="red"):
    """Helper to build an encoded test image in memory."""
    if mode == "RGBA":
        color = (255, 0, 0, 128)
    img = Image.new(mode, size, color=color)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def open_jpeg(data):
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


class TestTargetSize:
    """Tests for target_size"""

    def test_small_image_unchanged(self):
        """Test that images within the bound keep their size."""
        assert target_size(800, 600) == (800, 600)

    def test_exact_bound_unchanged(self):
        """Test that a longest side of exactly 1024 is not resized."""
        assert target_size(1024, 512) == (1024, 512)

    def test_landscape_scaled_down(self):
        """Test that a wide image is scaled so its width is 1024."""
        assert target_size(2048, 1536) == (1024, 768)

    def test_portrait_scaled_down(self):
        """Test that a tall image is scaled so its height is 1024."""
        assert target_size(1000, 3000) == (341, 1024)

    def test_rounds_to_nearest(self):
        """Test that scaled sides round half away from zero."""
        # 1025 x 513 -> scale 1024/1025, 513 * 0.99902... = 512.4995 -> 512
        assert target_size(1025, 513) == (1024, 512)
        # 3000 x 1500 -> 1024 x 512 exactly
        assert target_size(3000, 1500) == (1024, 512)
        # 2000 x 1001 -> 1001 * 0.512 = 512.512 -> 513
        assert target_size(2000, 1001) == (1024, 513)

    def test_extreme_aspect_keeps_one_pixel(self):
        """Test that a very thin image never collapses to zero pixels."""
        assert target_size(5000, 1) == (1024, 1)


class TestNormalizeImage:
    """Tests for normalize_image"""

    def test_small_image_keeps_dimensions(self):
        """Test that normalization does not alter dimensions at or below 1024."""
        data = make_image_bytes((640, 480))
        result = normalize_image(data)

        assert result is not None
        img = open_jpeg(result)
        assert img.format == "JPEG"
        assert img.size == (640, 480)

    def test_no_upscaling(self):
        """Test that tiny images are never upscaled."""
        result = normalize_image(make_image_bytes((16, 9)))
        assert open_jpeg(result).size == (16, 9)

    def test_large_image_bounded(self):
        """Test that the longest side becomes 1024 and aspect ratio is kept."""
        data = make_image_bytes((3000, 2000), fmt="JPEG")
        result = normalize_image(data)

        img = open_jpeg(result)
        assert max(img.size) == 1024
        assert img.size == (1024, 683)
        assert abs(img.size[0] / img.size[1] - 3000 / 2000) < 0.01

    def test_large_portrait_bounded(self):
        """Test bounding for an image taller than it is wide."""
        result = normalize_image(make_image_bytes((1200, 2400)))
        assert open_jpeg(result).size == (512, 1024)

    def test_png_with_alpha_becomes_jpeg(self):
        """Test that RGBA input is converted to a JPEG-compatible mode."""
        result = normalize_image(make_image_bytes((100, 100), mode="RGBA"))

        img = open_jpeg(result)
        assert img.format == "JPEG"
        assert img.mode == "RGB"

    def test_palette_image_becomes_jpeg(self):
        """Test that palette (GIF-style) input is re-encoded as JPEG."""
        result = normalize_image(make_image_bytes((50, 40), mode="P", fmt="GIF", color=1))
        assert open_jpeg(result).format == "JPEG"

    def test_grayscale_stays_grayscale(self):
        """Test that grayscale images are encoded without conversion."""
        result = normalize_image(make_image_bytes((64, 64), mode="L", color=128))
        assert open_jpeg(result).mode == "L"

    def test_output_starts_with_jpeg_magic(self):
        """Test that the output bytes carry the JPEG signature."""
        result = normalize_image(make_image_bytes((10, 10)))
        assert result[:3] == b"\xff\xd8\xff"

    def test_undecodable_bytes_return_none(self):
        """Test that garbage input yields None instead of raising."""
        assert normalize_image(b"definitely not an image") is None

    def test_empty_bytes_return_none(self):
        """Test that empty input yields None."""
        assert normalize_image(b"") is None

    def test_truncated_image_returns_none(self):
        """Test that a corrupt (truncated) payload yields None."""
        data = make_image_bytes((200, 200), fmt="PNG")
        assert normalize_image(data[: len(data) // 2]) is None

    def test_encodes_at_quality_85(self):
        """Test that the re-encode uses JPEG quality 85 and nothing else."""
        data = make_image_bytes((120, 80))
        expected = io.BytesIO()
        with Image.open(io.BytesIO(data)) as img:
            img.save(expected, format="JPEG", quality=85)

        assert JPEG_QUALITY == 85
        assert normalize_image(data) == expected.getvalue()

    def test_quality_passed_to_encoder(self):
        """Test that Pillow's JPEG writer receives quality=85."""
        data = make_image_bytes((40, 40))
        with patch("PIL.Image.Image.save", autospec=True) as mock_save:
            normalize_image(data)

        mock_save.assert_called_once()
        _, kwargs = mock_save.call_args
        assert kwargs["format"] == "JPEG"
        assert kwargs["quality"] == 85

    def test_decompression_bomb_returns_none(self, monkeypatch):
        """Test that images over Pillow's pixel safety limit are rejected, not raised."""
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        assert normalize_image(make_image_bytes((100, 100))) is None


class TestDecodeImage:
    """Tests for decode_image"""

    def test_decode_valid_image(self):
        """Test decoding returns a PIL image with known size."""
        img = decode_image(make_image_bytes((30, 20)))
        assert img.size == (30, 20)

    def test_decode_invalid_raises(self):
        """Test decoding garbage raises ImageDecodeError."""
        with pytest.raises(ImageDecodeError):
            decode_image(b"\x00\x01\x02")

    def test_decode_error_is_value_error(self):
        """Test ImageDecodeError can be handled as ValueError."""
        with pytest.raises(ValueError):
            decode_image(b"")


class TestTransportEncoding:
    """Tests for base64 transport encoding"""

    def test_encode_transport_is_ascii_base64(self):
        """Test that transport text decodes back to the same bytes."""
        data = normalize_image(make_image_bytes((20, 20)))
        text = encode_transport(data)

        assert isinstance(text, str)
        assert base64.b64decode(text) == data

    def test_process_image_to_base64_round_trip(self):
        """Test that base64 output decodes to a JPEG with the expected size."""
        text = process_image_to_base64(make_image_bytes((2048, 1024)))

        img = open_jpeg(base64.b64decode(text))
        assert img.format == "JPEG"
        assert img.size == (1024, 512)

    def test_process_image_to_base64_failure(self):
        """Test that undecodable input yields None."""
        assert process_image_to_base64(b"nope") is None

    def test_async_matches_sync(self):
        """Test that the async variant produces the same output as the sync one."""
        data = make_image_bytes((1500, 700))
        sync_result = process_image_to_base64(data)
        async_result = asyncio.run(process_image_to_base64_async(data))

        assert async_result == sync_result

    def test_async_failure_returns_none(self):
        """Test that the async variant also absorbs failures."""
        assert asyncio.run(process_image_to_base64_async(b"garbage")) is None
