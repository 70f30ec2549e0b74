"""Tests for the bounding-box resize."""
import io

import pytest
from PIL import Image as PILImage

from beanmart.errors import TransformError
from beanmart.services import image_service


def _size(data):
    return PILImage.open(io.BytesIO(data)).size


def test_small_image_returned_unchanged(make_image):
    original = make_image(640, 480, fmt="PNG")
    result = image_service.transform(original)

    assert result.was_resized is False
    assert result.data == original
    assert (result.width, result.height) == (640, 480)


def test_exact_bounds_not_resized(make_image):
    original = make_image(700, 700)
    result = image_service.transform(original)
    assert result.was_resized is False
    assert result.data == original


def test_landscape_fits_box_and_keeps_aspect_ratio(make_image):
    result = image_service.transform(make_image(1200, 900))

    assert result.was_resized is True
    assert (result.original_width, result.original_height) == (1200, 900)
    assert (result.width, result.height) == (700, 525)
    assert _size(result.data) == (700, 525)


def test_portrait_bounded_by_height(make_image):
    result = image_service.transform(make_image(800, 2000))
    width, height = _size(result.data)
    assert height == 700
    assert width == 280


def test_resized_output_is_jpeg(make_image):
    result = image_service.transform(make_image(1000, 1000, fmt="PNG", mode="RGBA"))

    img = PILImage.open(io.BytesIO(result.data))
    assert img.format == "JPEG"
    assert img.mode == "RGB"
    assert img.size == (700, 700)


def test_undecodable_bytes_raise():
    with pytest.raises(TransformError) as exc:
        image_service.transform(b"definitely not an image")
    assert exc.value.message == "Failed to process image"
