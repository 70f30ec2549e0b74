import io
import logging
from dataclasses import dataclass

from PIL import Image as PILImage

from beanmart.config import RESIZE_MAX_HEIGHT, RESIZE_MAX_WIDTH, RESIZE_QUALITY
from beanmart.errors import TransformError

logger = logging.getLogger(__name__)

OUTPUT_FORMAT = "JPEG"
OUTPUT_CONTENT_TYPE = "image/jpeg"


@dataclass
class ProcessedImage:
    data: bytes
    width: int
    height: int
    original_width: int
    original_height: int
    was_resized: bool


def transform(
    image_bytes,
    max_width=RESIZE_MAX_WIDTH,
    max_height=RESIZE_MAX_HEIGHT,
    quality=RESIZE_QUALITY,
):
    """Downsample an image to fit a bounding box.

    - Images already within ``max_width`` x ``max_height`` come back
      byte-identical with ``was_resized=False``
    - Larger images are shrunk keeping aspect ratio (never upscaled) and
      re-encoded as progressive JPEG at ``quality``

    Returns:
        ProcessedImage

    Raises:
        TransformError if the bytes cannot be decoded or resized
    """
    try:
        img = PILImage.open(io.BytesIO(image_bytes))
        original_width, original_height = img.size
    except Exception as e:
        raise TransformError("Failed to process image", error=str(e)) from e

    if original_width <= max_width and original_height <= max_height:
        logger.info(
            "Image %dx%d is within limits, no resizing needed",
            original_width,
            original_height,
        )
        return ProcessedImage(
            data=image_bytes,
            width=original_width,
            height=original_height,
            original_width=original_width,
            original_height=original_height,
            was_resized=False,
        )

    logger.info(
        "Resizing image from %dx%d to max %dx%d",
        original_width,
        original_height,
        max_width,
        max_height,
    )
    try:
        if img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        img.thumbnail((max_width, max_height), PILImage.LANCZOS)

        buffer = io.BytesIO()
        img.save(buffer, format=OUTPUT_FORMAT, quality=quality, progressive=True)
    except Exception as e:
        raise TransformError("Failed to process image", error=str(e)) from e

    width, height = img.size
    logger.info("Resized image to %dx%d", width, height)
    return ProcessedImage(
        data=buffer.getvalue(),
        width=width,
        height=height,
        original_width=original_width,
        original_height=original_height,
        was_resized=True,
    )
