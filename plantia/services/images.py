from PIL import Image
import io
import logging

logger = logging.getLogger(__name__)

JPEG_QUALITY = 85


def resize_image(contents: bytes, max_width: int, max_height: int) -> bytes:
    """
    Shrink an uploaded image to fit the given bounds and re-encode it as JPEG.

    Aspect ratio is preserved; images already inside the bounds keep their size.

    Args:
        contents: Raw image bytes in any format Pillow can read
        max_width: Maximum width in pixels
        max_height: Maximum height in pixels

    Returns:
        JPEG bytes

    Raises:
        ValueError: If the bytes are not a readable image
    """
    try:
        image = Image.open(io.BytesIO(contents))
        image.load()
    except (OSError, Image.DecompressionBombError) as e:
        raise ValueError(f"Unreadable image: {e}") from e

    original_size = image.size
    image.thumbnail((max_width, max_height))
    if image.mode != "RGB":
        image = image.convert("RGB")

    output = io.BytesIO()
    image.save(output, format="JPEG", quality=JPEG_QUALITY)
    logger.debug(f"Resized image {original_size} -> {image.size}")
    return output.getvalue()
