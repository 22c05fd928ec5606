"""Image preparation for ingredient photo analysis.

Helpers used by RecipeService.analyze_image:
- decode_base64_image(): Accept plain base64 or a data URI
- validate_image_format(): JPEG, PNG or WEBP only (magic bytes, not extension)
- validate_image_size(): Enforce MAX_IMAGE_SIZE_MB
- compress_image(): Re-encode large photos as JPEG before upload
"""

import base64
import binascii
from io import BytesIO
from typing import Optional

import filetype
from PIL import Image, UnidentifiedImageError

from cookiq.utils.logger import logger


SUPPORTED_IMAGE_TYPES = {
    "jpg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
}


def decode_base64_image(image_data: str) -> Optional[bytes]:
    """Decode a base64 image, stripping a ``data:<mime>;base64,`` prefix if present.

    Args:
        image_data: Plain base64 string or data URI.

    Returns:
        Image bytes, or None if the payload is not valid base64.
    """
    if image_data.startswith("data:"):
        _, _, image_data = image_data.partition(",")
    try:
        return base64.b64decode(image_data, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Failed to decode base64 image: {e}")
        return None


def detect_mime_type(image_bytes: bytes) -> Optional[str]:
    """Return the MIME type of a supported image, or None."""
    kind = filetype.guess(image_bytes)
    if kind is None:
        return None
    return SUPPORTED_IMAGE_TYPES.get(kind.extension)


def validate_image_format(image_bytes: bytes) -> bool:
    """True if the magic bytes identify a JPEG, PNG or WEBP image."""
    if detect_mime_type(image_bytes) is None:
        logger.warning(f"Invalid image format: {filetype.guess(image_bytes)}. Only JPEG, PNG and WEBP supported.")
        return False
    return True


def validate_image_size(image_bytes: bytes, max_size_mb: int) -> bool:
    """True if the payload is at most max_size_mb megabytes."""
    size_mb = len(image_bytes) / (1024 * 1024)
    if size_mb > max_size_mb:
        logger.warning(f"Image size {size_mb:.2f}MB exceeds limit of {max_size_mb}MB")
        return False
    return True


def compress_image(image_bytes: bytes, threshold_kb: int, max_width: int = 1024) -> tuple[bytes, bool]:
    """Re-encode a photo as a smaller JPEG before upload.

    Uses JPEG format with quality=85 + optimize + progressive. Resizes oversized
    images and converts color modes to RGB. Images below threshold_kb are
    returned untouched.

    Args:
        image_bytes: Raw image bytes to compress.
        threshold_kb: Only images at or above this size are compressed.
        max_width: Maximum image width in pixels.

    Returns:
        (bytes, compressed): compressed is True when the result is a new JPEG.
        On any decoding failure the original bytes are returned.
    """
    size_kb = len(image_bytes) / 1024
    if size_kb < threshold_kb:
        logger.debug(f"Image size {size_kb:.1f}KB below compression threshold ({threshold_kb}KB), skipping")
        return image_bytes, False

    try:
        img = Image.open(BytesIO(image_bytes))

        # Convert RGBA/LA/P to RGB for JPEG output
        if img.mode in ("RGBA", "LA", "P"):
            img = img.convert("RGBA")
            rgb_img = Image.new("RGB", img.size, (255, 255, 255))
            rgb_img.paste(img, mask=img.split()[-1])
            img = rgb_img
        elif img.mode != "RGB":
            img = img.convert("RGB")

        if img.width > max_width:
            ratio = max_width / img.width
            img = img.resize((max_width, int(img.height * ratio)), Image.Resampling.LANCZOS)

        output = BytesIO()
        img.save(output, format="JPEG", quality=85, optimize=True, progressive=True)
        compressed = output.getvalue()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning(f"Image compression failed, sending original: {e}")
        return image_bytes, False

    logger.debug(f"Image compressed: {size_kb:.1f}KB → {len(compressed) / 1024:.1f}KB")
    return compressed, True
