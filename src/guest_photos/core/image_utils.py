"""Image processing utilities for the guest photos pipeline."""

import io
import time
import uuid
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from .exceptions import DecodeError, EncodeError
from .models import OutputFormat

THUMBNAIL_FORMAT = OutputFormat.WEBP
THUMBNAIL_QUALITY = 0.8
DEFAULT_THUMBNAIL_SIZE = 300

IMAGES_PREFIX = "images"
THUMBNAILS_PREFIX = "thumbnails"


def decode_image(data: bytes) -> Image.Image:
    """
    Decode image bytes into a fully loaded PIL Image.

    EXIF orientation is applied so the pixels match what a browser displays.

    Raises:
        DecodeError: If the bytes are corrupt, unsupported or zero-sized
    """
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
        image = ImageOps.exif_transpose(image)
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
    ) as exc:
        raise DecodeError(f"Failed to load image: {exc}") from exc

    if image.width == 0 or image.height == 0:
        raise DecodeError("Image has zero width or height")

    return image


def strip_metadata(image: Image.Image) -> Image.Image:
    """
    Rebuild an image from its raw pixels, dropping EXIF, ICC and text chunks.

    Images with transparency come back as RGBA, everything else as RGB.
    """
    has_alpha = image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )
    mode = "RGBA" if has_alpha else "RGB"
    converted = image.convert(mode)
    return Image.frombytes(mode, converted.size, converted.tobytes())


def calculate_target_size(
    width: int, height: int, max_width: int, max_height: int
) -> Tuple[int, int]:
    """
    Fit (width, height) inside the bounds, preserving aspect ratio.

    Images already within bounds are returned unchanged; nothing is upscaled.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size: {width}x{height}")
    if max_width <= 0 or max_height <= 0:
        raise ValueError(f"Invalid bounds: {max_width}x{max_height}")

    if width <= max_width and height <= max_height:
        return width, height

    scale = min(max_width / width, max_height / height)
    return max(1, round(width * scale)), max(1, round(height * scale))


def center_crop_box(width: int, height: int) -> Tuple[float, float, float, float]:
    """Largest centered square inside a width x height image, as a PIL box."""
    side = min(width, height)
    left = (width - side) / 2
    top = (height - side) / 2
    return (left, top, left + side, top + side)


def encode_image(image: Image.Image, output_format: OutputFormat, quality: float) -> bytes:
    """
    Encode an image in the given format.

    Args:
        image: PIL Image to encode
        output_format: Target encoding
        quality: Encoder quality between 0 and 1 (ignored for PNG)

    Raises:
        EncodeError: If the codec fails or produces no output
    """
    if output_format is OutputFormat.JPEG and image.mode != "RGB":
        image = image.convert("RGB")

    save_kwargs = {}
    if output_format is OutputFormat.PNG:
        save_kwargs["optimize"] = True
    else:
        save_kwargs["quality"] = int(round(quality * 100))

    buffer = io.BytesIO()
    try:
        image.save(buffer, format=output_format.pil_format, **save_kwargs)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodeError(f"Failed to compress image: {exc}") from exc

    data = buffer.getvalue()
    if not data:
        raise EncodeError("Failed to compress image")
    return data


def size_reduction_percent(original_size: int, new_size: int) -> float:
    """Percentage saved relative to the original; never negative."""
    if original_size <= 0:
        return 0.0
    return max(0.0, (original_size - new_size) / original_size * 100)


def asset_file_name(prefix: str, stem: str, output_format: OutputFormat) -> str:
    """Name for a derived file, e.g. optimized_photo.webp."""
    return f"{prefix}_{stem}.{output_format.value}"


def generate_object_name(timestamp_ms: Optional[int] = None) -> str:
    """Unique object base name: millisecond timestamp plus a random suffix."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{timestamp_ms}-{uuid.uuid4().hex[:9]}"


def build_object_keys(name: str, output_format: OutputFormat) -> Tuple[str, str]:
    """
    Calculate sibling keys for the main image and its thumbnail.

    Returns:
        Tuple of (main_key, thumbnail_key)
    """
    main_key = f"{IMAGES_PREFIX}/{name}.{output_format.value}"
    thumbnail_key = f"{THUMBNAILS_PREFIX}/{name}.{THUMBNAIL_FORMAT.value}"
    return main_key, thumbnail_key
