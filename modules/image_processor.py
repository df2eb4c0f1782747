"""
modules/image_processor.py — Decoding, encoding and pixel transforms.

Every tool in the editor goes through this module:
- Uploads are decoded with load_image()
- Tools (resize, rotate, flip, crop, watermark) take a Pillow image and return a new one
- encode_image() turns the result back into bytes in the requested format

Any failure to decode or encode is raised as EncodeUnavailable, so callers
only ever have one error kind to handle for bad input.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass

from PIL import Image, ImageColor, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError

from config import (
    COMPRESSION_CONFIG,
    FLATTEN_BACKGROUND,
    IMAGE_FORMATS,
    WATERMARK_DEFAULTS,
    WATERMARK_EDGE_SNAP,
    WATERMARK_FONTS,
    WATERMARK_PADDING,
)

logger = logging.getLogger(__name__)

# Nine quick positions for the watermark: corners, edge midpoints and centre
WATERMARK_POSITIONS = [
    (0.0, 0.0), (0.5, 0.0), (1.0, 0.0),
    (0.0, 0.5), (0.5, 0.5), (1.0, 0.5),
    (0.0, 1.0), (0.5, 1.0), (1.0, 1.0),
]


class EncodeUnavailable(Exception):
    """The image could not be decoded or encoded (invalid input, unsupported format, backend failure)."""


@dataclass(frozen=True)
class CropArea:
    x: int
    y: int
    width: int
    height: int


@dataclass
class WatermarkSettings:
    text: str = WATERMARK_DEFAULTS["text"]
    color: str = WATERMARK_DEFAULTS["color"]
    opacity: float = WATERMARK_DEFAULTS["opacity"]
    x: float = WATERMARK_DEFAULTS["x"]  # 0-1 ratio of image width
    y: float = WATERMARK_DEFAULTS["y"]  # 0-1 ratio of image height
    font_size: float = WATERMARK_DEFAULTS["font_size"]  # fraction of the longest side


# ==============================================================================
# CODEC
# ==============================================================================

def format_info(fmt: str) -> dict:
    """Return the IMAGE_FORMATS entry for a MIME type, or raise EncodeUnavailable."""
    try:
        return IMAGE_FORMATS[fmt]
    except KeyError:
        raise EncodeUnavailable(f"Unsupported format: {fmt}") from None


def is_lossy(fmt: str) -> bool:
    """True if the format's encoder takes a quality parameter."""
    return format_info(fmt)["lossy"]


# Pillow names that are a variant of a format we write (camera JPEGs open as MPO)
_FORMAT_ALIASES = {"MPO": "JPEG"}


def mime_type_of(image: Image.Image) -> str | None:
    """MIME type of a decoded image's source format, if it is one we can write."""
    pil_format = _FORMAT_ALIASES.get(image.format, image.format)
    mime_type = Image.MIME.get(pil_format or "")
    return mime_type if mime_type in IMAGE_FORMATS else None


def size_kb(data: bytes) -> int:
    """Encoded size in whole kilobytes, rounded half-up."""
    return (len(data) + 512) // 1024


def load_image(data: bytes) -> Image.Image:
    """
    Decode raw file bytes into a Pillow image.

    The EXIF orientation is applied, so a phone photo comes back upright with
    its displayed width and height. The source format is kept in image.format.

    Raises:
        EncodeUnavailable: If the bytes are not a readable image
    """
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
        source_format = img.format
        img = ImageOps.exif_transpose(img)
        img.format = source_format
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise EncodeUnavailable(f"Could not decode image: {e}") from e
    return img


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )


def _prepare_for(image: Image.Image, info: dict) -> Image.Image:
    """Convert an image to a mode the target encoder accepts."""
    if info["alpha"]:
        if image.mode in ("RGB", "RGBA"):
            return image
        return image.convert("RGBA" if _has_alpha(image) else "RGB")

    # JPEG / BMP / PDF have no alpha channel: flatten onto white
    if _has_alpha(image):
        rgba = image.convert("RGBA")
        background = Image.new("RGB", rgba.size, FLATTEN_BACKGROUND)
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if image.mode != "RGB":
        return image.convert("RGB")
    return image


def _pil_quality(quality: float) -> int:
    """Map quality in [0, 1] onto Pillow's 1-100 scale."""
    return max(1, min(100, int(quality * 100 + 0.5)))


def encode_image(image: Image.Image, fmt: str, quality: float | None = None) -> bytes:
    """
    Encode an image to bytes.

    Args:
        image: Decoded Pillow image
        fmt: Target MIME type (a key of IMAGE_FORMATS)
        quality: 0-1 for lossy formats. Ignored for lossless formats.
                 Defaults to COMPRESSION_CONFIG["default_quality"] for lossy formats.

    Returns:
        Encoded bytes

    Raises:
        EncodeUnavailable: If the format is unknown or the encoder fails
    """
    info = format_info(fmt)

    params = {}
    if info["lossy"]:
        if quality is None:
            quality = COMPRESSION_CONFIG["default_quality"]
        params["quality"] = _pil_quality(quality)

    buffer = io.BytesIO()
    try:
        _prepare_for(image, info).save(buffer, format=info["pil_format"], **params)
    except (OSError, ValueError, KeyError) as e:
        raise EncodeUnavailable(f"Could not encode image as {fmt}: {e}") from e

    return buffer.getvalue()


def ensure_format(data: bytes, mime_type: str, allowed: tuple[str, ...]) -> tuple[bytes, str]:
    """Re-encode as PNG unless the image is already in one of the allowed formats."""
    if mime_type in allowed:
        return data, mime_type
    return encode_image(load_image(data), "image/png"), "image/png"


def decode_supported(data: bytes) -> tuple[Image.Image, bytes, str]:
    """
    Decode bytes from an outside source (upload, AI response) for the editor.

    Returns:
        Tuple of (image, data, mime_type). Readable formats the editor cannot
        write back (GIF, TIFF, ...) are re-encoded as PNG, so data always
        matches mime_type.

    Raises:
        EncodeUnavailable: If the bytes are not a readable image
    """
    img = load_image(data)
    mime_type = mime_type_of(img)
    if mime_type is None:
        logger.debug("Re-encoding %s image as PNG", img.format)
        return img, encode_image(img, "image/png"), "image/png"
    return img, data, mime_type


# ==============================================================================
# TRANSFORMS
# ==============================================================================

def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def scale_dimensions(width: int, height: int, new_value: int, changed: str) -> tuple[int, int]:
    """
    Keep the aspect ratio of width x height when one side changes.

    Args:
        width, height: Current image dimensions
        new_value: The new value of the side that changed
        changed: "width" or "height"

    Returns:
        Tuple of (new_width, new_height)
    """
    ratio = width / height
    if changed == "width":
        return new_value, _round_half_up(new_value / ratio)
    return _round_half_up(new_value * ratio), new_value


def resize_image(image: Image.Image, width: float, height: float) -> Image.Image:
    """Resample to exact dimensions with Lanczos filtering."""
    new_w = _round_half_up(width)
    new_h = _round_half_up(height)
    if new_w < 1 or new_h < 1:
        raise ValueError(f"Invalid size {width} x {height}: both sides must be at least 1px")
    return image.resize((new_w, new_h), Image.LANCZOS)


def fit_within(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Dimensions scaled down so the longest side is at most max_dimension (never upscaled)."""
    longest_side = max(width, height)
    if longest_side <= max_dimension:
        return width, height
    scale = max_dimension / longest_side
    return max(1, int(width * scale)), max(1, int(height * scale))


def rotate_image(image: Image.Image, degrees: float) -> Image.Image:
    """Rotate clockwise by any angle, expanding the canvas; uncovered corners are transparent."""
    # Pillow rotates counter-clockwise
    return image.convert("RGBA").rotate(-degrees, resample=Image.BICUBIC, expand=True)


def flip_image(image: Image.Image, horizontal: bool, vertical: bool) -> Image.Image:
    result = image.copy()
    if horizontal:
        result = ImageOps.mirror(result)
    if vertical:
        result = ImageOps.flip(result)
    return result


def default_crop_rect(width: int, height: int) -> CropArea:
    """Centred rectangle covering half of each dimension — the editor's starting crop."""
    return CropArea(
        x=int(width * 0.25),
        y=int(height * 0.25),
        width=int(width * 0.5),
        height=int(height * 0.5),
    )


def crop_image(image: Image.Image, x: float, y: float, width: float, height: float) -> Image.Image:
    """
    Cut out a rectangle. The rectangle is clamped to the image bounds.

    Raises:
        ValueError: If nothing of the rectangle lies inside the image
    """
    left = max(0, int(x))
    top = max(0, int(y))
    right = min(image.width, int(x + width))
    bottom = min(image.height, int(y + height))

    if right <= left or bottom <= top:
        raise ValueError("Crop area is empty. Adjust the rectangle so it overlaps the image")

    return image.crop((left, top, right, bottom))


def convert_image(image: Image.Image, fmt: str) -> bytes:
    """Encode into another format at canonical settings (PDF gives a one-page document)."""
    return encode_image(image, fmt)


# ==============================================================================
# WATERMARK
# ==============================================================================

def text_alignment(x: float, y: float) -> tuple[str, str]:
    """
    Pick the text alignment for a watermark position.

    Positions close to an edge align to that edge so the text stays inside
    the image; anything else is centred.

    Returns:
        Tuple of (horizontal, vertical) — horizontal is "l", "m" or "r",
        vertical is "t", "m" or "b" (Pillow anchor characters)
    """
    if x <= WATERMARK_EDGE_SNAP:
        horizontal = "l"
    elif x >= 1 - WATERMARK_EDGE_SNAP:
        horizontal = "r"
    else:
        horizontal = "m"

    if y <= WATERMARK_EDGE_SNAP:
        vertical = "t"
    elif y >= 1 - WATERMARK_EDGE_SNAP:
        vertical = "b"
    else:
        vertical = "m"

    return horizontal, vertical


def _load_font(size_px: int) -> ImageFont.FreeTypeFont:
    for name in WATERMARK_FONTS:
        try:
            return ImageFont.truetype(name, size_px)
        except OSError:
            continue
    logger.debug("No TrueType watermark font found, using Pillow's default font")
    return ImageFont.load_default(size=size_px)


def watermark_image(image: Image.Image, settings: WatermarkSettings) -> Image.Image:
    """
    Draw a text watermark.

    The font size is settings.font_size times the longest side of the image.
    Text snapped to an edge (see text_alignment) is pulled inwards by a
    padding of WATERMARK_PADDING times the longest side.

    Raises:
        ValueError: If settings.color is not a valid colour string
    """
    try:
        red, green, blue = ImageColor.getrgb(settings.color)[:3]
    except ValueError:
        raise ValueError(f"Invalid watermark colour: {settings.color!r}") from None

    base = image.convert("RGBA")
    longest_side = max(base.size)
    font = _load_font(max(1, int(longest_side * settings.font_size)))
    alpha = int(255 * min(max(settings.opacity, 0.0), 1.0) + 0.5)

    horizontal, vertical = text_alignment(settings.x, settings.y)
    padding = longest_side * WATERMARK_PADDING

    pos_x = base.width * settings.x
    pos_y = base.height * settings.y
    if horizontal == "l":
        pos_x += padding
    elif horizontal == "r":
        pos_x -= padding
    if vertical == "t":
        pos_y += padding
    elif vertical == "b":
        pos_y -= padding

    overlay = Image.new("RGBA", base.size, (0, 0, 0, 0))
    ImageDraw.Draw(overlay).text(
        (pos_x, pos_y),
        settings.text,
        font=font,
        fill=(red, green, blue, alpha),
        anchor=horizontal + vertical,
    )
    return Image.alpha_composite(base, overlay)
