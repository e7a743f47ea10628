"""Pillow-backed imaging primitives.

Every image handed out by this module is RGBA. Functions return new images
and never modify their inputs, except ``copy_into``, ``fill_rect``
and ``paste_over`` which write into the destination they are given.
"""
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image, ImageFilter, UnidentifiedImageError

from src.specs.common.enums import FilterKind, ImageFormat
from src.specs.common.errors import DecodeError, EncodeError

RGBA = "RGBA"
TRANSPARENT = (0, 0, 0, 0)

_MAGIC = (
    (b"\x89PNG\r\n\x1a\n", ImageFormat.PNG),
    (b"\xff\xd8\xff", ImageFormat.JPEG),
    (b"GIF87a", ImageFormat.GIF),
    (b"GIF89a", ImageFormat.GIF),
)


def sniff_format(data: bytes) -> ImageFormat:
    for magic, fmt in _MAGIC:
        if data.startswith(magic):
            return fmt
    try:
        with Image.open(BytesIO(data)) as probe:
            detected = probe.format
    except (UnidentifiedImageError, OSError) as exc:
        raise DecodeError(f"Image error: unable to determine format: {exc}") from exc
    return ImageFormat.from_pil(detected)


def decode(data: bytes, fmt: Optional[ImageFormat] = None) -> Image.Image:
    formats = [fmt.pil_format] if fmt is not None else None
    try:
        with Image.open(BytesIO(data), formats=formats) as img:
            img.load()
            return img.convert(RGBA)
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as exc:
        raise DecodeError(f"Image error: {exc}") from exc


def encode(img: Image.Image, fmt: ImageFormat) -> bytes:
    out = img
    if fmt is ImageFormat.JPEG and img.mode != "RGB":
        out = img.convert("RGB")
    buf = BytesIO()
    try:
        out.save(buf, format=fmt.pil_format)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodeError(f"Image error: {exc}", details={"format": fmt.value}) from exc
    return buf.getvalue()


def new_canvas(width: int, height: int, color: Tuple[int, int, int, int] = TRANSPARENT) -> Image.Image:
    return Image.new(RGBA, (width, height), color)


def fit_within(width: int, height: int, box_width: int, box_height: int) -> Tuple[int, int]:
    """Largest size with the same aspect ratio that fits inside the box."""
    ratio = min(box_width / width, box_height / height)
    return max(1, round(width * ratio)), max(1, round(height * ratio))


def resize(img: Image.Image, width: int, height: int, filter_kind: FilterKind = FilterKind.LANCZOS3) -> Image.Image:
    """Scale to fit inside width x height, keeping the aspect ratio."""
    return img.resize(fit_within(img.width, img.height, width, height), filter_kind.resample)


def resize_exact(img: Image.Image, width: int, height: int, filter_kind: FilterKind = FilterKind.LANCZOS3) -> Image.Image:
    return img.resize((width, height), filter_kind.resample)


def thumbnail(img: Image.Image, width: int, height: int) -> Image.Image:
    return img.resize(fit_within(img.width, img.height, width, height), Image.Resampling.BOX)


def thumbnail_exact(img: Image.Image, width: int, height: int) -> Image.Image:
    return img.resize((width, height), Image.Resampling.BOX)


def crop(img: Image.Image, x: int, y: int, width: int, height: int) -> Image.Image:
    """Crop, clamping the rectangle to the image bounds."""
    x = min(x, img.width)
    y = min(y, img.height)
    width = min(width, img.width - x)
    height = min(height, img.height - y)
    return img.crop((x, y, x + width, y + height))


def rotate90(img: Image.Image) -> Image.Image:
    # Pillow's ROTATE_* constants turn counter-clockwise.
    return img.transpose(Image.Transpose.ROTATE_270)


def rotate180(img: Image.Image) -> Image.Image:
    return img.transpose(Image.Transpose.ROTATE_180)


def rotate270(img: Image.Image) -> Image.Image:
    return img.transpose(Image.Transpose.ROTATE_90)


def flip_horizontal(img: Image.Image) -> Image.Image:
    return img.transpose(Image.Transpose.FLIP_LEFT_RIGHT)


def flip_vertical(img: Image.Image) -> Image.Image:
    return img.transpose(Image.Transpose.FLIP_TOP_BOTTOM)


def grayscale(img: Image.Image) -> Image.Image:
    luma = img.convert("L")
    return Image.merge(RGBA, (luma, luma, luma, img.getchannel("A")))


def blur(img: Image.Image, sigma: float) -> Image.Image:
    return img.filter(ImageFilter.GaussianBlur(radius=sigma))


def unsharpen(img: Image.Image, sigma: float, threshold: int) -> Image.Image:
    return img.filter(ImageFilter.UnsharpMask(radius=sigma, percent=100, threshold=max(0, threshold)))


def _map_color_channels(img: Image.Image, fn) -> Image.Image:
    lut = [max(0, min(255, round(fn(p)))) for p in range(256)]
    r, g, b, a = img.split()
    return Image.merge(RGBA, (r.point(lut), g.point(lut), b.point(lut), a))


def adjust_brightness(img: Image.Image, delta: int) -> Image.Image:
    return _map_color_channels(img, lambda p: p + delta)


def adjust_contrast(img: Image.Image, contrast: float) -> Image.Image:
    factor = ((100.0 + contrast) / 100.0) ** 2
    return _map_color_channels(img, lambda p: ((p / 255.0 - 0.5) * factor + 0.5) * 255.0)


def copy_into(dst: Image.Image, src: Image.Image, x: int, y: int) -> None:
    """Replace the pixels of dst at (x, y) with src, no blending."""
    dst.paste(src, (x, y))


def fill_rect(img: Image.Image, left: int, top: int, right: int, bottom: int, color: Tuple[int, int, int, int]) -> None:
    if right <= left or bottom <= top:
        return
    img.paste(color, (left, top, right, bottom))


def paste_over(base: Image.Image, overlay: Image.Image, x: int, y: int) -> None:
    """Alpha-composite overlay onto base at a non-negative (x, y).

    Anything past the right or bottom edge of base is clipped.
    """
    width = min(overlay.width, base.width - x)
    height = min(overlay.height, base.height - y)
    if width <= 0 or height <= 0:
        return
    base.alpha_composite(overlay, dest=(x, y), source=(0, 0, width, height))

