"""Placing one image on top of another.

Each axis is placed independently: an alignment wins over an explicit offset,
the offset is clamped to ``[-overlay_extent, base_extent]``, and an axis set
to repeat keeps pasting one overlay-extent further along until it runs off
the far edge of the base.
"""
from typing import Iterator, Optional, Union

from PIL import Image

from src.media import imaging
from src.media.geometry import resolve_offset
from src.media.image_state import ImageState
from src.specs.common.enums import Alignment
from src.specs.models.geometry import DimensionLike

AlignmentLike = Union[Alignment, str, int, None]


def axis_offset(
    base_extent: int,
    overlay_extent: int,
    directive: DimensionLike,
    align: Optional[Alignment],
) -> int:
    if align is Alignment.START:
        offset = 0
    elif align is Alignment.END:
        offset = base_extent - overlay_extent
    elif align is Alignment.CENTER:
        # Truncate toward zero when the overlay is larger than the base.
        offset = int((base_extent - overlay_extent) / 2)
    else:
        offset = resolve_offset(base_extent, directive)
    return max(-overlay_extent, min(offset, base_extent))


def _clip_origin(offset: int, extent: int) -> tuple:
    """Crop origin and length on one axis for an offset that may be negative."""
    origin = -offset if offset < 0 else 0
    length = extent - origin if origin < extent else 0
    return origin, length


def paste_at(base: Image.Image, overlay: Image.Image, x: int, y: int) -> None:
    if x >= 0 and y >= 0:
        imaging.paste_over(base, overlay, x, y)
        return
    crop_x, crop_w = _clip_origin(x, overlay.width)
    crop_y, crop_h = _clip_origin(y, overlay.height)
    if crop_w == 0 or crop_h == 0:
        return
    visible = overlay.crop((crop_x, crop_y, crop_x + crop_w, crop_y + crop_h))
    imaging.paste_over(base, visible, max(x, 0), max(y, 0))


def _sweep(start: int, limit: int, step: int, repeat: bool) -> Iterator[int]:
    pos = start
    yield pos
    if not repeat:
        return
    pos += step
    while pos < limit:
        yield pos
        pos += step


def overlay_image(
    base: ImageState,
    top: ImageState,
    x: DimensionLike = 0,
    x_align: AlignmentLike = None,
    x_repeat: bool = False,
    y: DimensionLike = 0,
    y_align: AlignmentLike = None,
    y_repeat: bool = False,
) -> ImageState:
    """Composite ``top`` onto a copy of ``base``; headers and format come from base."""
    canvas = base.image.copy()
    ow, oh = top.width, top.height
    x0 = axis_offset(canvas.width, ow, x, Alignment.parse(x_align))
    y0 = axis_offset(canvas.height, oh, y, Alignment.parse(y_align))
    for py in _sweep(y0, canvas.height, oh, y_repeat):
        for px in _sweep(x0, canvas.width, ow, x_repeat):
            paste_at(canvas, top.image, px, py)
    return base.with_image(canvas)
