from typing import Optional

from src.media import imaging
from src.media.color import parse_hex_color
from src.media.geometry import resolve_extent
from src.media.image_state import ImageState
from src.specs.models.geometry import DimensionLike


def add_border(
    state: ImageState,
    top: DimensionLike,
    right: DimensionLike,
    bottom: DimensionLike,
    left: DimensionLike,
    color: Optional[str] = None,
) -> ImageState:
    """Grow the canvas by the four margins and optionally paint them.

    Top and bottom resolve against the current height, left and right against
    the current width. Without a color the margins stay transparent.
    """
    w, h = state.width, state.height
    top_px = resolve_extent(h, top, name="top", allow_zero=True)
    right_px = resolve_extent(w, right, name="right", allow_zero=True)
    bottom_px = resolve_extent(h, bottom, name="bottom", allow_zero=True)
    left_px = resolve_extent(w, left, name="left", allow_zero=True)
    rgba = parse_hex_color(color) if color is not None else None

    new_w = w + left_px + right_px
    new_h = h + top_px + bottom_px
    canvas = imaging.new_canvas(new_w, new_h)
    imaging.copy_into(canvas, state.image, left_px, top_px)
    if rgba is not None:
        # Bands covering x < left, x >= new_w - right, y < top, y >= new_h - bottom.
        imaging.fill_rect(canvas, 0, 0, new_w, top_px, rgba)
        imaging.fill_rect(canvas, 0, new_h - bottom_px, new_w, new_h, rgba)
        imaging.fill_rect(canvas, 0, top_px, left_px, new_h - bottom_px, rgba)
        imaging.fill_rect(canvas, new_w - right_px, top_px, new_w, new_h - bottom_px, rgba)
    return state.with_image(canvas)
