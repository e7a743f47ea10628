from typing import Tuple, Union

from requests.structures import CaseInsensitiveDict

from src.media import imaging
from src.media.image_state import ImageState
from src.shared.config import get_settings
from src.specs.common.enums import ImageFormat


def output_format(state: ImageState, requested: Union[ImageFormat, str, None] = None) -> ImageFormat:
    """Requested format, else the source format, else the configured fallback."""
    if requested is not None:
        return ImageFormat.parse(requested)
    if state.format is not None:
        return state.format
    return get_settings().default_output_format


def encode_state(
    state: ImageState, requested: Union[ImageFormat, str, None] = None
) -> Tuple[CaseInsensitiveDict, bytes]:
    fmt = output_format(state, requested)
    body = imaging.encode(state.image, fmt)
    # Source length is stale once re-encoded; the response layer recomputes it.
    headers = CaseInsensitiveDict(state.headers)
    headers.pop("Content-Length", None)
    headers["Content-Type"] = fmt.mime_type
    return headers, body
