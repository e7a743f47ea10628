import re
from typing import Tuple

from src.specs.common.errors import ColorParseError

Color = Tuple[int, int, int, int]

_HEX = re.compile(r"[0-9a-fA-F]*")


def parse_hex_color(text: str) -> Color:
    """Parse ``RRGGBB`` or ``RRGGBBAA`` into an RGBA tuple.

    Six digits imply an opaque colour.
    """
    if not isinstance(text, str) or len(text) not in (6, 8):
        raise ColorParseError("Only hex colors accepted", details={"value": str(text)})
    if not _HEX.fullmatch(text):
        raise ColorParseError(
            f"invalid digit found in string: {text!r}", details={"value": text}
        )
    channels = tuple(bytes.fromhex(text))
    if len(channels) == 3:
        channels += (0xFF,)
    return channels  # type: ignore[return-value]
