import math

from src.specs.common.errors import UsageError
from src.specs.models.geometry import Dimension, DimensionLike


def resolve(reference: int, directive: DimensionLike) -> int:
    """Resolve a directive against a reference extent, truncating toward zero.

    The result is signed; callers that need a size must validate it. Non-finite
    magnitudes collapse to 0.
    """
    d = Dimension.coerce(directive)
    raw = reference * d.value if d.percent else d.value
    if not math.isfinite(raw):
        return 0
    return int(raw)


def resolve_offset(reference: int, directive: DimensionLike) -> int:
    """Signed offset: negative absolute values allowed, negative percentages are not."""
    d = Dimension.coerce(directive)
    if d.percent and d.value < 0:
        raise UsageError("Negative percentage offsets are not supported", details={"value": d.value})
    return resolve(reference, d)


def resolve_extent(reference: int, directive: DimensionLike, *, name: str, allow_zero: bool = False) -> int:
    d = Dimension.coerce(directive)
    if not math.isfinite(d.value) or d.value < 0:
        raise UsageError(f"{name} must be a non-negative number", details={"name": name, "value": d.value})
    value = resolve(reference, d)
    if value == 0 and not allow_zero:
        raise UsageError(f"{name} resolves to zero pixels", details={"name": name, "reference": reference})
    return value
