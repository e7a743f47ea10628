"""Turn a validated TransformImageRequest into an ImagePipeline."""
from typing import Callable, Dict, Iterable, Optional

from src.media.pipeline import ImagePipeline
from src.specs.models.http import (
    BlurOp,
    BorderOp,
    BrightenOp,
    ContrastOp,
    CropOp,
    FlipOp,
    GrayscaleOp,
    Operation,
    OverlayOp,
    ResizeOp,
    RotateOp,
    SharpenOp,
    SourceSpec,
    ThumbnailOp,
    TransformImageRequest,
)


def pipeline_from_source(source: SourceSpec, trace_id: Optional[str] = None) -> ImagePipeline:
    if source.blank is not None:
        blank = source.blank
        return ImagePipeline.blank(blank.width, blank.height, blank.color, trace_id=trace_id)
    return ImagePipeline.from_url(source.url, source.format, trace_id=trace_id)


def _overlay(p: ImagePipeline, op: OverlayOp, trace_id: Optional[str]) -> ImagePipeline:
    top = apply_operations(pipeline_from_source(op.source, trace_id), op.operations, trace_id)
    return p.overlay(
        top,
        op.x,
        op.y,
        x_align=op.x_align,
        y_align=op.y_align,
        x_repeat=op.x_repeat,
        y_repeat=op.y_repeat,
    )


_APPLY: Dict[type, Callable[[ImagePipeline, Operation, Optional[str]], ImagePipeline]] = {
    ResizeOp: lambda p, op, _: p.resize(op.width, op.height, exact=op.exact, filter=op.filter),
    ThumbnailOp: lambda p, op, _: p.thumbnail(op.width, op.height, exact=op.exact),
    CropOp: lambda p, op, _: p.crop(op.x, op.y, op.width, op.height),
    RotateOp: lambda p, op, _: p.rotate(op.degrees),
    FlipOp: lambda p, op, _: p.flip(op.horizontal),
    GrayscaleOp: lambda p, op, _: p.grayscale(),
    BlurOp: lambda p, op, _: p.blur(op.sigma),
    SharpenOp: lambda p, op, _: p.sharpen(op.sigma, op.threshold),
    BrightenOp: lambda p, op, _: p.brighten(op.value),
    ContrastOp: lambda p, op, _: p.contrast(op.value),
    BorderOp: lambda p, op, _: p.border(op.top, op.right, op.bottom, op.left, op.color),
    OverlayOp: _overlay,
}


def apply_operations(
    pipeline: ImagePipeline, operations: Iterable[Operation], trace_id: Optional[str] = None
) -> ImagePipeline:
    for op in operations:
        pipeline = _APPLY[type(op)](pipeline, op, trace_id)
    return pipeline


def pipeline_from_request(request: TransformImageRequest, trace_id: Optional[str] = None) -> ImagePipeline:
    return apply_operations(pipeline_from_source(request.source, trace_id), request.operations, trace_id)
