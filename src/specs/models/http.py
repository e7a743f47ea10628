from __future__ import annotations

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from src.specs.common.enums import Alignment
from .geometry import Dimension


DimensionField = Union[Dimension, float]


class BlankCanvas(BaseModel):
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    color: str = Field(description="RRGGBB or RRGGBBAA hex color")


class SourceSpec(BaseModel):
    """Either a remote image or a blank canvas."""

    url: Optional[str] = Field(None, min_length=1)
    format: Optional[str] = Field(None, description="PNG, JPEG or GIF; sniffed from the bytes when omitted")
    blank: Optional[BlankCanvas] = None

    @model_validator(mode="after")
    def _one_source(self) -> "SourceSpec":
        if (self.url is None) == (self.blank is None):
            raise ValueError("exactly one of 'url' or 'blank' is required")
        return self


class ResizeOp(BaseModel):
    op: Literal["resize"]
    width: DimensionField
    height: DimensionField
    exact: bool = False
    filter: Optional[str] = Field(None, description="Nearest, Triangle, CatmullRom, Gaussian or Lanczos3")


class ThumbnailOp(BaseModel):
    op: Literal["thumbnail"]
    width: DimensionField
    height: DimensionField
    exact: bool = False


class CropOp(BaseModel):
    op: Literal["crop"]
    x: DimensionField = 0
    y: DimensionField = 0
    width: DimensionField
    height: DimensionField


class RotateOp(BaseModel):
    op: Literal["rotate"]
    degrees: int


class FlipOp(BaseModel):
    op: Literal["flip"]
    horizontal: bool = True


class GrayscaleOp(BaseModel):
    op: Literal["grayscale"]


class BlurOp(BaseModel):
    op: Literal["blur"]
    sigma: float


class SharpenOp(BaseModel):
    op: Literal["sharpen"]
    sigma: float
    threshold: int = 0


class BrightenOp(BaseModel):
    op: Literal["brighten"]
    value: int


class ContrastOp(BaseModel):
    op: Literal["contrast"]
    value: float


class BorderOp(BaseModel):
    op: Literal["border"]
    top: DimensionField = 0
    right: DimensionField = 0
    bottom: DimensionField = 0
    left: DimensionField = 0
    color: Optional[str] = None


class OverlayOp(BaseModel):
    op: Literal["overlay"]
    source: SourceSpec
    operations: List[Operation] = Field(default_factory=list)
    x: DimensionField = 0
    y: DimensionField = 0
    x_align: Optional[Union[Alignment, int]] = None
    y_align: Optional[Union[Alignment, int]] = None
    x_repeat: bool = False
    y_repeat: bool = False


Operation = Annotated[
    Union[
        ResizeOp,
        ThumbnailOp,
        CropOp,
        RotateOp,
        FlipOp,
        GrayscaleOp,
        BlurOp,
        SharpenOp,
        BrightenOp,
        ContrastOp,
        BorderOp,
        OverlayOp,
    ],
    Field(discriminator="op"),
]

OverlayOp.model_rebuild()


class TransformImageRequest(BaseModel):
    """POST body for the transform_image function."""

    source: SourceSpec
    operations: List[Operation] = Field(default_factory=list)
    output_format: Optional[str] = Field(None, description="PNG, JPEG or GIF; defaults to the source format")


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    errorCode: Optional[str] = None
    details: Optional[Dict] = None
    traceId: Optional[str] = None


__all__ = [
    "BlankCanvas",
    "SourceSpec",
    "Operation",
    "ResizeOp",
    "ThumbnailOp",
    "CropOp",
    "RotateOp",
    "FlipOp",
    "GrayscaleOp",
    "BlurOp",
    "SharpenOp",
    "BrightenOp",
    "ContrastOp",
    "BorderOp",
    "OverlayOp",
    "TransformImageRequest",
    "ErrorResponse",
]
