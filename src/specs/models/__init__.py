from __future__ import annotations

from typing import Dict, Type

from pydantic import BaseModel

from .geometry import Dimension
from .http import (
    BlankCanvas,
    SourceSpec,
    TransformImageRequest,
    ErrorResponse,
)


# Registry mapping output schema filenames to models for generation
SCHEMA_MODELS: Dict[str, Type[BaseModel]] = {
    "dimension.schema.json": Dimension,
    "blank_canvas.schema.json": BlankCanvas,
    "source.schema.json": SourceSpec,
    "transform_image.request.schema.json": TransformImageRequest,
    "error.response.schema.json": ErrorResponse,
}

__all__ = [
    "Dimension",
    "BlankCanvas",
    "SourceSpec",
    "TransformImageRequest",
    "ErrorResponse",
    "SCHEMA_MODELS",
]
