import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from src.specs.common.enums import ImageFormat
from src.specs.common.errors import ConfigurationError, FormatError


class PipelineSettings(BaseModel):
    fetch_timeout: float = Field(15.0, gt=0)
    default_output_format: ImageFormat = ImageFormat.JPEG
    user_agent: Optional[str] = None


@lru_cache(maxsize=1)
def get_settings() -> PipelineSettings:
    """Read settings from the environment once per process."""
    raw = {
        "fetch_timeout": os.getenv("IMAGEPIPE_FETCH_TIMEOUT"),
        "default_output_format": os.getenv("IMAGEPIPE_DEFAULT_OUTPUT_FORMAT"),
        "user_agent": os.getenv("IMAGEPIPE_USER_AGENT"),
    }
    values = {k: v for k, v in raw.items() if v}
    try:
        if "default_output_format" in values:
            values["default_output_format"] = ImageFormat.parse(values["default_output_format"])
        return PipelineSettings(**values)
    except (ValidationError, FormatError) as exc:
        raise ConfigurationError(f"Invalid pipeline settings: {exc}", details={"env": values}) from exc


def reset_settings() -> None:
    get_settings.cache_clear()
