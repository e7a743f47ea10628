from dataclasses import dataclass, field, replace
from typing import Optional

from PIL import Image
from requests.structures import CaseInsensitiveDict

from src.specs.common.enums import ImageFormat
from src.specs.common.errors import UsageError


@dataclass(frozen=True)
class ImageState:
    """The value threaded through a pipeline: pixels, source headers and format.

    Steps never mutate a state; they return a new one via ``with_image``.
    """

    image: Image.Image
    # Repeated header fields arrive already folded into one comma-joined value.
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    format: Optional[ImageFormat] = None

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def with_image(self, image: Image.Image) -> "ImageState":
        if image.width <= 0 or image.height <= 0:
            raise UsageError(
                "Transform produced an empty image",
                details={"width": image.width, "height": image.height},
            )
        return replace(self, image=image)
