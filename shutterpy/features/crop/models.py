from dataclasses import dataclass
from enum import Enum
from typing import Optional
from shutterpy.domain.errors import ValidationError
from shutterpy.domain.types import ROI


class AspectPreset(Enum):
    FREE = "free"
    ORIGINAL = "original"
    SQUARE = "1:1"
    LANDSCAPE_4_3 = "4:3"
    WIDE_16_9 = "16:9"
    PORTRAIT_3_4 = "3:4"
    TALL_9_16 = "9:16"


@dataclass(frozen=True)
class CropConfig:
    min_zoom: float = 1.0
    max_zoom: float = 3.0
    zoom_step: float = 0.1
    default_aspect: str = AspectPreset.LANDSCAPE_4_3.value


@dataclass(frozen=True)
class CropRegion:
    """
    Crop rectangle in source pixels. aspect_ratio None means freeform.
    """

    x: int
    y: int
    width: int
    height: int
    aspect_ratio: Optional[float] = None

    def validate(self, source_width: int, source_height: int) -> "CropRegion":
        if self.width <= 0 or self.height <= 0:
            raise ValidationError(
                f"Crop area must have a positive size, got {self.width}x{self.height}"
            )
        if (
            self.x < 0
            or self.y < 0
            or self.x + self.width > source_width
            or self.y + self.height > source_height
        ):
            raise ValidationError(
                f"Crop area {self.width}x{self.height}+{self.x}+{self.y} "
                f"exceeds the {source_width}x{source_height} image"
            )
        return self

    def to_roi(self) -> ROI:
        """(y1, y2, x1, x2)"""
        return self.y, self.y + self.height, self.x, self.x + self.width

    @property
    def ratio(self) -> float:
        return self.width / self.height
