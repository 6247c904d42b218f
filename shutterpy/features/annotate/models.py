from dataclasses import dataclass, field
from typing import List, Tuple
from shutterpy.domain.types import Point, RGBA


@dataclass(frozen=True)
class AnnotateConfig:
    default_color: str = "#FF0000"
    default_brush: int = 3
    min_brush: int = 1
    max_brush: int = 20
    text_size: int = 40
    text_anchor: Tuple[int, int] = (20, 20)
    min_view_zoom: float = 0.5
    max_view_zoom: float = 3.0


@dataclass
class Stroke:
    """
    A freehand path captured while the pointer is held down.
    Rasterised as it grows, kept only as a record of what was drawn.
    """

    color: RGBA
    brush_width: int
    points: List[Point] = field(default_factory=list)

    @property
    def last_point(self) -> Point:
        return self.points[-1]


@dataclass(frozen=True)
class ViewRect:
    """
    On-screen placement of the canvas (left, top, displayed width/height).
    """

    left: float
    top: float
    width: float
    height: float
