from typing import List, Optional, Tuple
from shutterpy.domain.types import Point
from shutterpy.features.annotate.models import AnnotateConfig, Stroke, ViewRect
from shutterpy.features.annotate.logic import (
    ColorLike,
    draw_segment,
    map_view_to_canvas,
    parse_color,
    stamp_text,
)
from shutterpy.kernel.image.raster import RasterBuffer
from shutterpy.kernel.image.validation import clamp
from shutterpy.kernel.system.logging import get_logger

logger = get_logger(__name__)


class AnnotationCanvas:
    """
    Freehand and text annotation over a copy of the upstream stage output.

    Strokes are rasterised segment by segment as they are captured. There is no
    per-stroke undo, clear() restores the buffer captured at stage entry.
    """

    def __init__(self, entry: RasterBuffer, config: Optional[AnnotateConfig] = None):
        self.config = config or AnnotateConfig()
        self._entry = entry.copy()
        self._canvas = entry.copy()
        self._active: Optional[Stroke] = None
        self.strokes: List[Stroke] = []
        self.texts: List[str] = []
        self.is_dirty = False

    @property
    def raster(self) -> RasterBuffer:
        return self._canvas

    @property
    def width(self) -> int:
        return self._canvas.width

    @property
    def height(self) -> int:
        return self._canvas.height

    @property
    def is_drawing(self) -> bool:
        return self._active is not None

    def snapshot(self) -> RasterBuffer:
        return self._canvas.copy()

    def to_canvas(self, view_point: Point, view_rect: ViewRect) -> Point:
        return map_view_to_canvas(view_point, view_rect, self.width, self.height)

    def begin_stroke(
        self,
        point: Point,
        color: Optional[ColorLike] = None,
        width: Optional[int] = None,
    ) -> Stroke:
        """
        Opens a new path at `point`. Nothing is drawn until the path is extended.
        """
        brush = int(
            clamp(
                width if width is not None else self.config.default_brush,
                self.config.min_brush,
                self.config.max_brush,
            )
        )
        rgba = parse_color(color if color is not None else self.config.default_color)
        self._active = Stroke(color=rgba, brush_width=brush, points=[point])
        return self._active

    def extend_stroke(self, point: Point) -> bool:
        """
        Draws a segment from the last point to `point`. Ignored when no stroke is open.
        """
        stroke = self._active
        if stroke is None:
            return False

        draw_segment(
            self._canvas.pixels, stroke.last_point, point, stroke.color, stroke.brush_width
        )
        stroke.points.append(point)
        self.is_dirty = True
        return True

    def end_stroke(self) -> Optional[Stroke]:
        stroke = self._active
        self._active = None
        if stroke is not None and len(stroke.points) > 1:
            self.strokes.append(stroke)
        return stroke

    def add_text(
        self,
        text: str,
        color: Optional[ColorLike] = None,
        position: Optional[Tuple[int, int]] = None,
    ) -> bool:
        """
        Stamps a fixed-size label, by default at the constant text anchor.
        """
        if not text:
            return False

        rgba = parse_color(color if color is not None else self.config.default_color)
        origin = position if position is not None else self.config.text_anchor
        stamp_text(self._canvas.pixels, text, origin, rgba, self.config.text_size)
        self.texts.append(text)
        self.is_dirty = True
        return True

    def clear(self) -> None:
        """
        Discards every annotation and restores the stage entry buffer.
        """
        self._active = None
        self._canvas = self._entry.copy()
        self.strokes.clear()
        self.texts.clear()
        self.is_dirty = False
        logger.debug("Annotations cleared")
