from typing import Dict, Optional
from shutterpy.domain.errors import ValidationError
from shutterpy.features.crop.models import CropConfig, CropRegion
from shutterpy.features.crop.logic import (
    AspectLike,
    aspect_presets,
    clamp_position,
    constrain_to_aspect,
    enforce_region_aspect,
    fit_size,
    resolve_aspect,
)
from shutterpy.kernel.image.validation import clamp
from shutterpy.kernel.system.logging import get_logger

logger = get_logger(__name__)


class CropSelector:
    """
    Interactive crop rectangle over a source image.

    Zoom shrinks the box in source pixels (the on-screen box stays put while the
    image grows behind it). An aspect constraint holds after every interaction,
    so any region read from the selector, committed or not, keeps the ratio.
    """

    def __init__(
        self,
        source_width: int,
        source_height: int,
        config: Optional[CropConfig] = None,
    ) -> None:
        if source_width <= 0 or source_height <= 0:
            raise ValidationError(
                f"Cannot crop a {source_width}x{source_height} image"
            )
        self.config = config or CropConfig()
        self.source_width = source_width
        self.source_height = source_height
        # Fixed for the session, "original" never follows later crops
        self.original_aspect = source_width / source_height
        self._presets = aspect_presets(source_width, source_height)

        self.zoom = self.config.min_zoom
        self.aspect: Optional[float] = resolve_aspect(
            self.config.default_aspect, source_width, source_height
        )
        self._w, self._h = fit_size(source_width, source_height, self.aspect, self.zoom)
        self._x, self._y = clamp_position(
            (source_width - self._w) / 2.0,
            (source_height - self._h) / 2.0,
            self._w,
            self._h,
            source_width,
            source_height,
        )
        self.committed: Optional[CropRegion] = None

    @property
    def aspect_presets(self) -> Dict[str, Optional[float]]:
        return dict(self._presets)

    @property
    def region(self) -> CropRegion:
        return CropRegion(self._x, self._y, self._w, self._h, self.aspect)

    def _center(self) -> tuple[float, float]:
        return self._x + self._w / 2.0, self._y + self._h / 2.0

    def _place(self, width: int, height: int, cx: float, cy: float) -> None:
        self._w, self._h = width, height
        self._x, self._y = clamp_position(
            cx - width / 2.0,
            cy - height / 2.0,
            width,
            height,
            self.source_width,
            self.source_height,
        )

    def set_aspect(self, value: AspectLike) -> Optional[float]:
        """
        Selects an aspect constraint (preset, preset label, ratio, or None for free).
        The box is refitted around its current centre.
        """
        aspect = resolve_aspect(value, self.source_width, self.source_height)
        self.aspect = aspect
        cx, cy = self._center()
        if aspect is not None:
            w, h = fit_size(self.source_width, self.source_height, aspect, self.zoom)
            self._place(w, h, cx, cy)
        logger.debug(f"Crop aspect set to {value!r} ({aspect})")
        return aspect

    def set_zoom(self, zoom: float) -> float:
        new_zoom = clamp(float(zoom), self.config.min_zoom, self.config.max_zoom)
        scale = self.zoom / new_zoom
        self.zoom = new_zoom

        cx, cy = self._center()
        if self.aspect is not None:
            w, h = constrain_to_aspect(
                self._w * scale, self.aspect, self.source_width, self.source_height
            )
        else:
            w = int(clamp(round(self._w * scale), 1, self.source_width))
            h = int(clamp(round(self._h * scale), 1, self.source_height))
        self._place(w, h, cx, cy)
        return new_zoom

    def step_zoom(self, steps: int = 1) -> float:
        """
        Zooms in (positive) or out (negative) by whole slider steps.
        """
        return self.set_zoom(round(self.zoom + steps * self.config.zoom_step, 6))

    def pan(self, dx: float, dy: float) -> CropRegion:
        self._x, self._y = clamp_position(
            self._x + dx,
            self._y + dy,
            self._w,
            self._h,
            self.source_width,
            self.source_height,
        )
        return self.region

    def move_to(self, x: float, y: float) -> CropRegion:
        return self.pan(x - self._x, y - self._y)

    def resize(self, width: float, height: Optional[float] = None) -> CropRegion:
        """
        Resizes the box from its top-left corner. With an aspect constraint the
        height is derived from the width and `height` is ignored.
        """
        if width <= 0 or (height is not None and height <= 0):
            raise ValidationError("Crop area must have a positive size")

        if self.aspect is not None:
            w, h = constrain_to_aspect(
                width, self.aspect, self.source_width, self.source_height
            )
        else:
            w = int(clamp(round(width), 1, self.source_width))
            h = int(clamp(round(height if height is not None else self._h), 1, self.source_height))

        self._w, self._h = w, h
        self._x, self._y = clamp_position(
            self._x, self._y, w, h, self.source_width, self.source_height
        )
        return self.region

    def select(self, region: CropRegion) -> CropRegion:
        """
        Places the box at an explicit region and commits it. Under an aspect
        constraint the region is shrunk around its centre to match.
        """
        region.validate(self.source_width, self.source_height)
        if self.aspect is not None:
            region = enforce_region_aspect(
                region, self.source_width, self.source_height, self.aspect
            )
        self._x, self._y, self._w, self._h = region.x, region.y, region.width, region.height
        return self.commit()

    def commit(self) -> CropRegion:
        """
        Records the current box as the selected crop area.
        """
        self.committed = self.region.validate(self.source_width, self.source_height)
        return self.committed
