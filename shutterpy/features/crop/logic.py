import math
from typing import Dict, Optional, Tuple, Union
from shutterpy.domain.errors import ValidationError
from shutterpy.features.crop.models import AspectPreset, CropRegion
from shutterpy.kernel.image.raster import RasterBuffer
from shutterpy.kernel.system.performance import time_function

AspectLike = Union[AspectPreset, str, float, int, None]


def parse_ratio(ratio_str: str) -> float:
    """
    Parses "W:H" into a width / height ratio.
    """
    try:
        w_r, h_r = map(float, ratio_str.split(":"))
    except ValueError as e:
        raise ValidationError(f"Invalid aspect ratio {ratio_str!r}") from e
    if w_r <= 0 or h_r <= 0:
        raise ValidationError(f"Invalid aspect ratio {ratio_str!r}")
    return w_r / h_r


def aspect_presets(source_width: int, source_height: int) -> Dict[str, Optional[float]]:
    """
    The fixed list of aspect choices, in display order. None means freeform.
    """
    presets: Dict[str, Optional[float]] = {}
    for preset in AspectPreset:
        presets[preset.value] = resolve_aspect(preset, source_width, source_height)
    return presets


def resolve_aspect(value: AspectLike, source_width: int, source_height: int) -> Optional[float]:
    """
    Turns a preset, a preset label or a bare ratio into a width / height ratio.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value <= 0 or not math.isfinite(value):
            raise ValidationError(f"Invalid aspect ratio {value!r}")
        return float(value)

    try:
        preset = AspectPreset(value)
    except ValueError as e:
        if isinstance(value, str) and ":" in value:
            return parse_ratio(value)
        raise ValidationError(f"Unknown aspect preset {value!r}") from e

    if preset == AspectPreset.FREE:
        return None
    if preset == AspectPreset.ORIGINAL:
        return source_width / source_height
    return parse_ratio(preset.value)


def snap_size(width: float, aspect: float) -> Tuple[int, int]:
    """
    Rounds a requested width to integer (w, h) keeping w / h close to aspect.
    The longer side is derived from the shorter one so the error stays under half a pixel.
    """
    if aspect >= 1.0:
        h = max(1, int(round(width / aspect)))
        w = max(1, int(round(h * aspect)))
    else:
        w = max(1, int(round(width)))
        h = max(1, int(round(w / aspect)))
    return w, h


def constrain_to_aspect(
    width: float,
    aspect: float,
    bound_w: int,
    bound_h: int,
) -> Tuple[int, int]:
    """
    Largest (w, h) no wider than `width` that keeps the aspect and fits the bounds.
    """
    limit = max(1.0, min(float(width), float(bound_w), bound_h * aspect))
    w, h = snap_size(limit, aspect)

    # Rounding can overshoot a bound by one pixel, step the short side down
    while (w > bound_w or h > bound_h) and min(w, h) > 1:
        if aspect >= 1.0:
            h -= 1
            w = max(1, int(round(h * aspect)))
        else:
            w -= 1
            h = max(1, int(round(w / aspect)))

    return min(w, bound_w), min(h, bound_h)


def fit_size(
    source_width: int,
    source_height: int,
    aspect: Optional[float],
    zoom: float = 1.0,
) -> Tuple[int, int]:
    """
    Size of the crop box at a given zoom: the largest rectangle of the aspect
    that fits the source, divided by zoom.
    """
    zoom = max(zoom, 1e-6)
    if aspect is None:
        w = max(1, int(round(source_width / zoom)))
        h = max(1, int(round(source_height / zoom)))
        return min(w, source_width), min(h, source_height)

    full_w = min(float(source_width), source_height * aspect)
    return constrain_to_aspect(full_w / zoom, aspect, source_width, source_height)


def clamp_position(
    x: float, y: float, width: int, height: int, source_width: int, source_height: int
) -> Tuple[int, int]:
    """
    Keeps a width x height box inside the source by shifting it.
    """
    nx = int(round(min(max(0.0, x), source_width - width)))
    ny = int(round(min(max(0.0, y), source_height - height)))
    return max(0, nx), max(0, ny)


def enforce_region_aspect(
    region: CropRegion,
    source_width: int,
    source_height: int,
    aspect: float,
) -> CropRegion:
    """
    Shrinks a region around its centre until it matches the aspect ratio.
    """
    cw, ch = region.width, region.height
    if cw <= 0 or ch <= 0:
        return CropRegion(0, 0, source_width, source_height, aspect)

    if cw / ch > aspect:
        # Too wide, crop width
        w, h = constrain_to_aspect(ch * aspect, aspect, cw, ch)
    else:
        # Too tall, crop height
        w, h = constrain_to_aspect(float(cw), aspect, cw, ch)

    cx = region.x + cw / 2.0
    cy = region.y + ch / 2.0
    x, y = clamp_position(cx - w / 2.0, cy - h / 2.0, w, h, source_width, source_height)
    return CropRegion(x, y, w, h, aspect)


@time_function
def extract_region(source: RasterBuffer, region: CropRegion) -> RasterBuffer:
    """
    Axis-aligned pixel copy of `region`, sized exactly region.width x region.height.
    The result never shares memory with the source.
    """
    region.validate(source.width, source.height)
    y1, y2, x1, x2 = region.to_roi()
    return RasterBuffer(source.pixels[y1:y2, x1:x2].copy())
