import numpy as np
from numba import njit, prange  # type: ignore
from shutterpy.domain.types import LUMA_R, LUMA_G, LUMA_B
from shutterpy.features.filters.models import FilterParameters
from shutterpy.kernel.image.raster import RasterBuffer
from shutterpy.kernel.system.performance import time_function


@njit(inline="always")
def _to_u8(v: float) -> int:
    if v < 0.0:
        return 0
    if v > 255.0:
        return 255
    return int(round(v))


@njit(parallel=True, cache=True)
def _apply_filters_jit(
    img: np.ndarray,
    brightness: float,
    contrast: float,
    saturation: float,
) -> np.ndarray:
    """
    Brightness, then contrast around mid-grey, then saturation against BT.601 luma.
    Alpha is copied through.
    """
    h, w, c = img.shape
    res = np.empty_like(img)
    bf = brightness / 100.0
    cf = contrast / 100.0
    sf = saturation / 100.0

    for y in prange(h):
        for x in range(w):
            r = img[y, x, 0] * bf
            g = img[y, x, 1] * bf
            b = img[y, x, 2] * bf

            r = ((r / 255.0 - 0.5) * cf + 0.5) * 255.0
            g = ((g / 255.0 - 0.5) * cf + 0.5) * 255.0
            b = ((b / 255.0 - 0.5) * cf + 0.5) * 255.0

            gray = LUMA_R * r + LUMA_G * g + LUMA_B * b
            r = gray + sf * (r - gray)
            g = gray + sf * (g - gray)
            b = gray + sf * (b - gray)

            res[y, x, 0] = _to_u8(r)
            res[y, x, 1] = _to_u8(g)
            res[y, x, 2] = _to_u8(b)
            res[y, x, 3] = img[y, x, 3]

    return res


@time_function
def apply_filters(buffer: RasterBuffer, params: FilterParameters) -> RasterBuffer:
    """
    Returns a new raster with brightness, contrast and saturation applied in one pass.
    The input buffer is never modified.
    """
    if params.is_identity or buffer.is_empty:
        return buffer.copy()

    out = _apply_filters_jit(
        buffer.pixels,
        float(params.brightness),
        float(params.contrast),
        float(params.saturation),
    )
    return RasterBuffer(out)
