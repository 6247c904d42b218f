from typing import Any
import numpy as np
from shutterpy.kernel.image.raster import RasterBuffer


def ensure_raster(obj: Any) -> RasterBuffer:
    """
    Ensures the input is a RasterBuffer, wrapping bare numpy arrays.
    Performs runtime validation instead of a blind cast.
    """
    if isinstance(obj, RasterBuffer):
        return obj
    if isinstance(obj, np.ndarray):
        return RasterBuffer.from_array(obj)
    raise TypeError(f"Expected RasterBuffer or numpy.ndarray, got {type(obj)}")


def clamp(val: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, val))
