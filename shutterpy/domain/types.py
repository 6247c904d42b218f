from typing import TypeAlias, Tuple
import numpy as np
import numpy.typing as npt


# Image Types
# 8-bit RGBA pixels (Height, Width, 4)
PixelArray: TypeAlias = npt.NDArray[np.uint8]
RGBA: TypeAlias = Tuple[int, int, int, int]

# Geometry Types
# (y1, y2, x1, x2)
ROI: TypeAlias = Tuple[int, int, int, int]
# (Height, Width)
Dimensions: TypeAlias = Tuple[int, int]
# (x, y) in canvas pixels
Point: TypeAlias = Tuple[float, float]

# ITU-R BT.601 luma, as used by the saturation filter
LUMA_R = 0.2989
LUMA_G = 0.587
LUMA_B = 0.114

CHANNELS = 4
