from typing import Any, Sequence
import numpy as np
from shutterpy.domain.types import PixelArray, RGBA, Dimensions, CHANNELS


class RasterBuffer:
    """
    Width x height grid of 8-bit RGBA pixels, decoupled from any drawing surface.

    The buffer wraps a C-contiguous uint8 array of shape (height, width, 4).
    Whoever holds a RasterBuffer owns its pixels; hand a copy() to anyone else.
    """

    __slots__ = ("_pixels",)

    def __init__(self, pixels: PixelArray):
        if not isinstance(pixels, np.ndarray):
            raise TypeError(f"Expected numpy.ndarray, got {type(pixels)}")
        if pixels.ndim != 3 or pixels.shape[2] != CHANNELS:
            raise ValueError(f"Expected (H, W, 4) pixel array, got shape {pixels.shape}")
        if pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {pixels.dtype}")
        self._pixels = np.ascontiguousarray(pixels)

    @classmethod
    def blank(
        cls, width: int, height: int, fill: Sequence[int] = (0, 0, 0, 0)
    ) -> "RasterBuffer":
        if width < 0 or height < 0:
            raise ValueError(f"Negative raster size {width}x{height}")
        pixels = np.empty((height, width, CHANNELS), dtype=np.uint8)
        pixels[...] = np.asarray(_as_rgba(fill), dtype=np.uint8)
        return cls(pixels)

    @classmethod
    def from_array(cls, arr: Any) -> "RasterBuffer":
        """
        Builds a buffer from grey (H, W), RGB (H, W, 3) or RGBA (H, W, 4) data.
        Float input is treated as 0.0 - 1.0 and scaled to 0 - 255.
        The input array is always copied.
        """
        data = np.asarray(arr)
        if data.dtype != np.uint8:
            if np.issubdtype(data.dtype, np.floating):
                data = np.rint(np.clip(data, 0.0, 1.0) * 255.0)
            data = np.clip(data, 0, 255).astype(np.uint8)

        if data.ndim == 2:
            data = np.stack([data] * 3, axis=-1)
        if data.ndim != 3:
            raise ValueError(f"Unsupported pixel array shape {data.shape}")

        channels = data.shape[2]
        if channels == 1:
            data = np.concatenate([data] * 3, axis=-1)
            channels = 3
        if channels == 3:
            alpha = np.full(data.shape[:2] + (1,), 255, dtype=np.uint8)
            data = np.concatenate([data, alpha], axis=-1)
        elif channels != CHANNELS:
            raise ValueError(f"Unsupported channel count {channels}")

        return cls(np.array(data, dtype=np.uint8, copy=True))

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def size(self) -> Dimensions:
        """(Height, Width)"""
        return self.height, self.width

    @property
    def shape(self) -> tuple:
        return self._pixels.shape

    @property
    def pixels(self) -> PixelArray:
        """
        Direct access to the backing array. Mutations are visible to the owner.
        """
        return self._pixels

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def get_pixel(self, x: int, y: int) -> RGBA:
        self._check_bounds(x, y)
        r, g, b, a = (int(v) for v in self._pixels[y, x])
        return r, g, b, a

    def set_pixel(self, x: int, y: int, rgba: Sequence[int]) -> None:
        self._check_bounds(x, y)
        self._pixels[y, x] = _as_rgba(rgba)

    def copy(self) -> "RasterBuffer":
        return RasterBuffer(self._pixels.copy())

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(
                f"Pixel ({x}, {y}) outside {self.width}x{self.height} raster"
            )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RasterBuffer):
            return NotImplemented
        return bool(np.array_equal(self._pixels, other._pixels))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"RasterBuffer({self.width}x{self.height})"


def _as_rgba(value: Sequence[int]) -> RGBA:
    channels = [int(v) for v in value]
    if len(channels) == 3:
        channels.append(255)
    if len(channels) != CHANNELS:
        raise ValueError(f"Expected RGB or RGBA color, got {value!r}")
    r, g, b, a = (min(255, max(0, c)) for c in channels)
    return r, g, b, a
