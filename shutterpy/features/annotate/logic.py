from typing import Sequence, Tuple, Union
import cv2
from shutterpy.domain.errors import ValidationError
from shutterpy.domain.types import PixelArray, Point, RGBA
from shutterpy.features.annotate.models import ViewRect

ColorLike = Union[str, Sequence[int]]

# Sub-pixel precision for cv2 drawing calls (coordinates are scaled by 2**SHIFT)
SHIFT = 4
_SCALE = 1 << SHIFT

TEXT_FONT = cv2.FONT_HERSHEY_SIMPLEX


def parse_color(value: ColorLike) -> RGBA:
    """
    Accepts "#RGB", "#RRGGBB", "#RRGGBBAA" or an RGB(A) tuple.
    """
    if isinstance(value, str):
        hex_str = value.strip().lstrip("#")
        if len(hex_str) == 3:
            hex_str = "".join(c * 2 for c in hex_str)
        if len(hex_str) == 6:
            hex_str += "ff"
        if len(hex_str) != 8:
            raise ValidationError(f"Invalid color {value!r}")
        try:
            r, g, b, a = (int(hex_str[i : i + 2], 16) for i in range(0, 8, 2))
        except ValueError as e:
            raise ValidationError(f"Invalid color {value!r}") from e
        return r, g, b, a

    channels = [int(c) for c in value]
    if len(channels) == 3:
        channels.append(255)
    if len(channels) != 4 or any(c < 0 or c > 255 for c in channels):
        raise ValidationError(f"Invalid color {value!r}")
    r, g, b, a = channels
    return r, g, b, a


def map_view_to_canvas(
    view_point: Point,
    view_rect: ViewRect,
    canvas_width: int,
    canvas_height: int,
) -> Point:
    """
    Maps a pointer position on the displayed (scaled, zoomed) canvas to canvas pixels.
    """
    vx, vy = view_point
    x = (vx - view_rect.left) * (canvas_width / max(view_rect.width, 1e-9))
    y = (vy - view_rect.top) * (canvas_height / max(view_rect.height, 1e-9))
    return float(x), float(y)


def _fixed(point: Point) -> Tuple[int, int]:
    return int(round(point[0] * _SCALE)), int(round(point[1] * _SCALE))


def draw_segment(
    pixels: PixelArray,
    start: Point,
    end: Point,
    color: RGBA,
    width: int,
) -> None:
    """
    Strokes one anti-aliased segment in place. Thick cv2 lines end in round caps,
    so consecutive segments join roundly as well.
    """
    cv2.line(
        pixels,
        _fixed(start),
        _fixed(end),
        color,
        thickness=max(1, int(width)),
        lineType=cv2.LINE_AA,
        shift=SHIFT,
    )


def stamp_text(
    pixels: PixelArray,
    text: str,
    origin: Tuple[int, int],
    color: RGBA,
    size_px: int,
) -> Tuple[int, int]:
    """
    Draws `text` with its top-left corner at `origin`. Returns the drawn (width, height).
    """
    thickness = max(1, size_px // 15)
    scale = cv2.getFontScaleFromHeight(TEXT_FONT, size_px, thickness)
    (text_w, text_h), _baseline = cv2.getTextSize(text, TEXT_FONT, scale, thickness)

    # cv2 anchors text on its baseline, shift down so the glyph tops sit at origin
    x, y = origin
    cv2.putText(
        pixels,
        text,
        (int(x), int(y + text_h)),
        TEXT_FONT,
        scale,
        color,
        thickness,
        cv2.LINE_AA,
    )
    return text_w, text_h

