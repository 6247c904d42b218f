import numpy as np
import pytest
from shutterpy.domain.errors import ValidationError
from shutterpy.features.annotate.logic import map_view_to_canvas, parse_color
from shutterpy.features.annotate.models import AnnotateConfig, ViewRect
from shutterpy.features.annotate.processor import AnnotationCanvas
from shutterpy.kernel.image.raster import RasterBuffer


@pytest.fixture
def canvas():
    return AnnotationCanvas(RasterBuffer.blank(200, 100, (0, 0, 0, 255)))


def test_stroke_paints_segment(canvas):
    canvas.begin_stroke((5, 50), "#FF0000", 3)
    assert canvas.extend_stroke((195, 50))
    canvas.end_stroke()

    r, g, b, a = canvas.raster.get_pixel(100, 50)
    assert r > 200 and g < 50 and b < 50 and a == 255
    assert canvas.is_dirty
    assert len(canvas.strokes) == 1
    assert canvas.strokes[0].points == [(5, 50), (195, 50)]


def test_move_without_stroke_is_ignored(canvas):
    before = canvas.snapshot()
    assert not canvas.extend_stroke((10, 10))
    assert canvas.raster == before
    assert not canvas.is_dirty


def test_single_point_stroke_draws_nothing(canvas):
    before = canvas.snapshot()
    canvas.begin_stroke((10, 10))
    canvas.end_stroke()
    assert canvas.raster == before
    assert canvas.strokes == []
    assert not canvas.is_drawing


def test_text_changes_pixels_near_anchor(canvas):
    before = canvas.snapshot()
    assert canvas.add_text("Hi", "#FFFFFF")
    diff = np.any(canvas.raster.pixels != before.pixels, axis=-1)
    ys, xs = np.nonzero(diff)
    assert len(xs) > 0
    # Glyph tops sit at the anchor, nothing is drawn above or left of it
    assert ys.min() >= 14 and xs.min() >= 14
    assert canvas.texts == ["Hi"]


def test_empty_text_is_ignored(canvas):
    assert not canvas.add_text("")
    assert not canvas.is_dirty


def test_clear_restores_entry():
    entry = RasterBuffer.blank(50, 50, (10, 20, 30, 255))
    canvas = AnnotationCanvas(entry)
    canvas.begin_stroke((0, 0))
    canvas.extend_stroke((49, 49))
    canvas.end_stroke()
    canvas.add_text("note")
    assert canvas.raster != entry

    canvas.clear()
    assert canvas.raster == entry
    assert canvas.strokes == [] and canvas.texts == []
    assert not canvas.is_dirty


def test_entry_buffer_is_not_mutated():
    entry = RasterBuffer.blank(50, 50, (0, 0, 0, 255))
    canvas = AnnotationCanvas(entry)
    canvas.begin_stroke((0, 25))
    canvas.extend_stroke((49, 25))
    assert entry == RasterBuffer.blank(50, 50, (0, 0, 0, 255))


def test_brush_width_is_clamped(canvas):
    assert canvas.begin_stroke((0, 0), width=100).brush_width == 20
    assert canvas.begin_stroke((0, 0), width=0).brush_width == 1
    assert canvas.begin_stroke((0, 0)).brush_width == 3


def test_defaults_from_config():
    config = AnnotateConfig(default_color="#00FF00", default_brush=5)
    canvas = AnnotationCanvas(RasterBuffer.blank(10, 10), config)
    stroke = canvas.begin_stroke((1, 1))
    assert stroke.color == (0, 255, 0, 255)
    assert stroke.brush_width == 5


def test_parse_color():
    assert parse_color("#0f0") == (0, 255, 0, 255)
    assert parse_color("#FF8000") == (255, 128, 0, 255)
    assert parse_color("#11223344") == (0x11, 0x22, 0x33, 0x44)
    assert parse_color((1, 2, 3)) == (1, 2, 3, 255)


@pytest.mark.parametrize("value", ["nope", "#12345", (1, 2), (0, 0, 300)])
def test_parse_color_rejects(value):
    with pytest.raises(ValidationError):
        parse_color(value)


def test_view_mapping_scales_and_offsets():
    rect = ViewRect(left=10, top=20, width=100, height=50)
    assert map_view_to_canvas((60, 45), rect, 200, 100) == (100.0, 50.0)
    assert map_view_to_canvas((10, 20), rect, 200, 100) == (0.0, 0.0)


def test_canvas_maps_view_points(canvas):
    rect = ViewRect(left=0, top=0, width=400, height=200)
    assert canvas.to_canvas((200, 100), rect) == (100.0, 50.0)
