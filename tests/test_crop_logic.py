import numpy as np
import pytest
from shutterpy.domain.errors import ValidationError
from shutterpy.domain.interfaces import PipelineContext
from shutterpy.features.crop.logic import (
    aspect_presets,
    constrain_to_aspect,
    enforce_region_aspect,
    extract_region,
    fit_size,
    resolve_aspect,
    snap_size,
)
from shutterpy.features.crop.models import AspectPreset, CropRegion
from shutterpy.features.crop.processor import CropProcessor


def test_extract_region_exact_size(gradient):
    region = CropRegion(10, 20, 30, 40)
    out = extract_region(gradient, region)
    assert (out.width, out.height) == (30, 40)
    assert np.array_equal(out.pixels, gradient.pixels[20:60, 10:40])


def test_extract_region_does_not_share_memory(gradient):
    out = extract_region(gradient, CropRegion(0, 0, 5, 5))
    out.set_pixel(0, 0, (1, 1, 1, 1))
    assert gradient.get_pixel(0, 0) != (1, 1, 1, 1)


def test_extract_full_image(gradient):
    out = extract_region(gradient, CropRegion(0, 0, 100, 80))
    assert out == gradient


@pytest.mark.parametrize(
    "region",
    [
        CropRegion(0, 0, 0, 10),
        CropRegion(0, 0, 10, -1),
        CropRegion(-1, 0, 10, 10),
        CropRegion(95, 0, 10, 10),
        CropRegion(0, 75, 10, 10),
    ],
)
def test_extract_region_rejects_invalid(gradient, region):
    with pytest.raises(ValidationError):
        extract_region(gradient, region)


def test_crop_processor_without_region(gradient):
    ctx = PipelineContext(original_size=gradient.size)
    with pytest.raises(ValidationError, match="no crop area selected"):
        CropProcessor(None).process(gradient, ctx)


def test_crop_processor_records_roi(gradient):
    ctx = PipelineContext(original_size=gradient.size)
    CropProcessor(CropRegion(10, 20, 30, 40)).process(gradient, ctx)
    assert ctx.active_roi == (20, 60, 10, 40)
    assert ctx.metrics["crop_region"].width == 30


def test_resolve_aspect_values():
    assert resolve_aspect(None, 300, 200) is None
    assert resolve_aspect("free", 300, 200) is None
    assert resolve_aspect("original", 300, 200) == pytest.approx(1.5)
    assert resolve_aspect("16:9", 300, 200) == pytest.approx(16 / 9)
    assert resolve_aspect(AspectPreset.SQUARE, 300, 200) == 1.0
    assert resolve_aspect(2, 300, 200) == 2.0
    assert resolve_aspect("5:4", 300, 200) == pytest.approx(1.25)


@pytest.mark.parametrize("value", ["bogus", "3:0", -1.0, 0])
def test_resolve_aspect_rejects(value):
    with pytest.raises(ValidationError):
        resolve_aspect(value, 300, 200)


def test_aspect_presets_order():
    presets = aspect_presets(400, 200)
    assert list(presets) == ["free", "original", "1:1", "4:3", "16:9", "3:4", "9:16"]
    assert presets["free"] is None
    assert presets["original"] == pytest.approx(2.0)


@pytest.mark.parametrize("aspect", [1.0, 4 / 3, 16 / 9, 3 / 4, 9 / 16])
def test_snap_size_within_half_pixel(aspect):
    for width in range(1, 400, 7):
        w, h = snap_size(width, aspect)
        assert w >= 1 and h >= 1
        if aspect >= 1.0:
            assert abs(w - h * aspect) <= 0.5
        else:
            assert abs(h - w / aspect) <= 0.5


def test_constrain_to_aspect_fits_bounds():
    w, h = constrain_to_aspect(500, 16 / 9, 100, 80)
    assert w <= 100 and h <= 80
    assert abs(w - h * 16 / 9) <= 0.5


def test_fit_size_zoom_divides_box():
    assert fit_size(400, 300, 4 / 3) == (400, 300)
    assert fit_size(400, 300, 4 / 3, zoom=2.0) == (200, 150)
    assert fit_size(400, 300, None, zoom=2.0) == (200, 150)
    assert fit_size(400, 300, 1.0) == (300, 300)


def test_enforce_region_aspect_shrinks_around_center():
    region = enforce_region_aspect(CropRegion(0, 0, 200, 100), 400, 300, 1.0)
    assert (region.width, region.height) == (100, 100)
    assert (region.x, region.y) == (50, 0)
    assert region.aspect_ratio == 1.0
