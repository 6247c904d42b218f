import unittest
from shutterpy.domain.errors import ValidationError
from shutterpy.features.crop.models import CropConfig, CropRegion
from shutterpy.features.crop.selector import CropSelector


def _aspect_error(region: CropRegion, aspect: float) -> float:
    if aspect >= 1.0:
        return abs(region.width - region.height * aspect)
    return abs(region.height - region.width / aspect)


class TestCropSelector(unittest.TestCase):
    def setUp(self):
        self.selector = CropSelector(400, 300)

    def test_default_box_is_full_4_3(self):
        region = self.selector.region
        self.assertEqual((region.x, region.y, region.width, region.height), (0, 0, 400, 300))
        self.assertAlmostEqual(self.selector.aspect, 4 / 3)
        self.assertIsNone(self.selector.committed)

    def test_set_aspect_refits_around_center(self):
        self.selector.set_aspect("1:1")
        region = self.selector.region
        self.assertEqual((region.width, region.height), (300, 300))
        self.assertEqual((region.x, region.y), (50, 0))

    def test_zoom_shrinks_box(self):
        self.selector.set_aspect("1:1")
        self.selector.set_zoom(2.0)
        region = self.selector.region
        self.assertEqual((region.width, region.height), (150, 150))
        self.assertEqual((region.x, region.y), (125, 75))

    def test_step_zoom(self):
        self.assertAlmostEqual(self.selector.step_zoom(), 1.1)
        self.assertAlmostEqual(self.selector.step_zoom(3), 1.4)
        self.assertAlmostEqual(self.selector.step_zoom(-10), 1.0)

    def test_zoom_is_clamped(self):
        self.assertEqual(self.selector.set_zoom(10), 3.0)
        self.assertEqual(self.selector.set_zoom(0.1), 1.0)

    def test_resize_keeps_aspect(self):
        selector = CropSelector(640, 480)
        for aspect in ("4:3", "16:9", "3:4", "9:16", "1:1"):
            selector.set_aspect(aspect)
            for width in (1, 37, 100, 333, 641, 5000):
                region = selector.resize(width, 7)
                self.assertLessEqual(_aspect_error(region, selector.aspect), 0.5)
                region.validate(640, 480)

    def test_interactions_keep_aspect(self):
        selector = CropSelector(1000, 700)
        selector.set_aspect("16:9")
        selector.set_zoom(1.7)
        selector.pan(33, -12)
        selector.resize(421)
        selector.set_zoom(2.3)
        region = selector.commit()
        self.assertLessEqual(_aspect_error(region, 16 / 9), 0.5)
        self.assertAlmostEqual(region.aspect_ratio, 16 / 9)

    def test_free_resize(self):
        self.selector.set_aspect("free")
        region = self.selector.resize(50, 70)
        self.assertEqual((region.width, region.height), (50, 70))

    def test_resize_rejects_non_positive(self):
        with self.assertRaises(ValidationError):
            self.selector.resize(0)
        with self.assertRaises(ValidationError):
            self.selector.resize(10, -5)

    def test_pan_is_clamped_to_source(self):
        self.selector.set_aspect("free")
        self.selector.resize(100, 100)
        region = self.selector.move_to(1000, 1000)
        self.assertEqual((region.x, region.y), (300, 200))
        region = self.selector.pan(-5000, 0)
        self.assertEqual((region.x, region.y), (0, 200))

    def test_select_exact_region_when_free(self):
        self.selector.set_aspect("free")
        committed = self.selector.select(CropRegion(10, 10, 50, 40))
        self.assertEqual(
            (committed.x, committed.y, committed.width, committed.height), (10, 10, 50, 40)
        )
        self.assertEqual(self.selector.committed, committed)

    def test_select_applies_aspect(self):
        self.selector.set_aspect("1:1")
        committed = self.selector.select(CropRegion(0, 0, 200, 100))
        self.assertEqual((committed.width, committed.height), (100, 100))

    def test_select_out_of_bounds(self):
        with self.assertRaises(ValidationError):
            self.selector.select(CropRegion(350, 0, 100, 100))

    def test_original_preset_uses_source_ratio(self):
        selector = CropSelector(400, 200)
        self.assertAlmostEqual(selector.aspect_presets["original"], 2.0)
        self.assertAlmostEqual(selector.set_aspect("original"), 2.0)

    def test_custom_default_aspect(self):
        selector = CropSelector(400, 300, CropConfig(default_aspect="free"))
        self.assertIsNone(selector.aspect)

    def test_rejects_empty_source(self):
        with self.assertRaises(ValidationError):
            CropSelector(0, 10)
