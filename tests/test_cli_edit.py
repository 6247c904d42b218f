"""Tests for shutterpy.cli.edit, the headless editor CLI."""

import argparse
import json

import pytest

from shutterpy.cli.edit import build_config, build_parser, main, parse_crop, parse_stroke
from shutterpy.domain.models import ExportFormat
from shutterpy.features.crop.models import CropRegion
from shutterpy.kernel.image.codec import decode_image
from shutterpy.kernel.image.raster import RasterBuffer
from images import encode_png, make_gradient


@pytest.fixture
def photo(tmp_path):
    path = tmp_path / "photo.png"
    path.write_bytes(encode_png(make_gradient(100, 80)))
    return path


class TestBuildParser:
    def test_minimal_args(self):
        args = build_parser().parse_args(["in.jpg"])
        assert args.input == "in.jpg"
        assert args.crop is None
        assert args.aspect is None
        assert args.output_format is None
        assert args.output == "./export"
        assert args.stroke == []
        assert args.text == []
        assert args.verbose is False

    def test_all_flags(self):
        args = build_parser().parse_args([
            "--crop", "1,2,3,4",
            "--aspect", "16:9",
            "--zoom", "1.5",
            "--brightness", "120",
            "--contrast", "90",
            "--saturation", "0",
            "--text", "hello",
            "--stroke", "0,0;10,10",
            "--stroke", "5,5;6,6;7,7",
            "--color", "#00FF00",
            "--brush", "7",
            "--format", "webp",
            "--quality", "80",
            "--output", "/tmp/out",
            "--filename-pattern", "{{ original_name }}_v2",
            "--settings", "s.json",
            "-v",
            "in.jpg",
        ])
        assert args.crop == CropRegion(1, 2, 3, 4)
        assert args.aspect == "16:9"
        assert args.zoom == 1.5
        assert (args.brightness, args.contrast, args.saturation) == (120, 90, 0)
        assert args.stroke == [[(0.0, 0.0), (10.0, 10.0)], [(5.0, 5.0), (6.0, 6.0), (7.0, 7.0)]]
        assert args.output_format == "webp"
        assert args.verbose is True

    def test_invalid_aspect(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--aspect", "wide", "in.jpg"])

    def test_invalid_format(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--format", "tiff", "in.jpg"])


@pytest.mark.parametrize("value", ["1,2,3", "a,b,c,d", "1,2,3,4,5"])
def test_parse_crop_rejects(value):
    with pytest.raises(argparse.ArgumentTypeError):
        parse_crop(value)


def test_parse_stroke():
    assert parse_stroke("1,2; 3.5,4;") == [(1.0, 2.0), (3.5, 4.0)]
    for bad in ("1,2", "1,2;3", "x,1;2,2"):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_stroke(bad)


class TestBuildConfig:
    def test_defaults(self, tmp_path):
        args = build_parser().parse_args(["--output", str(tmp_path), "in.jpg"])
        config = build_config(args)
        assert config.export.export_fmt == ExportFormat.JPEG
        assert config.export.export_quality == 95
        assert config.export.export_path == str(tmp_path)

    def test_settings_then_flags(self, tmp_path):
        settings = tmp_path / "settings.json"
        settings.write_text(json.dumps({
            "export_quality": 70,
            "export_fmt": "webp",
            "filename_pattern": "from_settings_{{ original_name }}",
            "max_brush": 10,
        }))
        args = build_parser().parse_args([
            "--settings", str(settings),
            "--filename-pattern", "from_flag",
            "in.jpg",
        ])
        config = build_config(args)
        assert config.export.export_quality == 70
        assert config.export.export_fmt == ExportFormat.WEBP
        assert config.export.filename_pattern == "from_flag"
        assert config.annotate.max_brush == 10


class TestMain:
    def test_end_to_end(self, photo, tmp_path):
        out_dir = tmp_path / "out"
        code = main([
            "--crop", "10,10,40,30",
            "--stroke", "0,0;39,29",
            "--text", "Hi",
            "--brightness", "120",
            "--format", "png",
            "--output", str(out_dir),
            str(photo),
        ])
        assert code == 0
        result = decode_image((out_dir / "edited_photo.png").read_bytes())
        assert result.size == (30, 40)
        original = RasterBuffer(make_gradient(100, 80).pixels[10:40, 10:50].copy())
        assert result != original

    def test_crop_only_is_exact(self, photo, tmp_path):
        code = main([
            "--crop", "0,0,25,20",
            "--format", "png",
            "--output", str(tmp_path),
            "--filename-pattern", "{{ original_name }}_crop",
            str(photo),
        ])
        assert code == 0
        result = decode_image((tmp_path / "photo_crop.png").read_bytes())
        assert result == RasterBuffer(make_gradient(100, 80).pixels[0:20, 0:25].copy())

    def test_aspect_with_zoom(self, photo, tmp_path):
        code = main(["--aspect", "1:1", "--zoom", "2", "--format", "png", "--output", str(tmp_path), str(photo)])
        assert code == 0
        result = decode_image((tmp_path / "edited_photo.png").read_bytes())
        assert result.size == (40, 40)

    def test_missing_file(self, tmp_path):
        assert main(["--output", str(tmp_path), str(tmp_path / "missing.jpg")]) == 1

    def test_unsupported_extension(self, tmp_path):
        notes = tmp_path / "notes.txt"
        notes.write_text("hello")
        assert main(["--output", str(tmp_path), str(notes)]) == 1

    def test_undecodable_file(self, tmp_path):
        bad = tmp_path / "bad.png"
        bad.write_bytes(b"not an image")
        assert main(["--output", str(tmp_path), str(bad)]) == 1

    def test_crop_out_of_bounds(self, photo, tmp_path):
        assert main(["--crop", "90,0,50,50", "--output", str(tmp_path), str(photo)]) == 1

    def test_bad_settings_file(self, photo, tmp_path):
        settings = tmp_path / "broken.json"
        settings.write_text("{not json")
        assert main(["--settings", str(settings), "--output", str(tmp_path), str(photo)]) == 1
