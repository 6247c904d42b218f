"""ShutterPy headless editor.

Runs one photo through crop, annotate and filters and writes the export,
without a UI.
"""

import os
import sys

os.environ.setdefault("NUMBA_THREADING_LAYER", "workqueue")

import argparse
import asyncio
import dataclasses
import json
import logging
import time
from typing import Any, Dict, List, Optional

from shutterpy.domain.errors import DecodeError, EditorError, EncodingError, ValidationError
from shutterpy.domain.models import EditorConfig, ExportBlob, ExportFormat
from shutterpy.domain.types import Point
from shutterpy.features.crop.logic import parse_ratio
from shutterpy.features.crop.models import AspectPreset, CropRegion
from shutterpy.infrastructure.loaders.source import ImageSource, SUPPORTED_EXTENSIONS
from shutterpy.kernel.system.config import DEFAULT_EDITOR_CONFIG
from shutterpy.kernel.system.logging import setup_logging
from shutterpy.services.editing.editor import PhotoEditor
from shutterpy.services.editing.session import EditStage
from shutterpy.services.export.templating import render_export_filename


FORMAT_MAP = {
    "jpeg": ExportFormat.JPEG,
    "png": ExportFormat.PNG,
    "webp": ExportFormat.WEBP,
}

FORMAT_CHOICES = tuple(FORMAT_MAP.keys())
ASPECT_CHOICES = tuple(p.value for p in AspectPreset)


def parse_crop(value: str) -> CropRegion:
    """Parses "X,Y,W,H" into a crop region."""
    parts = [p.strip() for p in value.split(",")]
    if len(parts) != 4:
        raise argparse.ArgumentTypeError(f"crop must be X,Y,W,H, got {value!r}")
    try:
        x, y, w, h = (int(p) for p in parts)
    except ValueError:
        raise argparse.ArgumentTypeError(f"crop values must be integers, got {value!r}")
    return CropRegion(x, y, w, h)


def parse_stroke(value: str) -> List[Point]:
    """Parses "x1,y1;x2,y2;..." into canvas points."""
    points: List[Point] = []
    for chunk in value.split(";"):
        chunk = chunk.strip()
        if not chunk:
            continue
        coords = chunk.split(",")
        if len(coords) != 2:
            raise argparse.ArgumentTypeError(f"stroke point must be x,y, got {chunk!r}")
        try:
            points.append((float(coords[0]), float(coords[1])))
        except ValueError:
            raise argparse.ArgumentTypeError(f"stroke coordinates must be numbers, got {chunk!r}")
    if len(points) < 2:
        raise argparse.ArgumentTypeError("a stroke needs at least two points")
    return points


def parse_aspect(value: str) -> str:
    if value in ASPECT_CHOICES:
        return value
    try:
        parse_ratio(value)
    except ValidationError as e:
        raise argparse.ArgumentTypeError(e.message)
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shutterpy-edit",
        description="ShutterPy -- crop, annotate and adjust a photo",
        epilog="Example: shutterpy-edit --crop 0,0,800,600 --brightness 120 --output ./export photo.jpg",
    )

    parser.add_argument("input", metavar="FILE", help="Photo to edit")

    parser.add_argument(
        "--crop",
        type=parse_crop,
        default=None,
        metavar="X,Y,W,H",
        help="Crop area in source pixels",
    )

    parser.add_argument(
        "--aspect",
        type=parse_aspect,
        default=None,
        metavar="PRESET",
        help=f"Aspect constraint: {', '.join(ASPECT_CHOICES)} or W:H (default: free)",
    )

    parser.add_argument(
        "--zoom",
        type=float,
        default=None,
        metavar="FLOAT",
        help="Crop zoom 1..3, crops a centred box shrunk by this factor",
    )

    parser.add_argument(
        "--brightness",
        type=float,
        default=None,
        metavar="N",
        help="Brightness percent, 50..150 (default: 100)",
    )

    parser.add_argument(
        "--contrast",
        type=float,
        default=None,
        metavar="N",
        help="Contrast percent, 50..150 (default: 100)",
    )

    parser.add_argument(
        "--saturation",
        type=float,
        default=None,
        metavar="N",
        help="Saturation percent, 0..200 (default: 100)",
    )

    parser.add_argument(
        "--text",
        action="append",
        default=[],
        metavar="TEXT",
        help="Stamp text at the top-left anchor (repeatable)",
    )

    parser.add_argument(
        "--stroke",
        type=parse_stroke,
        action="append",
        default=[],
        metavar="x1,y1;x2,y2;...",
        help="Freehand stroke polyline in crop coordinates (repeatable)",
    )

    parser.add_argument(
        "--color",
        default=None,
        metavar="#RRGGBB",
        help="Brush and text color (default: #FF0000)",
    )

    parser.add_argument(
        "--brush",
        type=int,
        default=None,
        metavar="N",
        help="Brush width 1..20 (default: 3)",
    )

    parser.add_argument(
        "--format",
        choices=FORMAT_CHOICES,
        default=None,
        dest="output_format",
        help="Output file format (default: jpeg)",
    )

    parser.add_argument(
        "--quality",
        type=int,
        default=None,
        metavar="INT",
        help="JPEG/WebP quality 1..100 (default: 95)",
    )

    parser.add_argument(
        "--output",
        default="./export",
        metavar="DIR",
        help="Output directory (default: ./export)",
    )

    parser.add_argument(
        "--filename-pattern",
        default=None,
        metavar="TEMPLATE",
        help='Jinja2 filename template (default: "edited_{{ original_name }}")',
    )

    parser.add_argument(
        "--settings",
        default=None,
        metavar="JSON_FILE",
        help="Load EditorConfig overrides from a flat JSON settings file",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Log pipeline steps and timings",
    )

    return parser


def build_config(args: argparse.Namespace) -> EditorConfig:
    """Builds EditorConfig with loading priority:
    DEFAULT → --settings → CLI flags
    """
    base_dict = DEFAULT_EDITOR_CONFIG.to_dict()

    if args.settings:
        with open(os.path.abspath(args.settings), "r") as f:
            settings_data = json.load(f)
        base_dict.update(settings_data)

    config = EditorConfig.from_flat_dict(base_dict)

    export_overrides: Dict[str, Any] = {"export_path": os.path.abspath(args.output)}
    if args.output_format is not None:
        export_overrides["export_fmt"] = FORMAT_MAP[args.output_format]
    if args.quality is not None:
        export_overrides["export_quality"] = args.quality
    if args.filename_pattern is not None:
        export_overrides["filename_pattern"] = args.filename_pattern
    export = dataclasses.replace(config.export, **export_overrides)

    return dataclasses.replace(config, export=export)


def _has_filters(args: argparse.Namespace) -> bool:
    return any(v is not None for v in (args.brightness, args.contrast, args.saturation))


async def run_edit(args: argparse.Namespace, config: EditorConfig) -> ExportBlob:
    """Drives a PhotoEditor through every requested step and returns the export."""
    async with PhotoEditor(config=config) as editor:
        session = await editor.open(ImageSource.from_file(os.path.abspath(args.input)))
        if session is None:
            raise DecodeError(editor.state.error)

        selector = editor.selector
        selector.set_aspect(args.aspect or AspectPreset.FREE)
        if args.crop is not None:
            selector.select(args.crop)
            await editor.apply_crop()
        elif args.aspect is not None or args.zoom is not None:
            if args.zoom is not None:
                selector.set_zoom(args.zoom)
            selector.commit()
            await editor.apply_crop()

        if args.stroke or args.text:
            editor.select_tab(EditStage.ANNOTATE)
            editor.set_brush(args.color, args.brush)
            for points in args.stroke:
                editor.pointer_down(points[0])
                for point in points[1:]:
                    editor.pointer_move(point)
                editor.pointer_up()
            for text in args.text:
                editor.add_text(text)

        if _has_filters(args):
            editor.set_filters(args.brightness, args.contrast, args.saturation)
            editor.apply_filters()

        blob = await editor.save()
        if blob is None:
            raise EncodingError(editor.state.error)
        return blob


def write_blob(blob: ExportBlob, source_path: str, config: EditorConfig) -> str:
    export_settings = config.export
    os.makedirs(export_settings.export_path, exist_ok=True)
    out_path = os.path.join(
        export_settings.export_path,
        render_export_filename(source_path, export_settings),
    )
    with open(out_path, "wb") as f:
        f.write(blob.data)
    return out_path


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Returns 0 on success, 1 on failure."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    if not os.path.isfile(args.input):
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1
    if os.path.splitext(args.input)[1].lower() not in SUPPORTED_EXTENSIONS:
        print(f"Error: Unsupported file type: {args.input}", file=sys.stderr)
        return 1

    try:
        config = build_config(args)
    except (json.JSONDecodeError, FileNotFoundError, KeyError, TypeError, ValueError) as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    name = os.path.basename(args.input)
    print(f"Editing {name} ...", file=sys.stderr, end="", flush=True)
    t_start = time.monotonic()

    try:
        blob = asyncio.run(run_edit(args, config))
        out_path = write_blob(blob, args.input, config)
    except EditorError as e:
        print(f" ERROR: {e.message}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f" ERROR: {e}", file=sys.stderr)
        return 1

    elapsed = time.monotonic() - t_start
    print(f" OK {blob.width}x{blob.height} ({elapsed:.1f}s)", file=sys.stderr)
    print(out_path)
    return 0


def cli_entry() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    sys.exit(main())
