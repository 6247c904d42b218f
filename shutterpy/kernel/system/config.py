import os
from dataclasses import dataclass
from shutterpy.domain.models import EditorConfig, ExportConfig, ExportFormat
from shutterpy.features.crop.models import CropConfig
from shutterpy.features.annotate.models import AnnotateConfig
from shutterpy.features.filters.models import FilterConfig


@dataclass
class AppConfig:
    max_workers: int
    cache_dir: str
    preview_dir: str
    default_export_dir: str
    perf_log: bool


def get_default_user_dir() -> str:
    """Resolve the user directory from SHUTTERPY_USER_DIR, falling back to ./user."""
    return os.path.abspath(os.getenv("SHUTTERPY_USER_DIR", "user"))


BASE_USER_DIR = get_default_user_dir()

# Global application constants
APP_CONFIG = AppConfig(
    max_workers=max(1, min(4, (os.cpu_count() or 1) - 1)),
    cache_dir=os.path.join(BASE_USER_DIR, "cache"),
    preview_dir=os.path.join(BASE_USER_DIR, "cache", "previews"),
    default_export_dir=os.path.join(BASE_USER_DIR, "export"),
    perf_log=os.getenv("SHUTTERPY_PERF_LOG", "0").strip().lower() in ("1", "true", "yes"),
)

# Tool defaults for every newly opened photo
DEFAULT_EDITOR_CONFIG = EditorConfig(
    crop=CropConfig(
        min_zoom=1.0,
        max_zoom=3.0,
        zoom_step=0.1,
        default_aspect="4:3",
    ),
    annotate=AnnotateConfig(
        default_color="#FF0000",
        default_brush=3,
        min_brush=1,
        max_brush=20,
        text_size=40,
        text_anchor=(20, 20),
    ),
    filters=FilterConfig(
        min_brightness=50.0,
        max_brightness=150.0,
        min_contrast=50.0,
        max_contrast=150.0,
        min_saturation=0.0,
        max_saturation=200.0,
    ),
    export=ExportConfig(
        export_fmt=ExportFormat.JPEG,
        export_quality=95,
        export_path=APP_CONFIG.default_export_dir,
        filename_pattern="edited_{{ original_name }}",
    ),
)
