from dataclasses import dataclass, field, asdict
from typing import Dict, Any
from enum import Enum
from shutterpy.features.crop.models import CropConfig
from shutterpy.features.annotate.models import AnnotateConfig
from shutterpy.features.filters.models import FilterConfig


class ExportFormat(str, Enum):
    JPEG = "JPEG"
    PNG = "PNG"
    WEBP = "WEBP"


CONTENT_TYPES = {
    ExportFormat.JPEG: "image/jpeg",
    ExportFormat.PNG: "image/png",
    ExportFormat.WEBP: "image/webp",
}

EXTENSIONS = {
    ExportFormat.JPEG: "jpg",
    ExportFormat.PNG: "png",
    ExportFormat.WEBP: "webp",
}


@dataclass(frozen=True)
class ExportConfig:
    """
    Export parameters (format, quality, naming).
    """

    export_fmt: ExportFormat = ExportFormat.JPEG
    export_quality: int = 95
    export_path: str = "export"
    filename_pattern: str = "edited_{{ original_name }}"


@dataclass(frozen=True)
class EditorConfig:
    """
    Complete tool configuration for an edit session.
    """

    crop: CropConfig = field(default_factory=CropConfig)
    annotate: AnnotateConfig = field(default_factory=AnnotateConfig)
    filters: FilterConfig = field(default_factory=FilterConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    def to_dict(self) -> Dict[str, Any]:
        """
        Flattens for serialization.
        """
        res: Dict[str, Any] = {}
        res.update(asdict(self.crop))
        res.update(asdict(self.annotate))
        res.update(asdict(self.filters))
        res.update(asdict(self.export))
        res["export_fmt"] = self.export.export_fmt.value
        return res

    @classmethod
    def from_flat_dict(cls, data: Dict[str, Any]) -> "EditorConfig":
        """
        from JSON settings.
        """

        def filter_keys(config_cls: Any, d: Dict[str, Any]) -> Dict[str, Any]:
            valid_keys = config_cls.__dataclass_fields__.keys()
            return {k: v for k, v in d.items() if k in valid_keys and v is not None}

        annotate_kwargs = filter_keys(AnnotateConfig, data)
        if "text_anchor" in annotate_kwargs:
            annotate_kwargs["text_anchor"] = tuple(annotate_kwargs["text_anchor"])

        export_kwargs = filter_keys(ExportConfig, data)
        if "export_fmt" in export_kwargs:
            export_kwargs["export_fmt"] = ExportFormat(
                str(export_kwargs["export_fmt"]).upper()
            )

        return cls(
            crop=CropConfig(**filter_keys(CropConfig, data)),
            annotate=AnnotateConfig(**annotate_kwargs),
            filters=FilterConfig(**filter_keys(FilterConfig, data)),
            export=ExportConfig(**export_kwargs),
        )


@dataclass(frozen=True)
class ExportBlob:
    """
    Encoded image ready for upload or download.
    """

    data: bytes
    content_type: str
    width: int
    height: int

    def __len__(self) -> int:
        return len(self.data)
