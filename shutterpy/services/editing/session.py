import uuid
from enum import Enum
from typing import Optional, Union
from shutterpy.domain.interfaces import PipelineContext
from shutterpy.domain.models import EditorConfig
from shutterpy.domain.types import PixelArray
from shutterpy.features.annotate.processor import AnnotationCanvas
from shutterpy.features.crop.models import CropRegion
from shutterpy.features.crop.processor import CropProcessor
from shutterpy.features.crop.selector import CropSelector
from shutterpy.features.filters.processor import FilterStage
from shutterpy.kernel.image.raster import RasterBuffer
from shutterpy.kernel.image.validation import ensure_raster
from shutterpy.kernel.system.logging import get_logger

logger = get_logger(__name__)


class EditStage(str, Enum):
    SOURCE = "source"
    CROP = "crop"
    ANNOTATE = "annotate"
    FILTERS = "filters"


class EditSession:
    """
    Owns every stage buffer of one photo edit.

    Stages only ever receive copies of their upstream output, and re-running an
    upstream stage drops everything downstream of it.
    """

    def __init__(
        self,
        source: Union[RasterBuffer, PixelArray],
        config: Optional[EditorConfig] = None,
        session_id: Optional[str] = None,
    ) -> None:
        source = ensure_raster(source)
        self.session_id = session_id or uuid.uuid4().hex
        self.config = config or EditorConfig()
        self._source: Optional[RasterBuffer] = source.copy()
        self.original_size = source.size
        self.context = PipelineContext(original_size=source.size)
        self.selector = CropSelector(source.width, source.height, self.config.crop)
        self.cropped: Optional[RasterBuffer] = None
        self.cropped_region: Optional[CropRegion] = None
        self.annotation: Optional[AnnotationCanvas] = None
        self.filters: Optional[FilterStage] = None
        self.active_stage = EditStage.CROP
        self.is_discarded = False

    @property
    def source(self) -> RasterBuffer:
        if self._source is None:
            raise RuntimeError(f"Edit session {self.session_id} was discarded")
        return self._source

    def _annotated(self) -> Optional[RasterBuffer]:
        if self.annotation is not None and self.annotation.is_dirty:
            return self.annotation.raster
        return None

    def _pre_annotation(self) -> RasterBuffer:
        return self.cropped if self.cropped is not None else self.source

    def _pre_filter(self) -> RasterBuffer:
        annotated = self._annotated()
        return annotated if annotated is not None else self._pre_annotation()

    def apply_crop(self, region: Optional[CropRegion] = None) -> RasterBuffer:
        """
        Crops the source with `region` (or the selector's committed region).
        Any annotation or filter work built on an earlier crop is dropped.
        """
        target = region if region is not None else self.selector.committed
        cropped = CropProcessor(target).process(self.source.copy(), self.context)
        self.cropped = cropped
        self.cropped_region = target
        self.annotation = None
        self.filters = None
        self.active_stage = EditStage.ANNOTATE
        logger.info(
            f"Session {self.session_id[:8]}: cropped to {cropped.width}x{cropped.height}"
        )
        return cropped

    def skip_crop(self) -> None:
        self.active_stage = EditStage.ANNOTATE

    def begin_annotation(self) -> AnnotationCanvas:
        """
        Returns the annotation stage, creating it from the crop output (or source).
        Entering annotation invalidates filters computed from older annotations.
        """
        if self.annotation is None:
            self.annotation = AnnotationCanvas(
                self._pre_annotation().copy(), self.config.annotate
            )
        self.filters = None
        self.active_stage = EditStage.ANNOTATE
        return self.annotation

    def begin_filters(self) -> FilterStage:
        if self.filters is None:
            self.filters = FilterStage(self._pre_filter().copy(), self.config.filters)
        self.active_stage = EditStage.FILTERS
        return self.filters

    def final_raster(self) -> RasterBuffer:
        """
        Output of the last stage that actually changed the image:
        filters if touched, else annotation, else crop, else source.
        """
        if self.filters is not None and self.filters.is_touched:
            return self.filters.raster
        annotated = self._annotated()
        if annotated is not None:
            return annotated
        return self._pre_annotation()

    def last_stage(self) -> EditStage:
        if self.filters is not None and self.filters.is_touched:
            return EditStage.FILTERS
        if self._annotated() is not None:
            return EditStage.ANNOTATE
        if self.cropped is not None:
            return EditStage.CROP
        return EditStage.SOURCE

    def discard(self) -> None:
        """
        Releases every buffer. The session cannot be used afterwards.
        """
        self._source = None
        self.cropped = None
        self.cropped_region = None
        self.annotation = None
        self.filters = None
        self.is_discarded = True
        logger.debug(f"Session {self.session_id[:8]} discarded")
