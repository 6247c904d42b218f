from dataclasses import asdict
from typing import Optional
from shutterpy.domain.interfaces import IProcessor, PipelineContext
from shutterpy.features.filters.models import FilterConfig, FilterParameters
from shutterpy.features.filters.logic import apply_filters
from shutterpy.kernel.image.raster import RasterBuffer
from shutterpy.kernel.image.validation import clamp


class FilterProcessor(IProcessor):
    """
    Applies a fixed set of filter parameters.
    """

    def __init__(self, params: FilterParameters):
        self.params = params

    def process(self, image: RasterBuffer, context: PipelineContext) -> RasterBuffer:
        context.metrics["filter_params"] = asdict(self.params)
        return apply_filters(image, self.params)


class FilterStage:
    """
    Non-destructive filter preview over a pristine copy of the stage input.

    Every render starts from that copy, never from the previous output, so
    changing parameters repeatedly does not compound.
    """

    def __init__(self, source: RasterBuffer, config: Optional[FilterConfig] = None):
        self.config = config or FilterConfig()
        self._input = source.copy()
        self.params = FilterParameters()
        self.applied: Optional[FilterParameters] = None
        self._rendered = self._input.copy()

    @property
    def input(self) -> RasterBuffer:
        return self._input.copy()

    @property
    def raster(self) -> RasterBuffer:
        return self._rendered

    @property
    def is_touched(self) -> bool:
        return self.applied is not None and not self.applied.is_identity

    def clamp_params(self, params: FilterParameters) -> FilterParameters:
        c = self.config
        return FilterParameters(
            brightness=clamp(params.brightness, c.min_brightness, c.max_brightness),
            contrast=clamp(params.contrast, c.min_contrast, c.max_contrast),
            saturation=clamp(params.saturation, c.min_saturation, c.max_saturation),
        )

    def set_params(
        self,
        brightness: Optional[float] = None,
        contrast: Optional[float] = None,
        saturation: Optional[float] = None,
    ) -> FilterParameters:
        """
        Updates the pending slider values within the configured ranges. Nothing is rendered.
        """
        self.params = self.clamp_params(
            FilterParameters(
                brightness=self.params.brightness if brightness is None else float(brightness),
                contrast=self.params.contrast if contrast is None else float(contrast),
                saturation=self.params.saturation if saturation is None else float(saturation),
            )
        )
        return self.params

    def apply(self, params: Optional[FilterParameters] = None) -> RasterBuffer:
        if params is not None:
            self.params = params
        context = PipelineContext(original_size=self._input.size)
        self._rendered = FilterProcessor(self.params).process(self._input, context)
        self.applied = self.params
        return self._rendered

    def reset(self) -> RasterBuffer:
        """
        Restores identity parameters and the unmodified input.
        """
        self.params = FilterParameters()
        self.applied = None
        self._rendered = self._input.copy()
        return self._rendered
