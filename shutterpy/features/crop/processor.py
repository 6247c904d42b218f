from typing import Optional
from shutterpy.domain.errors import ValidationError
from shutterpy.domain.interfaces import IProcessor, PipelineContext
from shutterpy.features.crop.models import CropRegion
from shutterpy.features.crop.logic import extract_region
from shutterpy.kernel.image.raster import RasterBuffer


class CropProcessor(IProcessor):
    """
    Applies the committed crop region.
    """

    def __init__(self, region: Optional[CropRegion]):
        self.region = region

    def process(self, image: RasterBuffer, context: PipelineContext) -> RasterBuffer:
        if self.region is None:
            raise ValidationError("no crop area selected")

        cropped = extract_region(image, self.region)
        context.active_roi = self.region.to_roi()
        context.metrics["crop_region"] = self.region
        return cropped
