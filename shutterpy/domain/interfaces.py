from typing import Protocol, Optional, Any, Awaitable, Union, runtime_checkable
from dataclasses import dataclass, field
from shutterpy.domain.types import Dimensions, ROI
from shutterpy.kernel.image.raster import RasterBuffer


@dataclass
class PipelineContext:
    """
    Shared state passed through the stage processors of one edit session.
    """

    original_size: Dimensions

    # ROI applied by the crop step
    active_roi: Optional[ROI] = None
    # Values recorded by stages (applied filter params, stroke counts, ...)
    metrics: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class IProcessor(Protocol):
    """
    Interface for a configuration-driven raster transform.
    """

    def process(self, image: RasterBuffer, context: PipelineContext) -> RasterBuffer: ...


@runtime_checkable
class IImageFetcher(Protocol):
    """
    Host-provided access to stored photos. Transport, auth and retries are the host's.
    """

    def get_image_by_id(self, photo_id: str) -> Union[bytes, Awaitable[bytes]]: ...
