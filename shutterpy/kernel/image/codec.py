import io
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError
from shutterpy.domain.errors import DecodeError, EncodingError
from shutterpy.domain.models import ExportBlob, ExportFormat, CONTENT_TYPES
from shutterpy.kernel.image.raster import RasterBuffer
from shutterpy.kernel.system.logging import get_logger
from shutterpy.kernel.system.performance import time_function

logger = get_logger(__name__)


@time_function
def decode_image(data: bytes) -> RasterBuffer:
    """
    Decodes encoded image bytes (JPEG, PNG, WEBP, ...) into an RGBA raster.

    EXIF orientation is applied so the raster matches what a browser would show.
    """
    if not data:
        raise DecodeError("Failed to load image for editing: empty image data")

    try:
        with Image.open(io.BytesIO(data)) as im:
            im.load()
            im = ImageOps.exif_transpose(im)
            rgba = im.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.error(f"Image decode failed: {e}")
        raise DecodeError(f"Failed to load image for editing: {e}") from e

    if rgba.width == 0 or rgba.height == 0:
        raise DecodeError("Failed to load image for editing: image has no pixels")

    return RasterBuffer(np.array(rgba, dtype=np.uint8))


def to_pil(raster: RasterBuffer) -> Image.Image:
    return Image.fromarray(raster.pixels)


@time_function
def encode_image(
    raster: RasterBuffer,
    fmt: ExportFormat = ExportFormat.JPEG,
    quality: int = 95,
) -> ExportBlob:
    """
    Serializes a raster into a compressed image blob.
    JPEG has no alpha channel, so transparent pixels are flattened onto black.
    """
    if raster.is_empty:
        raise EncodingError(
            f"Failed to save image: cannot encode a {raster.width}x{raster.height} canvas"
        )

    fmt = ExportFormat(fmt)
    pil_img = to_pil(raster)
    out = io.BytesIO()
    try:
        if fmt == ExportFormat.JPEG:
            background = Image.new("RGBA", pil_img.size, (0, 0, 0, 255))
            flat = Image.alpha_composite(background, pil_img).convert("RGB")
            flat.save(out, format="JPEG", quality=quality)
        elif fmt == ExportFormat.WEBP:
            pil_img.save(out, format="WEBP", quality=quality)
        else:
            pil_img.save(out, format="PNG")
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Image encode failed ({fmt.value}): {e}")
        raise EncodingError(f"Failed to save image: {e}") from e

    payload = out.getvalue()
    if not payload:
        raise EncodingError("Failed to save image: encoder produced no data")

    return ExportBlob(
        data=payload,
        content_type=CONTENT_TYPES[fmt],
        width=raster.width,
        height=raster.height,
    )
