import asyncio
import inspect
import os
from dataclasses import dataclass
from typing import Optional
from shutterpy.domain.errors import DecodeError, ValidationError
from shutterpy.domain.interfaces import IImageFetcher
from shutterpy.kernel.system.logging import get_logger

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif", ".bmp", ".tif", ".tiff"}


@dataclass(frozen=True)
class ImageSource:
    """
    Where the photo being edited comes from: a local file, raw bytes,
    or a stored photo identified by an opaque ID.
    """

    path: Optional[str] = None
    data: Optional[bytes] = None
    photo_id: Optional[str] = None

    @classmethod
    def from_file(cls, path: str) -> "ImageSource":
        return cls(path=path)

    @classmethod
    def from_bytes(cls, data: bytes) -> "ImageSource":
        return cls(data=data)

    @classmethod
    def from_photo_id(cls, photo_id: str) -> "ImageSource":
        return cls(photo_id=photo_id)

    @property
    def name(self) -> str:
        if self.path:
            return os.path.basename(self.path)
        if self.photo_id:
            return str(self.photo_id)
        return "photo"

    def validate(self) -> "ImageSource":
        given = [v for v in (self.path, self.data, self.photo_id) if v is not None]
        if len(given) != 1:
            raise ValidationError("Exactly one image source (file, bytes or photo ID) is required")
        return self


def read_file_bytes(path: str) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        logger.error(f"Failed to read {path}: {e}")
        raise DecodeError(f"Failed to load image for editing: {e}") from e


async def read_source_bytes(
    source: ImageSource,
    fetcher: Optional[IImageFetcher] = None,
) -> bytes:
    """
    Resolves a source to encoded bytes. Photo IDs go through the host's fetcher,
    which may be a plain or an async callable.
    """
    source.validate()

    if source.data is not None:
        return source.data

    if source.path is not None:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, read_file_bytes, source.path)

    if fetcher is None:
        raise ValidationError("A photo fetcher is required to open stored photos")

    try:
        result = fetcher.get_image_by_id(str(source.photo_id))
        if inspect.isawaitable(result):
            result = await result
    except DecodeError:
        raise
    except Exception as e:
        # Transport errors belong to the host, the editor only reports the failed load
        logger.error(f"Fetching photo {source.photo_id} failed: {e}")
        raise DecodeError(f"Failed to load image for editing: {e}") from e

    if not isinstance(result, (bytes, bytearray, memoryview)):
        raise DecodeError(
            f"Failed to load image for editing: fetcher returned {type(result).__name__}"
        )
    return bytes(result)
