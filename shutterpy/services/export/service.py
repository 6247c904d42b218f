from typing import Optional, Tuple
from shutterpy.domain.errors import EncodingError
from shutterpy.domain.models import ExportBlob, ExportConfig
from shutterpy.kernel.image.codec import encode_image
from shutterpy.kernel.image.raster import RasterBuffer
from shutterpy.kernel.system.logging import get_logger
from shutterpy.services.editing.session import EditSession, EditStage

logger = get_logger(__name__)


def export_raster(raster: RasterBuffer, settings: Optional[ExportConfig] = None) -> ExportBlob:
    settings = settings or ExportConfig()
    return encode_image(raster, settings.export_fmt, settings.export_quality)


def snapshot_session(session: EditSession) -> Tuple[EditStage, RasterBuffer]:
    """
    Copies the output of the session's last touched stage. Edits made after the
    snapshot never reach the export.
    """
    if session.is_discarded:
        raise EncodingError("Failed to save image: the edit session was closed")
    return session.last_stage(), session.final_raster().copy()


def log_export(stage: EditStage, blob: ExportBlob) -> None:
    logger.info(
        f"Exported {stage.value} stage as {blob.content_type} "
        f"({blob.width}x{blob.height}, {len(blob)} bytes)"
    )


def export_session(session: EditSession, settings: Optional[ExportConfig] = None) -> ExportBlob:
    """
    Encodes the output of the session's last touched stage.
    Raises EncodingError; callers must not upload on failure.
    """
    settings = settings or session.config.export
    stage, raster = snapshot_session(session)
    blob = export_raster(raster, settings)
    log_export(stage, blob)
    return blob
