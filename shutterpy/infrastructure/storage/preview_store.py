import os
import shutil
import uuid
from typing import Dict, List
from shutterpy.domain.models import ExportBlob, ExportFormat, EXTENSIONS
from shutterpy.kernel.system.logging import get_logger

logger = get_logger(__name__)

_EXT_BY_TYPE = {
    "image/jpeg": EXTENSIONS[ExportFormat.JPEG],
    "image/png": EXTENSIONS[ExportFormat.PNG],
    "image/webp": EXTENSIONS[ExportFormat.WEBP],
}


class PreviewStore:
    """
    Temporary on-disk previews of intermediate stages, one directory per session.
    Paths handed out here play the role of browser blob URLs and must be released.
    """

    def __init__(self, preview_dir: str) -> None:
        self.preview_dir = preview_dir
        self._live: Dict[str, List[str]] = {}

    def initialize(self) -> None:
        os.makedirs(self.preview_dir, exist_ok=True)
        logger.info(f"PreviewStore initialized (dir: {self.preview_dir})")

    def _get_session_dir(self, session_id: str) -> str:
        session_dir = os.path.join(self.preview_dir, session_id)
        os.makedirs(session_dir, exist_ok=True)
        return session_dir

    def create(self, blob: ExportBlob, session_id: str) -> str:
        """
        Writes a preview and returns its path.
        """
        ext = _EXT_BY_TYPE.get(blob.content_type, "bin")
        path = os.path.join(self._get_session_dir(session_id), f"{uuid.uuid4().hex}.{ext}")
        with open(path, "wb") as f_out:
            f_out.write(blob.data)
        self._live.setdefault(session_id, []).append(path)
        logger.debug(f"Preview created: {path}")
        return path

    def live_previews(self, session_id: str) -> List[str]:
        return list(self._live.get(session_id, []))

    def release(self, path: str) -> None:
        """
        Removes a single preview file.
        """
        for paths in self._live.values():
            if path in paths:
                paths.remove(path)
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as e:
            logger.error(f"Failed to release preview {path}: {e}")

    def release_session(self, session_id: str) -> None:
        """
        Removes every preview of a session.
        """
        self._live.pop(session_id, None)
        session_dir = os.path.join(self.preview_dir, session_id)
        if os.path.exists(session_dir):
            shutil.rmtree(session_dir, ignore_errors=True)
