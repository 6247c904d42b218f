import asyncio
import functools
import inspect
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar, Union
from shutterpy.domain.errors import DecodeError, EncodingError, ValidationError
from shutterpy.domain.interfaces import IImageFetcher
from shutterpy.domain.models import EditorConfig, ExportBlob
from shutterpy.domain.types import Point
from shutterpy.features.annotate.logic import ColorLike, parse_color
from shutterpy.features.annotate.models import ViewRect
from shutterpy.features.annotate.processor import AnnotationCanvas
from shutterpy.features.crop.selector import CropSelector
from shutterpy.features.filters.models import FilterParameters
from shutterpy.features.filters.processor import FilterStage
from shutterpy.infrastructure.loaders.source import ImageSource, read_source_bytes
from shutterpy.infrastructure.storage.preview_store import PreviewStore
from shutterpy.kernel.image.codec import decode_image, encode_image
from shutterpy.kernel.image.raster import RasterBuffer
from shutterpy.kernel.image.validation import clamp
from shutterpy.kernel.system.config import APP_CONFIG, DEFAULT_EDITOR_CONFIG
from shutterpy.kernel.system.logging import get_logger
from shutterpy.services.editing.session import EditSession, EditStage
from shutterpy.services.export.service import export_raster, log_export, snapshot_session

logger = get_logger(__name__)

T = TypeVar("T")

SaveCallback = Callable[[ExportBlob], Union[None, Awaitable[None]]]
CancelCallback = Callable[[], None]

# Stages that run decode/encode off the event loop, each with its own generation
SOURCE = "source"
CROP = "crop"
EXPORT = "export"


@dataclass
class EditorState:
    """
    What the editor view renders from.
    """

    active_tab: EditStage = EditStage.CROP
    is_loading: bool = False
    is_processing: bool = False
    error: Optional[str] = None
    show_saved: bool = False
    display_preview: Optional[str] = None
    brush_color: str = "#FF0000"
    brush_size: int = 3
    view_zoom: float = 1.0
    is_closed: bool = False


class PhotoEditor:
    """
    Host-facing photo editor: load, crop, annotate, filter, save or cancel.

    Runs on one asyncio loop. Decode and encode run in a thread pool and every
    request carries a per-stage generation; results from superseded requests, or
    arriving after close(), are dropped without touching the editor.
    """

    def __init__(
        self,
        fetcher: Optional[IImageFetcher] = None,
        on_save: Optional[SaveCallback] = None,
        on_cancel: Optional[CancelCallback] = None,
        config: Optional[EditorConfig] = None,
        preview_store: Optional[PreviewStore] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self.config = config or DEFAULT_EDITOR_CONFIG
        self.fetcher = fetcher
        self.on_save = on_save
        self.on_cancel = on_cancel
        self.preview_store = preview_store
        self.state = EditorState(
            brush_color=self.config.annotate.default_color,
            brush_size=self.config.annotate.default_brush,
        )
        self.session: Optional[EditSession] = None

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=APP_CONFIG.max_workers, thread_name_prefix="shutterpy-codec"
        )
        self._generations: Dict[str, int] = {SOURCE: 0, CROP: 0, EXPORT: 0}
        self._last_source: Optional[ImageSource] = None

    async def __aenter__(self) -> "PhotoEditor":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if not self.state.is_closed:
            self.close()

    # Generation guard

    def _next_generation(self, stage: str) -> int:
        self._generations[stage] += 1
        return self._generations[stage]

    def _is_current(self, stage: str, generation: int) -> bool:
        return not self.state.is_closed and self._generations[stage] == generation

    async def _run_blocking(self, fn: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(fn, *args))

    def _require_session(self) -> EditSession:
        if self.state.is_closed:
            raise ValidationError("The editor has been closed")
        if self.session is None:
            raise ValidationError("No image is loaded")
        return self.session

    # Loading

    async def open(self, source: ImageSource) -> Optional[EditSession]:
        """
        Loads and decodes a photo into a fresh edit session.

        Returns None when the load failed (see state.error), was superseded by a
        newer open(), or the editor was closed while it was in flight.
        """
        if self.state.is_closed:
            return None

        generation = self._next_generation(SOURCE)
        self._last_source = source
        self.state.is_loading = True
        self.state.error = None

        try:
            data = await read_source_bytes(source, self.fetcher)
            if not self._is_current(SOURCE, generation):
                return None
            raster = await self._run_blocking(decode_image, data)
        except ValidationError:
            self.state.is_loading = False
            raise
        except DecodeError as e:
            if self._is_current(SOURCE, generation):
                logger.error(f"Failed to open {source.name}: {e.message}")
                self.state.error = e.default_message
                self.state.is_loading = False
            return None

        if not self._is_current(SOURCE, generation):
            logger.debug(f"Dropping stale decode of {source.name} (generation {generation})")
            return None

        self._replace_session(EditSession(raster, self.config))
        self.state.is_loading = False
        self.state.active_tab = EditStage.CROP
        logger.info(f"Opened {source.name} ({raster.width}x{raster.height})")
        return self.session

    async def retry_load(self) -> Optional[EditSession]:
        if self._last_source is None:
            raise ValidationError("Nothing to retry, no image was requested")
        return await self.open(self._last_source)

    def _replace_session(self, session: EditSession) -> None:
        old = self.session
        if old is not None:
            if self.preview_store is not None:
                self.preview_store.release_session(old.session_id)
            old.discard()
        self.state.display_preview = None
        self._generations[CROP] += 1
        self._generations[EXPORT] += 1
        self.session = session

    def _set_display_preview(self, path: Optional[str]) -> None:
        previous = self.state.display_preview
        self.state.display_preview = path
        if previous and previous != path and self.preview_store is not None:
            self.preview_store.release(previous)

    # Tabs

    def select_tab(self, tab: EditStage) -> None:
        session = self._require_session()
        tab = EditStage(tab)
        if tab == EditStage.ANNOTATE:
            session.begin_annotation()
        elif tab == EditStage.FILTERS:
            session.begin_filters()
        self.state.active_tab = tab

    # Crop

    @property
    def selector(self) -> CropSelector:
        return self._require_session().selector

    async def apply_crop(self) -> Optional[RasterBuffer]:
        """
        Crops to the committed region and moves on to annotation.
        Raises ValidationError("no crop area selected") when nothing was committed.
        """
        session = self._require_session()
        if session.selector.committed is None:
            raise ValidationError("no crop area selected")

        generation = self._next_generation(CROP)
        cropped = session.apply_crop()
        session.begin_annotation()
        self.state.active_tab = EditStage.ANNOTATE

        if self.preview_store is None:
            return cropped

        self.state.is_processing = True
        try:
            blob = await self._run_blocking(
                encode_image,
                cropped,
                self.config.export.export_fmt,
                self.config.export.export_quality,
            )
        except EncodingError as e:
            if self._is_current(CROP, generation):
                logger.error(f"Crop preview failed: {e.message}")
                self.state.error = "Failed to crop image. Please try again."
                self.state.is_processing = False
            return None

        if not self._is_current(CROP, generation):
            return None

        self._set_display_preview(self.preview_store.create(blob, session.session_id))
        self.state.is_processing = False
        return cropped

    # Annotation

    def _canvas(self) -> Optional[AnnotationCanvas]:
        session = self.session
        if self.state.is_closed or session is None:
            return None
        if self.state.active_tab != EditStage.ANNOTATE:
            return None
        return session.annotation

    def set_brush(self, color: Optional[ColorLike] = None, size: Optional[int] = None) -> None:
        if color is not None:
            r, g, b, _a = parse_color(color)
            self.state.brush_color = f"#{r:02X}{g:02X}{b:02X}"
        if size is not None:
            a = self.config.annotate
            self.state.brush_size = int(clamp(int(size), a.min_brush, a.max_brush))

    def set_view_zoom(self, zoom: float) -> float:
        a = self.config.annotate
        self.state.view_zoom = clamp(float(zoom), a.min_view_zoom, a.max_view_zoom)
        return self.state.view_zoom

    def pointer_down(self, point: Point, view_rect: Optional[ViewRect] = None) -> bool:
        canvas = self._canvas()
        if canvas is None:
            return False
        if view_rect is not None:
            point = canvas.to_canvas(point, view_rect)
        canvas.begin_stroke(point, self.state.brush_color, self.state.brush_size)
        return True

    def pointer_move(self, point: Point, view_rect: Optional[ViewRect] = None) -> bool:
        """
        Extends the open stroke. Moves without a preceding pointer_down are ignored.
        """
        canvas = self._canvas()
        if canvas is None or not canvas.is_drawing:
            return False
        if view_rect is not None:
            point = canvas.to_canvas(point, view_rect)
        return canvas.extend_stroke(point)

    def pointer_up(self) -> None:
        canvas = self._canvas()
        if canvas is not None:
            canvas.end_stroke()

    def add_text(self, text: str) -> bool:
        canvas = self._canvas()
        if canvas is None:
            return False
        return canvas.add_text(text, self.state.brush_color)

    def clear_annotations(self) -> None:
        canvas = self._canvas()
        if canvas is not None:
            canvas.clear()

    # Filters

    def _filter_stage(self) -> FilterStage:
        session = self._require_session()
        if self.state.active_tab != EditStage.FILTERS or session.filters is None:
            self.select_tab(EditStage.FILTERS)
        if session.filters is None:
            raise ValidationError("Filters are not available for this image")
        return session.filters

    def set_filters(
        self,
        brightness: Optional[float] = None,
        contrast: Optional[float] = None,
        saturation: Optional[float] = None,
    ) -> FilterParameters:
        return self._filter_stage().set_params(brightness, contrast, saturation)

    def apply_filters(self) -> RasterBuffer:
        return self._filter_stage().apply()

    def reset_filters(self) -> RasterBuffer:
        return self._filter_stage().reset()

    # Save / close

    async def save(self) -> Optional[ExportBlob]:
        """
        Exports the last touched stage and hands it to on_save, awaiting it.

        Returns None when encoding or the host callback failed (see state.error),
        or when the editor was closed meanwhile. on_save is never called with a
        failed export.
        """
        session = self._require_session()
        committed = session.selector.committed
        if (
            self.state.active_tab == EditStage.CROP
            and committed is not None
            and committed != session.cropped_region
        ):
            session.apply_crop()

        # The encode thread only ever sees this copy
        stage, raster = snapshot_session(session)

        generation = self._next_generation(EXPORT)
        self.state.is_processing = True
        self.state.error = None
        try:
            blob = await self._run_blocking(export_raster, raster, session.config.export)
        except EncodingError as e:
            if self._is_current(EXPORT, generation):
                logger.error(f"Export failed: {e.message}")
                self.state.error = e.default_message
                self.state.is_processing = False
            return None

        if not self._is_current(EXPORT, generation):
            return None
        log_export(stage, blob)

        try:
            if self.on_save is not None:
                result = self.on_save(blob)
                if inspect.isawaitable(result):
                    await result
        except Exception as e:
            logger.exception(f"Save callback failed: {e}")
            if self._is_current(EXPORT, generation):
                self.state.error = EncodingError.default_message
                self.state.is_processing = False
            return None

        if self._is_current(EXPORT, generation):
            self.state.is_processing = False
            self.state.show_saved = True
        return blob

    def close(self) -> None:
        """
        Tears the editor down: pending results are dropped, previews released,
        buffers discarded, and on_cancel notified. Safe to call twice.
        """
        if self.state.is_closed:
            return

        self.state.is_closed = True
        for stage in self._generations:
            self._generations[stage] += 1

        session = self.session
        if session is not None:
            if self.preview_store is not None:
                self.preview_store.release_session(session.session_id)
            session.discard()
        self.session = None
        self.state.display_preview = None
        self.state.is_loading = False
        self.state.is_processing = False

        if self._owns_executor:
            self._executor.shutdown(wait=False)

        logger.info("Editor closed")
        if self.on_cancel is not None:
            self.on_cancel()
