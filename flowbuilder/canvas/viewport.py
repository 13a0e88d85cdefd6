"""Pan/zoom state of one open canvas. Never touches the graph."""

import math

from flowbuilder.errors import InvalidViewportError
from flowbuilder.models.results import MutationResult
from flowbuilder.models.viewport import MAX_ZOOM, MIN_ZOOM, Viewport
from flowbuilder.models.workflow_node import Position
from flowbuilder.utils.logger import get_logger

log = get_logger(__name__)


class ViewportState:
    """Holds the current Viewport and replaces it wholesale on every change."""

    def __init__(self, viewport: Viewport | None = None) -> None:
        self._viewport = viewport or Viewport()

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @property
    def pan(self) -> Position:
        return self._viewport.pan

    @property
    def zoom(self) -> float:
        return self._viewport.zoom

    def set_zoom(self, factor: float) -> MutationResult:
        """Set the zoom factor, clamped to [MIN_ZOOM, MAX_ZOOM].

        Non-finite or non-positive factors are rejected and leave the
        viewport as it was.
        """
        if not isinstance(factor, (int, float)) or not math.isfinite(factor) or factor <= 0:
            exc = InvalidViewportError(f"zoom factor must be a positive number, got {factor!r}")
            log.info("zoom rejected: %s", exc.message)
            return MutationResult.failure(exc)
        zoom = min(max(float(factor), MIN_ZOOM), MAX_ZOOM)
        self._viewport = Viewport(pan=self._viewport.pan, zoom=zoom)
        return MutationResult.success()

    def set_pan(self, offset: Position) -> MutationResult:
        if not (math.isfinite(offset.x) and math.isfinite(offset.y)):
            exc = InvalidViewportError(f"pan offset must be finite, got ({offset.x}, {offset.y})")
            log.info("pan rejected: %s", exc.message)
            return MutationResult.failure(exc)
        self._viewport = Viewport(pan=offset, zoom=self._viewport.zoom)
        return MutationResult.success()

    def reset(self) -> None:
        self._viewport = Viewport()
