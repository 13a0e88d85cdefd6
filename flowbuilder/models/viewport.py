"""Viewport transform for the canvas (pan offset and zoom)."""

from pydantic import BaseModel, Field

from flowbuilder.models.workflow_node import Position

MIN_ZOOM = 0.1
MAX_ZOOM = 4.0


class Viewport(BaseModel):
    """pan offset in screen pixels and a zoom scalar."""

    model_config = {"frozen": True, "extra": "forbid"}

    pan: Position = Field(default_factory=Position)
    zoom: float = Field(default=1.0, ge=MIN_ZOOM, le=MAX_ZOOM)

    def to_canvas(self, point: Position) -> Position:
        """Map a screen point into canvas coordinates."""
        return Position(
            x=(point.x - self.pan.x) / self.zoom,
            y=(point.y - self.pan.y) / self.zoom,
        )
