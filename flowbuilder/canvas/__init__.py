"""Canvas state: viewport, selection, pointer sessions and the host object."""

from flowbuilder.canvas.host import Canvas
from flowbuilder.canvas.interaction import Dragging, Idle, InteractionSession, Panning
from flowbuilder.canvas.selection import SelectionState
from flowbuilder.canvas.viewport import ViewportState

__all__ = [
    "Canvas",
    "InteractionSession",
    "Idle",
    "Dragging",
    "Panning",
    "SelectionState",
    "ViewportState",
]
