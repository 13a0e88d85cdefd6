"""Drag and pan sessions as an explicit state machine.

    Idle --begin_drag--> Dragging(node_id, offset) --end_drag--> Idle
    Idle --begin_pan--> Panning(origin, start_pan) --end_pan--> Idle

Starting a session replaces whatever session was active. There is no
rollback: an abandoned drag leaves the node where the last move put it.
Pointer positions are canvas coordinates; hosts working in screen space
convert them with ``Viewport.to_canvas`` first.
"""

from dataclasses import dataclass

from flowbuilder.canvas.viewport import ViewportState
from flowbuilder.errors import FlowError, InteractionError
from flowbuilder.models.results import MutationResult
from flowbuilder.models.workflow_node import Position
from flowbuilder.store import GraphStore


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    node_id: str
    offset: Position  # pointer minus node position at grab time


@dataclass(frozen=True)
class Panning:
    origin: Position  # pointer at grab time
    start_pan: Position


SessionState = Idle | Dragging | Panning


class InteractionSession:
    """Routes pointer moves to node positions or to the viewport pan."""

    def __init__(self, store: GraphStore, viewport: ViewportState) -> None:
        self.store = store
        self.viewport = viewport
        self._state: SessionState = Idle()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_idle(self) -> bool:
        return isinstance(self._state, Idle)

    # --- drag ---

    def begin_drag(self, node_id: str, pointer: Position) -> MutationResult:
        try:
            node = self.store.get_graph().get(node_id)
        except FlowError as exc:
            return MutationResult.failure(exc)
        offset = Position(x=pointer.x - node.position.x, y=pointer.y - node.position.y)
        self._state = Dragging(node_id=node_id, offset=offset)
        return MutationResult.success(node_id=node_id)

    def move_drag(self, pointer: Position) -> MutationResult:
        state = self._state
        if not isinstance(state, Dragging):
            return MutationResult.failure(InteractionError("no drag in progress"))
        position = Position(x=pointer.x - state.offset.x, y=pointer.y - state.offset.y)
        result = self.store.move_node(state.node_id, position)
        if not result.ok:
            # the dragged node disappeared under us
            self._state = Idle()
        return result

    def end_drag(self) -> MutationResult:
        if isinstance(self._state, Dragging):
            self._state = Idle()
        return MutationResult.success()

    # --- pan ---

    def begin_pan(self, pointer: Position) -> MutationResult:
        self._state = Panning(origin=pointer, start_pan=self.viewport.pan)
        return MutationResult.success()

    def move_pan(self, pointer: Position) -> MutationResult:
        state = self._state
        if not isinstance(state, Panning):
            return MutationResult.failure(InteractionError("no pan in progress"))
        return self.viewport.set_pan(
            Position(
                x=state.start_pan.x + pointer.x - state.origin.x,
                y=state.start_pan.y + pointer.y - state.origin.y,
            )
        )

    def end_pan(self) -> MutationResult:
        if isinstance(self._state, Panning):
            self._state = Idle()
        return MutationResult.success()
