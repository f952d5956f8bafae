"""Feed a pointer/touch event stream into a CanvasState, one stroke per gesture."""
from .canvas_state import CanvasState
from .log_setup import get_logger

logger = get_logger('paintmask.pointer')


class StrokeGesture:
    """Translates begin/move/end/cancel events into canvas stroke calls.

    Points are in view-local coordinates; the canvas scales them when it knows
    its view size. A cancelled gesture is rolled back with ``undo()``.
    """

    def __init__(self, canvas: CanvasState):
        self.canvas = canvas
        self._last_point = None

    @property
    def active(self) -> bool:
        return self._last_point is not None

    def begin(self, point: tuple[float, float]) -> None:
        if self.active:
            self.end(self._last_point)
        self._last_point = (float(point[0]), float(point[1]))
        self.canvas.begin_stroke()

    def move(self, point: tuple[float, float]) -> None:
        if not self.active:
            return
        pt = (float(point[0]), float(point[1]))
        self.canvas.append_segment(self._last_point, pt)
        self._last_point = pt

    def end(self, point: tuple[float, float]) -> None:
        if not self.active:
            return
        pt = (float(point[0]), float(point[1]))
        self.canvas.append_segment(self._last_point, pt)
        self._last_point = None
        self.canvas.end_stroke()

    def cancel(self) -> None:
        if not self.active:
            return
        self._last_point = None
        # Keep the entry so undo pops this stroke, not the one before it
        self.canvas.end_stroke(discard_empty=False)
        self.canvas.undo()
        logger.debug("Gesture cancelled, stroke rolled back")
