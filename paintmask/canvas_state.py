"""Canvas state: the current image plus bounded undo/redo snapshot stacks.

All methods must be called from the single context that also receives the
pointer events (typically the UI thread). There is no internal locking.
Listeners are notified synchronously at the end of each mutating call, after
the state has settled.
"""
from collections import deque

import numpy as np

from .config import DEFAULT_MAX_HISTORY
from .log_setup import get_logger
from .mask_extractor import extract_binary_mask, is_empty
from .mask_pipeline import build_overlay
from .raster import BlendMode, BrushConfig, RasterImage
from .stroke_rasterizer import composite_segment, scale_segment, scale_width

logger = get_logger('paintmask.canvas')

_NOTHING = object()


class CanvasListener:
    """Receives availability signals and stroke lifecycle events. Override what you need."""

    def undo_availability_changed(self, available: bool):
        pass

    def redo_availability_changed(self, available: bool):
        pass

    def stroke_started(self):
        pass

    def stroke_finished(self):
        pass


class CallbackListener(CanvasListener):
    """Adapts plain callables to the listener interface."""

    def __init__(self, on_undo=None, on_redo=None, on_stroke_started=None, on_stroke_finished=None):
        self._on_undo = on_undo
        self._on_redo = on_redo
        self._on_stroke_started = on_stroke_started
        self._on_stroke_finished = on_stroke_finished

    def undo_availability_changed(self, available):
        if self._on_undo is not None:
            self._on_undo(available)

    def redo_availability_changed(self, available):
        if self._on_redo is not None:
            self._on_redo(available)

    def stroke_started(self):
        if self._on_stroke_started is not None:
            self._on_stroke_started()

    def stroke_finished(self):
        if self._on_stroke_finished is not None:
            self._on_stroke_finished()


def _check_size(size):
    if size is None:
        return None
    w, h = int(size[0]), int(size[1])
    if w < 0 or h < 0:
        raise ValueError(f"size must be non-negative, got {size}")
    return (w, h)


class CanvasState:
    """Owns the current image and the undo/redo history of one canvas.

    size: canvas resolution (width, height) in pixels. Adopted from the base
        image when one is set.
    max_history: capacity of each stack; None for unbounded. Pushing onto a
        full stack drops its oldest entry.
    view_size: displayed size of the canvas. Segment end points and the brush
        width given in view coordinates are scaled to canvas pixels.
    discard_empty_strokes: drop the history entry of a stroke that started and
        ended on an empty canvas. If pushing that entry evicted the oldest one
        from a full stack, the evicted entry is put back.
    """

    def __init__(self, size: tuple[int, int] | None = None, max_history: int | None = DEFAULT_MAX_HISTORY,
                 brush: BrushConfig | None = None, view_size: tuple[int, int] | None = None,
                 discard_empty_strokes: bool = False):
        if max_history is not None:
            max_history = int(max_history)
            if max_history <= 0:
                raise ValueError(f"max_history must be positive or None, got {max_history}")
        self._max_history = max_history
        self._size = _check_size(size)
        self._view_size = _check_size(view_size)
        self.brush = brush if brush is not None else BrushConfig()
        self.discard_empty_strokes = bool(discard_empty_strokes)

        self._current = None
        # None entries stand for "no image" snapshots
        self._undo_stack = deque(maxlen=max_history)
        self._redo_stack = deque(maxlen=max_history)
        self._listeners = []
        self._stroking = False
        # Entry pushed out of a full undo stack by the running stroke
        self._evicted = _NOTHING

    # -------------- Listeners --------------
    def add_listener(self, listener):
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener):
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _emit(self, method, *args):
        for listener in list(self._listeners):
            try:
                getattr(listener, method)(*args)
            except Exception:
                logger.exception(f"Listener {listener!r} failed in {method}")

    def _emit_availability(self):
        self._emit('undo_availability_changed', self.undo_available)
        self._emit('redo_availability_changed', self.redo_available)

    # -------------- State --------------
    @property
    def current(self) -> RasterImage | None:
        return self._current

    @property
    def size(self) -> tuple[int, int] | None:
        if self._size is not None:
            return self._size
        if self._current is not None:
            return self._current.size
        return None

    @property
    def view_size(self):
        return self._view_size

    @property
    def max_history(self):
        return self._max_history

    @property
    def undo_available(self) -> bool:
        return len(self._undo_stack) > 0

    @property
    def redo_available(self) -> bool:
        return len(self._redo_stack) > 0

    @property
    def undo_depth(self):
        return len(self._undo_stack)

    @property
    def redo_depth(self):
        return len(self._redo_stack)

    @property
    def is_stroking(self):
        return self._stroking

    def history(self) -> tuple[list, list]:
        """Snapshot copies of both stacks, oldest first: (undo, redo)."""
        return list(self._undo_stack), list(self._redo_stack)

    # -------------- Configuration --------------
    def set_view_size(self, view_size: tuple[int, int] | None):
        self._view_size = _check_size(view_size)

    def set_brush_color(self, color):
        self.brush.color = color

    def set_brush_width(self, width):
        self.brush.width = width

    def set_blend_mode(self, mode):
        self.brush.blend_mode = mode

    def brush_mode(self):
        self.brush.blend_mode = BlendMode.PAINT

    def eraser_mode(self):
        self.brush.blend_mode = BlendMode.ERASE

    # -------------- Operations --------------
    def set_base_image(self, image: RasterImage):
        """Adopt ``image`` as the canvas content and forget all history."""
        if not isinstance(image, RasterImage):
            raise TypeError(f"expected RasterImage, got {type(image).__name__}")
        self._current = image
        self._size = image.size
        self._undo_stack.clear()
        self._redo_stack.clear()
        self._stroking = False
        logger.info(f"Base image set ({image.width}x{image.height}), history cleared")
        self._emit_availability()

    def load_overlay(self, photo: RasterImage) -> bool:
        """Build the overlay for ``photo`` with the brush color and adopt it.

        Returns False, leaving the canvas untouched, when the photo cannot be processed.
        """
        overlay = build_overlay(photo, self.brush.color)
        if overlay is None:
            return False
        self.set_base_image(overlay)
        return True

    def begin_stroke(self) -> None:
        if self._stroking:
            self.end_stroke()
        full = self._max_history is not None and len(self._undo_stack) == self._max_history
        self._evicted = self._undo_stack[0] if full else _NOTHING
        self._undo_stack.append(self._current)
        self._redo_stack.clear()
        self._stroking = True
        logger.debug(f"Stroke started (undo depth {len(self._undo_stack)})")
        self._emit('stroke_started')
        self._emit_availability()

    def append_segment(self, p0: tuple[float, float], p1: tuple[float, float]) -> bool:
        """Composite one segment (view coordinates) onto the current image.

        Returns True when the image was replaced.
        """
        if not self._stroking:
            logger.debug("Segment ignored outside a stroke")
            return False
        size = self.size
        if size is None:
            logger.debug("Segment ignored: canvas size unknown")
            return False
        brush = self.brush
        if self._view_size is not None:
            p0, p1 = scale_segment(p0, p1, size, self._view_size)
            width = scale_width(brush.width, size, self._view_size)
            if width <= 0:
                return False
            brush = BrushConfig(brush.color, width, brush.blend_mode)
        result = composite_segment(self._current, p0, p1, brush, size)
        if result is None:
            return False
        self._current = result
        self._emit_availability()
        return True

    def end_stroke(self, discard_empty: bool = True) -> bool:
        """Finish the running stroke.

        Returns True when the stroke's history entry was kept. With
        ``discard_empty=False`` the entry is always kept, so a following
        ``undo()`` rolls back exactly this stroke.
        """
        if not self._stroking:
            return False
        self._stroking = False
        kept = True
        if discard_empty and self.discard_empty_strokes and self._undo_stack:
            before = self._undo_stack[-1]
            if is_empty(self._current) and is_empty(before):
                self._undo_stack.pop()
                if self._evicted is not _NOTHING:
                    self._undo_stack.appendleft(self._evicted)
                kept = False
                logger.debug("Empty stroke discarded from history")
        self._evicted = _NOTHING
        self._emit('stroke_finished')
        self._emit_availability()
        return kept

    def undo(self) -> bool:
        """Step back one stroke. No-op (returns False) when there is nothing to undo."""
        if not self._undo_stack:
            self._emit_availability()
            return False
        previous = self._undo_stack.pop()
        self._redo_stack.append(self._current)
        self._current = previous
        self._stroking = False
        logger.info(f"Undo (undo depth {len(self._undo_stack)}, redo depth {len(self._redo_stack)})")
        self._emit_availability()
        return True

    def redo(self) -> bool:
        if not self._redo_stack:
            self._emit_availability()
            return False
        following = self._redo_stack.pop()
        self._undo_stack.append(self._current)
        self._current = following
        self._stroking = False
        logger.info(f"Redo (undo depth {len(self._undo_stack)}, redo depth {len(self._redo_stack)})")
        self._emit_availability()
        return True

    def clear(self) -> None:
        self._current = None
        self._undo_stack.clear()
        self._redo_stack.clear()
        self._stroking = False
        logger.info("Canvas cleared")
        self._emit_availability()

    # -------------- Output --------------
    def mask(self, single_channel: bool = False) -> RasterImage | np.ndarray | None:
        return extract_binary_mask(self._current, single_channel=single_channel)

    def is_empty(self, alpha_only: bool = False) -> bool:
        return is_empty(self._current, alpha_only=alpha_only)
