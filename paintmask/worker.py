"""Run pixel-heavy jobs (overlay building, mask extraction) off the owning thread.

Results are never written into a CanvasState from the worker thread. They are
handed back through ``dispatch`` (for Tk, ``lambda f: widget.after(0, f)``),
or, without a dispatcher, queued until the owning context calls ``drain()``.
At most one job runs per input image; later submissions for the same image
wait and start once it has finished. Jobs cannot be cancelled.
"""
import queue
import threading
from collections import deque

from .log_setup import get_logger
from .mask_extractor import extract_binary_mask
from .mask_pipeline import build_overlay

logger = get_logger('paintmask.worker')


class PixelWorker:
    def __init__(self, dispatch=None):
        self._dispatch = dispatch
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        # id(image) -> pending jobs for that image
        self._in_flight = {}
        self._ready = queue.Queue()

    @property
    def busy(self) -> bool:
        with self._lock:
            return bool(self._in_flight)

    def submit(self, func, image, on_done, *args, **kwargs) -> bool:
        """Run ``func(image, *args, **kwargs)`` on a worker thread.

        ``on_done(result)`` is called in the owning context; result is None if
        the job raised. Returns False if the job was queued behind another job
        on the same image.
        """
        job = (func, image, args, kwargs, on_done)
        key = id(image)
        with self._lock:
            pending = self._in_flight.get(key)
            if pending is not None:
                pending.append(job)
                return False
            self._in_flight[key] = deque()
        self._start(key, job)
        return True

    def _start(self, key, job):
        threading.Thread(target=self._run, args=(key, job), daemon=True).start()

    def _run(self, key, job):
        func, image, args, kwargs, on_done = job
        try:
            result = func(image, *args, **kwargs)
        except Exception:
            logger.exception(f"Pixel job {getattr(func, '__name__', func)} failed")
            result = None
        self._hand_back(on_done, result)
        with self._lock:
            pending = self._in_flight.get(key)
            nxt = pending.popleft() if pending else None
            if nxt is None:
                self._in_flight.pop(key, None)
                self._idle.notify_all()
        if nxt is not None:
            self._start(key, nxt)

    def _hand_back(self, on_done, result):
        if on_done is None:
            return
        if self._dispatch is None:
            self._ready.put((on_done, result))
            return
        try:
            self._dispatch(lambda: on_done(result))
        except Exception:
            logger.exception("Dispatching pixel job result failed")

    def drain(self) -> int:
        """Deliver queued results; call from the owning context. Returns the count delivered."""
        delivered = 0
        while True:
            try:
                on_done, result = self._ready.get_nowait()
            except queue.Empty:
                return delivered
            try:
                on_done(result)
            except Exception:
                logger.exception("Pixel job callback failed")
            delivered += 1

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no job is running. Returns False if ``timeout`` expired first."""
        with self._idle:
            return self._idle.wait_for(lambda: not self._in_flight, timeout=timeout)

    # -------------- Convenience --------------
    def build_overlay(self, photo, brush_color, on_done):
        return self.submit(build_overlay, photo, on_done, brush_color)

    def extract_mask(self, image, on_done, single_channel=False):
        return self.submit(extract_binary_mask, image, on_done, single_channel=single_channel)

    def load_overlay_into(self, canvas, photo, on_done=None):
        """Build the overlay for ``photo`` and adopt it into ``canvas`` on hand-back.

        ``on_done(ok)`` is told whether the canvas was updated.
        """
        color = canvas.brush.color

        def _write_back(overlay):
            ok = overlay is not None
            if ok:
                canvas.set_base_image(overlay)
            if on_done is not None:
                on_done(ok)

        return self.submit(build_overlay, photo, _write_back, color)
