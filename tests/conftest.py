import os
import tempfile

# Keep test runs from writing into the repository's logs/ directory
os.environ.setdefault("PAINTMASK_LOG_DIR", tempfile.mkdtemp(prefix="paintmask-logs-"))

import numpy as np
import pytest

from paintmask import BrushConfig, CanvasState, RasterImage


@pytest.fixture
def blank():
    return RasterImage.blank(200, 200)


@pytest.fixture
def red_brush():
    return BrushConfig(color=(255, 0, 0, 0.3), width=20.0)


@pytest.fixture
def canvas():
    return CanvasState(size=(64, 48), brush=BrushConfig(color=(0, 0, 255, 1.0), width=6.0))


@pytest.fixture
def photo():
    rng = np.random.default_rng(7)
    px = rng.integers(0, 256, size=(30, 40, 4), dtype=np.uint8)
    px[..., 3] = 255
    return RasterImage(px)


def draw_stroke(canvas, points):
    canvas.begin_stroke()
    for p0, p1 in zip(points, points[1:]):
        canvas.append_segment(p0, p1)
    canvas.end_stroke()
