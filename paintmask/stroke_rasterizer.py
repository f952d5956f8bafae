"""Composite one brush segment onto a canvas image.

The whole canvas is rebuilt for every segment: the base image is copied into
a fresh buffer and the segment's coverage is computed over every pixel, so
erasing always sees the true current buffer. This is O(canvas area) per
pointer-move event and is the main cost of painting.
"""
import numpy as np

from .config import EDGE_FEATHER
from .log_setup import get_logger
from .raster import BlendMode, BrushConfig, RasterImage

logger = get_logger('paintmask.stroke')


def segment_coverage(shape: tuple[int, int], p0, p1, width: float,
                     feather: float = EDGE_FEATHER) -> np.ndarray:
    """Return float32 (H, W) coverage in 0..1 of a round-capped segment.

    Pixel (x, y) is sampled at integer coordinates, the same way the editor
    brush stamps its circles. A zero-length segment gives a disc.
    """
    h, w = shape
    x0, y0 = float(p0[0]), float(p0[1])
    x1, y1 = float(p1[0]), float(p1[1])
    yy, xx = np.ogrid[0:h, 0:w]
    xx = xx.astype(np.float32)
    yy = yy.astype(np.float32)

    dx = x1 - x0
    dy = y1 - y0
    len2 = dx * dx + dy * dy
    if len2 <= 0.0:
        dist = np.hypot(xx - x0, yy - y0)
    else:
        # Project every pixel onto the segment, clamped to the end points
        t = np.clip(((xx - x0) * dx + (yy - y0) * dy) / len2, 0.0, 1.0)
        dist = np.hypot(xx - (x0 + t * dx), yy - (y0 + t * dy))

    r = float(width) / 2.0
    if feather > 0:
        cov = np.clip((r + feather / 2.0 - dist) / feather, 0.0, 1.0)
    else:
        cov = (dist <= r)
    return cov.astype(np.float32)


def _base_buffer(base, width, height):
    """Draw ``base`` at the origin of a transparent (H, W, 4) uint8 buffer."""
    buf = np.zeros((height, width, 4), dtype=np.uint8)
    if base is None:
        return buf
    src = base.pixels
    ch = min(height, src.shape[0])
    cw = min(width, src.shape[1])
    buf[:ch, :cw] = src[:ch, :cw]
    return buf


def composite_segment(base: RasterImage | None, p0, p1, brush: BrushConfig,
                      canvas_size: tuple[int, int]) -> RasterImage | None:
    """Return a new RasterImage with the segment p0->p1 composited onto ``base``.

    Paint uses straight-alpha source-over with source alpha equal to
    coverage x brush alpha. Erase uses destination-out with the same source
    alpha. Returns None for a zero-area canvas.
    """
    width, height = int(canvas_size[0]), int(canvas_size[1])
    if width <= 0 or height <= 0:
        logger.debug(f"Skipped segment on zero-area canvas {canvas_size}")
        return None

    dst = _base_buffer(base, width, height)
    sa = segment_coverage((height, width), p0, p1, brush.width) * np.float32(brush.alpha)
    touched = sa > 0
    if not np.any(touched):
        return RasterImage(dst, copy=False)

    d = dst.astype(np.float32)
    da = d[..., 3] / 255.0
    if brush.blend_mode == BlendMode.ERASE:
        out_a = da * (1.0 - sa)
        out_rgb = d[..., :3]
    else:
        out_a = sa + da * (1.0 - sa)
        src_rgb = np.asarray(brush.rgb, dtype=np.float32)
        num = src_rgb * sa[..., None] + d[..., :3] * (da * (1.0 - sa))[..., None]
        out_rgb = num / np.maximum(out_a, 1e-6)[..., None]

    out = np.empty_like(dst)
    out[..., 3] = np.clip(np.rint(out_a * 255.0), 0, 255).astype(np.uint8)
    out[..., :3] = np.clip(np.rint(out_rgb), 0, 255).astype(np.uint8)
    # Fully transparent pixels carry no color
    out[out[..., 3] == 0] = 0

    result = np.where(touched[..., None], out, dst)
    return RasterImage(result, copy=False)


def _ratios(canvas_size, view_size):
    if view_size is None or canvas_size is None:
        return 1.0, 1.0
    vw, vh = float(view_size[0]), float(view_size[1])
    if vw <= 0 or vh <= 0:
        return 1.0, 1.0
    return float(canvas_size[0]) / vw, float(canvas_size[1]) / vh


def scale_point(point, canvas_size, view_size) -> tuple[float, float]:
    """Map a point in displayed-view coordinates to canvas pixels."""
    sx, sy = _ratios(canvas_size, view_size)
    return (float(point[0]) * sx, float(point[1]) * sy)


def scale_segment(p0, p1, canvas_size, view_size):
    return scale_point(p0, canvas_size, view_size), scale_point(p1, canvas_size, view_size)


def scale_width(width: float, canvas_size, view_size) -> float:
    # Mean of the per-axis ratios
    sx, sy = _ratios(canvas_size, view_size)
    return float(width) * (sx + sy) / 2.0
