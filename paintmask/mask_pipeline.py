"""Turn an opaque photo into a flat-colored, alpha-keyed overlay to paint on.

Three ordered steps, each a plain function over RasterImage:

1. ``invert_channels``: RGB complement, alpha passed through unchanged.
2. ``mask_with_color``: flatten against an opaque background, then pixels whose
   RGB matches the key color become fully transparent and every other pixel
   takes the brush color at its original opacity times the brush alpha, never
   below 1 for a visible pixel. A brush alpha of exactly 0 gives an empty overlay.
3. ``flip_vertically``: mirror across the horizontal axis.

``build_overlay`` chains them and returns None instead of raising when the
input cannot be processed.
"""
import cv2
import numpy as np

from .config import FLATTEN_BACKGROUND, KEY_COLOR, KEY_TOLERANCE
from .log_setup import get_logger
from .raster import RasterImage, decode_image, normalize_color

logger = get_logger('paintmask.overlay')


def invert_channels(image: RasterImage) -> RasterImage:
    px = image.pixels
    out = px.copy()
    out[..., :3] = cv2.bitwise_not(np.ascontiguousarray(px[..., :3]))
    return RasterImage(out, copy=False)


def flatten_opaque(image: RasterImage, background=FLATTEN_BACKGROUND) -> np.ndarray:
    """Composite ``image`` over an opaque background; returns (H, W, 3) uint8 RGB."""
    px = image.pixels.astype(np.float32)
    a = px[..., 3:4] / 255.0
    bg = np.asarray(background, dtype=np.float32).reshape(1, 1, 3)
    flat = px[..., :3] * a + bg * (1.0 - a)
    return np.clip(np.rint(flat), 0, 255).astype(np.uint8)


def key_mask(rgb: np.ndarray, key=KEY_COLOR, tolerance: int = KEY_TOLERANCE) -> np.ndarray:
    """Boolean (H, W) array of pixels whose RGB lies within ``tolerance`` of ``key``."""
    tol = int(max(0, tolerance))
    lower = np.array([max(0, int(c) - tol) for c in key], dtype=np.uint8)
    upper = np.array([min(255, int(c) + tol) for c in key], dtype=np.uint8)
    return cv2.inRange(np.ascontiguousarray(rgb), lower, upper) > 0


def mask_with_color(image: RasterImage, color, key=KEY_COLOR, tolerance: int = KEY_TOLERANCE,
                    background=FLATTEN_BACKGROUND) -> RasterImage:
    r, g, b, a = normalize_color(color)
    keyed = key_mask(flatten_opaque(image, background), key, tolerance)

    h, w = image.height, image.width
    out = np.zeros((h, w, 4), dtype=np.uint8)
    src_alpha = image.pixels[..., 3]
    alpha = np.rint(src_alpha.astype(np.float32) * a)
    if a > 0:
        # Any visible source pixel stays visible, however faint the brush
        alpha = np.where(src_alpha > 0, np.maximum(alpha, 1), alpha)
    out[..., 0] = r
    out[..., 1] = g
    out[..., 2] = b
    out[..., 3] = np.clip(alpha, 0, 255).astype(np.uint8)
    out[keyed] = 0
    out[out[..., 3] == 0] = 0
    return RasterImage(out, copy=False)


def flip_vertically(image: RasterImage) -> RasterImage:
    return RasterImage(cv2.flip(np.ascontiguousarray(image.pixels), 0), copy=False)


def build_overlay(source: RasterImage, brush_color, key=KEY_COLOR,
                  tolerance: int = KEY_TOLERANCE) -> RasterImage | None:
    """Build the paintable overlay for ``source``; None if it cannot be processed."""
    if not isinstance(source, RasterImage):
        logger.info(f"Overlay skipped: source is {type(source).__name__}, not a RasterImage")
        return None
    try:
        inverted = invert_channels(source)
        masked = mask_with_color(inverted, brush_color, key=key, tolerance=tolerance)
        overlay = flip_vertically(masked)
    except (ValueError, TypeError, cv2.error):
        logger.exception("Overlay build failed")
        return None
    logger.info(f"Built overlay {overlay.width}x{overlay.height}")
    return overlay


def build_overlay_from_file(source, brush_color, key=KEY_COLOR,
                            tolerance: int = KEY_TOLERANCE) -> RasterImage | None:
    """Decode ``source`` (path, bytes or file object) and build its overlay."""
    image = decode_image(source)
    if image is None:
        return None
    return build_overlay(image, brush_color, key=key, tolerance=tolerance)
