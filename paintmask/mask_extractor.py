import cv2
import numpy as np

from .raster import RasterImage


def extract_binary_mask(image: RasterImage | None,
                        single_channel: bool = False) -> RasterImage | np.ndarray | None:
    """Reduce ``image`` to a strict binary mask by alpha threshold.

    Pixels with alpha > 0 become opaque white, all others transparent black.
    With ``single_channel=True`` a (H, W) uint8 array of 0/255 is returned
    instead of a RasterImage. Returns None for a missing image.
    """
    if image is None:
        return None
    alpha = np.ascontiguousarray(image.pixels[..., 3])
    _, bw = cv2.threshold(alpha, 0, 255, cv2.THRESH_BINARY)
    if single_channel:
        return bw
    return RasterImage(cv2.merge([bw, bw, bw, bw]), copy=False)


def is_empty(image: RasterImage | None, alpha_only: bool = False) -> bool:
    """True when the image has no visible painted pixel.

    By default a pixel counts as content only if alpha > 0 and at least one of
    R, G, B is nonzero. ``alpha_only=True`` ignores color and checks alpha alone.
    """
    if image is None:
        return True
    px = image.pixels
    visible = px[..., 3] > 0
    if not alpha_only:
        visible &= np.any(px[..., :3] != 0, axis=2)
    return not bool(np.any(visible))
