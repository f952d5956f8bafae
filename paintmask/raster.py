"""Pixel buffer and brush types shared by every paintmask component.

Images are RGBA8 with straight (non-premultiplied) alpha, stored as numpy
arrays of shape (H, W, 4). A RasterImage never changes after construction:
the array is flagged read-only, and every operation builds a new image.
"""
import io
from collections import namedtuple

import cv2
import numpy as np
from PIL import Image

from .config import DEFAULT_BRUSH_COLOR, DEFAULT_BRUSH_WIDTH
from .log_setup import get_logger

logger = get_logger('paintmask.raster')

Point = namedtuple('Point', ['x', 'y'])


class BlendMode:
    PAINT = 'paint'
    ERASE = 'erase'
    ALL = (PAINT, ERASE)


class RasterImage:
    """Immutable RGBA8 image. Equality compares the pixel buffers bit for bit."""

    __slots__ = ('_pixels',)

    def __init__(self, pixels: np.ndarray, copy: bool = True):
        arr = np.array(pixels, dtype=np.uint8, copy=True) if copy else np.asarray(pixels, dtype=np.uint8)
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise ValueError(f"expected an (H, W, 4) RGBA array, got shape {arr.shape}")
        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise ValueError("image must have a positive width and height")
        if not arr.flags.c_contiguous:
            arr = np.ascontiguousarray(arr)
        arr.flags.writeable = False
        self._pixels = arr

    @classmethod
    def blank(cls, width: int, height: int) -> "RasterImage":
        return cls(np.zeros((int(height), int(width), 4), dtype=np.uint8), copy=False)

    @classmethod
    def filled(cls, width: int, height: int, rgba) -> "RasterImage":
        arr = np.empty((int(height), int(width), 4), dtype=np.uint8)
        arr[...] = np.asarray(rgba, dtype=np.uint8)
        return cls(arr, copy=False)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "RasterImage":
        """Build an image from a gray, RGB or RGBA array of any numeric dtype.

        Float arrays in 0..1 are scaled to 0..255. Other non-uint8 data is
        rescaled using its min/max, as 16-bit TIFFs are when read for the editor.
        """
        a = np.asarray(arr)
        if a.dtype == np.bool_:
            a = a.astype(np.uint8) * 255
        elif a.dtype != np.uint8:
            a = a.astype(np.float32)
            amin = float(np.min(a)) if a.size else 0.0
            amax = float(np.max(a)) if a.size else 0.0
            if amin >= 0.0 and amax <= 1.0:
                a = np.clip(np.rint(a * 255.0), 0, 255).astype(np.uint8)
            elif amax <= amin:
                a = np.zeros(a.shape, dtype=np.uint8)
            else:
                a = cv2.normalize(a, None, alpha=0, beta=255, norm_type=cv2.NORM_MINMAX)
                a = np.clip(np.rint(a), 0, 255).astype(np.uint8)
        if a.ndim == 2:
            a = cv2.cvtColor(a, cv2.COLOR_GRAY2RGBA)
        elif a.ndim == 3 and a.shape[2] == 1:
            a = cv2.cvtColor(np.ascontiguousarray(a[..., 0]), cv2.COLOR_GRAY2RGBA)
        elif a.ndim == 3 and a.shape[2] == 3:
            a = cv2.cvtColor(np.ascontiguousarray(a), cv2.COLOR_RGB2RGBA)
        return cls(a)

    @classmethod
    def from_pil(cls, img: Image.Image) -> "RasterImage":
        return cls(np.asarray(img.convert('RGBA')))

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.array(self._pixels))

    @property
    def pixels(self) -> np.ndarray:
        """Read-only (H, W, 4) view of the buffer."""
        return self._pixels

    @property
    def alpha(self) -> np.ndarray:
        return self._pixels[..., 3]

    @property
    def width(self):
        return self._pixels.shape[1]

    @property
    def height(self):
        return self._pixels.shape[0]

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    def copy_pixels(self) -> np.ndarray:
        return self._pixels.copy()

    def __eq__(self, other):
        if not isinstance(other, RasterImage):
            return NotImplemented
        return self._pixels.shape == other._pixels.shape and np.array_equal(self._pixels, other._pixels)

    __hash__ = None

    def __repr__(self):
        return f"RasterImage({self.width}x{self.height})"


def normalize_color(color) -> tuple[int, int, int, float]:
    """Return (r, g, b, a) with r/g/b ints in 0..255 and a float in 0..1."""
    if len(color) == 3:
        r, g, b = color
        a = 1.0
    elif len(color) == 4:
        r, g, b, a = color
    else:
        raise ValueError(f"color must have 3 or 4 components, got {color!r}")
    rgb = tuple(int(max(0, min(255, round(float(c))))) for c in (r, g, b))
    a = float(a)
    if not 0.0 <= a <= 1.0:
        raise ValueError(f"alpha must be in [0, 1], got {a}")
    return rgb + (a,)


class BrushConfig:
    """Color, width and blend mode used for the next stroke segments."""

    def __init__(self, color=DEFAULT_BRUSH_COLOR, width=DEFAULT_BRUSH_WIDTH, blend_mode=BlendMode.PAINT):
        self.color = color
        self.width = width
        self.blend_mode = blend_mode

    @property
    def color(self):
        return self._color

    @color.setter
    def color(self, value):
        self._color = normalize_color(value)

    @property
    def rgb(self):
        return self._color[:3]

    @property
    def alpha(self):
        return self._color[3]

    @property
    def width(self):
        return self._width

    @width.setter
    def width(self, value):
        value = float(value)
        if not value > 0:
            raise ValueError(f"brush width must be positive, got {value}")
        self._width = value

    @property
    def blend_mode(self):
        return self._blend_mode

    @blend_mode.setter
    def blend_mode(self, value):
        if value not in BlendMode.ALL:
            raise ValueError(f"unknown blend mode {value!r}")
        self._blend_mode = value

    def __repr__(self):
        return f"BrushConfig(color={self._color}, width={self._width}, blend_mode={self._blend_mode!r})"


def decode_image(source) -> RasterImage | None:
    """Decode a path, bytes or file object into a RasterImage.

    Returns None when the data cannot be read or decoded.
    """
    if source is None:
        return None
    try:
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        with Image.open(source) as img:
            img.load()
            return RasterImage.from_pil(img)
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        logger.info(f"Failed to decode image: {e}")
        return None


def encode_png(image: RasterImage) -> bytes:
    buf = io.BytesIO()
    image.to_pil().save(buf, format='PNG')
    return buf.getvalue()
