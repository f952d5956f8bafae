"""paintmask: paint a translucent overlay on a photo and derive a binary mask from it."""

from .raster import BlendMode, BrushConfig, Point, RasterImage, decode_image, encode_png
from .stroke_rasterizer import composite_segment, scale_segment, scale_width
from .mask_pipeline import build_overlay, build_overlay_from_file, flip_vertically, invert_channels, mask_with_color
from .mask_extractor import extract_binary_mask, is_empty
from .canvas_state import CallbackListener, CanvasListener, CanvasState
from .pointer import StrokeGesture
from .worker import PixelWorker

__all__ = [
    'BlendMode', 'BrushConfig', 'Point', 'RasterImage', 'decode_image', 'encode_png',
    'composite_segment', 'scale_segment', 'scale_width',
    'build_overlay', 'build_overlay_from_file', 'flip_vertically', 'invert_channels', 'mask_with_color',
    'extract_binary_mask', 'is_empty',
    'CallbackListener', 'CanvasListener', 'CanvasState',
    'StrokeGesture',
    'PixelWorker',
]
