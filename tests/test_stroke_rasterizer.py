import numpy as np
import pytest

from paintmask import BlendMode, BrushConfig, RasterImage, composite_segment, scale_segment, scale_width
from paintmask.stroke_rasterizer import segment_coverage


def test_red_stroke_on_blank_canvas(red_brush):
    out = composite_segment(None, (0, 0), (100, 0), red_brush, (200, 200))
    assert out.size == (200, 200)
    alpha = out.alpha
    # Every pixel within half the brush width of the segment is painted
    for x in (0, 25, 50, 75, 100):
        for y in range(0, 11):
            assert alpha[y, x] > 0, (x, y)
    assert alpha[100, 50] == 0
    assert tuple(out.pixels[100, 50]) == (0, 0, 0, 0)
    # Center of the line gets full coverage at brush alpha 0.3
    r, g, b, a = out.pixels[0, 50]
    assert (r, g, b) == (255, 0, 0)
    assert a in (76, 77)


def test_round_caps_extend_past_end_points(red_brush):
    out = composite_segment(None, (50, 50), (100, 50), red_brush, (200, 200))
    assert out.alpha[50, 42] > 0
    assert out.alpha[50, 108] > 0
    assert out.alpha[50, 115] == 0
    # Corners of a square cap stay empty
    assert out.alpha[59, 41] == 0


def test_zero_length_segment_is_a_dot(red_brush):
    out = composite_segment(None, (30, 30), (30, 30), red_brush, (64, 64))
    assert out.alpha[30, 30] > 0
    assert out.alpha[30, 39] > 0
    assert out.alpha[30, 45] == 0


@pytest.mark.parametrize("size", [(0, 10), (10, 0), (0, 0)])
def test_zero_area_canvas_is_skipped(red_brush, size):
    assert composite_segment(None, (0, 0), (5, 5), red_brush, size) is None


def test_base_image_is_not_modified(red_brush):
    base = RasterImage.filled(50, 50, (0, 255, 0, 255))
    before = base.copy_pixels()
    out = composite_segment(base, (0, 25), (49, 25), red_brush, (50, 50))
    assert np.array_equal(base.pixels, before)
    assert out != base


def test_untouched_pixels_are_copied_exactly():
    px = np.zeros((40, 40, 4), dtype=np.uint8)
    px[..., 0] = 17
    px[..., 3] = 33
    base = RasterImage(px)
    brush = BrushConfig(color=(0, 0, 255, 1.0), width=4)
    out = composite_segment(base, (5, 5), (10, 5), brush, (40, 40))
    assert np.array_equal(out.pixels[30:, :], base.pixels[30:, :])


def test_source_over_on_opaque_base():
    base = RasterImage.filled(20, 20, (0, 0, 0, 255))
    brush = BrushConfig(color=(200, 100, 0, 0.5), width=6)
    out = composite_segment(base, (10, 10), (10, 10), brush, (20, 20))
    r, g, b, a = out.pixels[10, 10]
    assert a == 255
    assert (r, g, b) == (100, 50, 0)


def test_erase_removes_alpha():
    base = RasterImage.filled(30, 30, (255, 255, 255, 255))
    eraser = BrushConfig(color=(0, 0, 0, 1.0), width=10, blend_mode=BlendMode.ERASE)
    out = composite_segment(base, (5, 15), (25, 15), eraser, (30, 30))
    assert tuple(out.pixels[15, 15]) == (0, 0, 0, 0)
    assert tuple(out.pixels[0, 15]) == (255, 255, 255, 255)


def test_partial_erase_keeps_color():
    base = RasterImage.filled(30, 30, (40, 80, 120, 200))
    eraser = BrushConfig(color=(255, 0, 0, 0.5), width=10, blend_mode=BlendMode.ERASE)
    out = composite_segment(base, (15, 15), (15, 15), eraser, (30, 30))
    assert tuple(out.pixels[15, 15]) == (40, 80, 120, 100)


def test_erase_on_blank_canvas_stays_blank():
    eraser = BrushConfig(width=10, blend_mode=BlendMode.ERASE)
    out = composite_segment(None, (0, 0), (20, 20), eraser, (30, 30))
    assert out == RasterImage.blank(30, 30)


def test_base_smaller_than_canvas_is_drawn_at_origin():
    base = RasterImage.filled(10, 10, (1, 2, 3, 255))
    brush = BrushConfig(width=1, color=(9, 9, 9, 1.0))
    out = composite_segment(base, (30, 30), (30, 30), brush, (40, 40))
    assert out.size == (40, 40)
    assert tuple(out.pixels[5, 5]) == (1, 2, 3, 255)
    assert out.alpha[20, 20] == 0


def test_coverage_is_symmetric_about_the_segment():
    cov = segment_coverage((41, 41), (10, 20), (30, 20), 8)
    assert np.allclose(cov[16, :], cov[24, :])
    assert cov[20, 20] == 1.0


def test_scale_segment_uses_per_axis_ratio():
    p0, p1 = scale_segment((10, 10), (50, 20), canvas_size=(400, 100), view_size=(200, 200))
    assert p0 == (20.0, 5.0)
    assert p1 == (100.0, 10.0)
    assert scale_width(20, (400, 100), (200, 200)) == pytest.approx(25.0)


def test_scale_without_view_size_is_identity():
    assert scale_segment((3, 4), (5, 6), (100, 100), None) == ((3.0, 4.0), (5.0, 6.0))
    assert scale_width(7, (100, 100), (0, 0)) == 7.0
