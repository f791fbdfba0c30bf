import numpy as np
import pytest

from fractal import FractalExplorer, Mandelbrot, PlaneRange

INITIAL = PlaneRange(x=-2.0, y=-1.5, width=3.0, height=3.0)


@pytest.fixture
def explorer():
    return FractalExplorer(4, Mandelbrot(max_iterations=100), backend="python")


def test_starts_at_initial_range(explorer):
    assert explorer.plane_range == INITIAL
    assert explorer.last_frame is None


def test_default_generator_is_mandelbrot():
    assert isinstance(FractalExplorer(8).generator, Mandelbrot)


def test_draw_renders_current_range(explorer):
    result = explorer.draw()
    assert result is explorer.last_frame
    assert result.plane_range == INITIAL
    assert result.pixels.shape == (4, 4, 3)


def test_click_zooms_toward_pixel(explorer):
    result = explorer.click(2, 2)
    # Pixel (2, 2) maps to -0.5 + 0i; the view halves around it.
    assert explorer.plane_range == PlaneRange(x=-1.25, y=-0.75, width=1.5, height=1.5)
    assert result.plane_range == explorer.plane_range


def test_click_uses_configured_scale():
    explorer = FractalExplorer(4, Mandelbrot(max_iterations=20), backend="python", zoom_scale=2.0)
    explorer.click(0, 0)
    assert (explorer.plane_range.width, explorer.plane_range.height) == (6.0, 6.0)


def test_reset_restores_exact_initial_range(explorer):
    for px, py in [(1, 3), (3, 0), (2, 2), (0, 1), (3, 3)]:
        explorer.click(px, py)
    assert explorer.plane_range != INITIAL
    result = explorer.reset()
    assert explorer.plane_range == INITIAL
    assert result.plane_range == INITIAL


def test_reset_redraws_same_pixels_as_first_draw(explorer):
    first = explorer.draw()
    explorer.click(1, 1)
    again = explorer.reset()
    np.testing.assert_array_equal(first.pixels, again.pixels)


@pytest.mark.parametrize("px, py", [(-1, 0), (0, 4), (4, 4)])
def test_click_outside_display_is_rejected(explorer, px, py):
    with pytest.raises(ValueError):
        explorer.click(px, py)
    assert explorer.plane_range == INITIAL
    assert not explorer.rendering


def test_events_during_render_are_dropped(explorer):
    explorer._busy.acquire()
    try:
        assert explorer.rendering
        assert explorer.click(2, 2) is None
        assert explorer.reset() is None
        assert explorer.draw() is None
        assert explorer.plane_range == INITIAL
        assert explorer.last_frame is None
    finally:
        explorer._busy.release()
    assert explorer.click(2, 2) is not None


def test_tensorflow_backend_matches_python_backend():
    tf_explorer = FractalExplorer(8, Mandelbrot(max_iterations=200))
    py_explorer = FractalExplorer(8, Mandelbrot(max_iterations=200), backend="python")
    for target in (tf_explorer, py_explorer):
        target.click(5, 3)
    np.testing.assert_array_equal(tf_explorer.last_frame.pixels, py_explorer.last_frame.pixels)


@pytest.mark.parametrize("size", [0, -800])
def test_rejects_non_positive_display_size(size):
    with pytest.raises(ValueError):
        FractalExplorer(size)


def test_rejects_non_positive_zoom_scale():
    with pytest.raises(ValueError):
        FractalExplorer(4, zoom_scale=0.0)
