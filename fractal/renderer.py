"""Render driver: turn iteration counts over a plane range into a pixel buffer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from matplotlib.colors import hsv_to_rgb

from .generator import UNBOUNDED, FractalGenerator, PlaneRange, scan_grid

HUE_OFFSET = 0.7
HUE_PERIOD = 200.0
INSIDE_COLOR = (0, 0, 0)
BACKENDS = ("tensorflow", "python")


@dataclass(frozen=True)
class RenderResult:
    """Container for one full render of the pixel grid."""

    pixels: np.ndarray
    iterations: np.ndarray
    plane_range: PlaneRange


def hue_for_iterations(iterations) -> np.ndarray:
    """Cyclic hue for escape iterations, wrapped into ``[0, 1)``."""

    iters = np.asarray(iterations, dtype=np.float64)
    return np.mod(HUE_OFFSET + iters / HUE_PERIOD, 1.0)


def iteration_colors(iterations) -> np.ndarray:
    """Map iteration results to RGB ``uint8`` colors; ``UNBOUNDED`` becomes black."""

    iters = np.asarray(iterations)
    hsv = np.stack(
        (hue_for_iterations(iters), np.ones(iters.shape), np.ones(iters.shape)),
        axis=-1,
    )
    rgb = np.uint8(np.clip(np.floor(hsv_to_rgb(hsv) * 255.0 + 0.5), 0, 255))
    inside = iters == UNBOUNDED
    for k in (0, 1, 2):
        rgb[..., k] = np.where(inside, INSIDE_COLOR[k], rgb[..., k])
    return rgb


def check_display_size(display_size) -> int:
    if isinstance(display_size, bool) or not isinstance(display_size, (int, np.integer)):
        raise ValueError(f"Display size must be an integer, got {display_size!r}.")
    if display_size <= 0:
        raise ValueError(f"Display size must be positive, got {display_size!r}.")
    return int(display_size)


def plane_axes(display_size: int, plane_range: PlaneRange, generator: FractalGenerator) -> tuple[np.ndarray, np.ndarray]:
    """Return the plane coordinates of every pixel column and row."""

    size = check_display_size(display_size)
    r = plane_range
    xs = np.array([generator.get_coord(r.x, r.x + r.width, size, px) for px in range(size)], dtype=np.float64)
    ys = np.array([generator.get_coord(r.y, r.y + r.height, size, py) for py in range(size)], dtype=np.float64)
    return xs, ys


def compute_iterations(
    display_size: int,
    plane_range: PlaneRange,
    generator: FractalGenerator,
    *,
    backend: str = "tensorflow",
    device: Optional[str] = None,
) -> np.ndarray:
    """Iteration results for the whole grid, indexed ``[py, px]``."""

    if backend not in BACKENDS:
        raise ValueError(f"Unknown render backend '{backend}'. Valid choices: {', '.join(BACKENDS)}.")
    xs, ys = plane_axes(display_size, plane_range, generator)
    if backend == "python":
        return scan_grid(xs, ys, generator.num_iterations)
    return np.asarray(generator.iteration_grid(xs, ys, device=device), dtype=np.int32)


def render_frame(
    display_size: int,
    plane_range: PlaneRange,
    generator: FractalGenerator,
    *,
    backend: str = "tensorflow",
    device: Optional[str] = None,
) -> RenderResult:
    """Render every pixel of a ``display_size`` square grid over ``plane_range``."""

    iterations = compute_iterations(display_size, plane_range, generator, backend=backend, device=device)
    return RenderResult(
        pixels=iteration_colors(iterations),
        iterations=iterations,
        plane_range=plane_range,
    )


def render(
    display_size: int,
    plane_range: PlaneRange,
    generator: FractalGenerator,
    *,
    backend: str = "tensorflow",
    device: Optional[str] = None,
) -> np.ndarray:
    return render_frame(display_size, plane_range, generator, backend=backend, device=device).pixels
