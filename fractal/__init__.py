"""Public API for escape-time fractal rendering."""

from .generator import (
    GENERATORS,
    MAX_ITERATIONS,
    UNBOUNDED,
    FractalGenerator,
    Mandelbrot,
    PlaneRange,
    available_generators,
    get_coord,
    new_generator,
    recenter_and_zoom,
    register_generator,
)
from .renderer import RenderResult, compute_iterations, iteration_colors, render, render_frame
from .explorer import FractalExplorer


def initial_range(generator: FractalGenerator) -> PlaneRange:
    return generator.initial_range()


__all__ = [
    "GENERATORS",
    "MAX_ITERATIONS",
    "UNBOUNDED",
    "FractalExplorer",
    "FractalGenerator",
    "Mandelbrot",
    "PlaneRange",
    "RenderResult",
    "available_generators",
    "compute_iterations",
    "get_coord",
    "initial_range",
    "iteration_colors",
    "new_generator",
    "recenter_and_zoom",
    "register_generator",
    "render",
    "render_frame",
]
