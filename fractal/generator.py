"""Fractal generators: plane ranges, coordinate mapping and escape-time engines."""

from __future__ import annotations

import abc
import math
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
import tensorflow as tf

MAX_ITERATIONS = 2000
ESCAPE_RADIUS_SQUARED = 4.0

# Iteration result for points that never escape within the budget.
UNBOUNDED = -1


@dataclass(frozen=True)
class PlaneRange:
    """Rectangle of the complex plane with origin ``(x, y)`` and positive extents."""

    x: float
    y: float
    width: float
    height: float

    def __post_init__(self) -> None:
        for name in ("width", "height"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"PlaneRange {name} must be a positive finite number, got {value!r}.")


def get_coord(range_min: float, range_max: float, size: int, coord: int) -> float:
    """Map pixel ``coord`` of an axis ``size`` pixels long onto ``[range_min, range_max)``."""

    if size <= 0:
        raise ValueError(f"Axis size must be positive, got {size!r}.")
    return range_min + (coord / size) * (range_max - range_min)


def recenter_and_zoom(plane_range: PlaneRange, center_x: float, center_y: float, scale: float) -> PlaneRange:
    """Return a range centered on ``(center_x, center_y)`` with extents multiplied by ``scale``.

    ``scale < 1`` zooms in, ``scale > 1`` zooms out.
    """

    if not scale > 0:
        raise ValueError(f"Zoom scale must be positive, got {scale!r}.")
    return PlaneRange(
        x=center_x - (plane_range.width / 2) * scale,
        y=center_y - (plane_range.height / 2) * scale,
        width=plane_range.width * scale,
        height=plane_range.height * scale,
    )


def scan_grid(xs: np.ndarray, ys: np.ndarray, num_iterations: Callable[[float, float], int]) -> np.ndarray:
    """Evaluate ``num_iterations`` for every ``(x, y)`` pair, scanning row by row."""

    grid = np.empty((len(ys), len(xs)), dtype=np.int32)
    for row, y in enumerate(ys):
        for col, x in enumerate(xs):
            grid[row, col] = num_iterations(float(x), float(y))
    return grid


class FractalGenerator(abc.ABC):
    """Capabilities every escape-time fractal family provides to the renderer."""

    name = "fractal"

    @abc.abstractmethod
    def initial_range(self) -> PlaneRange:
        """Return the family's default view of the plane."""

    @abc.abstractmethod
    def num_iterations(self, x: float, y: float) -> int:
        """Return the escape iteration for ``x + yi`` or ``UNBOUNDED``."""

    def get_coord(self, range_min: float, range_max: float, size: int, coord: int) -> float:
        return get_coord(range_min, range_max, size, coord)

    def recenter_and_zoom(self, plane_range: PlaneRange, center_x: float, center_y: float, scale: float) -> PlaneRange:
        return recenter_and_zoom(plane_range, center_x, center_y, scale)

    def iteration_grid(self, xs: np.ndarray, ys: np.ndarray, *, device: Optional[str] = None) -> np.ndarray:
        """Return a ``(len(ys), len(xs))`` array of iteration results.

        Families without a vectorized engine fall back to a sequential scan.
        """

        return scan_grid(xs, ys, self.num_iterations)


GENERATORS: dict[str, type[FractalGenerator]] = {}


def register_generator(name: str) -> Callable[[type[FractalGenerator]], type[FractalGenerator]]:
    """Class decorator adding a generator family to the registry under ``name``."""

    def decorator(cls: type[FractalGenerator]) -> type[FractalGenerator]:
        if name in GENERATORS:
            raise ValueError(f"Fractal generator '{name}' is already registered.")
        cls.name = name
        GENERATORS[name] = cls
        return cls

    return decorator


def available_generators() -> list[str]:
    return sorted(GENERATORS)


def new_generator(name: str = "mandelbrot", **options) -> FractalGenerator:
    try:
        cls = GENERATORS[name]
    except KeyError:
        raise ValueError(
            f"Unknown fractal '{name}'. Valid choices: {', '.join(available_generators())}."
        ) from None
    return cls(**options)


@tf.function
def _mandelbrot_step(
    i: tf.Tensor,
    zr: tf.Tensor,
    zi: tf.Tensor,
    xs: tf.Tensor,
    ys: tf.Tensor,
    ns: tf.Tensor,
    active: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance every still-bounded point by one step and record new escapes."""

    zr_new = zr * zr - zi * zi + xs
    zi_new = 2.0 * zr * zi + ys
    zr = tf.where(active, zr_new, zr)
    zi = tf.where(active, zi_new, zi)
    escaped = tf.logical_and(active, zr * zr + zi * zi >= ESCAPE_RADIUS_SQUARED)
    ns = tf.where(escaped, i, ns)
    return zr, zi, ns, tf.logical_and(active, tf.logical_not(escaped))


@tf.function
def _mandelbrot_run(xs: tf.Tensor, ys: tf.Tensor, max_iterations: tf.Tensor) -> tf.Tensor:
    """Iterate the Mandelbrot recurrence over a grid using a TensorFlow while loop."""

    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    zr = tf.zeros_like(xs)
    zi = tf.zeros_like(xs)
    ns = tf.fill(tf.shape(xs), tf.constant(UNBOUNDED, dtype=tf.int32))
    active = tf.ones_like(ns, tf.bool)

    def cond(i, zr, zi, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zr, zi, ns, active):
        zr, zi, ns, active = _mandelbrot_step(i, zr, zi, xs, ys, ns, active)
        return i + 1, zr, zi, ns, active

    _, _, _, ns, _ = tf.while_loop(cond, body, (i, zr, zi, ns, active))
    return ns


@register_generator("mandelbrot")
class Mandelbrot(FractalGenerator):
    """The Mandelbrot set, ``z -> z**2 + c`` starting from ``z = 0``."""

    def __init__(self, max_iterations: int = MAX_ITERATIONS):
        if max_iterations <= 0:
            raise ValueError(f"max_iterations must be positive, got {max_iterations!r}.")
        self.max_iterations = int(max_iterations)

    def __repr__(self) -> str:
        return f"Mandelbrot(max_iterations={self.max_iterations})"

    def initial_range(self) -> PlaneRange:
        return PlaneRange(x=-2.0, y=-1.5, width=3.0, height=3.0)

    def num_iterations(self, x: float, y: float) -> int:
        zreal = 0.0
        zimaginary = 0.0
        for iteration in range(self.max_iterations):
            zreal, zimaginary = zreal * zreal - zimaginary * zimaginary + x, 2.0 * zreal * zimaginary + y
            if zreal * zreal + zimaginary * zimaginary >= ESCAPE_RADIUS_SQUARED:
                return iteration
        return UNBOUNDED

    def iteration_grid(self, xs: np.ndarray, ys: np.ndarray, *, device: Optional[str] = None) -> np.ndarray:
        x = np.asarray(xs, dtype=np.float64)
        y = np.asarray(ys, dtype=np.float64)
        with tf.device(device if device is not None else "/CPU:0"):
            X, Y = tf.meshgrid(tf.convert_to_tensor(x), tf.convert_to_tensor(y))
            ns = _mandelbrot_run(X, Y, tf.constant(self.max_iterations, dtype=tf.int32))
        return ns.numpy()
