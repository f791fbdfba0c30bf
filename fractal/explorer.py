"""View state for interactive exploration, independent of any window toolkit."""

from __future__ import annotations

import threading
from typing import Optional

from .generator import FractalGenerator, PlaneRange, new_generator
from .renderer import RenderResult, check_display_size, render_frame

ZOOM_SCALE = 0.5


class FractalExplorer:
    """Own the displayed plane range and re-render it in response to input.

    Only one render runs at a time. Events that arrive while a render is in
    flight are dropped: the call returns ``None`` and the range is unchanged.
    """

    def __init__(
        self,
        display_size: int,
        generator: Optional[FractalGenerator] = None,
        *,
        backend: str = "tensorflow",
        device: Optional[str] = None,
        zoom_scale: float = ZOOM_SCALE,
    ):
        if not zoom_scale > 0:
            raise ValueError(f"Zoom scale must be positive, got {zoom_scale!r}.")
        self.display_size = check_display_size(display_size)
        self.generator = generator if generator is not None else new_generator()
        self.backend = backend
        self.device = device
        self.zoom_scale = zoom_scale
        self.plane_range: PlaneRange = self.generator.initial_range()
        self.last_frame: Optional[RenderResult] = None
        self._busy = threading.Lock()

    @property
    def rendering(self) -> bool:
        return self._busy.locked()

    def _render(self) -> RenderResult:
        self.last_frame = render_frame(
            self.display_size,
            self.plane_range,
            self.generator,
            backend=self.backend,
            device=self.device,
        )
        return self.last_frame

    def draw(self) -> Optional[RenderResult]:
        if not self._busy.acquire(blocking=False):
            return None
        try:
            return self._render()
        finally:
            self._busy.release()

    def reset(self) -> Optional[RenderResult]:
        """Return to the generator's initial range and redraw."""

        if not self._busy.acquire(blocking=False):
            return None
        try:
            self.plane_range = self.generator.initial_range()
            return self._render()
        finally:
            self._busy.release()

    def pixel_to_plane(self, px: int, py: int) -> tuple[float, float]:
        size = self.display_size
        if not (0 <= px < size and 0 <= py < size):
            raise ValueError(f"Pixel ({px}, {py}) lies outside the {size}x{size} display.")
        r = self.plane_range
        x = self.generator.get_coord(r.x, r.x + r.width, size, px)
        y = self.generator.get_coord(r.y, r.y + r.height, size, py)
        return x, y

    def click(self, px: int, py: int) -> Optional[RenderResult]:
        """Zoom toward the plane point under pixel ``(px, py)`` and redraw."""

        if not self._busy.acquire(blocking=False):
            return None
        try:
            x, y = self.pixel_to_plane(px, py)
            self.plane_range = self.generator.recenter_and_zoom(self.plane_range, x, y, self.zoom_scale)
            return self._render()
        finally:
            self._busy.release()
