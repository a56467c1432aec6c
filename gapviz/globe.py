"""Rotation state of the orthographic globe.

The globe spins slowly on its own and can be dragged.  While a drag is in
progress, pointer moves rotate the globe and auto-rotation ticks are
ignored; pointer moves outside a drag are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .config import (
    DRAG_RELEASE_SECONDS,
    GLOBE_DRAG_SENSITIVITY,
    GLOBE_INITIAL_ROTATION,
    GLOBE_VELOCITY,
)


@dataclass
class GlobeState:
    """Rotation ``[lambda, phi]`` in degrees plus the drag guard."""

    rotation: List[float] = field(default_factory=lambda: list(GLOBE_INITIAL_ROTATION))
    velocity: float = GLOBE_VELOCITY
    sensitivity: float = GLOBE_DRAG_SENSITIVITY
    is_dragging: bool = False
    _drag_origin: Optional[Tuple[float, float]] = None
    _drag_rotation: Optional[Tuple[float, float]] = None
    _last_interaction: Optional[float] = None

    # -- pointer drag ---------------------------------------------------

    def start_drag(self, x: float, y: float) -> None:
        self.is_dragging = True
        self._drag_origin = (x, y)
        self._drag_rotation = (self.rotation[0], self.rotation[1])

    def drag_to(self, x: float, y: float) -> bool:
        """Rotate by the pointer offset since :meth:`start_drag`."""
        if not self.is_dragging or self._drag_origin is None:
            return False
        dx = x - self._drag_origin[0]
        dy = y - self._drag_origin[1]
        self.rotation[0] = self._drag_rotation[0] + dx * self.sensitivity
        self.rotation[1] = self._drag_rotation[1] - dy * self.sensitivity
        return True

    def end_drag(self) -> None:
        self.is_dragging = False
        self._drag_origin = None
        self._drag_rotation = None
        self._last_interaction = None

    # -- client-side rotation ----------------------------------------------

    def follow(self, lon: float, lat: float, now: float) -> None:
        """Adopt a view centre the user dragged to in the browser.

        The browser reports no explicit drag end, so the drag is released by
        :meth:`tick` once no report arrived for ``DRAG_RELEASE_SECONDS``.
        """
        self.is_dragging = True
        self.rotation[0] = -lon
        self.rotation[1] = -lat
        self._last_interaction = now

    # -- auto rotation -------------------------------------------------------

    def tick(self, now: Optional[float] = None) -> bool:
        """Advance the auto-rotation by one step; returns whether it moved."""
        if self.is_dragging and self._last_interaction is not None and now is not None:
            if now - self._last_interaction >= DRAG_RELEASE_SECONDS:
                self.end_drag()
        if self.is_dragging:
            return False
        self.rotation[0] += self.velocity
        return True

    @property
    def center(self) -> Tuple[float, float]:
        """Projection centre ``(lon, lat)`` for the current rotation."""
        lon = (-self.rotation[0] + 180.0) % 360.0 - 180.0
        lat = max(-90.0, min(90.0, -self.rotation[1]))
        return lon, lat
