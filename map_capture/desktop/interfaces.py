"""Desktop capability interfaces consumed by the capture engine.

The engine never talks to the windowing system directly.  It drives four
narrow capabilities -- locate the window, drag, zoom, capture -- so the
traversal can run against the real X11 desktop or a recording fake.

Every method **blocks** until the gesture has visually settled.  Gestures
are never issued concurrently.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from map_capture.plan.operations import Axis


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DesktopError(Exception):
    """Base exception for all desktop collaborator errors."""

    pass


class WindowNotFoundError(DesktopError):
    """The target window could not be located or focused."""

    pass


class DesktopCommandError(DesktopError):
    """An external desktop tool failed, timed out, or is not installed."""

    pass


# ---------------------------------------------------------------------------
# Data containers
# ---------------------------------------------------------------------------


class ZoomDirection(Enum):
    """Wheel direction."""

    IN = "in"
    OUT = "out"


@dataclass(frozen=True)
class Region:
    """Absolute screen rectangle in pixels."""

    x: int
    y: int
    width: int
    height: int

    @property
    def center(self) -> tuple[int, int]:
        return self.x + self.width // 2, self.y + self.height // 2

    def contains(self, px: int, py: int) -> bool:
        """True if the point lies inside the rectangle."""
        return (
            self.x <= px < self.x + self.width
            and self.y <= py < self.y + self.height
        )

    def max_drag(self, axis: Axis) -> int:
        """Longest single drag along *axis* that stays inside the region."""
        return self.width if axis is Axis.X else self.height


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------


class WindowLocator(ABC):
    """Finds and focuses the target window."""

    @abstractmethod
    def locate(self) -> Region:
        """Focus the window and return the absolute capture region.

        Raises
        ------
        WindowNotFoundError
            If no matching window exists.
        """


class PanExecutor(ABC):
    """Issues single drag gestures."""

    @abstractmethod
    def pan(self, axis: Axis, signed_distance: int) -> None:
        """Drag the surface by *signed_distance* pixels along *axis*.

        One gesture only.  Callers split longer pans so that
        ``abs(signed_distance)`` never exceeds the region size on *axis*.
        """


class ZoomController(ABC):
    """Issues batched wheel gestures."""

    def zoom_to(self, steps: int, direction: ZoomDirection) -> None:
        """Zoom by *steps* wheel clicks in one gesture; 0 is a no-op.

        Raises
        ------
        ValueError
            If *steps* is negative.
        """
        if steps < 0:
            raise ValueError(f"zoom steps must be >= 0, got {steps}")
        if steps == 0:
            return
        self._zoom(steps, direction)

    @abstractmethod
    def _zoom(self, steps: int, direction: ZoomDirection) -> None:
        """Issue *steps* (> 0) wheel clicks."""


class ScreenCapturer(ABC):
    """Parks the pointer and saves region screenshots."""

    @abstractmethod
    def park_pointer(self) -> None:
        """Move the pointer out of the capture region and wait for it."""

    @abstractmethod
    def capture(self, path: Path) -> None:
        """Save the capture region to *path*."""


class Desktop(WindowLocator, PanExecutor, ZoomController, ScreenCapturer):
    """All capabilities the traversal runner needs, from one backend."""

    pass
