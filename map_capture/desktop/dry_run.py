"""Recording desktop backend for dry runs and tests.

Implements every capability without touching the display: gestures are
appended to :attr:`RecordingDesktop.calls` and logged.  Used by the CLI's
``--dry-run`` mode to preview a traversal and its composite script.
"""

from __future__ import annotations

import logging
from pathlib import Path

from map_capture.configs.loader import CaptureConfig
from map_capture.desktop.interfaces import (
    Desktop,
    DesktopError,
    Region,
    WindowNotFoundError,
    ZoomDirection,
)
from map_capture.plan.operations import Axis

logger = logging.getLogger(__name__)


class RecordingDesktop(Desktop):
    """Desktop that records gestures instead of performing them.

    Parameters
    ----------
    config : CaptureConfig
        Used for the region geometry and parking position.
    window_found : bool
        ``False`` makes :meth:`locate` raise ``WindowNotFoundError``.

    Attributes
    ----------
    calls : list[tuple]
        ``("locate",)``, ``("pan", axis, distance)``,
        ``("zoom", direction, steps)``, ``("park",)``,
        ``("capture", file_name)`` in issue order.
    """

    def __init__(self, config: CaptureConfig, window_found: bool = True) -> None:
        self._cfg = config
        self._window_found = window_found
        self._region: Region | None = None
        self.calls: list[tuple] = []

    @property
    def pans(self) -> list[tuple[Axis, int]]:
        """Recorded drag gestures as ``(axis, distance)``."""
        return [(c[1], c[2]) for c in self.calls if c[0] == "pan"]

    @property
    def captured(self) -> list[str]:
        """Recorded capture file names."""
        return [c[1] for c in self.calls if c[0] == "capture"]

    def locate(self) -> Region:
        self.calls.append(("locate",))
        if not self._window_found:
            raise WindowNotFoundError(
                f"No visible window matches {self._cfg.window.name_pattern!r}"
            )
        win = self._cfg.window
        self._region = Region(
            x=win.region_offset_x,
            y=win.region_offset_y,
            width=self._cfg.grid.tile_width,
            height=self._cfg.grid.tile_height,
        )
        return self._region

    def pan(self, axis: Axis, signed_distance: int) -> None:
        if self._region is None:
            raise DesktopError("Capture region unknown: call locate() first")
        limit = self._region.max_drag(axis)
        if abs(signed_distance) > limit:
            raise ValueError(
                f"Drag of {signed_distance} px on {axis.name} exceeds "
                f"single-gesture limit {limit} px"
            )
        self.calls.append(("pan", axis, signed_distance))
        logger.debug("[dry-run] pan %s %+d", axis.name, signed_distance)

    def _zoom(self, steps: int, direction: ZoomDirection) -> None:
        self.calls.append(("zoom", direction, steps))
        logger.debug("[dry-run] zoom %s x%d", direction.value, steps)

    def park_pointer(self) -> None:
        self.calls.append(("park",))

    def capture(self, path: Path) -> None:
        self.calls.append(("capture", Path(path).name))
        logger.debug("[dry-run] capture %s", path)
