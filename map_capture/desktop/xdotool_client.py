"""X11 desktop backend built on ``xdotool`` and ImageMagick ``import``.

Handles:
    - Window search, activation, and geometry query (``xdotool``)
    - Drag gestures as one chained ``mousemove/mousedown/mousemove/mouseup``
    - Batched wheel zoom via ``click --repeat``
    - Region screenshots via ``import -window root -crop``

Every command runs synchronously with the timeout from
``CaptureConfig.desktop``; a non-zero exit, a timeout, or a missing tool
raises :class:`DesktopCommandError`.  Nothing is retried.
"""

from __future__ import annotations

import logging
import subprocess
import time
from pathlib import Path

from map_capture.configs.loader import CaptureConfig
from map_capture.desktop.interfaces import (
    Desktop,
    DesktopCommandError,
    DesktopError,
    Region,
    WindowNotFoundError,
    ZoomDirection,
)
from map_capture.plan.operations import Axis

logger = logging.getLogger(__name__)

# X11 wheel buttons
WHEEL_UP = 4
WHEEL_DOWN = 5


def parse_geometry(shell_output: str) -> dict[str, int]:
    """Parse ``xdotool getwindowgeometry --shell`` output.

    Parameters
    ----------
    shell_output : str
        Lines of ``KEY=value``, e.g. ``X=10``, ``WIDTH=1280``.

    Returns
    -------
    dict[str, int]
        Integer values keyed by upper-case name.

    Raises
    ------
    DesktopCommandError
        If X, Y, WIDTH or HEIGHT is missing.
    """
    values: dict[str, int] = {}
    for line in shell_output.splitlines():
        key, sep, value = line.strip().partition("=")
        if sep and value.lstrip("-").isdigit():
            values[key] = int(value)
    missing = [k for k in ("X", "Y", "WIDTH", "HEIGHT") if k not in values]
    if missing:
        raise DesktopCommandError(
            f"Window geometry missing {', '.join(missing)}: {shell_output!r}"
        )
    return values


class XdotoolDesktop(Desktop):
    """Desktop backend for X11.

    Parameters
    ----------
    config : CaptureConfig
        Window pattern, region offset, parking position, tool paths,
        timeouts, and settle delays.
    """

    def __init__(self, config: CaptureConfig) -> None:
        self._cfg = config
        self._region: Region | None = None
        self._window_id: str | None = None

    # ------------------------------------------------------------------
    # Command execution
    # ------------------------------------------------------------------

    def _exec(self, args: list[str]) -> subprocess.CompletedProcess:
        """Run *args* and return the completed process (no exit check)."""
        logger.debug("exec: %s", " ".join(args))
        try:
            return subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self._cfg.desktop.command_timeout_s,
                check=False,
            )
        except FileNotFoundError as exc:
            raise DesktopCommandError(
                f"{args[0]} not found; is it installed?"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise DesktopCommandError(
                f"{args[0]} timed out after "
                f"{self._cfg.desktop.command_timeout_s:.1f}s"
            ) from exc

    def _run(self, args: list[str]) -> str:
        """Run *args*, raise on non-zero exit, return stdout."""
        result = self._exec(args)
        if result.returncode != 0:
            raise DesktopCommandError(
                f"{' '.join(args)} failed (exit {result.returncode}): "
                f"{result.stderr.strip()}"
            )
        return result.stdout

    def _xdotool(self, *args: object) -> str:
        return self._run([self._cfg.desktop.xdotool_path, *map(str, args)])

    # ------------------------------------------------------------------
    # WindowLocator
    # ------------------------------------------------------------------

    @property
    def region(self) -> Region:
        """Capture region found by :meth:`locate`."""
        if self._region is None:
            raise DesktopError("Capture region unknown: call locate() first")
        return self._region

    def locate(self) -> Region:
        """Find, focus, and measure the target window.

        Returns
        -------
        Region
            Absolute capture region: window corner + configured offset,
            tile-sized.

        Raises
        ------
        WindowNotFoundError
            If ``xdotool search`` matches no visible window.
        """
        win = self._cfg.window
        result = self._exec([
            self._cfg.desktop.xdotool_path,
            "search", "--onlyvisible", "--name", win.name_pattern,
        ])
        ids = result.stdout.split()
        if result.returncode != 0 or not ids:
            raise WindowNotFoundError(
                f"No visible window matches {win.name_pattern!r}"
            )
        if len(ids) > 1:
            logger.warning(
                "%d windows match %r; using the first (%s)",
                len(ids), win.name_pattern, ids[0],
            )
        self._window_id = ids[0]

        self._xdotool("windowactivate", "--sync", self._window_id)
        geom = parse_geometry(
            self._xdotool("getwindowgeometry", "--shell", self._window_id)
        )

        grid = self._cfg.grid
        region = Region(
            x=geom["X"] + win.region_offset_x,
            y=geom["Y"] + win.region_offset_y,
            width=grid.tile_width,
            height=grid.tile_height,
        )
        if (
            win.region_offset_x + grid.tile_width > geom["WIDTH"]
            or win.region_offset_y + grid.tile_height > geom["HEIGHT"]
        ):
            logger.warning(
                "Capture region %dx%d+%d+%d extends past window %dx%d",
                region.width, region.height,
                win.region_offset_x, win.region_offset_y,
                geom["WIDTH"], geom["HEIGHT"],
            )
        if region.contains(win.parking_x, win.parking_y):
            logger.warning(
                "Pointer parking position (%d, %d) is inside the capture "
                "region; tiles will show the cursor",
                win.parking_x, win.parking_y,
            )

        self._region = region
        logger.info(
            "Window %s located; capture region %dx%d at (%d, %d)",
            self._window_id, region.width, region.height, region.x, region.y,
        )
        time.sleep(self._cfg.timing.window_settle_s)
        return region

    # ------------------------------------------------------------------
    # PanExecutor
    # ------------------------------------------------------------------

    def pan(self, axis: Axis, signed_distance: int) -> None:
        """Drag the surface by *signed_distance* pixels along *axis*.

        The drag is centred on the region, so both ends lie on or within
        its edges.  A full-cap drag ends on the far edge line
        (``x + width``); the distance is never shortened.

        Raises
        ------
        ValueError
            If the distance exceeds the single-gesture limit.
        """
        region = self.region
        limit = region.max_drag(axis)
        if abs(signed_distance) > limit:
            raise ValueError(
                f"Drag of {signed_distance} px on {axis.name} exceeds "
                f"single-gesture limit {limit} px"
            )
        if signed_distance == 0:
            return

        cx, cy = region.center
        half = signed_distance // 2
        if axis is Axis.X:
            start = (cx - half, cy)
            end = (cx - half + signed_distance, cy)
        else:
            start = (cx, cy - half)
            end = (cx, cy - half + signed_distance)

        self._xdotool(
            "mousemove", "--sync", start[0], start[1],
            "mousedown", 1,
            "mousemove", "--sync", end[0], end[1],
            "mouseup", 1,
        )
        time.sleep(self._cfg.timing.pan_settle_s)

    # ------------------------------------------------------------------
    # ZoomController
    # ------------------------------------------------------------------

    def _zoom(self, steps: int, direction: ZoomDirection) -> None:
        cx, cy = self.region.center
        button = WHEEL_UP if direction is ZoomDirection.IN else WHEEL_DOWN
        self._xdotool(
            "mousemove", "--sync", cx, cy,
            "click", "--repeat", steps,
            "--delay", self._cfg.desktop.click_delay_ms,
            button,
        )
        logger.debug("Zoomed %s by %d steps", direction.value, steps)
        time.sleep(self._cfg.timing.zoom_settle_s)

    # ------------------------------------------------------------------
    # ScreenCapturer
    # ------------------------------------------------------------------

    def park_pointer(self) -> None:
        win = self._cfg.window
        self._xdotool("mousemove", "--sync", win.parking_x, win.parking_y)
        time.sleep(self._cfg.timing.pointer_settle_s)

    def capture(self, path: Path) -> None:
        """Save the capture region to *path* with ImageMagick ``import``."""
        r = self.region
        self._run([
            self._cfg.desktop.import_path,
            "-window", "root",
            "-crop", f"{r.width}x{r.height}+{r.x}+{r.y}",
            "+repage",
            str(path),
        ])
