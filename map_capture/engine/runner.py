"""Traversal runner -- drives one complete map capture.

Sequence:
    1. Locate and focus the window (fails before any gesture).
    2. Zoom out to the baseline, then in by ``grid.zoom_steps``.
    3. Pan to the first tile by the configured origin offset.
    4. Reset the offset tracker and open the composite script.
    5. Walk the snake plan: capture -> record placement, pan -> split
       into bounded gestures, tracking the offset per gesture.
    6. Finalize the composite script.

Everything is sequential; each gesture blocks until settled.  There is
no cancellation: an exception propagates immediately and leaves the
tiles and a partial script on disk.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from map_capture.composite.emitter import CompositeScriptEmitter
from map_capture.configs.loader import CaptureConfig
from map_capture.desktop.interfaces import Desktop, Region, ZoomDirection
from map_capture.engine.capture import CaptureStage, TileRecord
from map_capture.engine.offset import OffsetTracker
from map_capture.plan.operations import Axis, Capture, Pan
from map_capture.plan.traversal import CanvasSpec, build_traversal_plan, split_pan
from map_capture.utils.fs import ensure_dir, find_stale_tiles

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of a completed traversal."""

    tiles: list[TileRecord]
    script_path: Path
    output_name: str
    canvas: CanvasSpec
    gestures: int = 0


@dataclass
class RunProgress:
    """Progress snapshot passed to the progress callback."""

    total_tiles: int
    completed_tiles: int = 0
    message: str = ""
    placements: list[tuple[int, int]] = field(default_factory=list)

    @property
    def progress_percent(self) -> float:
        if self.total_tiles == 0:
            return 100.0
        return 100.0 * self.completed_tiles / self.total_tiles


class TraversalRunner:
    """Run one capture traversal against a desktop backend.

    Parameters
    ----------
    config : CaptureConfig
        Validated run configuration.
    desktop : Desktop
        Window, drag, zoom, and capture backend.
    """

    def __init__(self, config: CaptureConfig, desktop: Desktop) -> None:
        self._cfg = config
        self._desktop = desktop
        self._tracker = OffsetTracker()
        self._region: Region | None = None
        self._gestures = 0
        self._progress_cb: Callable[[RunProgress], None] | None = None

    # ------------------------------------------------------------------
    # Common
    # ------------------------------------------------------------------

    @property
    def tracker(self) -> OffsetTracker:
        return self._tracker

    def set_progress_callback(self, fn: Callable[[RunProgress], None]) -> None:
        """Register a callback invoked after every tile."""
        self._progress_cb = fn

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------

    def pan(self, axis: Axis, distance: int) -> None:
        """Pan by *distance*, split into gestures no longer than the region.

        The tracker is updated after each gesture so it always matches
        what is on screen.
        """
        if self._region is None:
            raise RuntimeError("pan() before the window was located")
        for part in split_pan(distance, self._region.max_drag(axis)):
            self._desktop.pan(axis, part)
            self._tracker.apply_pan(axis, part)
            self._gestures += 1

    def establish_origin(self) -> None:
        """Zoom to the configured level and pan to the first tile."""
        grid = self._cfg.grid
        baseline = self._cfg.zoom.baseline_out_steps
        logger.info(
            "Zooming out %d steps to baseline, then in %d steps",
            baseline, grid.zoom_steps,
        )
        self._desktop.zoom_to(baseline, ZoomDirection.OUT)
        self._desktop.zoom_to(grid.zoom_steps, ZoomDirection.IN)

        if grid.origin_offset_x or grid.origin_offset_y:
            logger.info(
                "Panning to origin (%d, %d)",
                grid.origin_offset_x, grid.origin_offset_y,
            )
        self.pan(Axis.X, grid.origin_offset_x)
        self.pan(Axis.Y, grid.origin_offset_y)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, timestamp: datetime | None = None) -> RunResult:
        """Capture every tile and write the composite script.

        Parameters
        ----------
        timestamp : datetime | None
            Capture time used for the output image name.  ``None`` uses
            the current UTC time.

        Returns
        -------
        RunResult
            Tile records in capture order and the script location.

        Raises
        ------
        WindowNotFoundError
            If the window is missing; nothing has been captured.
        DesktopCommandError
            If a gesture or capture fails mid-run.
        """
        if timestamp is None:
            timestamp = datetime.now(timezone.utc)

        grid = self._cfg.grid
        out = self._cfg.output
        work_dir = ensure_dir(out.directory)

        stale = find_stale_tiles(work_dir, out.tile_prefix, out.tile_extension)
        if stale:
            logger.warning(
                "%d tile file(s) from an earlier run in %s will be overwritten "
                "and removed by this run's script",
                len(stale), work_dir,
            )

        self._region = self._desktop.locate()
        self._gestures = 0
        self.establish_origin()

        self._tracker.reset()
        plan = build_traversal_plan(grid)
        canvas = CanvasSpec.from_grid(grid)
        stage = CaptureStage(self._desktop, self._tracker, out, work_dir)
        emitter = CompositeScriptEmitter(work_dir / out.script_name, out)

        progress = RunProgress(total_tiles=grid.tile_count)
        tiles: list[TileRecord] = []

        logger.info(
            "Capturing %dx%d grid (%d tiles, canvas %dx%d)",
            grid.rows, grid.columns, grid.tile_count,
            canvas.total_width, canvas.total_height,
        )

        emitter.begin(canvas)
        try:
            for step in plan:
                if isinstance(step, Capture):
                    record = stage.capture(len(tiles) + 1)
                    emitter.add_tile(record)
                    tiles.append(record)
                    self._notify(progress, record, step)
                elif isinstance(step, Pan):
                    self.pan(step.axis, step.distance)
                else:
                    raise TypeError(f"Unsupported step: {type(step).__name__}")

            output_name = emitter.end(timestamp=timestamp)
        finally:
            emitter.close()

        logger.info(
            "Capture complete: %d tiles, %d gestures, run %s to build %s",
            len(tiles), self._gestures, emitter.script_path, output_name,
        )
        return RunResult(
            tiles=tiles,
            script_path=emitter.script_path,
            output_name=output_name,
            canvas=canvas,
            gestures=self._gestures,
        )

    def _notify(
        self, progress: RunProgress, record: TileRecord, step: Capture,
    ) -> None:
        progress.completed_tiles = record.index
        progress.placements.append((record.placement_x, record.placement_y))
        progress.message = (
            f"Tile {record.index}/{progress.total_tiles} "
            f"(row {step.row}, col {step.column})"
        )
        logger.info(
            "%s -> %s at (%d, %d)",
            progress.message, record.file_name,
            record.placement_x, record.placement_y,
        )
        if self._progress_cb is not None:
            self._progress_cb(progress)
