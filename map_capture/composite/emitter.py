"""Composite script emitter -- tile placements to an ImageMagick script.

The emitted script is standalone POSIX ``sh``: it ``cd``s to its own
directory, layers every tile onto a blank canvas with one ``convert``
command, writes ``map-<UTC timestamp>.png``, deletes the tile files and
itself, and exits 0.  It does not depend on this process and can be run
at any later time.

Placement convention:
    Each tile is given a ``-page`` offset equal to its tracked placement.
    Placements go negative as the surface is dragged forward, so the
    blank canvas is laid at ``CanvasSpec.origin`` and ``-layers merge``
    flattens everything into the bounding box, which is exactly the
    canvas.  Overlaps are resolved painter's-style: later tiles win.

Lifecycle::

    EMPTY --begin()--> ACCUMULATING --end()--> FINALIZED
                         add_tile()

Lines are flushed as they are written, so an interrupted run leaves a
partial (non-executable) script on disk for manual recovery.
"""

from __future__ import annotations

import logging
import shlex
from datetime import datetime, timezone
from enum import Enum, auto
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from map_capture.configs.loader import OutputConfig
from map_capture.plan.traversal import CanvasSpec
from map_capture.utils.fs import ensure_dir, make_executable

if TYPE_CHECKING:
    from map_capture.engine.capture import TileRecord

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


class EmitterStateError(RuntimeError):
    """Raised when an emitter method is called in the wrong state."""

    pass


class EmitterState(Enum):
    """Composite script lifecycle."""

    EMPTY = auto()
    ACCUMULATING = auto()
    FINALIZED = auto()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _page(x: int, y: int) -> str:
    """Signed ImageMagick page offset, e.g. ``+0-510``."""
    return f"{x:+d}{y:+d}"


def format_timestamp(ts: datetime | None = None) -> str:
    """UTC ``YYYYMMDD-HHMMSS``; naive datetimes are taken as UTC."""
    if ts is None:
        ts = datetime.now(timezone.utc)
    elif ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


# ---------------------------------------------------------------------------
# Emitter
# ---------------------------------------------------------------------------


class CompositeScriptEmitter:
    """Accumulate tile placements into a standalone composite script.

    Parameters
    ----------
    script_path : str | Path
        Where the script is written.  Tiles are expected in the same
        directory.
    output : OutputConfig
        Tile naming (for cleanup), compositor command, and background.
    """

    def __init__(self, script_path: str | Path, output: OutputConfig) -> None:
        self._path = Path(script_path)
        self._out = output
        self._state = EmitterState.EMPTY
        self._fh: TextIO | None = None
        self._tiles = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> EmitterState:
        return self._state

    @property
    def script_path(self) -> Path:
        return self._path

    @property
    def tile_count(self) -> int:
        """Overlay instructions written so far."""
        return self._tiles

    def begin(self, canvas: CanvasSpec) -> None:
        """Create the script and write the blank-canvas header.

        Raises
        ------
        EmitterStateError
            If the emitter is not EMPTY.
        """
        self._require(EmitterState.EMPTY, "begin")
        ensure_dir(self._path.parent)
        self._fh = open(self._path, "w", encoding="utf-8")
        self._state = EmitterState.ACCUMULATING

        size = f"{canvas.total_width}x{canvas.total_height}"
        self._write("#!/bin/sh")
        self._write("# Generated by map_capture composite script emitter")
        self._write(
            f"# Canvas: {size} px, origin "
            f"({canvas.origin_x}, {canvas.origin_y})"
        )
        self._write("set -e")
        self._write('cd "$(dirname "$0")"')
        self._write(f"{shlex.quote(self._out.compositor)} \\")
        self._write(
            f"  -page {_page(canvas.origin_x, canvas.origin_y)} "
            f"-size {size} xc:{shlex.quote(self._out.background)} \\"
        )
        logger.info("Composite script started: %s (canvas %s)", self._path, size)

    def add_tile(self, record: TileRecord) -> None:
        """Append one overlay instruction for *record*.

        Raises
        ------
        EmitterStateError
            If the emitter is not ACCUMULATING.
        """
        self._require(EmitterState.ACCUMULATING, "add_tile")
        self._write(
            f"  -page {_page(record.placement_x, record.placement_y)} "
            f"{shlex.quote(record.file_name)} \\"
        )
        self._tiles += 1

    def end(
        self,
        output_template: str | None = None,
        timestamp: datetime | None = None,
    ) -> str:
        """Write output and cleanup instructions, close, mark executable.

        Parameters
        ----------
        output_template : str | None
            Output file name with a ``{timestamp}`` field.  ``None`` uses
            ``OutputConfig.output_template``.
        timestamp : datetime | None
            Capture time.  ``None`` uses the current UTC time.

        Returns
        -------
        str
            Output image file name written by the script.

        Raises
        ------
        EmitterStateError
            If the emitter is not ACCUMULATING.
        """
        self._require(EmitterState.ACCUMULATING, "end")
        template = output_template or self._out.output_template
        output_name = template.format(timestamp=format_timestamp(timestamp))

        bg = shlex.quote(self._out.background)
        self._write(
            f"  -background {bg} -layers merge +repage "
            f"{shlex.quote(output_name)}"
        )
        self._write(
            f"rm -f -- {shlex.quote(self._out.tile_prefix)}*"
            f"{shlex.quote(self._out.tile_extension)}"
        )
        # By name: a relative $0 is stale after the cd.
        self._write(f"rm -f -- {shlex.quote(self._path.name)}")
        self._write("exit 0")

        self.close()
        make_executable(self._path)
        self._state = EmitterState.FINALIZED
        logger.info(
            "Composite script finalized: %s (%d tiles -> %s)",
            self._path, self._tiles, output_name,
        )
        return output_name

    def close(self) -> None:
        """Close the script file without finalizing it."""
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _require(self, state: EmitterState, method: str) -> None:
        if self._state is not state:
            raise EmitterStateError(
                f"{method}() requires state {state.name}, "
                f"emitter is {self._state.name}"
            )
        if state is EmitterState.ACCUMULATING and self._fh is None:
            raise EmitterStateError(f"{method}() called after close()")

    def _write(self, line: str) -> None:
        if self._fh is None:
            raise EmitterStateError("write to a closed composite script")
        self._fh.write(line + "\n")
        self._fh.flush()
