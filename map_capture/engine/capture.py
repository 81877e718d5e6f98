"""Tile capture stage.

One call captures one tile: park the pointer outside the region, wait for
it to settle, save the region under the tile's deterministic file name,
and record where the compositor must place it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from map_capture.configs.loader import OutputConfig
from map_capture.desktop.interfaces import ScreenCapturer
from map_capture.engine.offset import OffsetTracker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TileRecord:
    """Placement of one captured tile.

    Parameters
    ----------
    index : int
        1-based capture order.
    file_name : str
        Tile file name, relative to the working directory.
    placement_x, placement_y : int
        Offset snapshot at capture time; the tile's canvas position.
    """

    index: int
    file_name: str
    placement_x: int
    placement_y: int


class CaptureStage:
    """Capture tiles and build their placement records.

    Parameters
    ----------
    capturer : ScreenCapturer
        Pointer parking and screenshot backend.
    tracker : OffsetTracker
        Offset source for placements.
    output : OutputConfig
        Tile naming.
    directory : str | Path | None
        Where tiles are saved.  Defaults to ``output.directory``.
    """

    def __init__(
        self,
        capturer: ScreenCapturer,
        tracker: OffsetTracker,
        output: OutputConfig,
        directory: str | Path | None = None,
    ) -> None:
        self._capturer = capturer
        self._tracker = tracker
        self._out = output
        self._dir = Path(directory if directory is not None else output.directory)

    def capture(self, index: int) -> TileRecord:
        """Capture tile *index* at the current view.

        Raises
        ------
        ValueError
            If *index* < 1.
        """
        file_name = self._out.tile_file_name(index)

        self._capturer.park_pointer()
        view = self._tracker.snapshot()
        self._capturer.capture(self._dir / file_name)

        record = TileRecord(
            index=index,
            file_name=file_name,
            placement_x=view.offset_x,
            placement_y=view.offset_y,
        )
        logger.debug(
            "Captured %s at (%d, %d)",
            file_name, record.placement_x, record.placement_y,
        )
        return record
