"""
Capture engine module.

Tracks the viewport offset, captures tiles with their placements, and
runs the full snake traversal against a desktop backend.
"""

from map_capture.engine.offset import OffsetTracker, ViewState
from map_capture.engine.capture import CaptureStage, TileRecord
from map_capture.engine.runner import RunProgress, RunResult, TraversalRunner

__all__ = [
    "OffsetTracker",
    "ViewState",
    "CaptureStage",
    "TileRecord",
    "RunProgress",
    "RunResult",
    "TraversalRunner",
]
