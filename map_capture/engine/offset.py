"""Cumulative viewport offset tracking.

Dragging the surface by ``d`` pixels moves everything already seen by
``d`` as well, so the viewport's window onto the surface moves by ``-d``.
The tracker records that inverse displacement since the last reset; its
snapshot is the placement of the tile captured at that moment.
"""

from __future__ import annotations

from dataclasses import dataclass

from map_capture.plan.operations import Axis


@dataclass(frozen=True)
class ViewState:
    """Read-only offset snapshot in pixels."""

    offset_x: int = 0
    offset_y: int = 0


class OffsetTracker:
    """Owns the mutable offset for one traversal.

    Not shared: each runner creates its own tracker.
    """

    def __init__(self) -> None:
        self._x = 0
        self._y = 0

    def reset(self) -> None:
        """Make the current view the origin."""
        self._x = 0
        self._y = 0

    def apply_pan(self, axis: Axis, signed_distance: int) -> None:
        """Account for one drag gesture of *signed_distance* pixels."""
        if axis is Axis.X:
            self._x -= signed_distance
        else:
            self._y -= signed_distance

    def snapshot(self) -> ViewState:
        return ViewState(offset_x=self._x, offset_y=self._y)
