"""Traversal steps -- the vocabulary between the planner and the runner.

Every traversal action is an immutable, slotted dataclass.  Distances are
signed **screen pixels**: a positive X pan drags the surface to the right,
a positive Y pan drags it down.

A traversal plan is a flat list of steps.  The runner consumes it in
order, exactly once.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass
from enum import Enum

# ---------------------------------------------------------------------------
# Axis
# ---------------------------------------------------------------------------


class Axis(Enum):
    """Pan axis."""

    X = "x"
    Y = "y"


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Step(ABC):
    """Base class for all traversal steps."""

    pass


TraversalPlan = list[Step]
"""Ordered steps covering every grid cell once."""


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Capture(Step):
    """Capture the tile currently in the viewport.

    Parameters
    ----------
    row, column : int
        Grid cell being captured (0-based).  Informational; placement
        comes from the tracked offset, not from the cell.
    """

    row: int = 0
    column: int = 0


@dataclass(frozen=True, slots=True)
class Pan(Step):
    """Drag the surface along one axis.

    Parameters
    ----------
    axis : Axis
        Pan axis.
    distance : int
        Signed pan distance in pixels.  May exceed the single-gesture
        limit; the runner splits it with ``split_pan``.
    """

    axis: Axis
    distance: int

    def __post_init__(self) -> None:
        if not isinstance(self.axis, Axis):
            raise ValueError(f"axis must be an Axis, got {self.axis!r}")

    @property
    def magnitude(self) -> int:
        """Unsigned pan distance."""
        return abs(self.distance)

    @property
    def direction(self) -> int:
        """``+1``, ``-1``, or ``0`` for a zero pan."""
        return (self.distance > 0) - (self.distance < 0)
