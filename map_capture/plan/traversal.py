"""Snake-order traversal planning and pan splitting.

The planner turns a :class:`GridConfig` into a flat list of ``Capture``
and ``Pan`` steps.  Rows are swept alternately left-to-right and
right-to-left (boustrophedon), so consecutive rows start next to each
other and no full-width return sweep is ever needed.

Placement coordinates are never computed here -- they fall out of the
offset tracker as the runner executes the pans.  ``CanvasSpec`` only
describes the blank canvas those placements land on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from map_capture.configs.loader import GridConfig
from map_capture.plan.operations import Axis, Capture, Pan, Step, TraversalPlan


# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------


def iter_cells(grid: GridConfig) -> Iterator[tuple[int, int]]:
    """Yield ``(row, column)`` cells in snake visiting order."""
    for row in range(grid.rows):
        cols = range(grid.columns)
        if row % 2 == 1:
            cols = reversed(cols)
        for col in cols:
            yield row, col


def build_traversal_plan(grid: GridConfig) -> TraversalPlan:
    """Build the snake-order plan for *grid*.

    Parameters
    ----------
    grid : GridConfig
        Grid geometry.

    Returns
    -------
    TraversalPlan
        ``rows * columns`` captures and ``rows * (columns - 1) + rows - 1``
        pans.  Row 0 pans by ``+x_shift``; each following row flips the
        sign.  Rows are advanced by ``+y_shift``.
    """
    plan: TraversalPlan = []
    cells = iter_cells(grid)
    direction = 1

    for row in range(grid.rows):
        for col in range(grid.columns):
            cell_row, cell_col = next(cells)
            plan.append(Capture(row=cell_row, column=cell_col))
            if col < grid.columns - 1:
                plan.append(Pan(Axis.X, direction * grid.x_shift))
        if row < grid.rows - 1:
            plan.append(Pan(Axis.Y, grid.y_shift))
            direction = -direction

    return plan


def count_steps(plan: list[Step]) -> tuple[int, int]:
    """Return ``(captures, pans)`` in *plan*."""
    captures = sum(1 for step in plan if isinstance(step, Capture))
    return captures, len(plan) - captures


# ---------------------------------------------------------------------------
# Pan splitting
# ---------------------------------------------------------------------------


def split_pan(total: int, max_step: int) -> list[int]:
    """Split a pan into gestures no longer than *max_step*.

    Parameters
    ----------
    total : int
        Signed pan distance in pixels.
    max_step : int
        Longest allowed single gesture (> 0).

    Returns
    -------
    list[int]
        Full-length gestures followed by the remainder, all with the sign
        of *total*.  Sums to *total*.  Empty when *total* is 0.

    Raises
    ------
    ValueError
        If *max_step* is not positive.

    Examples
    --------
    >>> split_pan(2500, 1000)
    [1000, 1000, 500]
    >>> split_pan(-1000, 1000)
    [-1000]
    """
    if max_step <= 0:
        raise ValueError(f"max_step must be > 0, got {max_step}")

    sign = 1 if total >= 0 else -1
    remaining = abs(total)
    parts: list[int] = []
    while remaining > 0:
        step = min(remaining, max_step)
        parts.append(sign * step)
        remaining -= step
    return parts


# ---------------------------------------------------------------------------
# Canvas
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CanvasSpec:
    """Blank canvas the composite script draws tiles onto.

    Parameters
    ----------
    total_width, total_height : int
        Mosaic size in pixels.
    origin_x, origin_y : int
        Top-left canvas corner in placement coordinates.  Placements go
        negative as the surface is dragged forward, so the corner sits at
        the most negative placement reached along each axis.
    """

    total_width: int
    total_height: int
    origin_x: int = 0
    origin_y: int = 0

    @classmethod
    def from_grid(cls, grid: GridConfig) -> CanvasSpec:
        """Derive the canvas for a snake traversal of *grid*."""
        # Row 0 sweeps by +x_shift, so the far column sits at -(C-1)*x_shift.
        far_x = -(grid.columns - 1) * grid.x_shift
        far_y = -(grid.rows - 1) * grid.y_shift
        return cls(
            total_width=grid.total_width,
            total_height=grid.total_height,
            origin_x=min(0, far_x),
            origin_y=min(0, far_y),
        )
