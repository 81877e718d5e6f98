"""
Traversal plan module.

Defines the traversal steps as immutable dataclasses and builds the
snake-order plan that covers every grid cell exactly once.
"""

from map_capture.plan.operations import Axis, Capture, Pan, Step, TraversalPlan
from map_capture.plan.traversal import (
    CanvasSpec,
    build_traversal_plan,
    count_steps,
    iter_cells,
    split_pan,
)

__all__ = [
    "Axis",
    "Capture",
    "Pan",
    "Step",
    "TraversalPlan",
    "CanvasSpec",
    "build_traversal_plan",
    "count_steps",
    "iter_cells",
    "split_pan",
]
