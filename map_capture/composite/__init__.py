"""
Composite script module.

Turns per-tile placements into a standalone ImageMagick script that
stitches the mosaic, then cleans up the tiles and itself.
"""

from map_capture.composite.emitter import (
    CompositeScriptEmitter,
    EmitterState,
    EmitterStateError,
    format_timestamp,
)

__all__ = [
    "CompositeScriptEmitter",
    "EmitterState",
    "EmitterStateError",
    "format_timestamp",
]
