"""
Map Capture Package.

Captures a virtual map larger than one screen by panning a viewport in a
snake pattern, screenshotting fixed-size tiles, and emitting a standalone
ImageMagick script that reassembles the tiles into one mosaic.

Subpackages:
    plan: Traversal steps (Capture / Pan) and the snake-order planner
    engine: Offset tracking, tile capture, and the traversal runner
    composite: Composite script emission
    desktop: Window, pointer, wheel, and screen-capture collaborators
    configs: Capture configuration loading, validation, and settings report
"""

__all__ = ["plan", "engine", "composite", "desktop", "configs"]
__version__ = "0.3.0"
