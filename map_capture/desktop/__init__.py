"""
Desktop communication module.

Provides the capability interfaces the engine drives, the X11 backend
(``xdotool`` + ImageMagick ``import``), and a recording backend for dry
runs.
"""

from map_capture.desktop.interfaces import (
    Desktop,
    DesktopCommandError,
    DesktopError,
    PanExecutor,
    Region,
    ScreenCapturer,
    WindowLocator,
    WindowNotFoundError,
    ZoomController,
    ZoomDirection,
)
from map_capture.desktop.dry_run import RecordingDesktop
from map_capture.desktop.xdotool_client import XdotoolDesktop

__all__ = [
    "Desktop",
    "DesktopCommandError",
    "DesktopError",
    "PanExecutor",
    "Region",
    "ScreenCapturer",
    "WindowLocator",
    "WindowNotFoundError",
    "ZoomController",
    "ZoomDirection",
    "RecordingDesktop",
    "XdotoolDesktop",
]
