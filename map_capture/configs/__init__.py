"""Capture configuration loading, validation, and settings report."""

from map_capture.configs.loader import (
    CaptureConfig,
    ConfigError,
    DesktopConfig,
    GridConfig,
    OutputConfig,
    TimingConfig,
    WindowConfig,
    ZoomConfig,
    load_config,
    with_grid_overrides,
    with_output_directory,
    with_window_pattern,
)
from map_capture.configs.report import format_settings

__all__ = [
    "CaptureConfig",
    "ConfigError",
    "DesktopConfig",
    "GridConfig",
    "OutputConfig",
    "TimingConfig",
    "WindowConfig",
    "ZoomConfig",
    "format_settings",
    "load_config",
    "with_grid_overrides",
    "with_output_directory",
    "with_window_pattern",
]
