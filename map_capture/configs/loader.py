"""Configuration loader for map capture runs.

Loads and validates ``capture.yaml`` into typed, frozen dataclasses.
Grid geometry, desktop tool paths, settle delays, and output naming all
come from the config -- nothing is hardcoded in the engine.

All distances are in **screen pixels**.  All delays are in **seconds**.

Usage::

    from map_capture.configs.loader import load_config
    cfg = load_config()                        # default path
    cfg = load_config("/custom/capture.yaml")  # explicit path
    cfg = with_grid_overrides(cfg, rows=3, columns=4)
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from map_capture.utils.fs import load_yaml

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GridConfig:
    """Tile grid geometry for one run.

    Parameters
    ----------
    rows, columns : int
        Grid dimensions in tiles.
    tile_width, tile_height : int
        Size of the captured region in pixels.  Also the largest distance
        a single drag gesture may cover along X / Y.
    x_shift, y_shift : int
        Pan distance per column / row step.  The sign picks the sweep
        direction of the first row and the row-advance direction.
    zoom_steps : int
        Wheel clicks to zoom in from the minimum-zoom baseline.
    origin_offset_x, origin_offset_y : int
        Pan applied after zooming to reach the first tile.
    """

    rows: int
    columns: int
    tile_width: int
    tile_height: int
    x_shift: int
    y_shift: int
    zoom_steps: int = 0
    origin_offset_x: int = 0
    origin_offset_y: int = 0

    @property
    def tile_count(self) -> int:
        """Number of tiles (and captures) in the grid."""
        return self.rows * self.columns

    @property
    def pan_count(self) -> int:
        """Number of pan steps in the snake traversal."""
        return self.rows * (self.columns - 1) + (self.rows - 1)

    @property
    def total_width(self) -> int:
        """Mosaic width in pixels."""
        return self.tile_width + (self.columns - 1) * abs(self.x_shift)

    @property
    def total_height(self) -> int:
        """Mosaic height in pixels."""
        return self.tile_height + (self.rows - 1) * abs(self.y_shift)


@dataclass(frozen=True)
class WindowConfig:
    """Target window and capture region placement.

    ``region_offset_*`` is the top-left corner of the capture region
    relative to the window's top-left corner.  ``parking_*`` is an
    absolute screen position outside the region where the pointer rests
    during captures.
    """

    name_pattern: str
    region_offset_x: int
    region_offset_y: int
    parking_x: int
    parking_y: int


@dataclass(frozen=True)
class DesktopConfig:
    """External desktop tools (X11)."""

    xdotool_path: str
    import_path: str
    command_timeout_s: float
    click_delay_ms: int = 50


@dataclass(frozen=True)
class TimingConfig:
    """Settle delays in seconds, applied after each gesture."""

    window_settle_s: float
    pan_settle_s: float
    zoom_settle_s: float
    pointer_settle_s: float


@dataclass(frozen=True)
class ZoomConfig:
    """Zoom baseline settings."""

    baseline_out_steps: int


@dataclass(frozen=True)
class OutputConfig:
    """Tile naming and composite script settings."""

    directory: str
    tile_prefix: str
    tile_extension: str
    index_width: int
    script_name: str
    output_template: str
    compositor: str
    background: str

    def tile_file_name(self, index: int) -> str:
        """Deterministic tile file name, e.g. ``scr-07.png``."""
        if index < 1:
            raise ValueError(f"Tile index must be >= 1, got {index}")
        return f"{self.tile_prefix}{index:0{self.index_width}d}{self.tile_extension}"


@dataclass(frozen=True)
class CaptureConfig:
    """Complete run configuration loaded from ``capture.yaml``.

    All distances are in **pixels**.
    All delays are in **seconds**.
    """

    grid: GridConfig
    window: WindowConfig
    desktop: DesktopConfig
    timing: TimingConfig
    zoom: ZoomConfig
    output: OutputConfig


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _parse_grid(data: dict[str, Any]) -> GridConfig:
    return GridConfig(
        rows=int(data["rows"]),
        columns=int(data["columns"]),
        tile_width=int(data["tile_width_px"]),
        tile_height=int(data["tile_height_px"]),
        x_shift=int(data["x_shift_px"]),
        y_shift=int(data["y_shift_px"]),
        zoom_steps=int(data.get("zoom_steps", 0)),
        origin_offset_x=int(data.get("origin_offset_x_px", 0)),
        origin_offset_y=int(data.get("origin_offset_y_px", 0)),
    )


def _parse_window(data: dict[str, Any]) -> WindowConfig:
    region = data.get("region_offset_px", [0, 0])
    parking = data["parking_px"]
    if len(region) != 2 or len(parking) != 2:
        raise ConfigError(
            "window.region_offset_px and window.parking_px must be [x, y] pairs"
        )
    return WindowConfig(
        name_pattern=str(data["name_pattern"]),
        region_offset_x=int(region[0]),
        region_offset_y=int(region[1]),
        parking_x=int(parking[0]),
        parking_y=int(parking[1]),
    )


def _parse_output(data: dict[str, Any]) -> OutputConfig:
    return OutputConfig(
        directory=str(data.get("directory", ".")),
        tile_prefix=str(data["tile_prefix"]),
        tile_extension=str(data["tile_extension"]),
        index_width=int(data["index_width"]),
        script_name=str(data["script_name"]),
        output_template=str(data["output_template"]),
        compositor=str(data.get("compositor", "convert")),
        background=str(data.get("background", "black")),
    )


def _validate_grid(grid: GridConfig) -> None:
    """Validate grid geometry.

    Raises
    ------
    ConfigError
        On any invalid value.
    """
    for name in ("rows", "columns", "tile_width", "tile_height"):
        value = getattr(grid, name)
        if value <= 0:
            raise ConfigError(f"grid.{name} must be > 0, got {value}")

    if grid.columns > 1 and grid.x_shift == 0:
        raise ConfigError("grid.x_shift must be non-zero when columns > 1")
    if grid.rows > 1 and grid.y_shift == 0:
        raise ConfigError("grid.y_shift must be non-zero when rows > 1")
    if grid.zoom_steps < 0:
        raise ConfigError(f"grid.zoom_steps must be >= 0, got {grid.zoom_steps}")

    # -- Shift larger than tile leaves gaps in the mosaic --------------------
    if abs(grid.x_shift) > grid.tile_width:
        logger.warning(
            "x_shift (%d px) exceeds tile_width (%d px): mosaic will have gaps",
            grid.x_shift,
            grid.tile_width,
        )
    if abs(grid.y_shift) > grid.tile_height:
        logger.warning(
            "y_shift (%d px) exceeds tile_height (%d px): mosaic will have gaps",
            grid.y_shift,
            grid.tile_height,
        )


def _validate_config(cfg: CaptureConfig) -> None:
    """Validate cross-field consistency.

    Raises
    ------
    ConfigError
        On any invalid combination.
    """
    _validate_grid(cfg.grid)

    # -- Delays non-negative -------------------------------------------------
    for field in dataclasses.fields(cfg.timing):
        value = getattr(cfg.timing, field.name)
        if value < 0:
            raise ConfigError(f"timing.{field.name} must be >= 0, got {value}")

    if cfg.desktop.command_timeout_s <= 0:
        raise ConfigError(
            f"desktop.command_timeout_s must be > 0, "
            f"got {cfg.desktop.command_timeout_s}"
        )
    if cfg.desktop.click_delay_ms < 0:
        raise ConfigError(
            f"desktop.click_delay_ms must be >= 0, got {cfg.desktop.click_delay_ms}"
        )
    if cfg.zoom.baseline_out_steps < 0:
        raise ConfigError(
            f"zoom.baseline_out_steps must be >= 0, "
            f"got {cfg.zoom.baseline_out_steps}"
        )

    # -- Output naming -------------------------------------------------------
    out = cfg.output
    if out.index_width < 1:
        raise ConfigError(f"output.index_width must be >= 1, got {out.index_width}")
    if not out.tile_prefix:
        raise ConfigError("output.tile_prefix must not be empty")
    if "{timestamp}" not in out.output_template:
        raise ConfigError(
            f"output.output_template must contain '{{timestamp}}', "
            f"got {out.output_template!r}"
        )
    if out.output_template.startswith(out.tile_prefix):
        raise ConfigError(
            f"output.output_template {out.output_template!r} would be deleted "
            f"by the tile cleanup pattern '{out.tile_prefix}*'"
        )

    # -- Window -------------------------------------------------------------
    if not cfg.window.name_pattern:
        raise ConfigError("window.name_pattern must not be empty")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(path: str | Path | None = None) -> CaptureConfig:
    """Load and validate capture configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``capture.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    CaptureConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If any field is missing or fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    if path is None:
        path = Path(__file__).parent / "capture.yaml"
    else:
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from %s", path)

    data: dict[str, Any] = load_yaml(path)
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")

    try:
        grid = _parse_grid(data["grid"])
        window = _parse_window(data["window"])

        dd = data["desktop"]
        desktop = DesktopConfig(
            xdotool_path=str(dd.get("xdotool_path", "xdotool")),
            import_path=str(dd.get("import_path", "import")),
            command_timeout_s=float(dd["command_timeout_s"]),
            click_delay_ms=int(dd.get("click_delay_ms", 50)),
        )

        td = data["timing"]
        timing = TimingConfig(
            window_settle_s=float(td["window_settle_s"]),
            pan_settle_s=float(td["pan_settle_s"]),
            zoom_settle_s=float(td["zoom_settle_s"]),
            pointer_settle_s=float(td["pointer_settle_s"]),
        )

        zoom = ZoomConfig(
            baseline_out_steps=int(data["zoom"]["baseline_out_steps"]),
        )

        output = _parse_output(data["output"])

        config = CaptureConfig(
            grid=grid,
            window=window,
            desktop=desktop,
            timing=timing,
            zoom=zoom,
            output=output,
        )

        _validate_config(config)
        logger.info("Configuration loaded successfully")
        return config

    except KeyError as exc:
        raise ConfigError(
            f"Missing required configuration key: {exc}"
        ) from exc
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"Invalid configuration value: {exc}"
        ) from exc


def with_grid_overrides(cfg: CaptureConfig, **overrides: Any) -> CaptureConfig:
    """Return *cfg* with grid fields replaced, re-validated.

    ``None`` values are ignored so argparse defaults can be passed
    straight through.

    Raises
    ------
    ConfigError
        If an override names an unknown field or fails validation.
    """
    updates = {k: v for k, v in overrides.items() if v is not None}
    if not updates:
        return cfg

    known = {f.name for f in dataclasses.fields(GridConfig)}
    unknown = sorted(set(updates) - known)
    if unknown:
        raise ConfigError(f"Unknown grid option(s): {', '.join(unknown)}")

    try:
        grid = dataclasses.replace(
            cfg.grid, **{k: int(v) for k, v in updates.items()}
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid grid override: {exc}") from exc

    config = dataclasses.replace(cfg, grid=grid)
    _validate_config(config)
    return config


def with_output_directory(cfg: CaptureConfig, directory: str | Path) -> CaptureConfig:
    """Return *cfg* writing tiles and the script into *directory*."""
    output = dataclasses.replace(cfg.output, directory=str(directory))
    return dataclasses.replace(cfg, output=output)


def with_window_pattern(cfg: CaptureConfig, name_pattern: str) -> CaptureConfig:
    """Return *cfg* targeting windows whose name matches *name_pattern*."""
    if not name_pattern:
        raise ConfigError("window name pattern must not be empty")
    window = dataclasses.replace(cfg.window, name_pattern=name_pattern)
    return dataclasses.replace(cfg, window=window)
