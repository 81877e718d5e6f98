"""Tests for the config loader, overrides, and the settings report.

Validates that:
    - capture.yaml loads with the current schema
    - Derived grid sizes match the reference 7 x 5 layout
    - Invalid values and missing keys raise ConfigError
    - CLI-style overrides are applied and re-validated
    - The settings report shows the derived canvas size
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import pytest
import yaml

from map_capture.configs import loader
from map_capture.configs.loader import (
    CaptureConfig,
    ConfigError,
    load_config,
    with_grid_overrides,
    with_output_directory,
    with_window_pattern,
)
from map_capture.configs.report import format_settings
from map_capture.utils.fs import load_yaml


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def config() -> CaptureConfig:
    """Load the default capture.yaml shipped with the package."""
    return load_config()


@pytest.fixture()
def raw() -> dict[str, Any]:
    """Default capture.yaml as a mutable dict."""
    return copy.deepcopy(load_yaml(Path(loader.__file__).parent / "capture.yaml"))


def write_config(tmp_path: Path, data: dict[str, Any]) -> Path:
    path = tmp_path / "capture.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoad:
    def test_default_grid(self, config: CaptureConfig) -> None:
        g = config.grid
        assert (g.rows, g.columns) == (7, 5)
        assert (g.tile_width, g.tile_height) == (1030, 620)
        assert (g.x_shift, g.y_shift) == (1005, 510)

    def test_derived_sizes(self, config: CaptureConfig) -> None:
        g = config.grid
        assert g.total_width == 5050
        assert g.total_height == 3680
        assert g.tile_count == 35
        assert g.pan_count == 34

    def test_window_pairs(self, config: CaptureConfig) -> None:
        w = config.window
        assert (w.region_offset_x, w.region_offset_y) == (10, 60)
        assert (w.parking_x, w.parking_y) == (5, 5)

    def test_frozen(self, config: CaptureConfig) -> None:
        with pytest.raises(AttributeError):
            config.grid.rows = 3  # type: ignore[misc]

    def test_explicit_path(self, tmp_path: Path, raw: dict[str, Any]) -> None:
        raw["grid"]["rows"] = 2
        cfg = load_config(write_config(tmp_path, raw))
        assert cfg.grid.rows == 2

    def test_optional_keys_default(self, tmp_path: Path, raw: dict[str, Any]) -> None:
        del raw["grid"]["zoom_steps"]
        del raw["output"]["compositor"]
        cfg = load_config(write_config(tmp_path, raw))
        assert cfg.grid.zoom_steps == 0
        assert cfg.output.compositor == "convert"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ConfigError, match="Empty"):
            load_config(path)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    def test_missing_key(self, tmp_path: Path, raw: dict[str, Any]) -> None:
        del raw["grid"]["tile_width_px"]
        with pytest.raises(ConfigError, match="tile_width_px"):
            load_config(write_config(tmp_path, raw))

    def test_non_numeric(self, tmp_path: Path, raw: dict[str, Any]) -> None:
        raw["grid"]["rows"] = "many"
        with pytest.raises(ConfigError, match="Invalid"):
            load_config(write_config(tmp_path, raw))

    @pytest.mark.parametrize("key", ["rows", "columns", "tile_width_px", "tile_height_px"])
    def test_non_positive(self, tmp_path: Path, raw: dict[str, Any], key: str) -> None:
        raw["grid"][key] = 0
        with pytest.raises(ConfigError, match="must be > 0"):
            load_config(write_config(tmp_path, raw))

    def test_zero_shift_with_several_columns(
        self, tmp_path: Path, raw: dict[str, Any],
    ) -> None:
        raw["grid"]["x_shift_px"] = 0
        with pytest.raises(ConfigError, match="x_shift"):
            load_config(write_config(tmp_path, raw))

    def test_zero_shift_single_column_ok(
        self, tmp_path: Path, raw: dict[str, Any],
    ) -> None:
        raw["grid"]["columns"] = 1
        raw["grid"]["x_shift_px"] = 0
        assert load_config(write_config(tmp_path, raw)).grid.x_shift == 0

    def test_negative_delay(self, tmp_path: Path, raw: dict[str, Any]) -> None:
        raw["timing"]["pan_settle_s"] = -0.1
        with pytest.raises(ConfigError, match="pan_settle_s"):
            load_config(write_config(tmp_path, raw))

    def test_bad_parking_pair(self, tmp_path: Path, raw: dict[str, Any]) -> None:
        raw["window"]["parking_px"] = [5]
        with pytest.raises(ConfigError, match="pairs"):
            load_config(write_config(tmp_path, raw))

    def test_template_needs_timestamp(
        self, tmp_path: Path, raw: dict[str, Any],
    ) -> None:
        raw["output"]["output_template"] = "map.png"
        with pytest.raises(ConfigError, match="timestamp"):
            load_config(write_config(tmp_path, raw))

    def test_output_not_matched_by_cleanup(
        self, tmp_path: Path, raw: dict[str, Any],
    ) -> None:
        raw["output"]["output_template"] = "scr-map-{timestamp}.png"
        with pytest.raises(ConfigError, match="cleanup"):
            load_config(write_config(tmp_path, raw))

    def test_large_shift_only_warns(
        self, tmp_path: Path, raw: dict[str, Any], caplog,
    ) -> None:
        raw["grid"]["x_shift_px"] = 2000
        cfg = load_config(write_config(tmp_path, raw))
        assert cfg.grid.x_shift == 2000
        assert "gaps" in caplog.text


# ---------------------------------------------------------------------------
# Overrides
# ---------------------------------------------------------------------------


class TestOverrides:
    def test_none_ignored(self, config: CaptureConfig) -> None:
        assert with_grid_overrides(config, rows=None, columns=None) is config

    def test_applied(self, config: CaptureConfig) -> None:
        cfg = with_grid_overrides(config, rows=3, columns=4, zoom_steps=2)
        assert (cfg.grid.rows, cfg.grid.columns, cfg.grid.zoom_steps) == (3, 4, 2)
        assert cfg.grid.tile_width == config.grid.tile_width

    def test_revalidated(self, config: CaptureConfig) -> None:
        with pytest.raises(ConfigError, match="rows"):
            with_grid_overrides(config, rows=0)

    def test_negative_zoom(self, config: CaptureConfig) -> None:
        with pytest.raises(ConfigError, match="zoom_steps"):
            with_grid_overrides(config, zoom_steps=-1)

    def test_unknown_field(self, config: CaptureConfig) -> None:
        with pytest.raises(ConfigError, match="Unknown"):
            with_grid_overrides(config, depth=3)

    def test_output_directory(self, config: CaptureConfig, tmp_path: Path) -> None:
        cfg = with_output_directory(config, tmp_path)
        assert cfg.output.directory == str(tmp_path)
        assert config.output.directory == "."

    def test_window_pattern(self, config: CaptureConfig) -> None:
        assert with_window_pattern(config, "Atlas").window.name_pattern == "Atlas"
        with pytest.raises(ConfigError):
            with_window_pattern(config, "")


# ---------------------------------------------------------------------------
# Settings report
# ---------------------------------------------------------------------------


class TestReport:
    def test_reference_sizes(self, config: CaptureConfig) -> None:
        text = format_settings(config)
        assert "Total width:       5050 px" in text
        assert "Total height:      3680 px" in text
        assert "Tiles:             35" in text
        assert "Pans:              34" in text

    def test_tile_range(self, config: CaptureConfig) -> None:
        assert "scr-01.png .. scr-35.png" in format_settings(config)

    def test_reflects_overrides(self, config: CaptureConfig) -> None:
        cfg = with_grid_overrides(config, rows=2, columns=3, origin_offset_x=-40)
        text = format_settings(cfg)
        assert "Rows:              2" in text
        assert "Initial X offset:  -40 px" in text
        assert f"Total width:       {1030 + 2 * 1005} px" in text

    def test_ends_with_newline(self, config: CaptureConfig) -> None:
        assert format_settings(config).endswith("\n")
