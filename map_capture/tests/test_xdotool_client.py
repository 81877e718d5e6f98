"""Tests for the X11 desktop backend.

``subprocess.run`` and ``time.sleep`` are patched, so no display or
external tool is needed.  Verifies:
    - Window search, activation, and geometry parsing
    - Drag, zoom, parking, and capture command lines
    - Tool failures, timeouts, and missing executables
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from map_capture.configs.loader import CaptureConfig, load_config
from map_capture.desktop.interfaces import (
    DesktopCommandError,
    DesktopError,
    Region,
    WindowNotFoundError,
    ZoomDirection,
)
from map_capture.desktop.xdotool_client import XdotoolDesktop, parse_geometry
from map_capture.plan.operations import Axis

GEOMETRY = "WINDOW=4194310\nX=100\nY=50\nWIDTH=1920\nHEIGHT=1080\nSCREEN=0\n"


# ---------------------------------------------------------------------------
# Fake subprocess
# ---------------------------------------------------------------------------


class FakeRun:
    """Stand-in for ``subprocess.run`` that records command lines."""

    def __init__(
        self,
        window_ids: str = "4194310\n",
        geometry: str = GEOMETRY,
        fail: str | None = None,
        raise_exc: Exception | None = None,
    ) -> None:
        self.window_ids = window_ids
        self.geometry = geometry
        self.fail = fail
        self.raise_exc = raise_exc
        self.commands: list[list[str]] = []

    def __call__(self, args: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
        self.commands.append(list(args))
        if self.raise_exc is not None:
            raise self.raise_exc
        sub = args[1]
        if sub == self.fail:
            return subprocess.CompletedProcess(args, 1, stdout="", stderr="boom")
        if sub == "search":
            rc = 0 if self.window_ids.strip() else 1
            return subprocess.CompletedProcess(args, rc, stdout=self.window_ids, stderr="")
        if sub == "getwindowgeometry":
            return subprocess.CompletedProcess(args, 0, stdout=self.geometry, stderr="")
        return subprocess.CompletedProcess(args, 0, stdout="", stderr="")


@pytest.fixture()
def config() -> CaptureConfig:
    return load_config()


@pytest.fixture()
def fake() -> FakeRun:
    return FakeRun()


@pytest.fixture()
def desktop(config: CaptureConfig, fake: FakeRun):
    with patch("map_capture.desktop.xdotool_client.subprocess.run", fake), \
            patch("map_capture.desktop.xdotool_client.time.sleep"):
        yield XdotoolDesktop(config)


@pytest.fixture()
def located(desktop: XdotoolDesktop, fake: FakeRun) -> XdotoolDesktop:
    desktop.locate()
    fake.commands.clear()
    return desktop


# ---------------------------------------------------------------------------
# Geometry parsing
# ---------------------------------------------------------------------------


class TestParseGeometry:
    def test_parses_shell_output(self) -> None:
        geom = parse_geometry(GEOMETRY)
        assert (geom["X"], geom["Y"], geom["WIDTH"], geom["HEIGHT"]) == (
            100, 50, 1920, 1080,
        )

    def test_negative_position(self) -> None:
        geom = parse_geometry("X=-8\nY=-30\nWIDTH=800\nHEIGHT=600\n")
        assert geom["X"] == -8
        assert geom["Y"] == -30

    def test_missing_key(self) -> None:
        with pytest.raises(DesktopCommandError, match="HEIGHT"):
            parse_geometry("X=0\nY=0\nWIDTH=800\n")


# ---------------------------------------------------------------------------
# Window location
# ---------------------------------------------------------------------------


class TestLocate:
    def test_region_from_window_and_offset(
        self, desktop: XdotoolDesktop, fake: FakeRun,
    ) -> None:
        region = desktop.locate()
        assert region == Region(x=110, y=110, width=1030, height=620)
        assert region.center == (625, 420)
        assert desktop.region == region

    def test_commands(self, desktop: XdotoolDesktop, fake: FakeRun) -> None:
        desktop.locate()
        assert fake.commands == [
            ["xdotool", "search", "--onlyvisible", "--name", "Map Viewer"],
            ["xdotool", "windowactivate", "--sync", "4194310"],
            ["xdotool", "getwindowgeometry", "--shell", "4194310"],
        ]

    def test_first_of_several_windows(
        self, config: CaptureConfig, caplog,
    ) -> None:
        fake = FakeRun(window_ids="111\n222\n")
        with patch("map_capture.desktop.xdotool_client.subprocess.run", fake), \
                patch("map_capture.desktop.xdotool_client.time.sleep"):
            XdotoolDesktop(config).locate()
        assert fake.commands[1][-1] == "111"
        assert "2 windows match" in caplog.text

    def test_window_not_found(self, config: CaptureConfig) -> None:
        fake = FakeRun(window_ids="")
        with patch("map_capture.desktop.xdotool_client.subprocess.run", fake), \
                patch("map_capture.desktop.xdotool_client.time.sleep"):
            with pytest.raises(WindowNotFoundError, match="Map Viewer"):
                XdotoolDesktop(config).locate()
        assert len(fake.commands) == 1

    def test_activation_failure(self, config: CaptureConfig) -> None:
        fake = FakeRun(fail="windowactivate")
        with patch("map_capture.desktop.xdotool_client.subprocess.run", fake), \
                patch("map_capture.desktop.xdotool_client.time.sleep"):
            with pytest.raises(DesktopCommandError, match="exit 1"):
                XdotoolDesktop(config).locate()

    def test_settles_after_locate(self, config: CaptureConfig) -> None:
        with patch("map_capture.desktop.xdotool_client.subprocess.run", FakeRun()), \
                patch("map_capture.desktop.xdotool_client.time.sleep") as sleep:
            XdotoolDesktop(config).locate()
        sleep.assert_called_once_with(config.timing.window_settle_s)

    def test_region_before_locate(self, desktop: XdotoolDesktop) -> None:
        with pytest.raises(DesktopError, match="locate"):
            desktop.region


# ---------------------------------------------------------------------------
# Gestures
# ---------------------------------------------------------------------------


class TestGestures:
    def test_horizontal_drag(self, located: XdotoolDesktop, fake: FakeRun) -> None:
        located.pan(Axis.X, 1000)
        assert fake.commands == [[
            "xdotool",
            "mousemove", "--sync", "125", "420",
            "mousedown", "1",
            "mousemove", "--sync", "1125", "420",
            "mouseup", "1",
        ]]

    def test_vertical_drag_negative(
        self, located: XdotoolDesktop, fake: FakeRun,
    ) -> None:
        located.pan(Axis.Y, -620)
        cmd = fake.commands[0]
        assert cmd[2:5] == ["--sync", "625", "730"]
        assert cmd[8:11] == ["--sync", "625", "110"]

    def test_drag_stays_inside_region(
        self, located: XdotoolDesktop, fake: FakeRun,
    ) -> None:
        region = located.region
        for d in (1030, -1030, 1, -1, 517):
            fake.commands.clear()
            located.pan(Axis.X, d)
            cmd = fake.commands[0]
            for x in (int(cmd[3]), int(cmd[9])):
                assert region.x <= x <= region.x + region.width

    def test_full_cap_drag_keeps_exact_distance(
        self, located: XdotoolDesktop, fake: FakeRun,
    ) -> None:
        region = located.region
        located.pan(Axis.X, region.width)
        cmd = fake.commands[0]
        start, end = int(cmd[3]), int(cmd[9])
        assert end - start == region.width
        assert start == region.x
        assert end == region.x + region.width

        fake.commands.clear()
        located.pan(Axis.Y, -region.height)
        cmd = fake.commands[0]
        start, end = int(cmd[4]), int(cmd[10])
        assert start - end == region.height
        assert (start, end) == (region.y + region.height, region.y)

    def test_zero_drag_is_noop(self, located: XdotoolDesktop, fake: FakeRun) -> None:
        located.pan(Axis.X, 0)
        assert fake.commands == []

    def test_oversized_drag(self, located: XdotoolDesktop, fake: FakeRun) -> None:
        with pytest.raises(ValueError, match="limit"):
            located.pan(Axis.X, 1031)
        assert fake.commands == []

    def test_drag_before_locate(self, desktop: XdotoolDesktop) -> None:
        with pytest.raises(DesktopError):
            desktop.pan(Axis.X, 10)

    def test_zoom_in_batched(self, located: XdotoolDesktop, fake: FakeRun) -> None:
        located.zoom_to(3, ZoomDirection.IN)
        assert fake.commands == [[
            "xdotool", "mousemove", "--sync", "625", "420",
            "click", "--repeat", "3", "--delay", "50", "4",
        ]]

    def test_zoom_out_uses_wheel_down(
        self, located: XdotoolDesktop, fake: FakeRun,
    ) -> None:
        located.zoom_to(30, ZoomDirection.OUT)
        assert fake.commands[0][-1] == "5"
        assert fake.commands[0][7] == "30"

    def test_zoom_zero_is_noop(self, located: XdotoolDesktop, fake: FakeRun) -> None:
        located.zoom_to(0, ZoomDirection.IN)
        assert fake.commands == []

    def test_zoom_negative(self, located: XdotoolDesktop) -> None:
        with pytest.raises(ValueError):
            located.zoom_to(-1, ZoomDirection.OUT)


# ---------------------------------------------------------------------------
# Capture
# ---------------------------------------------------------------------------


class TestCapture:
    def test_park_pointer(self, located: XdotoolDesktop, fake: FakeRun) -> None:
        located.park_pointer()
        assert fake.commands == [["xdotool", "mousemove", "--sync", "5", "5"]]

    def test_import_crop(
        self, located: XdotoolDesktop, fake: FakeRun, tmp_path: Path,
    ) -> None:
        located.capture(tmp_path / "scr-01.png")
        assert fake.commands == [[
            "import", "-window", "root",
            "-crop", "1030x620+110+110",
            "+repage",
            str(tmp_path / "scr-01.png"),
        ]]

    def test_import_failure(self, config: CaptureConfig, tmp_path: Path) -> None:
        fake = FakeRun(fail="-window")
        with patch("map_capture.desktop.xdotool_client.subprocess.run", fake), \
                patch("map_capture.desktop.xdotool_client.time.sleep"):
            d = XdotoolDesktop(config)
            d.locate()
            with pytest.raises(DesktopCommandError, match="import"):
                d.capture(tmp_path / "scr-01.png")


# ---------------------------------------------------------------------------
# Command errors
# ---------------------------------------------------------------------------


class TestCommandErrors:
    def test_tool_not_installed(self, config: CaptureConfig) -> None:
        fake = FakeRun(raise_exc=FileNotFoundError("xdotool"))
        with patch("map_capture.desktop.xdotool_client.subprocess.run", fake):
            with pytest.raises(DesktopCommandError, match="not found"):
                XdotoolDesktop(config).locate()

    def test_timeout(self, config: CaptureConfig) -> None:
        fake = FakeRun(raise_exc=subprocess.TimeoutExpired(["xdotool"], 10.0))
        with patch("map_capture.desktop.xdotool_client.subprocess.run", fake):
            with pytest.raises(DesktopCommandError, match="timed out"):
                XdotoolDesktop(config).locate()

    def test_errors_share_base(self) -> None:
        assert issubclass(WindowNotFoundError, DesktopError)
        assert issubclass(DesktopCommandError, DesktopError)
