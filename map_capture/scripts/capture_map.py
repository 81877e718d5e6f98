#!/usr/bin/env python3
"""
Capture Map Script.

Pan a map window in a snake pattern, capture every tile, and write a
composite script that stitches the tiles into one image.

Usage:
    python -m map_capture.scripts.capture_map --settings
    python -m map_capture.scripts.capture_map --rows 3 --columns 4
    python -m map_capture.scripts.capture_map --window "Map Viewer" --zoom 2
    python -m map_capture.scripts.capture_map --dry-run --output-dir /tmp/map

After a real run, execute the generated script (``compose-map.sh`` by
default) to build ``map-<timestamp>.png``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timezone

from map_capture import __version__
from map_capture.composite.emitter import format_timestamp
from map_capture.configs.loader import (
    ConfigError,
    load_config,
    with_grid_overrides,
    with_output_directory,
    with_window_pattern,
)
from map_capture.configs.report import format_settings
from map_capture.desktop.dry_run import RecordingDesktop
from map_capture.desktop.interfaces import DesktopError
from map_capture.desktop.xdotool_client import XdotoolDesktop
from map_capture.engine.runner import RunProgress, TraversalRunner
from map_capture.utils.logging_config import pop_context, push_context, setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="map-capture",
        description="Capture a large map as tiles and emit a composite script",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Configuration file path",
    )

    # Grid overrides
    grid = parser.add_argument_group("grid")
    grid.add_argument("--rows", "-r", type=int, help="Number of tile rows")
    grid.add_argument("--columns", "-k", type=int, help="Number of tile columns")
    grid.add_argument(
        "--x-offset", "-x", type=int, dest="origin_offset_x",
        help="Initial X pan to the first tile (px)",
    )
    grid.add_argument(
        "--y-offset", "-y", type=int, dest="origin_offset_y",
        help="Initial Y pan to the first tile (px)",
    )
    grid.add_argument(
        "--x-shift", type=int, dest="x_shift",
        help="X pan per column step (px)",
    )
    grid.add_argument(
        "--y-shift", type=int, dest="y_shift",
        help="Y pan per row step (px)",
    )
    grid.add_argument(
        "--zoom", "-z", type=int, dest="zoom_steps",
        help="Zoom-in steps from minimum zoom",
    )

    # Environment
    parser.add_argument("--window", "-w", type=str, help="Window name pattern")
    parser.add_argument(
        "--output-dir", "-o", type=str,
        help="Directory for tiles and the composite script",
    )

    # Modes
    parser.add_argument(
        "--settings",
        action="store_true",
        help="Print effective settings and exit",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Record gestures instead of driving the desktop",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument("--log-file", type=str, help="Also log to this file")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    started = datetime.now(timezone.utc)
    setup_logging(
        log_level=args.log_level,
        log_file=args.log_file,
        context={"app": "map-capture"},
    )

    try:
        config = load_config(args.config)
        config = with_grid_overrides(
            config,
            rows=args.rows,
            columns=args.columns,
            origin_offset_x=args.origin_offset_x,
            origin_offset_y=args.origin_offset_y,
            x_shift=args.x_shift,
            y_shift=args.y_shift,
            zoom_steps=args.zoom_steps,
        )
        if args.window:
            config = with_window_pattern(config, args.window)
        if args.output_dir:
            config = with_output_directory(config, args.output_dir)
    except (ConfigError, FileNotFoundError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    if args.settings:
        print(format_settings(config), end="")
        return 0

    logger.debug("Effective settings:\n%s", format_settings(config))
    push_context(run=format_timestamp(started))

    if args.dry_run:
        desktop = RecordingDesktop(config)
    else:
        desktop = XdotoolDesktop(config)
    runner = TraversalRunner(config, desktop)

    def progress_callback(progress: RunProgress) -> None:
        print(
            f"\rProgress: {progress.completed_tiles}/{progress.total_tiles} "
            f"({progress.progress_percent:.1f}%)",
            end="",
            flush=True,
        )

    runner.set_progress_callback(progress_callback)

    try:
        result = runner.run(timestamp=started)
    except KeyboardInterrupt:
        print("\nCapture interrupted; tiles and partial script left on disk.")
        return 130
    except DesktopError as e:
        print(f"\nError: {e}", file=sys.stderr)
        logger.exception("Capture failed")
        return 1
    finally:
        pop_context(keys=["run"])

    print()
    if args.dry_run:
        print(f"Dry run: {len(desktop.calls)} desktop calls recorded.")
    print(f"Composite script written to: {result.script_path}")
    print(f"Run it to build: {result.output_name}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
