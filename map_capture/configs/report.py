"""Settings report -- human-readable dump of the effective configuration.

Informational only: nothing in the engine depends on it being called.
The CLI prints it for ``--settings`` and logs it at DEBUG before a run.
"""

from __future__ import annotations

from io import StringIO

from map_capture.configs.loader import CaptureConfig


def format_settings(config: CaptureConfig) -> str:
    """Render the effective grid settings plus derived canvas size.

    Parameters
    ----------
    config : CaptureConfig
        Validated configuration (after CLI overrides).

    Returns
    -------
    str
        Multi-line report terminated by a newline.
    """
    g = config.grid
    out = config.output
    buf = StringIO()

    buf.write("Map capture settings\n")
    buf.write("--------------------\n")
    buf.write(f"Rows:              {g.rows}\n")
    buf.write(f"Columns:           {g.columns}\n")
    buf.write(f"Tile size:         {g.tile_width} x {g.tile_height} px\n")
    buf.write(f"X shift:           {g.x_shift} px\n")
    buf.write(f"Y shift:           {g.y_shift} px\n")
    buf.write(f"Initial X offset:  {g.origin_offset_x} px\n")
    buf.write(f"Initial Y offset:  {g.origin_offset_y} px\n")
    buf.write(f"Zoom level:        {g.zoom_steps}\n")
    buf.write("\n")
    buf.write(f"Total width:       {g.total_width} px\n")
    buf.write(f"Total height:      {g.total_height} px\n")
    buf.write(f"Tiles:             {g.tile_count}\n")
    buf.write(f"Pans:              {g.pan_count}\n")
    buf.write("\n")
    buf.write(f"Window:            {config.window.name_pattern!r}\n")
    buf.write(f"Working directory: {out.directory}\n")
    buf.write(
        f"Tile files:        {out.tile_file_name(1)} .. "
        f"{out.tile_file_name(g.tile_count)}\n"
    )
    buf.write(f"Composite script:  {out.script_name}\n")
    buf.write(f"Output image:      {out.output_template}\n")
    return buf.getvalue()
