"""Filesystem helpers for configuration and capture artifacts.

Provides:
    - YAML loading with validation
    - Directory creation with exist_ok semantics
    - Discovery of stale tiles from interrupted runs
    - Executable-bit marking for generated scripts

All paths use pathlib.Path for cross-platform compatibility.

Usage:
    from map_capture.utils import fs
    data = fs.load_yaml("capture.yaml")
    out_dir = fs.ensure_dir("captures/")
"""

import os
import stat
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml


def ensure_dir(p: Union[str, Path]) -> Path:
    """Create directory if it doesn't exist, return Path object.

    Parameters
    ----------
    p : Union[str, Path]
        Directory path

    Returns
    -------
    Path
        Path object (guaranteed to exist)

    Notes
    -----
    Creates parent directories as needed.
    """
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Load YAML file safely.

    Parameters
    ----------
    path : Union[str, Path]
        YAML file path

    Returns
    -------
    Dict[str, Any]
        Parsed YAML content

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    yaml.YAMLError
        If YAML parsing fails

    Notes
    -----
    Uses safe_load to prevent arbitrary code execution.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e


def make_executable(path: Union[str, Path]) -> None:
    """Add user/group/other execute bits to an existing file.

    Parameters
    ----------
    path : Union[str, Path]
        File to mark executable
    """
    path = Path(path)
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def find_stale_tiles(
    directory: Union[str, Path],
    prefix: str,
    extension: str
) -> List[Path]:
    """List tile files left behind by an earlier, interrupted run.

    Parameters
    ----------
    directory : Union[str, Path]
        Working directory of the capture run
    prefix : str
        Tile file prefix, e.g. "scr-"
    extension : str
        Tile file extension including the dot, e.g. ".png"

    Returns
    -------
    List[Path]
        Matching files sorted by name
    """
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(
        p for p in directory.glob(f"{prefix}*{extension}")
        if p.is_file() and os.access(p, os.R_OK)
    )
