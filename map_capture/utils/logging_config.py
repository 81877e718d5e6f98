"""Logging setup for the capture entrypoints.

One call configures the root logger for a capture run:
    - Console handler on stderr, optionally coloured
    - Optional log file, human-readable or JSON lines
    - Contextual fields (app, run) prefixed to every record
    - Python warnings routed into logging

Public API:
    setup_logging(log_level="INFO", context={"app": "map-capture"})
    push_context(run="20261019-101500")
    pop_context(keys=["run"])

Format examples:
    Human: 2026-10-19T10:15:00.123Z | INFO     | app=map-capture run=... | Tile 3/35
    JSON: {"t": "2026-10-19T10:15:00.123000+00:00", "lvl": "INFO", "app": "map-capture", ...}

Calling setup_logging() again replaces the handlers it installed
earlier instead of stacking new ones.
"""

import contextvars
import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


_context_var: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    'map_capture_log_context', default={}
)

# Handlers installed by setup_logging(), removed on the next call
_installed: List[logging.Handler] = []

_LEVEL_COLORS = {
    'DEBUG': '\033[36m',
    'INFO': '\033[32m',
    'WARNING': '\033[33m',
    'ERROR': '\033[31m',
    'CRITICAL': '\033[35m',
}
_RESET = '\033[0m'


class ContextFormatter(logging.Formatter):
    """Render records with the current context fields.

    Parameters
    ----------
    fmt_mode : str
        "human" for pipe-separated lines, "json" for one object per line
    use_color : bool
        Colour the level name; ignored unless stderr is a terminal
    tz : str
        "UTC" or "local" timestamps
    """

    def __init__(
        self,
        fmt_mode: str = "human",
        use_color: bool = True,
        tz: str = "UTC"
    ):
        super().__init__()
        if fmt_mode not in ("human", "json"):
            raise ValueError(f"fmt_mode must be 'human' or 'json', got {fmt_mode!r}")
        self.fmt_mode = fmt_mode
        self.use_color = use_color and sys.stderr.isatty()
        self.tz = tz

    def _timestamp(self, record: logging.LogRecord) -> datetime:
        if self.tz == "UTC":
            return datetime.fromtimestamp(record.created, tz=timezone.utc)
        return datetime.fromtimestamp(record.created)

    def format(self, record: logging.LogRecord) -> str:
        context = _context_var.get()
        ts = self._timestamp(record)
        if self.fmt_mode == "json":
            return self._as_json(record, ts, context)
        return self._as_text(record, ts, context)

    def _as_json(self, record: logging.LogRecord, ts: datetime, context: dict) -> str:
        payload: Dict[str, Any] = {
            't': ts.isoformat(),
            'lvl': record.levelname,
            'name': record.name,
            'pid': os.getpid(),
        }
        payload.update(context)
        payload['msg'] = record.getMessage()
        if record.exc_info:
            payload['exc'] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)

    def _as_text(self, record: logging.LogRecord, ts: datetime, context: dict) -> str:
        level = f"{record.levelname:8s}"
        if self.use_color and record.levelname in _LEVEL_COLORS:
            level = f"{_LEVEL_COLORS[record.levelname]}{level}{_RESET}"

        fields = [ts.strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z', level]
        if context:
            fields.append(' '.join(f"{k}={v}" for k, v in context.items()))
        fields.append(record.getMessage())

        line = ' | '.join(fields)
        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    tz: str = "UTC",
    capture_warnings: bool = True,
    context: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Configure the root logger for a capture run.

    Parameters
    ----------
    log_level : str
        "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL"
    log_file : str, optional
        Also write records to this file; parent directories are created
    json : bool
        JSON lines in the log file instead of human-readable text
    color : bool
        Coloured level names on the console
    to_stderr : bool
        Install the console handler
    tz : str
        "UTC" (default) or "local" timestamps
    capture_warnings : bool
        Route ``warnings.warn`` through the "py.warnings" logger
    context : dict, optional
        Fields pushed before the first record, e.g. {"app": "map-capture"}

    Returns
    -------
    dict
        {"handlers": [...]} with the handlers installed by this call
    """
    root = logging.getLogger()
    for handler in _installed:
        root.removeHandler(handler)
        handler.close()
    _installed.clear()

    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level!r}")
    root.setLevel(level)

    if to_stderr:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ContextFormatter("human", color, tz))
        _installed.append(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding='utf-8')
        file_handler.setFormatter(
            ContextFormatter("json" if json else "human", use_color=False, tz=tz)
        )
        _installed.append(file_handler)

    for handler in _installed:
        root.addHandler(handler)

    if context:
        push_context(**context)

    if capture_warnings:
        logging.captureWarnings(True)

    return {'handlers': list(_installed)}


def push_context(**kwargs) -> None:
    """Add fields to every subsequent record in this context.

    Examples
    --------
    >>> push_context(run="20261019-101500")
    >>> logger.info("Tile 1/35")  # -> "... | app=map-capture run=20261019-101500 | Tile 1/35"
    """
    _context_var.set({**_context_var.get(), **kwargs})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Remove context fields.

    Parameters
    ----------
    keys : list[str], optional
        Fields to drop; None clears everything
    """
    if keys is None:
        _context_var.set({})
        return
    _context_var.set(
        {k: v for k, v in _context_var.get().items() if k not in keys}
    )
