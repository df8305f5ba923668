"""Logging setup driven by a level filter read from the environment."""

from __future__ import annotations

import datetime
import logging
import logging.handlers
import os
import sys
from pathlib import Path

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

DEFAULT_FILTER = "theseus=info"
FILTER_ENV_VAR = "THESEUS_LOG"
LOG_FILE_NAME = "theseus.log"

_LEVELS = {
    "off": logging.CRITICAL + 10,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}


def parse_log_filter(spec: str) -> dict[str | None, int]:
    """Parse a filter such as ``"info,theseus=trace"`` into target -> level.

    The key ``None`` holds the default level for every target. A bare target
    name without a level enables everything for that target.
    """
    directives: dict[str | None, int] = {}
    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue
        target, sep, level_name = part.rpartition("=")
        if sep:
            target = target.strip()
            if not target:
                raise ValueError(f"missing target in filter directive: {part!r}")
            level = _LEVELS.get(level_name.strip().lower())
            if level is None:
                raise ValueError(f"invalid log level in filter directive: {part!r}")
            directives[target] = level
        elif part.lower() in _LEVELS:
            directives[None] = _LEVELS[part.lower()]
        else:
            directives[part] = TRACE
    if not directives:
        raise ValueError("empty log filter")
    return directives


def _filter_from_env() -> dict[str | None, int]:
    spec = os.environ.get(FILTER_ENV_VAR)
    if spec is not None:
        try:
            return parse_log_filter(spec)
        except ValueError:
            pass
    return parse_log_filter(DEFAULT_FILTER)


class _DirectiveFilter(logging.Filter):
    """Passes a record if the most specific matching directive allows its level."""

    def __init__(self, directives: dict[str | None, int]) -> None:
        super().__init__()
        self._directives = dict(directives)

    def filter(self, record: logging.LogRecord) -> bool:
        best_level = None
        best_len = -1
        for target, level in self._directives.items():
            if target is None:
                length = 0
            elif record.name == target or record.name.startswith(target + "."):
                length = len(target)
            else:
                continue
            if length > best_len:
                best_len, best_level = length, level
        return best_level is not None and record.levelno >= best_level


class _Rfc3339Formatter(logging.Formatter):
    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = datetime.datetime.fromtimestamp(record.created).astimezone()
        return stamp.isoformat(timespec="microseconds")


_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _install(handler: logging.Handler, directives: dict[str | None, int]) -> None:
    handler.addFilter(_DirectiveFilter(directives))
    root = logging.getLogger()
    root.addHandler(handler)
    for target, level in directives.items():
        (logging.getLogger(target) if target else root).setLevel(level)


def start_logger(logs_dir: str | os.PathLike | None = None, debug: bool = False):
    """Install logging.

    In debug mode records go to the console and ``None`` is returned. Otherwise
    they go to a daily rotating ``theseus.log`` in ``logs_dir`` and the file
    handler is returned; with no logs directory nothing is installed.
    """
    directives = _filter_from_env()
    if debug:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        _install(handler, directives)
        return None

    if logs_dir is None:
        print("Could not start logger", file=sys.stderr)
        return None

    directory = Path(logs_dir)
    directory.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.TimedRotatingFileHandler(
        directory / LOG_FILE_NAME, when="midnight", encoding="utf-8"
    )
    file_handler.setFormatter(_Rfc3339Formatter(_FORMAT))
    _install(file_handler, directives)
    return file_handler