"""Parse the plain-text logging settings file."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

_LEVEL_MAP: dict[str, int | None] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "off": None,
}

_LEVEL_KEYS = ("terminal", "file")
_DEFAULT_LEVELS: dict[str, str] = {"terminal": "info", "file": "off"}
_DEFAULT_RETENTION_HOURS = 72


@dataclass(frozen=True)
class LoggingSettings:
    terminal_level: int | None
    file_level: int | None
    retention_hours: int

    @property
    def file_enabled(self) -> bool:
        return self.file_level is not None


def _resolve_level(key: str, value: str) -> int | None:
    normalized = value.strip().lower()
    if normalized in _LEVEL_MAP:
        return _LEVEL_MAP[normalized]
    return _LEVEL_MAP[_DEFAULT_LEVELS[key]]


def parse_logging_settings(path: Path) -> LoggingSettings:
    """Read ``key = value`` lines; unknown keys and malformed lines are ignored.

    Recognised keys are ``terminal`` and ``file`` (``debug``, ``info``,
    ``warning``, ``error`` or ``off``) and ``retention_hours``.
    """

    levels = {key: _LEVEL_MAP[_DEFAULT_LEVELS[key]] for key in _LEVEL_KEYS}
    retention_hours = _DEFAULT_RETENTION_HOURS

    if path.exists():
        for raw_line in path.read_text(encoding="utf-8").splitlines():
            line = raw_line.split("#", 1)[0].strip()
            if "=" not in line:
                continue
            key, value = (part.strip() for part in line.split("=", 1))
            key = key.lower()
            if key == "retention_hours":
                try:
                    retention_hours = max(0, int(value))
                except ValueError:
                    retention_hours = _DEFAULT_RETENTION_HOURS
            elif key in _LEVEL_KEYS:
                levels[key] = _resolve_level(key, value)

    return LoggingSettings(
        terminal_level=levels["terminal"],
        file_level=levels["file"],
        retention_hours=retention_hours,
    )


__all__ = ["LoggingSettings", "parse_logging_settings"]
