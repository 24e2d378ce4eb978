"""File logging helpers: per-run log files grouped by day, and retention cleanup."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from pathlib import Path


class DateStampedFileHandler(logging.FileHandler):
    """Write to ``<directory>/<YYYY-MM-DD>/<prefix>_<time>_<tz>.log``.

    The date folder and file name use ``tz`` (the host's local zone when
    omitted) so that a day's runs land together.
    """

    def __init__(
        self,
        directory: str | Path,
        *,
        prefix: str = "reader",
        tz: tzinfo | None = None,
        current_time: datetime | None = None,
        encoding: str | None = "utf-8",
        delay: bool = False,
    ) -> None:
        moment = current_time or datetime.now(timezone.utc)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        local_time = moment.astimezone(tz) if tz is not None else moment.astimezone()
        tz_name = (local_time.tzname() or "local").replace(" ", "")

        day_dir = Path(directory).resolve() / local_time.strftime("%Y-%m-%d")
        file_name = f"{prefix}_{local_time.strftime('%Y-%m-%d_%H-%M-%S')}_{tz_name}.log"
        day_dir.mkdir(parents=True, exist_ok=True)

        super().__init__(day_dir / file_name, mode="a", encoding=encoding, delay=delay)


def cleanup_old_logs(
    log_directories: list[str | Path],
    retention_hours: int,
    logger: logging.Logger | None = None,
    *,
    now: datetime | None = None,
) -> tuple[int, int]:
    """Delete ``*.log`` files older than ``retention_hours`` and prune empty day folders.

    A retention of 0 disables cleanup. Returns ``(files_deleted, errors)``.
    """
    if retention_hours <= 0:
        return (0, 0)

    cutoff = (now or datetime.now(timezone.utc)) - timedelta(hours=retention_hours)
    deleted = 0
    errors = 0

    for directory in log_directories:
        root = Path(directory).resolve()
        if not root.is_dir():
            continue

        for log_file in root.rglob("*.log"):
            try:
                modified = datetime.fromtimestamp(log_file.stat().st_mtime, tz=timezone.utc)
                if modified < cutoff:
                    log_file.unlink()
                    deleted += 1
                    if logger:
                        logger.debug("Deleted old log file: %s", log_file)
            except OSError as exc:
                errors += 1
                if logger:
                    logger.warning("Failed to delete %s: %s", log_file, exc)

        for day_dir in root.iterdir():
            if day_dir.is_dir() and not any(day_dir.iterdir()):
                try:
                    day_dir.rmdir()
                except OSError as exc:
                    if logger:
                        logger.debug("Could not remove %s: %s", day_dir, exc)

    if logger and deleted:
        logger.info("Log cleanup removed %d file(s), %d error(s)", deleted, errors)

    return (deleted, errors)


__all__ = ["DateStampedFileHandler", "cleanup_old_logs"]
