"""
Centralized logging for the GolfSim ball tracker.

One "GolfSimTracker" logger shared by the tracker and the endpoint process:
- tracker log (DEBUG+), size-rotated, rotated backups gzip-compressed
- error log (WARNING+) so failed fetches/uploads are easy to find
- stdout console (level from GOLFSIM_LOG_LEVEL, INFO by default)

Old rotated files are purged on startup after GOLFSIM_LOG_RETENTION_DAYS.
"""

import gzip
import logging
import logging.handlers
import os
import shutil
import sys
import time
from pathlib import Path
from typing import Dict

LOG_DIR: str = os.getenv("GOLFSIM_LOG_DIR", "data/logs")
LOG_FILE_PREFIX = "golfsim_tracker"

LOG_RETENTION_DAYS: int = int(os.getenv("GOLFSIM_LOG_RETENTION_DAYS", "7"))
LOG_MAX_BYTES: int = int(float(os.getenv("GOLFSIM_LOG_MAX_MB", "10")) * 1024 * 1024)
LOG_BACKUP_COUNT: int = 5
ERROR_LOG_MAX_BYTES: int = 2 * 1024 * 1024
ERROR_LOG_BACKUP_COUNT: int = 3

_FILE_FORMATTER = logging.Formatter(
    "%(asctime)s | %(levelname)-8s | %(threadName)s | %(funcName)s:%(lineno)d | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
_CONSOLE_FORMATTER = logging.Formatter("%(asctime)s | %(levelname)-8s | %(message)s", datefmt="%H:%M:%S")


def _log_paths(log_dir: str) -> Dict[str, str]:
    return {
        "main_log": os.path.join(log_dir, f"{LOG_FILE_PREFIX}.log"),
        "error_log": os.path.join(log_dir, f"{LOG_FILE_PREFIX}_error.log"),
    }


def _gzip_rotator(source: str, dest: str) -> None:
    """Compress a rotated log; fall back to a plain rename."""
    try:
        with open(source, "rb") as f_in, gzip.open(dest, "wb") as f_out:
            shutil.copyfileobj(f_in, f_out)  # type: ignore[arg-type]
        os.remove(source)
    except OSError:
        try:
            os.rename(source, dest)
        except OSError:
            pass


def _rotating_handler(path: str, level: int, max_bytes: int, backup_count: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(_FILE_FORMATTER)
    handler.namer = lambda name: name + ".gz"
    handler.rotator = _gzip_rotator
    return handler


def _purge_old_logs(log_dir: str, retention_days: int) -> int:
    """Delete tracker log files older than *retention_days*; returns the count."""
    cutoff = time.time() - retention_days * 86400
    deleted = 0
    for log_file in Path(log_dir).glob(f"{LOG_FILE_PREFIX}*"):
        try:
            if log_file.stat().st_mtime < cutoff:
                log_file.unlink()
                deleted += 1
        except OSError:
            pass  # removed concurrently by the other process
    return deleted


def setup_logging(
    log_dir: str = LOG_DIR,
    retention_days: int = LOG_RETENTION_DAYS,
    console_level: int = logging.INFO,
) -> logging.Logger:
    """
    Build the shared application logger (idempotent).

    Args:
        log_dir: Directory for log files
        retention_days: Days to keep old log files
        console_level: Minimum level for console output
    """
    app_logger = logging.getLogger("GolfSimTracker")
    if app_logger.handlers:
        return app_logger

    Path(log_dir).mkdir(parents=True, exist_ok=True)
    purged = _purge_old_logs(log_dir, retention_days)

    app_logger.setLevel(logging.DEBUG)
    app_logger.propagate = False

    paths = _log_paths(log_dir)
    app_logger.addHandler(_rotating_handler(paths["main_log"], logging.DEBUG, LOG_MAX_BYTES, LOG_BACKUP_COUNT))
    app_logger.addHandler(
        _rotating_handler(paths["error_log"], logging.WARNING, ERROR_LOG_MAX_BYTES, ERROR_LOG_BACKUP_COUNT)
    )

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(console_level)
    console.setFormatter(_CONSOLE_FORMATTER)
    app_logger.addHandler(console)

    app_logger.info(
        "[Logging] Initialised - dir=%s, rotation=%.1f MB x %d, retention=%d days, purged=%d",
        log_dir, LOG_MAX_BYTES / (1024 * 1024), LOG_BACKUP_COUNT, retention_days, purged,
    )
    return app_logger


logger = setup_logging(console_level=getattr(logging, os.getenv("GOLFSIM_LOG_LEVEL", "INFO").upper(), logging.INFO))


def get_log_file_paths() -> Dict[str, str]:
    """Active log files that exist on disk (reported by /health)."""
    return {name: path for name, path in _log_paths(LOG_DIR).items() if os.path.isfile(path)}


def reconfigure_console_level(level: int = logging.INFO) -> None:
    """Change the console handler level at runtime (``main.py --verbose``)."""
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(level)
    logger.info("[Logging] Console level changed to %s", logging.getLevelName(level))
