# ccruntime/logs.py
from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

LEVEL_ENV = "CC_RUNTIME_LOG_LEVEL"
DEFAULT_LEVEL = "WARNING"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_FORMAT = logging.Formatter(
    fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def setup_logging(
    level: str | None = None, file_path: str | os.PathLike[str] | None = None
) -> Path | None:
    """
    Configures logging for one cc-runtime invocation:
      - stderr handler always (stdout carries the report)
      - global log file if configured, rotated at 1 MB, 5 files kept
      - format: ts level logger msg
    Level comes from `level`, then CC_RUNTIME_LOG_LEVEL (default WARNING);
    an unknown level falls back to WARNING.
    The stderr handler is installed once; the log file can be attached later
    through attach_log_file() when its path is only known after the config
    has been read.
    Returns the log file in use, if any.
    """
    root = logging.getLogger()
    if not getattr(root, "_ccruntime_configured", False):
        requested = (level or os.environ.get(LEVEL_ENV) or DEFAULT_LEVEL).upper()
        log_level = requested if requested in LEVELS else DEFAULT_LEVEL
        root.setLevel(log_level)

        ch = logging.StreamHandler()
        ch.setFormatter(_FORMAT)
        ch.setLevel(log_level)
        root.addHandler(ch)

        root._ccruntime_configured = True  # type: ignore[attr-defined]
        if requested != log_level:
            logging.getLogger(__name__).warning(
                "Unknown log level %r, using %s", requested, DEFAULT_LEVEL
            )
        logging.getLogger(__name__).debug("Logging initialized at %s", log_level)

    if file_path:
        return attach_log_file(file_path)
    return getattr(root, "_ccruntime_log_file", None)


def attach_log_file(file_path: str | os.PathLike[str]) -> Path | None:
    """Add the rotating global log file; a file that cannot be opened is skipped."""
    root = logging.getLogger()
    current = getattr(root, "_ccruntime_log_file", None)
    if current is not None:
        return current

    log_file = Path(file_path)
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=1_000_000, backupCount=5, encoding="utf-8"
        )
    except OSError as err:
        logging.getLogger(__name__).warning("Cannot open log file %s: %s", log_file, err)
        return None

    fh.setFormatter(_FORMAT)
    fh.setLevel(root.level)
    root.addHandler(fh)
    root._ccruntime_log_file = log_file  # type: ignore[attr-defined]
    logging.getLogger(__name__).debug("Logging to file %s", log_file)
    return log_file
