"""
Logging set-up for the worker.

Console output always goes to stderr. When a log file is configured a second,
rotating sink is added so that long-running workers keep a bounded history on
disk. Every record carries `extra[job_id]`, bound by the processor while a job
runs and "-" otherwise.
"""
import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from ..config.common import LOG_RETENTION, LOG_ROTATION, LOGGER_FORMAT


def configure_logging(
    level: str,
    log_file: Optional[Union[str, Path]] = None,
    rotation: Union[str, int] = LOG_ROTATION,
    retention: Union[str, int] = LOG_RETENTION,
) -> None:
    """
    (Re)configures the loguru sinks.

    Can be called more than once: existing sinks are removed first, which is
    how `main` applies the level from the settings after an initial bootstrap
    configuration.

    Args:
        level: Minimum level for all sinks, e.g. "INFO".
        log_file: Optional path of a rotating log file.
        rotation: When to rotate the file (size or time, loguru syntax).
        retention: How many rotated files (or how long) to keep.
    """
    logger.remove()
    logger.configure(extra={"job_id": "-"})
    logger.add(sys.stderr, level=level, format=LOGGER_FORMAT)
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file),
            level=level,
            format=LOGGER_FORMAT,
            rotation=rotation,
            retention=retention,
            enqueue=True,
        )
