from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from chatmem.utils.env_cfg import load_path_env

# Sinks added by setup_logging, replaced on each call.
_handler_ids: list[int] = []


def setup_logging(
    level: str = "INFO",
    to_stderr: bool = True,
    encoding: str = "utf-8",
    rotation: str = "5 MB",
    retention: int = 3,
) -> Path:
    """
    Turn on chatmem's log output for the host application.

    The package logs nothing until this is called. Only chatmem records reach the
    sinks added here, and sinks the host configured itself are left alone.
    Calling it again replaces the previous chatmem sinks.

    Args:
        level (str, optional): Minimum level written to stderr. Defaults to "INFO".
        to_stderr (bool, optional): Whether to add a stderr sink. Defaults to True.
        encoding (str, optional): The log file encoding. Defaults to "utf-8".
        rotation (str, optional): The log file rotation policy. Defaults to "5 MB".
        retention (int, optional): The number of log files to retain. Defaults to 3.

    Returns:
        Path: The path to the log file.
    """
    log_path = load_path_env().logs

    for handler_id in _handler_ids:
        logger.remove(handler_id)
    _handler_ids.clear()

    if to_stderr:
        _handler_ids.append(
            logger.add(
                sink=sys.stderr,
                level=level,
                filter="chatmem",
                format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name} | {message}",
            )
        )

    _handler_ids.append(
        logger.add(
            sink=log_path,
            rotation=rotation,
            retention=retention,
            encoding=encoding,
            level="DEBUG",
            filter="chatmem",
            enqueue=True,
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {line:<4} | {name} | {message}",
        )
    )

    logger.enable("chatmem")
    return log_path
