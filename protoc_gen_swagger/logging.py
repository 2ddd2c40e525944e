"""Logging utilities for the protoc-gen-swagger plugin."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "protoc_gen_swagger"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the plugin hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *,
    verbosity: int = 0,
    to_stderr: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the plugin logger.

    stdout carries the serialized response, so console output always goes to
    stderr. Without ``to_stderr`` only warnings and above reach the console.
    """
    level = logging.DEBUG if verbosity >= 1 else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so reconfiguring after parameter dispatch does not duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(level if to_stderr else logging.WARNING)
    stream_handler.setFormatter(
        logging.Formatter("[protoc-gen-swagger] %(levelname)s %(message)s")
    )
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
