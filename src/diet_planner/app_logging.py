"""Logging setup for the planner service."""

import logging

LOGGER_NAME = "diet_planner"
_HANDLER_NAME = "diet_planner.stream"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def resolve_level(level: int | str) -> int:
    """Turn a level number or case-insensitive level name into a number."""
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    levels = logging.getLevelNamesMapping()
    if name not in levels:
        raise ValueError(f"Unknown log level {level!r}")
    return levels[name]


def configure_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Route package logs to stderr at ``level`` and return the package logger.

    Repeated calls only change the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_level(level))
    if any(handler.get_name() == _HANDLER_NAME for handler in logger.handlers):
        return logger
    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
