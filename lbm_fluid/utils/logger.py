"""
Utils for logging.
"""

import logging
import os

__all__ = [
    "basic_config",
    "dotted",
]


def basic_config(logger=None, level=None):
    """
    Set up the logger configuration.

    Parameters
    ----------
    logger : logging.Logger, optional
        The logger to configure. If None, the root logger is used.
    level : int or str, optional
        The log level. If None, read from the LOG_LEVEL environment
        variable (default INFO).
    """
    logger = logger or logging.getLogger()

    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    if not isinstance(level, int):
        raise TypeError(f"Expected int, str or None for level, got {level!r}")

    for h in list(logger.handlers):
        logger.removeHandler(h)

    fmt = "{asctime:s} - {levelname:5.5s} - [{module}] {message}"
    formatter = logging.Formatter(fmt=fmt, style="{")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    logger.setLevel(level)
    logger.addHandler(handler)


def dotted(logger, label, value, units="", width=40, level=logging.INFO):
    """
    Log a value with some formatting to align consecutive calls.

        dotted(logger, "nx", 60)
        dotted(logger, "omega", 1.0)

        # output:
        # nx ..................................... 60
        # omega ................................. 1.0

    Parameters
    ----------
    logger : logging.Logger
        The logger to write to
    label : str
        The label for the value
    value : object
        The value to log
    units : str
        Optional units for the value
    width : int
        The width of the label and value (not the units)
    level : int
        The log level to use
    """
    value = str(value)
    dots = max(width - len(label) - len(value) - 2, 3)
    logger.log(level, f"{label} {'.' * dots} {value} {units}".rstrip())
