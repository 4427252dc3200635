"""
Centralized logging configuration for circmap

This module provides a centralized logging configuration that can be used
across all modules. The logging level can be controlled via the CIRCMAP_LOG_LEVEL
environment variable, and individual debug categories can be switched on with
enable_debug() (the CLI exposes this as --debug).

Environment Variables:
    CIRCMAP_LOG_LEVEL: Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
                       Default: WARNING

Examples:
    >>> from circmap.logging_config import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.warning("sequence length mismatch")

    # Turn on packing and coordinate debug output only:
    >>> from circmap.logging_config import enable_debug
    >>> enable_debug(["packing", "coordinates"])
"""

import logging
import os

# Debug categories and the loggers that emit them
DEBUG_CATEGORIES = {
    "coordinates": ("circmap.transform", "circmap.layout", "circmap.glyphs.ruler"),
    "input": ("circmap.assembly", "circmap.io"),
    "loops": ("circmap.tracks",),
    "misc": ("circmap.functions", "circmap.glyphs.graph", "circmap.rendering"),
    "packing": ("circmap.packing", "circmap.glyphs.label"),
    "tracks": ("circmap.renderer", "circmap.pipeline", "circmap.cache"),
}


def get_logger(name: str) -> logging.Logger:
    """
    Get or create a logger with the specified name

    Creates a logger with a consistent format and configurable logging level.
    The logging level is controlled by the CIRCMAP_LOG_LEVEL environment variable.

    Args:
        name: Logger name (typically __name__ from the calling module)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only configure if logger hasn't been configured yet
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        level_name = os.getenv("CIRCMAP_LOG_LEVEL", "WARNING").upper()

        try:
            level = getattr(logging, level_name)
            logger.setLevel(level)
        except AttributeError:
            logger.setLevel(logging.WARNING)
            logger.warning(
                f"Invalid CIRCMAP_LOG_LEVEL '{level_name}'. Using WARNING instead. "
                f"Valid levels: DEBUG, INFO, WARNING, ERROR, CRITICAL"
            )

    return logger


def enable_debug(categories: list[str]) -> list[str]:
    """
    Switch the loggers behind one or more debug categories to DEBUG

    Logger names are matched by prefix, so enabling "input" also covers
    every reader module under circmap.io.

    Args:
        categories: Category names from DEBUG_CATEGORIES, or "all"

    Returns:
        Logger names that were switched to DEBUG

    Raises:
        ValueError: If a category is not recognized
    """
    selected = set()
    for category in categories:
        category = category.strip().lower()
        if not category:
            continue
        if category == "all":
            selected.update(DEBUG_CATEGORIES)
            continue
        if category not in DEBUG_CATEGORIES:
            valid = ", ".join(["all", *DEBUG_CATEGORIES])
            raise ValueError(
                f"Unknown debug category: {category}. Valid categories: {valid}"
            )
        selected.add(category)

    enabled = []
    for category in sorted(selected):
        for name in DEBUG_CATEGORIES[category]:
            logging.getLogger(name).setLevel(logging.DEBUG)
            enabled.append(name)

    # Child loggers created before this call keep their own level
    for name, existing in logging.Logger.manager.loggerDict.items():
        if isinstance(existing, logging.Logger) and any(
            name.startswith(prefix + ".") for prefix in enabled
        ):
            existing.setLevel(logging.DEBUG)

    return enabled
