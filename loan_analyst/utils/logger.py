"""
Logging utilities
"""

import logging
import sys
from typing import Optional, Union


def setup_logger(
    name: Optional[str] = None,
    level: Union[int, str] = logging.INFO,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Setup logger with consistent formatting

    Args:
        name: Logger name (None configures the root logger)
        level: Logging level, as a number or a name such as "INFO"
        format_string: Custom format string

    Returns:
        Configured logger instance
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid duplicate handlers
    if not logger.handlers:
        # stderr keeps stdout free for the MCP stdio transport
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)

        formatter = logging.Formatter(format_string)
        handler.setFormatter(formatter)

        logger.addHandler(handler)

    return logger
