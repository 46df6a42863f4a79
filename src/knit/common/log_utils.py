"""
Logging utilities for Knit

Provides consistent log formatting and truncation capabilities.
"""

import logging
import os
from typing import Any, Optional

LOG_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
)


class TruncatingFormatter(logging.Formatter):
    """Custom formatter that truncates long values in log messages"""

    def __init__(
        self,
        *args: Any,
        max_length: int = 200,
        truncate_enabled: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.max_length = max_length
        self.truncate_enabled = truncate_enabled

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)

        if self.truncate_enabled and len(msg) > self.max_length:
            # Keep timestamp, name, level and location; shorten only the message
            parts = msg.split(" - ", 4)
            if len(parts) >= 5:
                prefix = " - ".join(parts[:4])
                message = parts[4]
                if len(message) > self.max_length:
                    msg = f"{prefix} - {message[: self.max_length]}... [truncated]"

        return msg


def truncate_value(value: Any, max_length: int = 100) -> str:
    """Truncate a value for logging purposes

    Args:
        value: Value to truncate
        max_length: Maximum length before truncation

    Returns:
        String representation of value, truncated if necessary
    """
    if value is None:
        return "None"

    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")

    str_val = value if isinstance(value, str) else str(value)
    if len(str_val) > max_length:
        return f"{str_val[:max_length]}... [{len(str_val)} chars total]"
    return str_val


def setup_logger(
    name: str,
    log_file: Optional[str] = None,
    level: int = logging.INFO,
    truncate: bool = True,
    max_length: int = 200,
) -> logging.Logger:
    """Set up a logger with consistent formatting and truncation

    Args:
        name: Logger name
        log_file: Path to log file; logs go to stderr when omitted
        level: Logging level
        truncate: Whether to enable truncation
        max_length: Maximum line length before truncation

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Only add handler if logger doesn't already have handlers
    if not logger.handlers:
        handler: logging.Handler
        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            handler = logging.FileHandler(log_file, mode="a")
        else:
            handler = logging.StreamHandler()
        handler.setLevel(level)

        formatter = TruncatingFormatter(
            LOG_FORMAT,
            max_length=max_length,
            truncate_enabled=truncate,
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
