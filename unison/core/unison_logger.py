"""
Centralized logging configuration for the identity service.
"""

import logging
import sys
from typing import Optional

from unison.core.config import settings

LOG_FORMAT = "%(levelname)s:     [%(name)s] %(message)s"


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name."""

    COLORS = {
        "DEBUG": "\033[94m",  # Blue
        "INFO": "\033[92m",  # Green
        "WARNING": "\033[93m",  # Yellow
        "ERROR": "\033[91m",  # Red
        "CRITICAL": "\033[95m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record):
        message = super().format(record)
        color = self.COLORS.get(record.levelname)
        if not color:
            return message
        return message.replace(
            record.levelname, f"{color}{record.levelname}{self.RESET}", 1
        )


class UnisonLogger:
    """Self-configuring logger used by services and routers."""

    _initialized = False
    _default_logger: Optional[logging.Logger] = None

    @classmethod
    def _handler(cls) -> logging.Handler:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ColoredFormatter(LOG_FORMAT))
        return handler

    @classmethod
    def _configure_root_logger(cls):
        """Apply the configured level and route fastapi logs through our formatter."""
        level = getattr(logging, settings.log_level.upper(), logging.INFO)
        logging.basicConfig(level=level)

        logging.getLogger("uvicorn").setLevel(logging.INFO)
        fastapi_logger = logging.getLogger("fastapi")
        fastapi_logger.setLevel(level)
        if not fastapi_logger.handlers:
            fastapi_logger.addHandler(cls._handler())
            fastapi_logger.propagate = False

        UnisonLogger._initialized = True

    @classmethod
    def _get_default_logger(cls) -> logging.Logger:
        if cls._default_logger is None:
            if not UnisonLogger._initialized:
                cls._configure_root_logger()

            logger = logging.getLogger("unison")
            logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
            if not logger.handlers:
                logger.addHandler(cls._handler())
            # Avoid duplicate lines through the root handler
            logger.propagate = False
            cls._default_logger = logger
        return cls._default_logger

    @classmethod
    def info(cls, message: str) -> None:
        cls._get_default_logger().info(message)

    @classmethod
    def warning(cls, message: str) -> None:
        cls._get_default_logger().warning(message)

    @classmethod
    def error(cls, message: str) -> None:
        cls._get_default_logger().error(message)

    @classmethod
    def debug(cls, message: str) -> None:
        cls._get_default_logger().debug(message)

    @classmethod
    def exception(cls, message: str) -> None:
        """Log an error with the active exception's traceback."""
        cls._get_default_logger().exception(message)

    @classmethod
    def get_fastapi_logger(cls) -> logging.Logger:
        """Get the FastAPI logger configured with our formatter."""
        if not UnisonLogger._initialized:
            cls._configure_root_logger()
        return logging.getLogger("fastapi")
