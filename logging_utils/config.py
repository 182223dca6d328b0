"""Logging configuration module for the order service."""

import sys
from typing import Optional

from loguru import logger as loguru_logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[service]}</cyan> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[service]} | {name}:{function}:{line} - {message}"


def setup_service_logger(
    service_name: str,
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    serialize: bool = False,
) -> loguru_logger:
    """Configure a logger for the service with standardized settings.

    Args:
        service_name: Name of the service (e.g., 'order-service')
        log_level: Logging level (default: INFO)
        log_file: Optional path to log file
        serialize: Emit one JSON document per record instead of coloured text

    Returns:
        logger: Configured loguru logger instance
    """
    # Remove any existing handlers
    loguru_logger.remove()
    loguru_logger.configure(extra={"service": service_name})

    if serialize:
        loguru_logger.add(sys.stderr, level=log_level, serialize=True, enqueue=True)
    else:
        loguru_logger.add(
            sys.stderr,
            level=log_level,
            format=CONSOLE_FORMAT,
            colorize=True,
            enqueue=True,
            backtrace=True,
            diagnose=True,
        )

    if log_file:
        loguru_logger.add(
            log_file,
            level=log_level,
            format=FILE_FORMAT,
            serialize=serialize,
            rotation="10 MB",
            retention="1 week",
            compression="gz",
        )

    return loguru_logger.bind(service=service_name)


def get_kafka_logger(service_name: str) -> loguru_logger:
    """Get a logger tagged for Kafka operations.

    Handlers are shared with the service logger, so call
    ``setup_service_logger`` first.

    Args:
        service_name: Name of the service

    Returns:
        logger: Logger bound with the Kafka service name
    """
    return loguru_logger.bind(service=f"{service_name}.kafka")
