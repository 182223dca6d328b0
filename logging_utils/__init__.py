"""Logging utilities for the order service."""

from .config import get_kafka_logger, setup_service_logger

__all__ = [
    "setup_service_logger",
    "get_kafka_logger",
]
