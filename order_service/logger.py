"""Logger module for logging messages."""

from logging_utils.config import get_kafka_logger, setup_service_logger

from .config import Settings

_settings = Settings.from_env()

logger = setup_service_logger(
    _settings.service_name,
    log_level=_settings.log_level,
    log_file=_settings.log_file,
    serialize=_settings.log_json,
)

kafka_logger = get_kafka_logger(_settings.service_name)

__all__ = ["logger", "kafka_logger"]
