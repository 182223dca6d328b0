"""Environment-driven settings for the order service."""

import os
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class Settings(BaseModel):
    """Runtime settings.

    Attributes:
        service_name: Name used to tag log records.
        log_level: Minimum loguru level.
        log_file: Optional path of a rotating log file.
        log_json: Emit serialised JSON log records.
        kafka_bootstrap_servers: Kafka brokers; event publishing is disabled when unset.
        default_page_size: Page size used when the caller gives none.
        max_page_size: Upper bound page sizes are clamped to.
        host: Address uvicorn binds to.
        port: Port uvicorn listens on.
    """

    service_name: str = "order-service"
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_json: bool = False
    kafka_bootstrap_servers: Optional[str] = None
    default_page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1)
    max_page_size: int = Field(MAX_PAGE_SIZE, ge=1)
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        values = {
            "service_name": os.getenv("SERVICE_NAME"),
            "log_level": os.getenv("LOG_LEVEL"),
            "log_file": os.getenv("LOG_FILE"),
            "log_json": os.getenv("LOG_JSON", "false").lower() == "true",
            "kafka_bootstrap_servers": os.getenv("KAFKA_BOOTSTRAP_SERVERS"),
            "default_page_size": os.getenv("DEFAULT_PAGE_SIZE"),
            "max_page_size": os.getenv("MAX_PAGE_SIZE"),
            "host": os.getenv("HOST"),
            "port": os.getenv("PORT"),
        }
        return cls(**{key: value for key, value in values.items() if value not in (None, "")})
