"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with LIVEFEED_ prefix.
No config files and nothing on disk: the hub is entirely in memory.

Learn: The listening port is the one setting hosting platforms inject
themselves, so it is also read from a plain PORT variable.
"""

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All app configuration. Set via LIVEFEED_* env vars."""

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("PORT", "LIVEFEED_PORT"),
    )

    # Hub
    heartbeat_interval: float = 15.0  # seconds between ping frames
    subscriber_queue_size: int = 256  # frames buffered per subscriber

    # Ingest
    max_body_bytes: int = 1024 * 1024

    # CORS: the feed is meant to be embedded anywhere
    cors_origins: list[str] = ["*"]

    # Security headers: CSP frame-ancestors value (space-separated sources)
    frame_ancestors: str = "*"

    model_config = {"env_prefix": "LIVEFEED_", "populate_by_name": True}

    @model_validator(mode="after")
    def validate_hub_settings(self):
        """Reject values that would make the hub spin or drop everything."""
        if self.heartbeat_interval <= 0:
            raise ValueError("LIVEFEED_HEARTBEAT_INTERVAL must be positive")
        if self.subscriber_queue_size < 1:
            raise ValueError("LIVEFEED_SUBSCRIBER_QUEUE_SIZE must be at least 1")
        if self.max_body_bytes < 1:
            raise ValueError("LIVEFEED_MAX_BODY_BYTES must be at least 1")
        return self


# Singleton — import this everywhere
settings = Settings()
