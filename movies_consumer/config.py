"""movies-consumer configuration.

Everything the service depends on is controlled by environment variables, so
it runs locally, in CI, or next to a broker without code changes.

Unlike a module full of constants, the values live on a `Settings` object that
is built once and passed to whatever needs it. Nothing here reads the
environment at import time.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field

MOVIE_TOPICS: tuple[str, ...] = ("movie-created", "movie-updated", "movie-deleted")


class Settings(BaseModel):
    """Runtime settings for the event consumer service."""

    # --- Kafka ---------------------------------------------------------------
    kafka_bootstrap_servers: str = "localhost:29092"

    # Offsets are tracked per consumer group. A new group id re-reads the topics
    # from the beginning (auto.offset.reset=earliest).
    kafka_group_id: str = "movies-consumer"

    kafka_topics: list[str] = Field(default_factory=lambda: list(MOVIE_TOPICS))

    # Upper bound of messages handed to the decoder per poll
    kafka_batch_size: int = Field(default=100, ge=1)

    # Seconds `consume()` waits for a batch before checking the stop signal
    kafka_poll_timeout: float = Field(default=1.0, gt=0)

    # --- Logging -------------------------------------------------------------
    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables.

        Unset variables keep the development defaults declared on the model.
        """
        env = os.environ if environ is None else environ
        mapping = {
            "kafka_bootstrap_servers": "KAFKA_BOOTSTRAP_SERVERS",
            "kafka_group_id": "KAFKA_GROUP_ID",
            "kafka_batch_size": "KAFKA_BATCH_SIZE",
            "kafka_poll_timeout": "KAFKA_POLL_TIMEOUT",
            "log_level": "LOG_LEVEL",
            "log_format": "LOG_FORMAT",
        }
        values: dict[str, str] = {
            field: env[name] for field, name in mapping.items() if env.get(name)
        }
        return cls.model_validate(values)
