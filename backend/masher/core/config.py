"""Application settings for the match server and tests."""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic import model_validator
from pydantic_settings import BaseSettings

DEFAULT_MAX_PLAYERS = 4
DEFAULT_ROUND_SECONDS = 10
DEFAULT_COUNTDOWN_FROM = 3


class Settings(BaseSettings):
    """Typed settings loaded from environment variables or explicit kwargs."""

    masher_app_host: str = "127.0.0.1"
    masher_app_port: int = Field(default=3000, ge=1)

    masher_cors_allow_origins: str = "*"
    masher_log_level: str = "INFO"

    masher_max_players: int = Field(default=DEFAULT_MAX_PLAYERS, ge=1)
    masher_round_seconds: int = Field(default=DEFAULT_ROUND_SECONDS, ge=1)
    masher_countdown_from: int = Field(default=DEFAULT_COUNTDOWN_FROM, ge=1)
    masher_tick_interval_seconds: float = Field(default=1.0, gt=0)
    masher_settle_delay_seconds: float = Field(default=1.0, ge=0)

    @model_validator(mode="after")
    def validate_room_rules(self) -> "Settings":
        """Reject unknown log levels and rooms that could never start."""
        level_name = self.masher_log_level.upper()
        if not isinstance(logging.getLevelName(level_name), int):
            raise ValueError(f"MASHER_LOG_LEVEL={self.masher_log_level!r} is not a logging level")
        self.masher_log_level = level_name
        if self.masher_max_players < 2:
            raise ValueError("MASHER_MAX_PLAYERS must be >= 2, a match needs two contestants")
        return self

    def cors_origins(self) -> list[str]:
        """Split the comma separated CORS origin list."""
        return [origin.strip() for origin in self.masher_cors_allow_origins.split(",") if origin.strip()]


def load_settings() -> Settings:
    """Load settings from process environment."""
    return Settings()
