"""Runtime settings for taskwire-built CLIs.

Settings are loaded from:
- environment variables
- and a local `.env` file (if present)
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class TaskwireSettings(BaseSettings):
    """Settings shared by every task dispatch.

    Environment variables:
    - TASKWIRE_LOG_LEVEL   (optional)
    - TASKWIRE_LOG_FORMAT  (optional, ``text`` or ``json``)

    Notes:
        Tests can point at a specific env file with
        `TaskwireSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="TASKWIRE_LOG_LEVEL",
        description="Root logging level",
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        validation_alias="TASKWIRE_LOG_FORMAT",
        description="Log line format written to stderr",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level == "WARN":
            level = "WARNING"
        if level not in _LEVELS:
            raise ValueError(f"log level must be one of {', '.join(_LEVELS)}")
        return level
