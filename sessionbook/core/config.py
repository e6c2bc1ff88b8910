# sessionbook/core/config.py
import json
import logging
import os
from typing import List, Literal

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_FIRST_SESSION_HOUR,
    DEFAULT_LAST_SESSION_HOUR,
    DEFAULT_MAX_LANES,
    DEFAULT_MIN_LANES,
    DEFAULT_POSTING_WAIT_DAYS,
    DEFAULT_SLOT_COLOR,
    DEFAULT_WEEKS_LOOKAHEAD,
)

logger = logging.getLogger(__name__)


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


class Settings(BaseSettings):
    environment: Literal["development", "testing", "production"] = Field(
        default="development", description="Deployment environment"
    )
    database_url: str = Field(
        default="sqlite:///./sessionbook.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements to the log")
    log_level: str = Field(default="INFO", description="Root log level")

    # Posting policy
    posting_wait_days: int = Field(
        default=DEFAULT_POSTING_WAIT_DAYS,
        ge=0,
        description="Days a student waits after a session before posting availability",
    )

    # Weekly grid
    max_lanes: int = Field(
        default=DEFAULT_MAX_LANES, ge=1, description="Display ceiling for lanes in one day"
    )
    min_lanes: int = Field(default=DEFAULT_MIN_LANES, ge=0, description="Display floor for lanes")
    first_session_hour: int = Field(default=DEFAULT_FIRST_SESSION_HOUR, ge=0, le=23)
    last_session_hour: int = Field(default=DEFAULT_LAST_SESSION_HOUR, ge=0, le=23)
    weeks_lookahead: int = Field(default=DEFAULT_WEEKS_LOOKAHEAD, ge=0)
    week_start_weekday: int = Field(
        default=0, ge=0, le=6, description="First weekday shown in the grid (0=Monday)"
    )
    lane_policy: Literal["first_fit", "last_free_lane"] = Field(
        default="first_fit",
        description="Lane placement policy for the weekly grid",
    )

    # Slot colors
    slot_color: str = Field(default=DEFAULT_SLOT_COLOR)
    slot_colors: List[str] = Field(
        default_factory=list,
        description="Palette assigned to students in enrolment order",
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("slot_colors", mode="before")
    @classmethod
    def _parse_slot_colors(cls, value: object) -> object:
        if isinstance(value, str):
            cleaned = value.strip()
            if not cleaned:
                return []
            if cleaned.startswith("["):
                return json.loads(cleaned)
            return [item.strip() for item in cleaned.split(",") if item.strip()]
        return value

    @field_validator("last_session_hour")
    @classmethod
    def _validate_hour_order(cls, value: int, info: ValidationInfo) -> int:
        first = info.data.get("first_session_hour", DEFAULT_FIRST_SESSION_HOUR)
        if value < first:
            raise ValueError("last_session_hour must not be earlier than first_session_hour")
        return value

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing" or is_running_tests()


settings = Settings()
logger.debug(
    "[CONFIG] lane_policy=%s max_lanes=%s posting_wait_days=%s",
    settings.lane_policy,
    settings.max_lanes,
    settings.posting_wait_days,
)
