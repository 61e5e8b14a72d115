"""Planner configuration loaded from environment variables.

Every field has a default that reproduces the fixed behaviour of the planner
(wake 05:00, sleep 23:00, 30 minute transit buffer, 10 minute breaks), so the
package works without any configuration at all.
"""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings


class SundayPolicy(str, Enum):
    """How a calendar Sunday is matched against the 2..7 class timetable."""

    # Sunday reuses Saturday's classes (historical behaviour)
    AS_SATURDAY = "as-saturday"
    # Sunday never has classes
    FREE_DAY = "free-day"


class PlannerConfig(BaseSettings):
    """Planner configuration loaded from environment variables.

    For local development, create a .env file in the project root, e.g.

        STUDYPLANNER_DATA_DIR=~/.studyplanner
        STUDYPLANNER_SUNDAY_POLICY=free-day
    """

    # Paths
    data_dir: str = Field(
        default="data",
        description="Directory holding the JSON record store",
    )

    # Day bounds
    wake_time: str = Field(default="05:00", description="Start of the morning window")
    sleep_time: str = Field(default="23:00", description="End of the afternoon window")
    transit_buffer_minutes: int = Field(
        default=30,
        ge=0,
        description="Minutes reserved before the first and after the last class",
    )
    break_minutes: int = Field(
        default=10,
        ge=0,
        description="Break inserted between consecutive activities",
    )
    sunday_policy: SundayPolicy = Field(
        default=SundayPolicy.AS_SATURDAY,
        description="How Sunday is mapped onto the Monday..Saturday timetable",
    )

    # Pomodoro timer (minutes)
    work_minutes: int = Field(default=25, ge=1, description="Length of a work session")
    short_break_minutes: int = Field(default=5, ge=1, description="Length of a short break")
    long_break_minutes: int = Field(default=15, ge=1, description="Length of a long break")
    long_break_interval: int = Field(
        default=4,
        ge=1,
        description="Completed work sessions before a long break",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format",
    )
    log_level: str = Field(
        default="WARNING",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "STUDYPLANNER_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton pattern
_config: PlannerConfig | None = None


def get_config() -> PlannerConfig:
    """Get the planner configuration singleton.

    Returns:
        PlannerConfig: Planner configuration instance
    """
    global _config
    if _config is None:
        _config = PlannerConfig()
    return _config
