"""Engine configuration using pydantic-settings.

Every setting can be overridden with an ``ADHERENCE_``-prefixed environment
variable or a ``.env`` file in the working directory.
"""

from __future__ import annotations

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

from adherence_engine.timing import AGENDA_DEFAULT_START, DELTA_DEFAULT_START, parse_start_time

DEFAULT_QUALITY_CHECK_TITLES = ["startupplägg", "uppföljningsupplägg", "ärenden", "app"]


class EngineSettings(BaseSettings):
    """Thresholds and defaults used when classifying and aggregating tasks.

    Attributes:
        warning_minutes: Delay after which a completed task is a warning.
        critical_minutes: Delay after which a completed task is critical.
        agenda_default_start: Anchor used by the daily agenda and performance
            views when a report has no usable start time.
        delta_default_start: Anchor used by the delta classifier when a report
            has no usable start time.
        quality_check_titles: Normalized titles of tasks that need a quality check.
        quality_check_category: Template category that also marks a quality task.
        global_removal_user_id: Pseudo-user whose removals apply to everyone.
        timezone: Zone used to interpret naive wall times next to aware instants.
        log_level: Level used by the command line.
    """

    warning_minutes: int = 15
    critical_minutes: int = 45

    # The two call sites have always used different fallbacks.
    agenda_default_start: str = AGENDA_DEFAULT_START
    delta_default_start: str = DELTA_DEFAULT_START

    quality_check_titles: list[str] = DEFAULT_QUALITY_CHECK_TITLES
    quality_check_category: str = "quality"

    global_removal_user_id: str = "manager"
    timezone: str = "UTC"
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "ADHERENCE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("warning_minutes", "critical_minutes")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("thresholds must be non-negative")
        return value

    @field_validator("agenda_default_start", "delta_default_start")
    @classmethod
    def _valid_start(cls, value: str) -> str:
        if parse_start_time(value) is None:
            raise ValueError(f"invalid default start time '{value}'")
        return value

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone '{value}'") from exc
        return value

    @model_validator(mode="after")
    def _ordered_thresholds(self) -> "EngineSettings":
        if self.critical_minutes < self.warning_minutes:
            raise ValueError("critical_minutes must not be lower than warning_minutes")
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


settings = EngineSettings()


def resolve_settings(override: EngineSettings | None) -> EngineSettings:
    """Return ``override`` when given, otherwise the module-level settings."""

    return override if override is not None else settings
