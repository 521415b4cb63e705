"""
Timeframe component models.

A Timeframe is a resolved query window; a TimeframeSelection is what the
user picked (a preset key or explicit custom bounds) before resolution.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Literal

LabelGranularity = Literal["minute", "day"]

CUSTOM_LABEL = "Custom"


@dataclass(frozen=True)
class TimeframeValidationError:
    """Timeframe validation error."""

    code: str
    message: str
    field_name: str | None = None


@dataclass(frozen=True)
class Preset:
    """Named preset window."""

    key: str
    minutes: int
    buckets: int
    label_granularity: LabelGranularity

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.minutes)


@dataclass(frozen=True)
class Timeframe:
    """Resolved half-open query window [start, end)."""

    start: datetime
    end: datetime
    bucket_count: int
    label_granularity: LabelGranularity
    label: str = CUSTOM_LABEL

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError(f"Timeframe end {self.end} must be after start {self.start}")
        if self.bucket_count < 1:
            raise ValueError(f"bucket_count must be positive, got {self.bucket_count}")

    @property
    def span(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class TimeframeSelection:
    """
    A user's choice of window.

    Either `preset` is set, or both `start` and `end` are. Custom bounds may
    be datetimes or ISO-8601 strings; they are validated on resolution.
    """

    preset: str | None = None
    start: datetime | str | None = None
    end: datetime | str | None = None

    @property
    def is_custom(self) -> bool:
        return self.preset is None

    @classmethod
    def for_preset(cls, key: str) -> TimeframeSelection:
        return cls(preset=key)

    @classmethod
    def custom(cls, start: datetime | str, end: datetime | str) -> TimeframeSelection:
        return cls(start=start, end=end)


@dataclass(frozen=True)
class TimeframeOutput:
    """Output for timeframe resolution."""

    timeframe: Timeframe | None
    errors: list[TimeframeValidationError] = field(default_factory=list)
    success: bool = True
