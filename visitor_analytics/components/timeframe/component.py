"""
Timeframe component - Range selection.

Turns a user selection (preset or custom bounds) into a concrete
[start, end) window plus a bucketing scheme.

Invariants:
- I1: A resolved Timeframe always has end > start
- I2: A rejected custom selection never replaces the active selection
- I3: Custom ranges use 12 buckets up to 2h, 24 up to 1 day, 15 beyond
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol

from ._presets import (
    DEFAULT_PRESET,
    PRESETS_BY_KEY,
    custom_bucket_count,
    custom_granularity,
)
from .models import (
    CUSTOM_LABEL,
    Timeframe,
    TimeframeOutput,
    TimeframeSelection,
    TimeframeValidationError,
)


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...


def parse_instant(value: datetime | str | None) -> datetime | None:
    """
    Parse a datetime or ISO-8601 string into an aware UTC datetime.

    Naive values are treated as UTC. Returns None when unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def resolve_preset(key: str, now: datetime) -> Timeframe:
    """Resolve a preset to [now - duration, now). Raises KeyError if unknown."""
    preset = PRESETS_BY_KEY[key]
    return Timeframe(
        start=now - preset.duration,
        end=now,
        bucket_count=preset.buckets,
        label_granularity=preset.label_granularity,
        label=preset.key,
    )


def validate_custom(
    start: datetime | str | None,
    end: datetime | str | None,
) -> tuple[datetime | None, datetime | None, list[TimeframeValidationError]]:
    """Validate custom bounds. Returns parsed bounds and any errors."""
    errors: list[TimeframeValidationError] = []

    parsed_start = parse_instant(start)
    parsed_end = parse_instant(end)

    if parsed_start is None:
        errors.append(
            TimeframeValidationError(
                code="invalid_datetime",
                message=f"Invalid start instant: {start!r}",
                field_name="start",
            )
        )
    if parsed_end is None:
        errors.append(
            TimeframeValidationError(
                code="invalid_datetime",
                message=f"Invalid end instant: {end!r}",
                field_name="end",
            )
        )

    if parsed_start is not None and parsed_end is not None and parsed_end <= parsed_start:
        errors.append(
            TimeframeValidationError(
                code="inverted_range",
                message="End must be after start",
                field_name="end",
            )
        )

    return parsed_start, parsed_end, errors


def resolve_custom(start: datetime, end: datetime) -> Timeframe:
    """Resolve already-validated custom bounds."""
    span = end - start
    return Timeframe(
        start=start,
        end=end,
        bucket_count=custom_bucket_count(span),
        label_granularity=custom_granularity(span),
        label=CUSTOM_LABEL,
    )


def run_resolve(
    selection: TimeframeSelection,
    *,
    time_port: TimePort,
) -> TimeframeOutput:
    """
    Resolve a selection into a Timeframe.

    Args:
        selection: Preset key or custom bounds.
        time_port: Clock used for preset windows.

    Returns:
        TimeframeOutput with the timeframe or validation errors.
    """
    if not selection.is_custom:
        key = selection.preset or ""
        if key not in PRESETS_BY_KEY:
            return TimeframeOutput(
                timeframe=None,
                errors=[
                    TimeframeValidationError(
                        code="unknown_preset",
                        message=f"Unknown preset: {key}",
                        field_name="preset",
                    )
                ],
                success=False,
            )
        return TimeframeOutput(timeframe=resolve_preset(key, time_port.now_utc()))

    start, end, errors = validate_custom(selection.start, selection.end)
    if errors or start is None or end is None:
        return TimeframeOutput(timeframe=None, errors=errors, success=False)

    return TimeframeOutput(timeframe=resolve_custom(start, end))


class TimeframeSelector:
    """
    Holds the active selection.

    Presets are re-resolved against the clock on every call, so a polling
    refresh slides the window forward. Custom selections are fixed.
    """

    def __init__(
        self,
        time_port: TimePort,
        default_preset: str = DEFAULT_PRESET,
    ) -> None:
        if default_preset not in PRESETS_BY_KEY:
            raise ValueError(f"Unknown default preset: {default_preset}")
        self._time_port = time_port
        self._active = TimeframeSelection.for_preset(default_preset)

    @property
    def active(self) -> TimeframeSelection:
        return self._active

    def select(self, selection: TimeframeSelection) -> TimeframeOutput:
        """
        Try to make `selection` active.

        On rejection the previous selection stays active and the errors are
        returned.
        """
        output = run_resolve(selection, time_port=self._time_port)
        if output.success:
            self._active = selection
        return output

    def select_preset(self, key: str) -> TimeframeOutput:
        return self.select(TimeframeSelection.for_preset(key))

    def select_custom(self, start: datetime | str, end: datetime | str) -> TimeframeOutput:
        return self.select(TimeframeSelection.custom(start, end))

    def resolve(self) -> Timeframe:
        """Resolve the active selection. Always succeeds."""
        output = run_resolve(self._active, time_port=self._time_port)
        if output.timeframe is None:
            # Only validated selections become active
            raise ValueError(f"Active selection failed to resolve: {output.errors}")
        return output.timeframe
