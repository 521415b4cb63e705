from typing import Literal

from pydantic import BaseModel, Field, field_validator

from visitor_analytics.components.analytics import DEFAULT_RETENTION_CAP, AggregateConfig
from visitor_analytics.components.timeframe import DEFAULT_PRESET, PRESETS_BY_KEY


class TopNRules(BaseModel):
    pages: int = Field(default=7, ge=1)
    browsers: int = Field(default=5, ge=1)
    os: int = Field(default=5, ge=1)
    devices: int = Field(default=3, ge=1)
    referrers: int = Field(default=7, ge=1)
    countries: int = Field(default=7, ge=1)

    def to_config(self) -> AggregateConfig:
        return AggregateConfig(
            top_pages=self.pages,
            top_browsers=self.browsers,
            top_os=self.os,
            top_devices=self.devices,
            top_referrers=self.referrers,
            top_countries=self.countries,
        )

class AnalyticsRules(BaseModel):
    retention_cap: int = Field(default=DEFAULT_RETENTION_CAP, ge=1)
    default_preset: str = DEFAULT_PRESET
    refresh_interval_seconds: float = Field(default=10.0, gt=0)
    display_timezone: str = "UTC"
    top_n: TopNRules = TopNRules()

    @field_validator("default_preset")
    @classmethod
    def _known_preset(cls, value: str) -> str:
        if value not in PRESETS_BY_KEY:
            raise ValueError(f"unknown preset '{value}'")
        return value

class StorageRules(BaseModel):
    backend: Literal["memory", "sqlite", "json"] = "memory"
    # Relative paths resolve against the data directory
    path: str = "events.db"

class Rules(BaseModel):
    analytics: AnalyticsRules = AnalyticsRules()
    storage: StorageRules = StorageRules()
