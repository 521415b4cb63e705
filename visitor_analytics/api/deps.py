import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from visitor_analytics.app_shell.context import ServiceContext
from visitor_analytics.components.analytics import VisitorAnalytics
from visitor_analytics.rules.loader import load_rules
from visitor_analytics.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("VA_DATA_DIR", "./data"))
        self.rules_path = Path(os.environ.get("VA_RULES_PATH", str(self.base_dir / "rules.yaml")))


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


# --- Services ---
# One context per process: the in-memory backend only works as a singleton
@lru_cache
def get_service_context() -> ServiceContext:
    settings = get_settings()
    return ServiceContext.create(get_rules(), settings.data_dir)


def get_analytics(ctx: ServiceContext = Depends(get_service_context)) -> VisitorAnalytics:
    return ctx.analytics


def reset_dependency_caches() -> None:
    """Drop cached settings, rules and services (for testing)."""
    get_service_context.cache_clear()
    get_rules.cache_clear()
    get_settings.cache_clear()
