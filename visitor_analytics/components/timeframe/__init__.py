"""
Timeframe component - Preset and custom range resolution.
"""

from ._presets import (
    DEFAULT_PRESET,
    PRESET_GROUPS,
    PRESETS,
    PRESETS_BY_KEY,
    custom_bucket_count,
    custom_granularity,
    format_label,
)
from .component import (
    TimeframeSelector,
    TimePort,
    parse_instant,
    resolve_custom,
    resolve_preset,
    run_resolve,
    validate_custom,
)
from .models import (
    CUSTOM_LABEL,
    LabelGranularity,
    Preset,
    Timeframe,
    TimeframeOutput,
    TimeframeSelection,
    TimeframeValidationError,
)

__all__ = [
    # Entry points
    "run_resolve",
    "TimeframeSelector",
    # Pure functions
    "custom_bucket_count",
    "custom_granularity",
    "format_label",
    "parse_instant",
    "resolve_custom",
    "resolve_preset",
    "validate_custom",
    # Catalog
    "DEFAULT_PRESET",
    "PRESET_GROUPS",
    "PRESETS",
    "PRESETS_BY_KEY",
    # Models
    "CUSTOM_LABEL",
    "LabelGranularity",
    "Preset",
    "Timeframe",
    "TimeframeOutput",
    "TimeframeSelection",
    "TimeframeValidationError",
    # Ports
    "TimePort",
]
