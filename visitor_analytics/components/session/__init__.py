"""
Session component - Session identity and client-context classification.
"""

from ._classify import (
    DEFAULT_CONFIG,
    TIMEZONE_COUNTRIES,
    ClassifierConfig,
    classify_browser,
    classify_client,
    classify_device,
    classify_os,
    guess_country,
)
from .component import (
    SessionIdentityProvider,
    TimePort,
    generate_session_id,
    start_session,
)
from .models import (
    ClientContext,
    ClientProfile,
    SessionIdentity,
)

__all__ = [
    # Identity
    "SessionIdentityProvider",
    "generate_session_id",
    "start_session",
    # Classification
    "ClassifierConfig",
    "DEFAULT_CONFIG",
    "TIMEZONE_COUNTRIES",
    "classify_browser",
    "classify_client",
    "classify_device",
    "classify_os",
    "guess_country",
    # Models
    "ClientContext",
    "ClientProfile",
    "SessionIdentity",
    # Ports
    "TimePort",
]
