"""
Client context classification.

Browser, OS and device come from substring rules checked in order; the
first match wins. Country is approximated from the client's IANA time zone
through a fixed partial table. This is not geolocation: a visitor in one
country with a clock set to another zone is counted under the other zone.
"""

from __future__ import annotations

from dataclasses import dataclass

from .models import ClientContext, ClientProfile

OTHER = "Other"
UNKNOWN_COUNTRY = "Unknown"


# --- Configuration ---


@dataclass(frozen=True)
class ClassifierConfig:
    """Ordered substring rules. Patterns are case-sensitive."""

    browser_rules: tuple[tuple[tuple[str, ...], str], ...] = (
        (("Edg",), "Edge"),
        (("Chrome",), "Chrome"),
        (("Firefox",), "Firefox"),
        (("Safari",), "Safari"),
        (("OPR",), "Opera"),
    )

    os_rules: tuple[tuple[tuple[str, ...], str], ...] = (
        (("Win",), "Windows"),
        (("Mac",), "macOS"),
        (("Android",), "Android"),
        (("iPhone", "iPad"), "iOS"),
        (("Linux",), "Linux"),
    )

    device_rules: tuple[tuple[tuple[str, ...], str], ...] = (
        (("Mobi",), "Mobile"),
        (("Tablet", "iPad"), "Tablet"),
    )

    # Device fallback when a user agent is present but matches no rule
    default_device: str = "Desktop"


DEFAULT_CONFIG = ClassifierConfig()


TIMEZONE_COUNTRIES: dict[str, str] = {
    "America/New_York": "United States",
    "America/Los_Angeles": "United States",
    "America/Chicago": "United States",
    "America/Denver": "United States",
    "America/Phoenix": "United States",
    "America/Anchorage": "United States",
    "America/Toronto": "Canada",
    "America/Vancouver": "Canada",
    "America/Winnipeg": "Canada",
    "America/Mexico_City": "Mexico",
    "America/Bogota": "Colombia",
    "America/Sao_Paulo": "Brazil",
    "America/Argentina/Buenos_Aires": "Argentina",
    "Europe/London": "United Kingdom",
    "Europe/Paris": "France",
    "Europe/Berlin": "Germany",
    "Europe/Madrid": "Spain",
    "Europe/Rome": "Italy",
    "Europe/Amsterdam": "Netherlands",
    "Europe/Warsaw": "Poland",
    "Europe/Stockholm": "Sweden",
    "Europe/Moscow": "Russia",
    "Europe/Istanbul": "Turkey",
    "Europe/Kiev": "Ukraine",
    "Europe/Zurich": "Switzerland",
    "Europe/Lisbon": "Portugal",
    "Europe/Copenhagen": "Denmark",
    "Asia/Kolkata": "India",
    "Asia/Calcutta": "India",
    "Asia/Tokyo": "Japan",
    "Asia/Shanghai": "China",
    "Asia/Hong_Kong": "China",
    "Asia/Seoul": "South Korea",
    "Asia/Singapore": "Singapore",
    "Asia/Jakarta": "Indonesia",
    "Asia/Bangkok": "Thailand",
    "Asia/Ho_Chi_Minh": "Vietnam",
    "Asia/Karachi": "Pakistan",
    "Asia/Dhaka": "Bangladesh",
    "Asia/Dubai": "UAE",
    "Asia/Riyadh": "Saudi Arabia",
    "Asia/Gaza": "Palestine",
    "Asia/Jerusalem": "Israel",
    "Asia/Beirut": "Lebanon",
    "Africa/Cairo": "Egypt",
    "Africa/Johannesburg": "South Africa",
    "Africa/Lagos": "Nigeria",
    "Africa/Nairobi": "Kenya",
    "Africa/Casablanca": "Morocco",
    "Africa/Accra": "Ghana",
    "Australia/Sydney": "Australia",
    "Australia/Melbourne": "Australia",
    "Australia/Perth": "Australia",
    "Pacific/Auckland": "New Zealand",
}


# --- Classification ---


def _match_rules(
    value: str,
    rules: tuple[tuple[tuple[str, ...], str], ...],
) -> str | None:
    for patterns, label in rules:
        if any(pattern in value for pattern in patterns):
            return label
    return None


def classify_browser(user_agent: str | None, config: ClassifierConfig = DEFAULT_CONFIG) -> str:
    """Classify browser family. Returns "Other" when nothing matches."""
    if not user_agent:
        return OTHER
    return _match_rules(user_agent, config.browser_rules) or OTHER


def classify_os(user_agent: str | None, config: ClassifierConfig = DEFAULT_CONFIG) -> str:
    """Classify operating system. Returns "Other" when nothing matches."""
    if not user_agent:
        return OTHER
    return _match_rules(user_agent, config.os_rules) or OTHER


def classify_device(user_agent: str | None, config: ClassifierConfig = DEFAULT_CONFIG) -> str:
    """
    Classify device class.

    A present user agent with no mobile/tablet marker is a desktop. Only an
    absent user agent is "Other".
    """
    if not user_agent:
        return OTHER
    return _match_rules(user_agent, config.device_rules) or config.default_device


def guess_country(time_zone: str | None) -> str:
    """
    Approximate a country from an IANA time zone name.

    Unlisted zones fall back to their last path segment, humanized
    ("America/Costa_Rica" -> "Costa Rica").
    """
    if not time_zone:
        return UNKNOWN_COUNTRY

    zone = time_zone.strip()
    if zone in TIMEZONE_COUNTRIES:
        return TIMEZONE_COUNTRIES[zone]

    last = zone.split("/")[-1].replace("_", " ").strip()
    return last or UNKNOWN_COUNTRY


def classify_client(
    context: ClientContext | None,
    config: ClassifierConfig = DEFAULT_CONFIG,
) -> ClientProfile:
    """Classify all client fields at once. Never raises."""
    if context is None:
        context = ClientContext()
    return ClientProfile(
        browser=classify_browser(context.user_agent, config),
        os=classify_os(context.user_agent, config),
        device=classify_device(context.user_agent, config),
        country=guess_country(context.time_zone),
    )
