"""
Visitman configuration.

Usage in settings.py:
    VISITMAN = {
        "DAILY_HOST_LIMIT": 4,
        "MONTHLY_GUEST_LIMIT": 4,
        "YEARLY_GUEST_LIMIT": 24,
        "SMS_PROVIDER": "smsleopard",
        "SMS_API_KEY": "...",
        "SMS_API_SECRET": "...",
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class VisitmanSettings:
    """Visitman configuration settings."""

    # Visit limits
    DAILY_HOST_LIMIT: int = 4
    MONTHLY_GUEST_LIMIT: int = 4
    YEARLY_GUEST_LIMIT: int = 24
    RECIPROCAL_YEARLY_LIMIT: int = 24

    # Visits still open at the end of the day are closed at this time
    AUTO_SIGNOUT_TIME: str = "23:59:59"

    # Phone normalization
    DEFAULT_COUNTRY_CODE: str = "254"

    # Prefix used in guest-facing messages
    CLUB_NAME: str = "Nyeri Club"

    # Signature of case and task emails
    FIRM_NAME: str = "Cyber Wakili"

    # SMS gateway ("smsleopard" or "mobilesasa")
    SMS_PROVIDER: str = "smsleopard"
    SMS_API_KEY: str = ""
    SMS_API_SECRET: str = ""
    SMS_API_TOKEN: str = ""
    SMS_SENDER_ID: str = "SMS_TEST"
    SMS_STATUS_SECRET: str = ""
    SMS_CALLBACK_URL: str = ""
    SMS_BASE_URL: str = ""
    SMS_TIMEOUT: int = 30
    SMS_REQUEST_DELAY: float = 0.2
    # Balance below this (account currency) is reported as low
    SMS_LOW_BALANCE_THRESHOLD: int = 50

    # Cleanup
    SMS_LOG_CLEANUP_DAYS: int = 90
    AUDIT_CLEANUP_DAYS: int = 90


def get_visitman_settings() -> VisitmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "VISITMAN", {})
    return VisitmanSettings(**user_settings)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_visitman_settings(), name)


visitman_settings = _LazySettings()
