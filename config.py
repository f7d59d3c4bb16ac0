"""Application settings read from the environment"""
import os
import logging
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Europe/Tallinn"


class ConfigurationError(Exception):
    """Raised when a required secret or token is missing."""


class Settings(BaseModel):
    """
    Runtime configuration for the proxy and the analytics layer.
    Secrets are optional here; each endpoint checks the ones it needs.
    """
    airtable_api_key: Optional[str] = None
    airtable_base_id: Optional[str] = None
    airtable_restaurant_view_id: Optional[str] = None
    airtable_timeout: float = 15.0
    site_password: Optional[str] = None
    mapbox_public_token: Optional[str] = None
    home_city: str = "Tallinn"
    timezone: str = DEFAULT_TIMEZONE
    unrecognized_spend_type: Literal['travel', 'ignore'] = 'travel'
    app_env: str = "production"
    login_rate_limit: str = "10/minute"

    @property
    def secure_cookies(self) -> bool:
        return self.app_env != "development"

    @property
    def local_timezone(self) -> ZoneInfo:
        """Zone the wall-clock hour of a bill is read in."""
        return ZoneInfo(self.timezone)

    def require_airtable(self, with_view: bool = False) -> None:
        """Fails with a ConfigurationError when Airtable credentials are incomplete."""
        if not self.airtable_api_key or not self.airtable_base_id:
            raise ConfigurationError("Airtable credentials are not configured on the server.")
        if with_view and not self.airtable_restaurant_view_id:
            raise ConfigurationError("Airtable credentials are not fully configured on the server.")


def get_settings() -> Settings:
    """Builds Settings from environment variables. Used as a FastAPI dependency."""
    policy = os.getenv("UNRECOGNIZED_SPEND_TYPE", "travel").lower()
    if policy not in ("travel", "ignore"):
        logger.warning(f"Unknown UNRECOGNIZED_SPEND_TYPE '{policy}', falling back to 'travel'.")
        policy = "travel"
    timezone = os.getenv("TIMEZONE", DEFAULT_TIMEZONE)
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown TIMEZONE '{timezone}', falling back to '{DEFAULT_TIMEZONE}'.")
        timezone = DEFAULT_TIMEZONE
    return Settings(
        airtable_api_key=os.getenv("AIRTABLE_API_KEY") or None,
        airtable_base_id=os.getenv("AIRTABLE_BASE_ID") or None,
        airtable_restaurant_view_id=os.getenv("AIRTABLE_RESTAURANT_VIEW_ID") or None,
        airtable_timeout=float(os.getenv("AIRTABLE_TIMEOUT", "15")),
        site_password=os.getenv("SITE_PASSWORD") or None,
        mapbox_public_token=os.getenv("MAPBOX_PUBLIC_TOKEN") or None,
        home_city=os.getenv("HOME_CITY", "Tallinn"),
        timezone=timezone,
        unrecognized_spend_type=policy,
        app_env=os.getenv("APP_ENV", "production").lower(),
        login_rate_limit=os.getenv("LOGIN_RATE_LIMIT", "10/minute"),
    )
