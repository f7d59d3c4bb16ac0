"""Tests for environment-driven settings."""
import pytest

from config import ConfigurationError, Settings, get_settings

ENV_VARS = [
    "AIRTABLE_API_KEY", "AIRTABLE_BASE_ID", "AIRTABLE_RESTAURANT_VIEW_ID", "AIRTABLE_TIMEOUT",
    "SITE_PASSWORD", "MAPBOX_PUBLIC_TOKEN", "HOME_CITY", "TIMEZONE", "UNRECOGNIZED_SPEND_TYPE", "APP_ENV",
    "LOGIN_RATE_LIMIT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestGetSettings:
    def test_defaults(self):
        settings = get_settings()
        assert settings.airtable_api_key is None
        assert settings.home_city == "Tallinn"
        assert settings.unrecognized_spend_type == "travel"
        assert settings.login_rate_limit == "10/minute"
        assert settings.airtable_timeout == 15.0
        assert settings.timezone == "Europe/Tallinn"
        assert settings.secure_cookies

    def test_values_from_environment(self, monkeypatch):
        monkeypatch.setenv("AIRTABLE_API_KEY", "key-env")
        monkeypatch.setenv("HOME_CITY", "Riga")
        monkeypatch.setenv("UNRECOGNIZED_SPEND_TYPE", "IGNORE")
        monkeypatch.setenv("APP_ENV", "Development")
        settings = get_settings()
        assert settings.airtable_api_key == "key-env"
        assert settings.home_city == "Riga"
        assert settings.unrecognized_spend_type == "ignore"
        assert not settings.secure_cookies

    def test_timezone_from_environment(self, monkeypatch):
        monkeypatch.setenv("TIMEZONE", "Europe/Riga")
        settings = get_settings()
        assert settings.timezone == "Europe/Riga"
        assert settings.local_timezone.key == "Europe/Riga"

    def test_unknown_timezone_falls_back(self, monkeypatch):
        monkeypatch.setenv("TIMEZONE", "Mars/Olympus_Mons")
        assert get_settings().timezone == "Europe/Tallinn"

    def test_unknown_spend_type_policy_falls_back(self, monkeypatch):
        monkeypatch.setenv("UNRECOGNIZED_SPEND_TYPE", "local")
        assert get_settings().unrecognized_spend_type == "travel"

    def test_empty_secret_counts_as_missing(self, monkeypatch):
        monkeypatch.setenv("SITE_PASSWORD", "")
        assert get_settings().site_password is None


class TestRequireAirtable:
    def test_complete_credentials(self):
        Settings(airtable_api_key="k", airtable_base_id="b", airtable_restaurant_view_id="v").require_airtable(True)

    def test_missing_key(self):
        with pytest.raises(ConfigurationError, match="Airtable credentials are not configured"):
            Settings(airtable_base_id="b").require_airtable()

    def test_missing_view(self):
        settings = Settings(airtable_api_key="k", airtable_base_id="b")
        settings.require_airtable()
        with pytest.raises(ConfigurationError, match="not fully configured"):
            settings.require_airtable(with_view=True)
