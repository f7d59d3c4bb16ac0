"""Shared fixtures for the API tests."""
import pytest
from fastapi.testclient import TestClient

from config import Settings, get_settings
from main import app
from routes import get_airtable_client, limiter
from utils.airtable_client import AirtableClient
from utils.auth import COOKIE_NAME, session_token

from helpers import FakeSession


@pytest.fixture
def settings():
    return Settings(
        airtable_api_key="key-test",
        airtable_base_id="appTest",
        airtable_restaurant_view_id="viwRestaurants",
        site_password="hunter2",
        mapbox_public_token="pk.test-token",
        home_city="Tallinn",
        app_env="development",
    )


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def client(settings, fake_session):
    """TestClient with settings and the Airtable session replaced."""
    limiter.reset()
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_airtable_client] = lambda: AirtableClient(settings, session=fake_session)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def authed_client(client, settings):
    client.headers["Cookie"] = f"{COOKIE_NAME}={session_token(settings.site_password)}"
    return client
