"""
Pytest configuration and fixtures.
"""

import os

import pytest
import stripe
from fastapi.testclient import TestClient

from config.settings import Settings
from main import create_app
from monitoring.metrics import MetricsCollector
from helpers import TEST_WEBHOOK_SECRET, FakeStripeSessions, RecordingSink


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment."""
    os.environ["ENVIRONMENT"] = "test"
    os.environ["LOG_LEVEL"] = "DEBUG"

    yield


@pytest.fixture
def stripe_sessions(monkeypatch) -> FakeStripeSessions:
    fake = FakeStripeSessions()
    monkeypatch.setattr(stripe.checkout.Session, "create", fake.create)
    return fake


@pytest.fixture
def settings() -> Settings:
    """Settings with test credentials and every optional sink disabled."""
    return Settings(
        environment="test",
        stripe_secret_key="sk_test_123",
        stripe_webhook_secret=TEST_WEBHOOK_SECRET,
        stripe_webhook_tolerance=300,
        checkout_min_amount_cents=50,
        checkout_default_currency="cad",
        cors_allow_origins="https://gabrioladirectory.ca,https://www.gabrioladirectory.ca",
        gsheets_webhook_url=None,
        resend_api_key=None,
        twilio_account_sid=None,
        sentry_dsn=None,
        log_file_path=None,
    )


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def app(settings, metrics, recording_sink, stripe_sessions):
    return create_app(settings, sinks=[recording_sink], metrics=metrics, configure_logging=False)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
