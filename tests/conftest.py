"""Shared fixtures for the contact form service tests."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from contact_relay.core.config import Settings, get_settings
from contact_relay.main import app
from contact_relay.models.contact import Submission


class RecordingRelay:
    """Trusted relay double that keeps every raw message it receives"""

    def __init__(self, error: Exception = None):
        self.sent = []
        self.error = error

    async def send_raw(self, envelope_from, envelope_to, raw):
        if self.error:
            raise self.error
        self.sent.append((envelope_from, envelope_to, raw))


class RecordingSender:
    """Email sender double for gateway tests"""

    def __init__(self, error: Exception = None):
        self.submissions = []
        self.error = error

    async def send(self, submission):
        self.submissions.append(submission)
        if self.error:
            raise self.error


@pytest.fixture
def settings():
    return Settings(
        contact_to_email="owner@acme.test",
        contact_to_name="Acme Consulting",
        contact_from_email="noreply@acme.test",
        contact_from_name="Acme Website",
        delivery_channel="api",
        email_api_url="https://api.mail.test/v3/mail/send",
        email_api_key="test-key",
        email_sender_url=None,
        relay_accepted_destination="owner@acme.test",
        email_sender_endpoint_enabled=False,
        email_sender_secret="shared-secret",
        smtp_host="smtp.acme.test",
        display_timezone="America/New_York",
    )


@pytest.fixture
def submission():
    return Submission(
        name="Jane Doe",
        email="jane@example.com",
        message="Hello there\nSecond line",
        service="Consulting",
        timestamp="2024-01-15T20:04:05.123Z",
    )


@pytest.fixture
def fixed_now():
    return datetime(2024, 1, 15, 20, 4, 5, tzinfo=timezone.utc)


@pytest.fixture
def relay():
    return RecordingRelay()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def client(sender, settings):
    """Test client whose email sender is the recording double.

    The lifespan is not entered, so no sender is built from the environment;
    settings come from the fixture through a dependency override.
    """
    app.state.email_sender = sender
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()
    del app.state.email_sender
