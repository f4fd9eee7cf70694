"""Shared fixtures for lead intelligence chat tests."""

import os

import pytest

from notifications.base import MailingListSink, NotificationSink

# Ensure we use test/mock settings
os.environ["LLM_PROVIDER"] = "none"
os.environ["LLM_FALLBACK_PROVIDER"] = ""
os.environ["USE_MEMORY_STORE"] = "true"
os.environ["RATE_LIMIT_PER_MINUTE"] = "10000"
os.environ.pop("DATABASE_URL", None)
os.environ.pop("RESEND_API_KEY", None)
os.environ.pop("MAILCHIMP_API_KEY", None)


class FakeProvider:
    """LLM provider returning a canned reply and recording its calls."""

    def __init__(self, reply="Happy to help.", name="fake", error=None):
        self.reply = reply
        self.name = name
        self.error = error
        self.calls = []

    async def agenerate_with_history(self, messages, system=None):
        self.calls.append({"messages": messages, "system": system})
        if self.error:
            raise self.error
        return self.reply


class RecordingNotifier(NotificationSink):
    def __init__(self, fail=False):
        self.fail = fail
        self.leads = []
        self.confirmations = []

    async def send_lead_notification(self, notification):
        if self.fail:
            raise RuntimeError("smtp down")
        self.leads.append(notification)
        return True

    async def send_user_confirmation(self, confirmation):
        self.confirmations.append(confirmation)
        return True


class RecordingMailingList(MailingListSink):
    def __init__(self):
        self.subscribers = []

    async def add_subscriber(self, subscriber):
        self.subscribers.append(subscriber)
        return True


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def failing_provider():
    return FakeProvider(name="broken", error=RuntimeError("provider down"))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(fail=True)


@pytest.fixture
def mailing_list():
    return RecordingMailingList()


@pytest.fixture
def client(fake_provider):
    """FastAPI test client with startup run and a canned LLM."""
    from fastapi.testclient import TestClient

    from api.main import app
    from api.services import get_services, reset_services

    reset_services()
    with TestClient(app) as c:
        get_services().orchestrator.primary_provider = fake_provider
        yield c
    reset_services()
