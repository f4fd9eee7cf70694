"""Tests for the Resend and Mailchimp sinks over a mock HTTP transport."""

import asyncio
import json

import httpx

from notifications.base import LeadNotification, Subscriber, UserConfirmation
from notifications.email import ResendEmail
from notifications.mailing_list import MailchimpList, subscriber_hash


class Recorder:
    """httpx.MockTransport handler that records requests."""

    def __init__(self, status=200, error=None):
        self.status = status
        self.error = error
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.error:
            raise self.error
        return httpx.Response(self.status, json={"id": "ok"})


def _resend(recorder, api_key="re_test"):
    return ResendEmail(
        api_key=api_key,
        from_email="Acme <alerts@acme.example>",
        team_emails=["sales@acme.example"],
        brand_name="Acme",
        transport=httpx.MockTransport(recorder),
    )


def _mailchimp(recorder, api_key="key-us1"):
    return MailchimpList(
        api_key=api_key,
        server_prefix="us1",
        list_id="abc123",
        transport=httpx.MockTransport(recorder),
    )


class TestResend:
    def test_lead_notification(self):
        recorder = Recorder()
        notification = LeadNotification(
            intent_score=63, intent_category="hot", urgency="high",
            name="Jane <Doe>", company="Acme Health", compliance_requirements=["HIPAA"],
        )
        assert asyncio.run(_resend(recorder).send_lead_notification(notification)) is True

        request = recorder.requests[0]
        payload = json.loads(request.content)
        assert request.headers["authorization"] == "Bearer re_test"
        assert payload["to"] == ["sales@acme.example"]
        assert payload["subject"] == "[HOT] New HOT Lead: Jane <Doe> (Acme Health)"
        assert "Jane &lt;Doe&gt;" in payload["html"]
        assert "HIPAA" in payload["html"]

    def test_user_confirmation(self):
        recorder = Recorder()
        confirmation = UserConfirmation(name="Jane Doe", email="jane@example.com")
        assert asyncio.run(_resend(recorder).send_user_confirmation(confirmation)) is True

        payload = json.loads(recorder.requests[0].content)
        assert payload["to"] == ["jane@example.com"]
        assert payload["subject"] == "Thanks for connecting with Acme, Jane!"

    def test_not_configured(self):
        recorder = Recorder()
        sink = _resend(recorder, api_key=None)
        assert sink.is_configured is False
        assert asyncio.run(sink.send_user_confirmation(UserConfirmation("Jane", "j@x.co"))) is False
        assert recorder.requests == []

    def test_http_error_status(self):
        sink = _resend(Recorder(status=500))
        assert asyncio.run(sink.send_user_confirmation(UserConfirmation("Jane", "j@x.co"))) is False

    def test_transport_error(self):
        sink = _resend(Recorder(error=httpx.ConnectError("refused")))
        assert asyncio.run(sink.send_user_confirmation(UserConfirmation("Jane", "j@x.co"))) is False


class TestMailchimp:
    def test_upsert_then_tag(self):
        recorder = Recorder()
        subscriber = Subscriber.from_contact("Jane@Example.com", name="Jane Doe", tags=["hot-lead"])
        assert asyncio.run(_mailchimp(recorder).add_subscriber(subscriber)) is True

        put, tag = recorder.requests
        member_hash = subscriber_hash("jane@example.com")
        assert put.method == "PUT"
        assert put.url.path == f"/3.0/lists/abc123/members/{member_hash}"
        assert json.loads(put.content)["merge_fields"]["LNAME"] == "Doe"
        assert tag.url.path.endswith("/tags")
        assert json.loads(tag.content) == {"tags": [{"name": "hot-lead", "status": "active"}]}

    def test_default_tags(self):
        recorder = Recorder()
        asyncio.run(_mailchimp(recorder).add_subscriber(Subscriber(email="a@b.co")))
        assert json.loads(recorder.requests[1].content)["tags"][0]["name"] == "website-lead"

    def test_rejected_member(self):
        recorder = Recorder(status=400)
        assert asyncio.run(_mailchimp(recorder).add_subscriber(Subscriber(email="a@b.co"))) is False
        assert len(recorder.requests) == 1

    def test_not_configured(self):
        sink = MailchimpList(api_key=None, server_prefix=None, list_id=None)
        assert asyncio.run(sink.add_subscriber(Subscriber(email="a@b.co"))) is False
