"""
Transactional email via the Resend API.
"""

import html
import logging
from typing import List, Optional

import httpx

from .base import LeadNotification, NotificationSink, UserConfirmation

logger = logging.getLogger(__name__)


CATEGORY_LABELS = {"hot": "[HOT]", "warm": "[WARM]", "cold": "[COLD]"}
URGENCY_LABELS = {"immediate": "IMMEDIATE", "high": "HIGH", "medium": "MEDIUM", "low": "LOW"}


class ResendEmail(NotificationSink):
    """Email via Resend."""

    BASE_URL = "https://api.resend.com/emails"

    def __init__(
        self,
        api_key: Optional[str],
        from_email: str,
        team_emails: List[str],
        brand_name: str = "ArqAI",
        site_url: str = "https://thearq.ai",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.team_emails = team_emails
        self.brand_name = brand_name
        self.site_url = site_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _send(self, to: List[str], subject: str, body: str) -> bool:
        if not self.is_configured:
            logger.warning("Resend API key not configured")
            return False
        if not to:
            logger.warning("No recipients for email, skipping")
            return False

        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        payload = {"from": self.from_email, "to": to, "subject": subject, "html": body}
        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                resp = await client.post(self.BASE_URL, json=payload, headers=headers, timeout=self.timeout)
            if resp.status_code in (200, 201, 202):
                return True
            logger.error(f"Resend send failed: {resp.status_code} {resp.text[:500]}")
            return False
        except httpx.HTTPError as e:
            logger.error(f"Resend send failed: {e}")
            return False

    def render_lead_notification(self, n: LeadNotification) -> str:
        def esc(value: Optional[str], default: str) -> str:
            return html.escape(value) if value else default

        rows = [
            ("Name", esc(n.name, "Not provided")),
            ("Email", esc(n.email, "Not provided")),
            ("Company", esc(n.company, "Not provided")),
            ("Role", esc(n.job_title, "Not provided")),
            ("Company Size", esc(n.company_size, "Unknown")),
            ("Industry", esc(n.industry, "Unknown")),
        ]
        if n.compliance_requirements:
            rows.append(("Compliance Requirements", html.escape(", ".join(n.compliance_requirements))))

        parts = [
            "<h1>New Lead Alert</h1>",
            f"<p><strong>{n.intent_category.upper()} INTENT</strong> | Score: {n.intent_score}/100 | "
            f"Urgency: {URGENCY_LABELS.get(n.urgency, n.urgency.upper())}</p>",
            "<table>",
            *[f"<tr><td>{label}</td><td><strong>{value}</strong></td></tr>" for label, value in rows],
            "</table>",
        ]
        if n.signal_summary:
            parts.append("<h3>Conversation Signals</h3>")
            parts.append(f"<pre>{html.escape(n.signal_summary)}</pre>")
        parts.append(f'<p><a href="{self.site_url}/admin">View in Dashboard</a></p>')
        parts.append(f"<p>{self.brand_name} Lead Intelligence System</p>")
        return "\n".join(parts)

    async def send_lead_notification(self, notification: LeadNotification) -> bool:
        label = CATEGORY_LABELS.get(notification.intent_category, "")
        subject = f"{label} New {notification.intent_category.upper()} Lead: {notification.name or 'Anonymous'}"
        if notification.company:
            subject += f" ({notification.company})"

        sent = await self._send(self.team_emails, subject.strip(), self.render_lead_notification(notification))
        if sent:
            logger.info(f"Lead notification sent for {notification.name or 'Anonymous'}")
        return sent

    async def send_user_confirmation(self, confirmation: UserConfirmation) -> bool:
        first_name = html.escape(confirmation.first_name)
        subject = confirmation.subject or f"Thanks for connecting with {self.brand_name}, {confirmation.first_name}!"
        heading = confirmation.heading or "Message Received"
        message = confirmation.message or (
            f"Thank you for your interest in {self.brand_name}. Our team will review your inquiry and "
            "reach out within 24 hours to discuss how we can help you build, run, and govern your AI workforce."
        )
        body = "\n".join([
            f"<p>Hi {first_name},</p>",
            f"<h2>{html.escape(heading)}</h2>",
            f"<p>{html.escape(message)}</p>",
            f'<p><a href="{self.site_url}/platform">Explore {self.brand_name}</a></p>',
            f"<p>Best regards,<br><strong>The {self.brand_name} Team</strong></p>",
        ])

        sent = await self._send([confirmation.email], subject, body)
        if sent:
            logger.info(f"User confirmation sent to {confirmation.email}")
        return sent
