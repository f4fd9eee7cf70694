"""
Notification sink interfaces.

Sinks are best-effort: every send returns a bool and never raises for
delivery failures.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class LeadNotification:
    """Flat lead record sent to the sales team."""
    intent_score: int
    intent_category: str
    urgency: str
    name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    job_title: Optional[str] = None
    company_size: Optional[str] = None
    industry: Optional[str] = None
    compliance_requirements: List[str] = field(default_factory=list)
    signal_summary: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "company": self.company,
            "job_title": self.job_title,
            "intent_score": self.intent_score,
            "intent_category": self.intent_category,
            "urgency": self.urgency,
            "company_size": self.company_size,
            "industry": self.industry,
            "compliance_requirements": self.compliance_requirements,
            "signal_summary": self.signal_summary,
        }


@dataclass
class UserConfirmation:
    """Welcome message for a visitor who shared their name and email."""
    name: str
    email: str
    subject: Optional[str] = None
    heading: Optional[str] = None
    message: Optional[str] = None

    @property
    def first_name(self) -> str:
        return self.name.split(" ")[0]


@dataclass
class Subscriber:
    """Mailing-list member record."""
    email: str
    first_name: str = ""
    last_name: str = ""
    company: Optional[str] = None
    job_title: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_contact(
        cls,
        email: str,
        name: Optional[str] = None,
        company: Optional[str] = None,
        job_title: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> "Subscriber":
        parts = (name or "").split(" ")
        return cls(
            email=email,
            first_name=parts[0],
            last_name=" ".join(parts[1:]),
            company=company,
            job_title=job_title,
            tags=list(tags or []),
        )


class NotificationSink(ABC):
    """Outbound email notifications."""

    @abstractmethod
    async def send_lead_notification(self, notification: LeadNotification) -> bool:
        """Alert the sales team about a lead."""
        ...

    @abstractmethod
    async def send_user_confirmation(self, confirmation: UserConfirmation) -> bool:
        """Send the visitor a confirmation email."""
        ...


class MailingListSink(ABC):
    """Marketing mailing list."""

    @abstractmethod
    async def add_subscriber(self, subscriber: Subscriber) -> bool:
        """Add or update a list member."""
        ...


def get_intent_tags(
    intent_category: str,
    company_size: Optional[str] = None,
    industry: Optional[str] = None,
) -> List[str]:
    """
    Mailing-list tags for a lead.

    Args:
        intent_category: hot, warm or cold
        company_size: Inferred company size, if any
        industry: Industry display name, if any

    Returns:
        Tags such as ["hot-lead", "priority", "size-enterprise",
        "enterprise-target", "industry-financial-services"]
    """
    tags: List[str] = []

    if intent_category == "hot":
        tags.extend(["hot-lead", "priority"])
    elif intent_category == "warm":
        tags.append("warm-lead")
    elif intent_category == "cold":
        tags.extend(["cold-lead", "nurture"])

    if company_size:
        tags.append(f"size-{company_size}")
        if company_size == "enterprise":
            tags.append("enterprise-target")

    if industry:
        tags.append("industry-" + "-".join(industry.lower().split()))

    return tags
