"""
Outbound notification sinks: sales alerts, visitor confirmations and
mailing-list membership.
"""

from .base import (
    LeadNotification,
    MailingListSink,
    NotificationSink,
    Subscriber,
    UserConfirmation,
    get_intent_tags,
)
from .email import ResendEmail
from .mailing_list import MailchimpList

__all__ = [
    "LeadNotification",
    "MailingListSink",
    "NotificationSink",
    "Subscriber",
    "UserConfirmation",
    "get_intent_tags",
    "ResendEmail",
    "MailchimpList",
]
