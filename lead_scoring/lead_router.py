"""
Lead Router.

Assigns a sales priority tier to scored leads and dispatches the
resulting notifications. Dispatch is fire-and-forget: sends run as
background tasks and their failures are logged, never raised.
"""

import asyncio
import logging
from enum import Enum
from typing import Coroutine, List, Optional, Set

from notifications.base import (
    LeadNotification,
    MailingListSink,
    NotificationSink,
    Subscriber,
    UserConfirmation,
    get_intent_tags,
)

from .scoring_model import (
    IntentCategory,
    LeadCompanySize,
    LeadIntelligence,
    QualificationStatus,
    UrgencyLevel,
    UserInfo,
)

logger = logging.getLogger(__name__)


class PriorityTier(str, Enum):
    """Sales follow-up tier."""
    TIER1 = "tier1"    # Immediate follow-up
    TIER2 = "tier2"    # Follow-up within 24 hours
    TIER3 = "tier3"    # Nurture sequence


def get_lead_priority_tier(intelligence: Optional[LeadIntelligence]) -> PriorityTier:
    """
    Route a lead to a priority tier.

    tier1: score >= 70, enterprise with score >= 50, immediate urgency, or qualified
    tier2: score >= 40, mid-market, high urgency, or nurture
    tier3: everything else
    """
    if intelligence is None:
        return PriorityTier.TIER3

    score = intelligence.buy_intent_score

    if (
        score >= 70
        or (intelligence.company_size == LeadCompanySize.ENTERPRISE and score >= 50)
        or intelligence.urgency == UrgencyLevel.IMMEDIATE
        or intelligence.qualification_status == QualificationStatus.QUALIFIED
    ):
        return PriorityTier.TIER1

    if (
        score >= 40
        or intelligence.company_size == LeadCompanySize.MID_MARKET
        or intelligence.urgency == UrgencyLevel.HIGH
        or intelligence.qualification_status == QualificationStatus.NURTURE
    ):
        return PriorityTier.TIER2

    return PriorityTier.TIER3


class LeadRouter:
    """
    Dispatches lead notifications.

    - Sales alert when the lead is tier1 or hot
    - Visitor confirmation when both name and email are known
    - Mailing-list upsert whenever an email is known
    """

    SIGNAL_SUMMARY_COUNT = 5

    def __init__(
        self,
        notifier: Optional[NotificationSink] = None,
        mailing_list: Optional[MailingListSink] = None,
    ):
        self.notifier = notifier
        self.mailing_list = mailing_list
        self._pending: Set[asyncio.Task] = set()

    def should_notify_sales(self, intelligence: LeadIntelligence, tier: PriorityTier) -> bool:
        return tier == PriorityTier.TIER1 or intelligence.intent_category == IntentCategory.HOT

    def build_notification(self, intelligence: LeadIntelligence, user_info: UserInfo) -> LeadNotification:
        recent = intelligence.behavioral_signals[-self.SIGNAL_SUMMARY_COUNT:]
        summary = "\n".join(f"{s.type_value}: {s.content[:50]}..." for s in recent)
        return LeadNotification(
            name=user_info.name,
            email=user_info.email,
            company=user_info.company,
            job_title=user_info.job_title,
            intent_score=intelligence.buy_intent_score,
            intent_category=intelligence.intent_category.value,
            urgency=intelligence.urgency.value,
            company_size=intelligence.company_size.value if intelligence.company_size else None,
            industry=intelligence.industry,
            compliance_requirements=intelligence.compliance_requirements,
            signal_summary=summary or None,
        )

    def dispatch(
        self,
        intelligence: LeadIntelligence,
        user_info: UserInfo,
        tier: PriorityTier,
        welcome: bool = True,
    ) -> List[asyncio.Task]:
        """
        Schedule every notification that applies to this lead.

        ``welcome`` is False once the visitor has already been confirmed.

        Must be called from a running event loop.

        Returns:
            The scheduled tasks
        """
        tasks: List[asyncio.Task] = []

        if self.notifier and self.should_notify_sales(intelligence, tier):
            logger.info(
                f"High-priority lead {intelligence.user_id}: {tier.value}, "
                f"score={intelligence.buy_intent_score}"
            )
            tasks.append(self._spawn(
                self.notifier.send_lead_notification(self.build_notification(intelligence, user_info)),
                "lead notification",
            ))

        if welcome and self.notifier and user_info.email and user_info.name:
            tasks.append(self._spawn(
                self.notifier.send_user_confirmation(
                    UserConfirmation(name=user_info.name, email=user_info.email)
                ),
                "user confirmation",
            ))

        if self.mailing_list and user_info.email:
            subscriber = Subscriber.from_contact(
                email=user_info.email,
                name=user_info.name,
                company=user_info.company,
                job_title=user_info.job_title,
                tags=get_intent_tags(
                    intelligence.intent_category.value,
                    intelligence.company_size.value if intelligence.company_size else None,
                    intelligence.industry,
                ),
            )
            tasks.append(self._spawn(self.mailing_list.add_subscriber(subscriber), "mailing list"))

        return tasks

    def _spawn(self, coro: Coroutine, label: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)

        def _done(t: asyncio.Task) -> None:
            self._pending.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                logger.error(f"Background {label} failed: {exc!r}")
            elif t.result() is False:
                logger.warning(f"Background {label} was not delivered")

        task.add_done_callback(_done)
        return task

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for all in-flight notification tasks."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
