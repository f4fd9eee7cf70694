"""Tests for priority tiers and notification dispatch."""

import asyncio

import pytest

from lead_scoring.lead_router import LeadRouter, PriorityTier, get_lead_priority_tier
from lead_scoring.scoring_model import (
    IntentCategory,
    LeadCompanySize,
    LeadIntelligence,
    QualificationStatus,
    UrgencyLevel,
    UserInfo,
)
from lead_scoring.signal_detector import BehavioralSignal, SignalType
from notifications.base import get_intent_tags


def _intel(**kwargs):
    return LeadIntelligence(user_id="user-1", **kwargs)


class TestPriorityTier:
    def test_none_is_tier3(self):
        assert get_lead_priority_tier(None) == PriorityTier.TIER3

    @pytest.mark.parametrize("kwargs", [
        {"buy_intent_score": 70},
        {"buy_intent_score": 50, "company_size": LeadCompanySize.ENTERPRISE},
        {"urgency": UrgencyLevel.IMMEDIATE},
        {"qualification_status": QualificationStatus.QUALIFIED},
    ])
    def test_tier1(self, kwargs):
        assert get_lead_priority_tier(_intel(**kwargs)) == PriorityTier.TIER1

    @pytest.mark.parametrize("kwargs", [
        {"buy_intent_score": 40},
        {"buy_intent_score": 49, "company_size": LeadCompanySize.ENTERPRISE},
        {"company_size": LeadCompanySize.MID_MARKET},
        {"urgency": UrgencyLevel.HIGH},
        {"qualification_status": QualificationStatus.NURTURE},
    ])
    def test_tier2(self, kwargs):
        assert get_lead_priority_tier(_intel(**kwargs)) == PriorityTier.TIER2

    def test_tier3(self):
        assert get_lead_priority_tier(_intel(buy_intent_score=39)) == PriorityTier.TIER3


class TestDispatch:
    def _run(self, router, intelligence, user_info, tier):
        async def go():
            router.dispatch(intelligence, user_info, tier)
            await router.drain()
        asyncio.run(go())

    def test_hot_lead_alerts_sales(self, notifier):
        router = LeadRouter(notifier=notifier)
        intel = _intel(
            buy_intent_score=63,
            intent_category=IntentCategory.HOT,
            behavioral_signals=[BehavioralSignal(SignalType.DEMO_REQUEST, "can we get a demo?", 0.7)],
            company_research={"industry": "Healthcare", "compliance_requirements": ["HIPAA"]},
        )
        self._run(router, intel, UserInfo(company="Acme"), PriorityTier.TIER2)

        assert len(notifier.leads) == 1
        lead = notifier.leads[0]
        assert lead.intent_score == 63
        assert lead.industry == "Healthcare"
        assert lead.compliance_requirements == ["HIPAA"]
        assert lead.signal_summary.startswith("demo_request: can we get a demo?")
        assert notifier.confirmations == []

    def test_cold_lead_not_alerted(self, notifier):
        router = LeadRouter(notifier=notifier)
        self._run(router, _intel(), UserInfo(), PriorityTier.TIER3)
        assert notifier.leads == []

    def test_confirmation_needs_name_and_email(self, notifier):
        router = LeadRouter(notifier=notifier)
        self._run(router, _intel(), UserInfo(email="a@b.co"), PriorityTier.TIER3)
        assert notifier.confirmations == []
        self._run(router, _intel(), UserInfo(name="Jane Doe", email="a@b.co"), PriorityTier.TIER3)
        assert notifier.confirmations[0].first_name == "Jane"

    def test_mailing_list_tags(self, mailing_list):
        router = LeadRouter(mailing_list=mailing_list)
        intel = _intel(
            intent_category=IntentCategory.WARM,
            company_size=LeadCompanySize.ENTERPRISE,
            company_research={"industry": "Financial Services"},
        )
        self._run(router, intel, UserInfo(name="Jane Doe", email="a@b.co"), PriorityTier.TIER2)

        subscriber = mailing_list.subscribers[0]
        assert subscriber.last_name == "Doe"
        assert subscriber.tags == [
            "warm-lead", "size-enterprise", "enterprise-target", "industry-financial-services",
        ]

    def test_sink_failure_is_swallowed(self, failing_notifier):
        router = LeadRouter(notifier=failing_notifier)
        self._run(router, _intel(buy_intent_score=90), UserInfo(), PriorityTier.TIER1)
        assert router.pending_count == 0

    def test_no_sinks_schedules_nothing(self):
        async def go():
            return LeadRouter().dispatch(_intel(buy_intent_score=90), UserInfo(email="a@b.co"), PriorityTier.TIER1)
        assert asyncio.run(go()) == []


class TestIntentTags:
    def test_cold(self):
        assert get_intent_tags("cold") == ["cold-lead", "nurture"]

    def test_hot_with_size(self):
        assert get_intent_tags("hot", "mid-market") == ["hot-lead", "priority", "size-mid-market"]
