"""Tests for lead persistence and merge semantics."""

import asyncio

import pytest

from lead_scoring.lead_router import LeadRouter, PriorityTier
from lead_scoring.lead_service import LeadService, merge_lead_intelligence
from lead_scoring.scoring_model import (
    IntentCategory,
    LeadCompanySize,
    LeadIntelligence,
    LeadIntelligenceScorer,
    QualificationStatus,
    UrgencyLevel,
    UserInfo,
)
from lead_scoring.signal_detector import BehavioralSignal, SignalType
from lead_scoring.store import InMemoryLeadStore

HOT_MESSAGE = "We're a healthcare company struggling with HIPAA audit trails, can we get a demo?"


@pytest.fixture
def store():
    return InMemoryLeadStore()


@pytest.fixture
def service(store, notifier):
    return LeadService(store=store, router=LeadRouter(notifier=notifier))


def run(coro):
    return asyncio.run(coro)


async def _process(service, *args, **kwargs):
    result = await service.process_message_for_intelligence(*args, **kwargs)
    await service.router.drain()
    return result


class TestMerge:
    def test_score_never_decreases(self):
        scorer = LeadIntelligenceScorer()
        existing = LeadIntelligence(user_id="u", buy_intent_score=70, intent_category=IntentCategory.HOT)
        incoming = LeadIntelligence(user_id="u", buy_intent_score=20, intent_category=IntentCategory.COLD)
        merged = merge_lead_intelligence(existing, incoming, scorer)
        assert merged.buy_intent_score == 70
        assert merged.intent_category == IntentCategory.HOT

    def test_urgency_and_qualification_keep_higher(self):
        scorer = LeadIntelligenceScorer()
        existing = LeadIntelligence(
            user_id="u",
            urgency=UrgencyLevel.HIGH,
            qualification_status=QualificationStatus.QUALIFIED,
        )
        quieter = LeadIntelligence(
            user_id="u",
            urgency=UrgencyLevel.LOW,
            qualification_status=QualificationStatus.NEW,
        )
        merged = merge_lead_intelligence(existing, quieter, scorer)
        assert merged.urgency == UrgencyLevel.HIGH
        assert merged.qualification_status == QualificationStatus.QUALIFIED

        louder = LeadIntelligence(user_id="u", urgency=UrgencyLevel.IMMEDIATE)
        assert merge_lead_intelligence(existing, louder, scorer).urgency == UrgencyLevel.IMMEDIATE

    def test_signals_capped_keeping_newest(self):
        scorer = LeadIntelligenceScorer()
        existing = LeadIntelligence(user_id="u", behavioral_signals=[
            BehavioralSignal(SignalType.PAIN_POINT, f"old {i}", 0.7) for i in range(4)
        ])
        incoming = LeadIntelligence(user_id="u", behavioral_signals=[
            BehavioralSignal(SignalType.DEMO_REQUEST, "new", 0.7),
        ])
        merged = merge_lead_intelligence(existing, incoming, scorer, signal_cap=3)
        assert [s.content for s in merged.behavioral_signals] == ["old 2", "old 3", "new"]

    def test_inferred_fields_fall_back_to_stored(self):
        scorer = LeadIntelligenceScorer()
        existing = LeadIntelligence(
            user_id="u",
            company_size=LeadCompanySize.ENTERPRISE,
            company_research={"industry": "Insurance"},
        )
        merged = merge_lead_intelligence(existing, LeadIntelligence(user_id="u"), scorer)
        assert merged.company_size == LeadCompanySize.ENTERPRISE
        assert merged.industry == "Insurance"

    def test_first_write_dedupes(self):
        scorer = LeadIntelligenceScorer()
        incoming = LeadIntelligence(user_id="u", behavioral_signals=[
            BehavioralSignal(SignalType.DEMO_REQUEST, "demo", 0.7),
            BehavioralSignal(SignalType.DEMO_REQUEST, "demo", 0.9),
        ])
        merged = merge_lead_intelligence(None, incoming, scorer)
        assert [s.confidence for s in merged.behavioral_signals] == [0.9]


class TestProcessMessage:
    def test_hot_lead_persisted_and_routed(self, service, store, notifier):
        result = run(_process(service, "session-a", HOT_MESSAGE, UserInfo(email="cto@clinic.example")))

        assert result.intelligence.buy_intent_score == 63
        assert result.intelligence.intent_category == IntentCategory.HOT
        assert result.priority_tier == PriorityTier.TIER1
        assert result.user["email"] == "cto@clinic.example"
        assert len(store.lead_intelligence) == 1
        assert len(notifier.leads) == 1

        conversation = next(iter(store.conversations.values()))
        assert conversation["messages"] == [{"role": "user", "content": HOT_MESSAGE}]

    def test_score_accumulates_across_turns(self, service):
        async def go():
            first = await _process(service, "session-b", "what does pricing look like?")
            second = await _process(
                service, "session-b", "hello again",
                conversation_history=[
                    {"role": "user", "content": "what does pricing look like?"},
                    {"role": "assistant", "content": "It depends on scale."},
                ],
            )
            return first, second

        first, second = run(go())
        assert second.intelligence.buy_intent_score >= first.intelligence.buy_intent_score
        assert second.intelligence.behavioral_signals[0].signal_type == SignalType.PRICING_INTEREST

    def test_contact_details_not_erased(self, service, store):
        async def go():
            await _process(service, "session-c", "hi", UserInfo(name="Jane Doe", email="jane@example.com"))
            await _process(service, "session-c", "thanks", UserInfo(company="Acme"))

        run(go())
        user = next(iter(store.users.values()))
        assert user["email"] == "jane@example.com"
        assert user["company"] == "Acme"

    def test_stored_contact_counts_toward_qualification(self, service, notifier):
        async def go():
            await _process(service, "session-n", "hi", UserInfo(name="Jane Doe", email="jane.com"))
            return await _process(service, "session-n", HOT_MESSAGE, conversation_history=[
                {"role": "user", "content": "hi"},
                {"role": "assistant", "content": "Hello."},
            ])

        result = run(go())
        assert result.intelligence.qualification_status == QualificationStatus.QUALIFIED
        assert result.priority_tier == PriorityTier.TIER1
        assert notifier.leads[-1].email == "jane.com"
        assert notifier.leads[-1].name == "Jane Doe"

    def test_confirmation_sent_once(self, service, notifier):
        jane = UserInfo(name="Jane Doe", email="jane@example.com")

        async def go():
            await _process(service, "session-m", "hi", UserInfo(name="Jane Doe"))
            await _process(service, "session-m", "hi again", jane)
            await _process(service, "session-m", "one more thing", jane)

        run(go())
        assert [c.email for c in notifier.confirmations] == ["jane@example.com"]

    def test_transcript_replaced_not_appended(self, service, store):
        async def go():
            await _process(service, "session-d", "first")
            await _process(service, "session-d", "second", conversation_history=[
                {"role": "user", "content": "first"},
                {"role": "assistant", "content": "ok"},
            ])

        run(go())
        assert len(store.conversations) == 1
        conversation = next(iter(store.conversations.values()))
        assert [m["content"] for m in conversation["messages"]] == ["first", "ok", "second"]

    def test_without_store(self):
        service = LeadService()
        result = run(service.process_message_for_intelligence("session-e", HOT_MESSAGE))
        assert result.user is None
        assert result.intelligence is None
        assert result.priority_tier == PriorityTier.TIER3


class TestFailingStore:
    def test_write_failure_returns_none(self, store):
        async def broken(user_id, merge):
            raise ConnectionError("db gone")

        store.upsert_lead_intelligence = broken
        service = LeadService(store=store)
        intel = LeadIntelligence(user_id="u")
        assert run(service.upsert_lead_intelligence("u", intel)) is None

    def test_scored_intelligence_used_when_write_fails(self, store):
        async def broken(user_id, merge):
            raise ConnectionError("db gone")

        store.upsert_lead_intelligence = broken
        service = LeadService(store=store)
        result = run(_process(service, "session-f", HOT_MESSAGE))
        assert result.intelligence.buy_intent_score == 63


class TestQueries:
    def test_lead_by_session(self, service):
        run(_process(service, "session-g", HOT_MESSAGE))
        lead = run(service.get_lead_by_session("session-g"))
        assert lead["user"]["session_id"] == "session-g"
        assert lead["intelligence"]["intent_category"] == "hot"

    def test_unknown_session(self, service):
        assert run(service.get_lead_by_session("nope")) == {"user": None, "intelligence": None}

    def test_unavailable_store(self):
        assert run(LeadService().get_lead_by_session("nope")) is None

    def test_all_leads_filtered(self, service):
        async def go():
            await _process(service, "session-h", HOT_MESSAGE)
            await _process(service, "session-i", "hello")
            return (
                await service.get_all_leads(),
                await service.get_all_leads({"intent_category": "hot", "bogus": "x"}),
            )

        everything, hot = run(go())
        assert len(everything) == 2
        assert [lead["user"]["session_id"] for lead in hot] == ["session-h"]

    def test_stats(self, service):
        async def go():
            await _process(service, "session-j", HOT_MESSAGE, UserInfo(email="a@b.co"))
            await _process(service, "session-k", "hello")
            return await service.get_lead_stats()

        stats = run(go())
        assert stats["total"] == 2
        assert stats["hot"] == 1
        assert stats["cold"] == 1
        assert stats["qualified"] == 1
        assert stats["recent_leads"] == 2

    def test_stats_without_store(self):
        assert run(LeadService().get_lead_stats())["total"] == 0


class TestRecordSession:
    def test_pages_added_once(self, service, store):
        async def go():
            await service.record_session("session-l", ip_address="10.0.0.1", current_page="/pricing")
            await service.record_session("session-l", current_page="/pricing")
            await service.record_session("session-l", current_page="/security")

        run(go())
        visitor = next(iter(store.visitor_sessions.values()))
        assert visitor["ip_address"] == "10.0.0.1"
        assert [p["page"] for p in visitor["pages_visited"]] == ["/pricing", "/security"]
