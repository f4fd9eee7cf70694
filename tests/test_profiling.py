"""Tests for profiling-question scheduling."""

import random

import pytest

from chat_intelligence.context_store import create_initial_context, update_context
from chat_intelligence.models import ComplianceFramework, Industry, PainPoint
from chat_intelligence.profiling import ProfilingScheduler


@pytest.fixture
def context():
    return create_initial_context("session_profile")


class TestNextQuestion:
    def test_industry_first(self, context):
        question = ProfilingScheduler().next_question(context, [])
        assert question.id == "industry_regulated"

    def test_compliance_after_industry(self, context):
        ctx = update_context(context, {"industry": Industry.HEALTHCARE})
        assert ProfilingScheduler().next_question(ctx, []).id == "compliance_specific"

    def test_agent_count_only_with_existing_ai(self, context):
        ctx = update_context(context, {
            "industry": Industry.HEALTHCARE,
            "compliance_frameworks": [ComplianceFramework.HIPAA],
            "has_existing_ai": True,
        })
        assert ProfilingScheduler().next_question(ctx, []).id == "agent_count"

    def test_nothing_left_to_ask(self, context):
        ctx = update_context(context, {
            "industry": Industry.HEALTHCARE,
            "compliance_frameworks": [ComplianceFramework.HIPAA],
            "has_existing_ai": False,
            "pain_points": [PainPoint.AUDIT_TRAIL],
        })
        assert ProfilingScheduler().next_question(ctx, []) is None

    def test_skips_already_asked(self, context):
        ctx = update_context(context, {"questions_asked": ["industry_regulated"]})
        assert ProfilingScheduler().next_question(ctx, []).id == "current_ai"

    def test_suppressed_after_two_recent_questions(self, context):
        recent = [
            {"role": "assistant", "content": "Which industry?"},
            {"role": "user", "content": "healthcare"},
            {"role": "assistant", "content": "Any frameworks?"},
            {"role": "user", "content": "not sure"},
        ]
        assert ProfilingScheduler().next_question(context, recent) is None

    def test_old_questions_fall_out_of_window(self, context):
        recent = [
            {"role": "assistant", "content": "Which industry?"},
            {"role": "assistant", "content": "Any frameworks?"},
            {"role": "user", "content": "a"},
            {"role": "assistant", "content": "Noted."},
            {"role": "user", "content": "b"},
            {"role": "assistant", "content": "Thanks."},
        ]
        assert ProfilingScheduler().next_question(context, recent) is not None


class TestShouldAsk:
    def test_never_on_first_message(self, context):
        scheduler = ProfilingScheduler(random_source=lambda: 0.0)
        assert scheduler.should_ask(context, 1, "") is False

    def test_second_message_may_ask(self, context):
        scheduler = ProfilingScheduler(random_source=lambda: 0.0)
        assert scheduler.should_ask(context, 2, "Got it.") is True

    def test_never_after_assistant_question(self, context):
        scheduler = ProfilingScheduler(random_source=lambda: 0.0)
        assert scheduler.should_ask(context, 3, "What do you do?") is False

    @pytest.mark.parametrize("count", [3, 6, 10])
    def test_checkpoints_always_ask(self, context, count):
        scheduler = ProfilingScheduler(random_source=lambda: 0.99)
        assert scheduler.should_ask(context, count, "Got it.") is True

    def test_random_branch_below_chance(self, context):
        scheduler = ProfilingScheduler(ask_chance=0.3, random_source=lambda: 0.29)
        assert scheduler.should_ask(context, 4, "Got it.") is True

    def test_random_branch_above_chance(self, context):
        scheduler = ProfilingScheduler(ask_chance=0.3, random_source=lambda: 0.3)
        assert scheduler.should_ask(context, 4, "Got it.") is False

    def test_seeded_rng_is_repeatable(self, context):
        first = ProfilingScheduler(random_source=random.Random(7).random)
        second = ProfilingScheduler(random_source=random.Random(7).random)
        outcomes = [first.should_ask(context, 4, "") for _ in range(20)]
        assert outcomes == [second.should_ask(context, 4, "") for _ in range(20)]
