"""
Profiling-question scheduling.

Decides whether to weave a profiling question into the next reply and
which one. The decision to ask is partly random; the random source is
injectable so callers can pin it.
"""

import random
import logging
from typing import Callable, Dict, List, Optional, Sequence

from .models import ProfilingQuestion, UserContext

logger = logging.getLogger(__name__)


PROFILING_QUESTIONS: List[ProfilingQuestion] = [
    ProfilingQuestion(
        id="industry_regulated",
        question=(
            "To show you the most relevant examples, are you working in a regulated "
            "industry like healthcare, finance, or insurance?"
        ),
        context_key="industry",
        priority=1,
        condition=lambda ctx: not ctx.industry,
    ),
    ProfilingQuestion(
        id="compliance_specific",
        question="Are there specific compliance requirements you're working with? (HIPAA, SOX, GDPR, etc.)",
        context_key="compliance_frameworks",
        priority=2,
        condition=lambda ctx: ctx.industry is not None and not ctx.compliance_frameworks,
    ),
    ProfilingQuestion(
        id="current_ai",
        question=(
            "Are you currently running AI agents or workflows in production, "
            "or exploring how to get started?"
        ),
        context_key="has_existing_ai",
        priority=3,
        condition=lambda ctx: ctx.has_existing_ai is None,
    ),
    ProfilingQuestion(
        id="agent_count",
        question="Roughly how many AI agents or workflows are you looking to manage?",
        context_key="ai_agent_count",
        priority=4,
        condition=lambda ctx: ctx.has_existing_ai is True and ctx.ai_agent_count is None,
    ),
    ProfilingQuestion(
        id="main_challenge",
        question="What's the biggest challenge you're facing with AI governance right now?",
        context_key="pain_points",
        priority=5,
        condition=lambda ctx: not ctx.pain_points,
    ),
]


class ProfilingScheduler:
    """
    Picks profiling questions for the chat assistant.

    Args:
        questions: Candidate questions (defaults to PROFILING_QUESTIONS)
        ask_chance: Probability of asking outside the fixed checkpoints
        random_source: Zero-argument callable returning a float in [0, 1)
    """

    CHECKPOINTS = (3, 6, 10)
    MIN_MESSAGES = 2
    RECENT_WINDOW = 4
    MAX_RECENT_QUESTIONS = 2

    def __init__(
        self,
        questions: Optional[Sequence[ProfilingQuestion]] = None,
        ask_chance: float = 0.3,
        random_source: Optional[Callable[[], float]] = None,
    ):
        self.questions = sorted(
            questions if questions is not None else PROFILING_QUESTIONS,
            key=lambda q: q.priority,
        )
        self.ask_chance = ask_chance
        self.random_source = random_source or random.random

    def next_question(
        self,
        context: UserContext,
        recent_messages: Sequence[Dict[str, str]],
    ) -> Optional[ProfilingQuestion]:
        """
        Return the highest-priority unasked question whose condition holds.

        Returns None when 2 or more of the last 4 messages are assistant
        messages containing a question mark.
        """
        recent_questions = [
            m for m in list(recent_messages)[-self.RECENT_WINDOW:]
            if m.get("role") == "assistant" and "?" in m.get("content", "")
        ]
        if len(recent_questions) >= self.MAX_RECENT_QUESTIONS:
            return None

        for question in self.questions:
            if question.id in context.questions_asked:
                continue
            if question.applies_to(context):
                return question
        return None

    def should_ask(
        self,
        context: UserContext,
        message_count: int,
        last_assistant_message: str,
    ) -> bool:
        """
        Decide whether to ask a profiling question this turn.

        Never on the first message (``message_count`` below MIN_MESSAGES)
        or right after the assistant asked something. Always at the
        checkpoint counts, otherwise with probability ``ask_chance``.
        """
        if message_count < self.MIN_MESSAGES:
            return False
        if "?" in (last_assistant_message or ""):
            return False
        if message_count in self.CHECKPOINTS:
            return True
        return self.random_source() < self.ask_chance
