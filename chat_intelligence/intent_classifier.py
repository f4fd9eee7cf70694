"""
Conversational intent classification.

Maps a visitor message to a single ConversationIntent used for card
routing. Categories are checked in declaration order and the first
category with any matching pattern wins.
"""

import re
import logging
from typing import Dict, Optional, Pattern, Tuple

from .models import ConversationIntent, UserContext

logger = logging.getLogger(__name__)


class IntentClassifier:
    """
    Rule-based conversational intent classifier.

    Kept separate from the lead-scoring signal table: card routing and
    score accumulation tolerate false positives differently.
    """

    INTENT_PATTERNS: Dict[ConversationIntent, Tuple[Pattern, ...]] = {
        ConversationIntent.LEARN_PRODUCT: (
            re.compile(
                r"\b(what\s*(is|does)|how\s*does|tell\s*me\s*about|explain|learn)\b.*\b(arqai|platform|product)\b",
                re.IGNORECASE,
            ),
            re.compile(r"\bwhat\s*can\s*(you|arqai)\s*do\b", re.IGNORECASE),
        ),
        ConversationIntent.SEE_DEMO: (
            re.compile(r"\b(demo|demonstration|see\s*it|show\s*me|walk\s*through)\b", re.IGNORECASE),
        ),
        ConversationIntent.UNDERSTAND_PRICING: (
            re.compile(r"\b(price|pricing|cost|how\s*much|subscription|license)\b", re.IGNORECASE),
        ),
        ConversationIntent.TECHNICAL_QUESTION: (
            re.compile(
                r"\b(how\s*(do|does|to)|architecture|api|integrate|technical|implementation)\b",
                re.IGNORECASE,
            ),
        ),
        ConversationIntent.COMPARE_SOLUTIONS: (
            re.compile(
                r"\b(compare|comparison|vs|versus|alternative|different\s*from|competitor)\b",
                re.IGNORECASE,
            ),
        ),
        ConversationIntent.IMPLEMENTATION_TIMELINE: (
            re.compile(r"\b(how\s*long|timeline|implement|deploy|get\s*started|onboard)\b", re.IGNORECASE),
        ),
        ConversationIntent.CASE_STUDY: (
            re.compile(r"\b(case\s*study|example|customer|success\s*story|who\s*uses)\b", re.IGNORECASE),
        ),
        ConversationIntent.ROI_CALCULATION: (
            re.compile(r"\b(roi|return|savings|value|worth|benefit|business\s*case)\b", re.IGNORECASE),
        ),
        ConversationIntent.SECURITY_AUDIT: (
            re.compile(r"\b(security|soc\s*2|penetration|audit|compliance\s*cert)\b", re.IGNORECASE),
        ),
        ConversationIntent.GENERAL_INQUIRY: (),
    }

    def classify(
        self,
        message: str,
        context: Optional[UserContext] = None,
    ) -> ConversationIntent:
        """
        Classify the conversational intent of a message.

        Args:
            message: Visitor message text
            context: Current user context (accepted for interface parity;
                classification depends on the message only)

        Returns:
            First matching intent, or GENERAL_INQUIRY
        """
        for intent, patterns in self.INTENT_PATTERNS.items():
            if any(p.search(message) for p in patterns):
                logger.debug(f"Classified intent: {intent.value}")
                return intent
        return ConversationIntent.GENERAL_INQUIRY
