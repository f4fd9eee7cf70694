"""Tests for conversational intent classification."""

import pytest

from chat_intelligence.intent_classifier import IntentClassifier
from chat_intelligence.models import ConversationIntent


@pytest.fixture
def classifier():
    return IntentClassifier()


@pytest.mark.parametrize("message,expected", [
    ("What does the platform do?", ConversationIntent.LEARN_PRODUCT),
    ("Can you show me a demo?", ConversationIntent.SEE_DEMO),
    ("How much is a license?", ConversationIntent.UNDERSTAND_PRICING),
    ("Is there an API for this?", ConversationIntent.TECHNICAL_QUESTION),
    ("Which competitor is closest?", ConversationIntent.COMPARE_SOLUTIONS),
    ("What's the timeline to go live?", ConversationIntent.IMPLEMENTATION_TIMELINE),
    ("Got a case study?", ConversationIntent.CASE_STUDY),
    ("What ROI should we expect?", ConversationIntent.ROI_CALCULATION),
    ("Are you SOC 2 certified?", ConversationIntent.SECURITY_AUDIT),
    ("Hi there", ConversationIntent.GENERAL_INQUIRY),
])
def test_classify(classifier, message, expected):
    assert classifier.classify(message) == expected


class TestPrecedence:
    def test_demo_beats_pricing(self, classifier):
        assert classifier.classify("Show me a demo and the pricing") == ConversationIntent.SEE_DEMO

    def test_pricing_beats_technical(self, classifier):
        # "how does" is technical, but pricing is declared first
        assert classifier.classify("How does the pricing work?") == ConversationIntent.UNDERSTAND_PRICING

    def test_context_is_ignored(self, classifier):
        assert classifier.classify("hello", context=None) == ConversationIntent.GENERAL_INQUIRY
