"""Tests for behavioral signal detection."""

import pytest

from lead_scoring.signal_detector import (
    BehavioralSignal,
    SignalDetector,
    SignalType,
    deduplicate_signals,
)


@pytest.fixture
def detector():
    return SignalDetector()


class TestDetect:
    def test_one_signal_per_type(self, detector):
        signals = detector.detect("What's the price? Any pricing tiers or cost breakdown?")
        assert [s.signal_type for s in signals] == [SignalType.PRICING_INTEREST]

    def test_table_order(self, detector):
        signals = detector.detect("Can we book a demo to discuss HIPAA?")
        assert [s.signal_type for s in signals] == [
            SignalType.DEMO_REQUEST,
            SignalType.COMPLIANCE_MENTION,
        ]

    def test_specific_pattern_gets_high_confidence(self, detector):
        signals = detector.detect("We have a compliance risk")
        pain = [s for s in signals if s.signal_type == SignalType.PAIN_POINT][0]
        assert pain.confidence == 0.9

    def test_short_pattern_gets_base_confidence(self, detector):
        signals = detector.detect("demo please")
        assert signals[0].confidence == 0.7

    def test_content_truncated(self, detector):
        message = "pricing " + "x" * 500
        assert len(detector.detect(message)[0].content) == 200

    def test_no_signals(self, detector):
        assert detector.detect("hello") == []


class TestDeduplicate:
    def test_higher_confidence_replaces(self):
        low = BehavioralSignal(SignalType.DEMO_REQUEST, "Book a demo", 0.7)
        high = BehavioralSignal(SignalType.DEMO_REQUEST, "  book a DEMO ", 0.9)
        assert deduplicate_signals([low, high]) == [high]

    def test_tie_keeps_first(self):
        first = BehavioralSignal(SignalType.DEMO_REQUEST, "demo", 0.7, timestamp="t1")
        second = BehavioralSignal(SignalType.DEMO_REQUEST, "demo", 0.7, timestamp="t2")
        assert deduplicate_signals([first, second]) == [first]

    def test_different_types_kept(self):
        signals = [
            BehavioralSignal(SignalType.DEMO_REQUEST, "demo and pricing", 0.7),
            BehavioralSignal(SignalType.PRICING_INTEREST, "demo and pricing", 0.7),
        ]
        assert len(deduplicate_signals(signals)) == 2


class TestSerialization:
    def test_unknown_type_preserved(self):
        signal = BehavioralSignal.from_dict({"type": "legacy_signal", "content": "x", "confidence": 0.5})
        assert signal.signal_type == "legacy_signal"
        assert signal.to_dict()["type"] == "legacy_signal"

    def test_known_type_parsed(self):
        signal = BehavioralSignal.from_dict({
            "type": "demo_request", "content": "demo", "confidence": 0.7, "timestamp": "2026-01-01T00:00:00+00:00",
        })
        assert signal.signal_type == SignalType.DEMO_REQUEST
        assert signal.timestamp == "2026-01-01T00:00:00+00:00"
