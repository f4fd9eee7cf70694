"""Tests for Lead Scoring components."""

import pytest

from lead_scoring.scoring_model import (
    IntentCategory,
    LeadCompanySize,
    LeadIntelligence,
    LeadIntelligenceScorer,
    QualificationStatus,
    UrgencyLevel,
    UserInfo,
    round_half_up,
)
from lead_scoring.signal_detector import BehavioralSignal, SignalType


@pytest.fixture
def scorer():
    return LeadIntelligenceScorer()


def _signal(signal_type, confidence=1.0, content="x"):
    return BehavioralSignal(signal_type, content, confidence)


# ── Score ─────────────────────────────────────────────

class TestIntentScore:
    def test_empty(self, scorer):
        assert scorer.calculate_intent_score([]) == 0

    def test_each_type_counts_once(self, scorer):
        signals = [
            _signal(SignalType.DEMO_REQUEST, 0.7, "demo"),
            _signal(SignalType.DEMO_REQUEST, 0.9, "pilot"),
        ]
        assert scorer.calculate_intent_score(signals) == 28

    def test_diversity_bonus_three_types(self, scorer):
        signals = [
            _signal(SignalType.FEATURE_INTEREST),
            _signal(SignalType.PAIN_POINT),
            _signal(SignalType.INTEGRATION_QUESTION),
        ]
        assert scorer.calculate_intent_score(signals) == 10 + 15 + 15 + 10

    def test_diversity_bonus_five_types(self, scorer):
        signals = [
            _signal(SignalType.FEATURE_INTEREST, 0.7),
            _signal(SignalType.PAIN_POINT, 0.7),
            _signal(SignalType.INTEGRATION_QUESTION, 0.7),
            _signal(SignalType.COMPETITOR_MENTION, 0.7),
            _signal(SignalType.COMPLIANCE_MENTION, 0.7),
        ]
        # 0.7 * 80 = 56, +10 +15
        assert scorer.calculate_intent_score(signals) == 81

    def test_capped_at_100(self, scorer):
        signals = [_signal(t) for t in SignalType]
        assert scorer.calculate_intent_score(signals) == 100

    def test_unknown_type_uses_default_weight(self, scorer):
        assert scorer.calculate_intent_score([_signal("legacy_signal")]) == 5

    def test_custom_weights(self):
        scorer = LeadIntelligenceScorer(custom_weights={"demo_request": 50})
        assert scorer.calculate_intent_score([_signal(SignalType.DEMO_REQUEST)]) == 50

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(62.5) == 63
        assert round_half_up(62.4) == 62


class TestCategory:
    @pytest.mark.parametrize("score,expected", [
        (0, IntentCategory.COLD),
        (29, IntentCategory.COLD),
        (30, IntentCategory.WARM),
        (59, IntentCategory.WARM),
        (60, IntentCategory.HOT),
        (100, IntentCategory.HOT),
    ])
    def test_thresholds(self, scorer, score, expected):
        assert scorer.get_intent_category(score) == expected


# ── Inference ─────────────────────────────────────────

class TestInference:
    def test_urgency_immediate_keyword(self, scorer):
        assert scorer.determine_urgency([], ["We need this ASAP"]) == UrgencyLevel.IMMEDIATE

    def test_urgency_demo_is_high(self, scorer):
        signals = [_signal(SignalType.DEMO_REQUEST)]
        assert scorer.determine_urgency(signals, ["book a demo"]) == UrgencyLevel.HIGH

    def test_urgency_timeline_is_medium(self, scorer):
        signals = [_signal(SignalType.TIMELINE_MENTION)]
        assert scorer.determine_urgency(signals, ["what's the timeline"]) == UrgencyLevel.MEDIUM

    def test_urgency_low(self, scorer):
        assert scorer.determine_urgency([], ["hello"]) == UrgencyLevel.LOW

    def test_company_size(self, scorer):
        assert scorer.infer_company_size(["We're a seed stage startup"]) == LeadCompanySize.STARTUP
        assert scorer.infer_company_size(["about 200 employees"]) == LeadCompanySize.MID_MARKET
        assert scorer.infer_company_size(["a Fortune 500 bank"]) == LeadCompanySize.ENTERPRISE
        assert scorer.infer_company_size(["hi"]) is None

    def test_role_seniority(self, scorer):
        assert scorer.infer_role_seniority("Chief Risk Officer") == "executive"
        assert scorer.infer_role_seniority("VP Engineering") == "director"
        assert scorer.infer_role_seniority("Data Analyst") == "individual"
        assert scorer.infer_role_seniority("Astronaut") == "unknown"
        assert scorer.infer_role_seniority(None) is None

    @pytest.mark.parametrize("score,email,company,size,expected", [
        (50, True, False, LeadCompanySize.ENTERPRISE, QualificationStatus.QUALIFIED),
        (60, True, False, None, QualificationStatus.QUALIFIED),
        (60, False, True, None, QualificationStatus.NURTURE),
        (30, True, False, None, QualificationStatus.NURTURE),
        (19, False, False, None, QualificationStatus.UNQUALIFIED),
        (25, False, False, None, QualificationStatus.NEW),
        (10, True, False, None, QualificationStatus.NEW),
    ])
    def test_qualification(self, scorer, score, email, company, size, expected):
        assert scorer.determine_qualification_status(score, email, company, size) == expected

    def test_compliance_and_industry(self, scorer):
        messages = ["Our bank needs SOX controls", "also GDPR for EU data"]
        assert scorer.extract_compliance_requirements(messages) == ["GDPR", "SOX"]
        assert scorer.extract_industry(messages) == "Financial Services"


# ── End to end ────────────────────────────────────────

class TestGenerate:
    def test_healthcare_demo_request_is_hot(self, scorer):
        message = "We're a healthcare company struggling with HIPAA audit trails, can we get a demo?"
        intel = scorer.generate("user-1", [message])

        types = {s.type_value for s in intel.behavioral_signals}
        assert {"demo_request", "compliance_mention", "pain_point"} <= types
        assert intel.buy_intent_score == 63
        assert intel.intent_category == IntentCategory.HOT
        assert intel.urgency == UrgencyLevel.HIGH
        assert intel.industry == "Healthcare"
        assert "HIPAA" in intel.compliance_requirements
        assert intel.qualification_status == QualificationStatus.NEW

    def test_empty_conversation_is_unqualified(self, scorer):
        intel = scorer.generate("user-2", [])
        assert intel.buy_intent_score == 0
        assert intel.intent_category == IntentCategory.COLD
        assert intel.qualification_status == QualificationStatus.UNQUALIFIED
        assert intel.behavioral_signals == []
        assert intel.company_research is None

    def test_email_qualifies_hot_lead(self, scorer):
        message = "We're a healthcare company struggling with HIPAA audit trails, can we get a demo?"
        intel = scorer.generate("user-3", [message], UserInfo(email="cto@clinic.example", job_title="CTO"))
        assert intel.qualification_status == QualificationStatus.QUALIFIED
        assert intel.user_research == {"role_seniority": "executive"}

    def test_existing_signals_are_kept(self, scorer):
        existing = [_signal(SignalType.PRICING_INTEREST, 0.7, "what does it cost")]
        intel = scorer.generate("user-4", ["book a demo"], existing_signals=existing)
        assert [s.type_value for s in intel.behavioral_signals] == ["pricing_interest", "demo_request"]
        # 25 * 0.7 + 40 * 0.7 = 45.5
        assert intel.buy_intent_score == 46

    def test_record_round_trip(self, scorer):
        intel = scorer.generate("user-5", ["Book a demo for our enterprise"])
        restored = LeadIntelligence.from_dict(intel.to_dict())
        assert restored.company_size == LeadCompanySize.ENTERPRISE
        assert restored.behavioral_signals[0].signal_type == SignalType.DEMO_REQUEST
        assert restored.updated_at == intel.updated_at
