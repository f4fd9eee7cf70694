"""Tests for the conversational entity extractor."""

import pytest

from chat_intelligence.entity_extractor import EntityExtractor
from chat_intelligence.models import ComplianceFramework, Industry, PainPoint, UseCase


@pytest.fixture
def extractor():
    return EntityExtractor()


class TestIndustry:
    def test_healthcare(self, extractor):
        entities = extractor.extract("We run a hospital network")
        assert entities.industry == Industry.HEALTHCARE

    def test_first_match_wins(self, extractor):
        # Both healthcare and financial keywords; healthcare is declared first
        entities = extractor.extract("A hospital with a big finance team")
        assert entities.industry == Industry.HEALTHCARE

    def test_insurance(self, extractor):
        entities = extractor.extract("We are an insurer focused on underwriting")
        assert entities.industry == Industry.INSURANCE

    def test_no_industry(self, extractor):
        entities = extractor.extract("Hello there")
        assert entities.industry is None


class TestMultiValue:
    def test_compliance_frameworks(self, extractor):
        entities = extractor.extract("We need HIPAA and GDPR coverage, plus SOX reporting")
        assert entities.compliance_frameworks == [
            ComplianceFramework.HIPAA,
            ComplianceFramework.SOX,
            ComplianceFramework.GDPR,
        ]

    def test_pain_points(self, extractor):
        entities = extractor.extract("Audit prep is manual and we lack visibility")
        assert PainPoint.AUDIT_TRAIL in entities.pain_points
        assert PainPoint.MANUAL_PROCESSES in entities.pain_points
        assert PainPoint.LACK_VISIBILITY in entities.pain_points

    def test_use_cases(self, extractor):
        entities = extractor.extract("We want to automate claims and detect fraud")
        assert UseCase.CLAIMS_PROCESSING in entities.use_cases
        assert UseCase.FRAUD_DETECTION in entities.use_cases
        assert UseCase.WORKFLOW_AUTOMATION in entities.use_cases

    def test_empty_message(self, extractor):
        entities = extractor.extract("")
        assert entities.is_empty()


class TestCountsAndCompany:
    def test_agent_count(self, extractor):
        entities = extractor.extract("We have 25 AI agents in production")
        assert entities.agent_count == 25

    def test_workflow_count(self, extractor):
        entities = extractor.extract("about 4 workflows so far")
        assert entities.agent_count == 4

    def test_company_name(self, extractor):
        entities = extractor.extract("I work at Acme Health.")
        assert entities.company_name == "Acme Health"

    def test_company_requires_capitalised_name(self, extractor):
        entities = extractor.extract("I work at a small clinic.")
        assert entities.company_name is None

    def test_company_stops_at_conjunction(self, extractor):
        entities = extractor.extract("I'm with Globex and we need help")
        assert entities.company_name == "Globex"


class TestContactInfo:
    def test_email_and_phone(self, extractor):
        info = extractor.extract_contact_info("Reach me at jane.doe@example.com or 555-123-4567")
        assert info.email == "jane.doe@example.com"
        assert info.phone == "555-123-4567"

    def test_name(self, extractor):
        info = extractor.extract_contact_info("Hi, my name is Jane Doe")
        assert info.name == "Jane Doe"

    def test_name_here(self, extractor):
        info = extractor.extract_contact_info("Sam here, quick question")
        assert info.name == "Sam"

    def test_job_title(self, extractor):
        info = extractor.extract_contact_info("I am the head of compliance at Initech.")
        assert info.job_title == "head of compliance"

    def test_company(self, extractor):
        info = extractor.extract_contact_info("Our company is Initech.")
        assert info.company == "Initech"

    def test_nothing_found(self, extractor):
        info = extractor.extract_contact_info("what does it cost?")
        assert info.to_dict() == {}


class TestBuyingSignals:
    def test_multiple_signals(self, extractor):
        signals = extractor.detect_buying_signals("Our CTO approved budget for a pilot")
        assert signals == ["budget_discussion", "authority_mention", "pilot_interest"]

    def test_no_signals(self, extractor):
        assert extractor.detect_buying_signals("hello") == []
