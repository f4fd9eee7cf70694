"""
Entity Extraction for the conversational engine.

Extracts profile entities from visitor messages:
- Industry (first match wins)
- Compliance frameworks, pain points, use cases (all matches)
- AI agent / workflow counts
- Company name
- Contact details volunteered in chat
"""

import re
import logging
from typing import Dict, List, Optional, Pattern, Tuple

from .models import (
    ComplianceFramework,
    ContactInfo,
    ExtractedEntities,
    Industry,
    PainPoint,
    UseCase,
)

logger = logging.getLogger(__name__)


def _compile(*patterns: str) -> Tuple[Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


class EntityExtractor:
    """
    Extracts entities from visitor messages.

    Every category maps each value to an ordered list of case-insensitive
    patterns. Tables are evaluated in declaration order.
    """

    INDUSTRY_PATTERNS: Dict[Industry, Tuple[Pattern, ...]] = {
        Industry.HEALTHCARE: _compile(
            r"\b(healthcare|health\s*care|hospital|clinic|medical|patient|hipaa|ehr|emr|health\s*system)\b",
        ),
        Industry.FINANCIAL_SERVICES: _compile(
            r"\b(bank|banking|financial|finance|fintech|investment|trading|sox|credit|loan)\b",
        ),
        Industry.INSURANCE: _compile(
            r"\b(insurance|insurer|underwriting|claims|actuarial|policy\s*holder|naic)\b",
        ),
        Industry.MANUFACTURING: _compile(
            r"\b(manufacturing|factory|production|industrial|supply\s*chain|quality\s*control)\b",
        ),
        Industry.RETAIL: _compile(
            r"\b(retail|e-?commerce|shopping|merchant|consumer|store|inventory)\b",
        ),
        Industry.TECHNOLOGY: _compile(
            r"\b(tech|software|saas|startup|developer|engineering|platform)\b",
        ),
        Industry.GOVERNMENT: _compile(
            r"\b(government|federal|state|agency|public\s*sector|fedramp|municipality)\b",
        ),
        Industry.ENERGY: _compile(
            r"\b(energy|oil|gas|utilities|power|renewable|grid)\b",
        ),
        Industry.TELECOM: _compile(
            r"\b(telecom|telecommunications|carrier|network|mobile|5g)\b",
        ),
        Industry.OTHER: (),
    }

    COMPLIANCE_PATTERNS: Dict[ComplianceFramework, Tuple[Pattern, ...]] = {
        ComplianceFramework.HIPAA: _compile(r"\bhipaa\b", r"\bprotected\s*health\s*information\b", r"\bphi\b"),
        ComplianceFramework.SOX: _compile(r"\bsox\b", r"\bsarbanes[\s-]*oxley\b"),
        ComplianceFramework.GDPR: _compile(r"\bgdpr\b", r"\bgeneral\s*data\s*protection\b"),
        ComplianceFramework.CCPA: _compile(r"\bccpa\b", r"\bcalifornia\s*consumer\s*privacy\b"),
        ComplianceFramework.PCI_DSS: _compile(r"\bpci[\s-]*dss\b", r"\bpayment\s*card\s*industry\b"),
        ComplianceFramework.NAIC: _compile(r"\bnaic\b", r"\binsurance\s*commissioner\b"),
        ComplianceFramework.FINRA: _compile(r"\bfinra\b", r"\bfinancial\s*industry\s*regulatory\b"),
        ComplianceFramework.FEDRAMP: _compile(r"\bfedramp\b", r"\bfederal\s*risk\b"),
        ComplianceFramework.ISO27001: _compile(r"\biso\s*27001\b", r"\binformation\s*security\s*management\b"),
    }

    PAIN_POINT_PATTERNS: Dict[PainPoint, Tuple[Pattern, ...]] = {
        PainPoint.COMPLIANCE_COMPLEXITY: _compile(
            r"\b(compliance|regulatory|regulation|compliant)\b.*\b(complex|difficult|hard|challenge)\b",
            r"\b(complex|difficult|hard|challenge)\b.*\b(compliance|regulatory)\b",
        ),
        PainPoint.AUDIT_TRAIL: _compile(
            r"\b(audit|auditor|auditing|audit\s*trail|evidence|proof)\b",
        ),
        PainPoint.AI_GOVERNANCE: _compile(
            r"\b(govern|governance|oversight|control)\b.*\b(ai|agent|model)\b",
            r"\b(ai|agent|model)\b.*\b(govern|governance|oversight|control)\b",
        ),
        PainPoint.SECURITY_CONCERNS: _compile(
            r"\b(security|secure|breach|vulnerability|attack|risk)\b",
        ),
        PainPoint.SCALING_AI: _compile(
            r"\b(scale|scaling|grow|expand)\b.*\b(ai|agent|automation)\b",
        ),
        PainPoint.COST_REDUCTION: _compile(
            r"\b(cost|expensive|budget|roi|savings|reduce\s*cost)\b",
        ),
        PainPoint.RISK_MANAGEMENT: _compile(
            r"\b(risk|risky|risk\s*management|mitigate)\b",
        ),
        PainPoint.MANUAL_PROCESSES: _compile(
            r"\b(manual|time[\s-]*consuming|tedious|repetitive|automate)\b",
        ),
        PainPoint.LACK_VISIBILITY: _compile(
            r"\b(visibility|monitor|observability|track|insight|blind)\b",
        ),
        PainPoint.INTEGRATION_CHALLENGES: _compile(
            r"\b(integrate|integration|connect|api|ecosystem)\b",
        ),
        PainPoint.QUALITY_CONTROL: _compile(
            r"\b(quality|accuracy|hallucination|reliable|trust)\b",
        ),
    }

    USE_CASE_PATTERNS: Dict[UseCase, Tuple[Pattern, ...]] = {
        UseCase.DOCUMENT_PROCESSING: _compile(r"\b(document|pdf|contract|extract|ocr|processing)\b"),
        UseCase.CUSTOMER_SERVICE: _compile(r"\b(customer\s*service|support|helpdesk|chatbot|ticket)\b"),
        UseCase.UNDERWRITING: _compile(r"\b(underwriting|underwrite|loan|credit\s*decision)\b"),
        UseCase.CLAIMS_PROCESSING: _compile(r"\b(claims?|claim\s*processing|adjuster)\b"),
        UseCase.DATA_ANALYSIS: _compile(r"\b(data\s*analysis|analytics|insight|report|dashboard)\b"),
        UseCase.CODE_GENERATION: _compile(r"\b(code|coding|developer|programming|copilot)\b"),
        UseCase.CONTENT_CREATION: _compile(r"\b(content|writing|copy|marketing|blog)\b"),
        UseCase.FRAUD_DETECTION: _compile(r"\b(fraud|fraudulent|suspicious|anomaly)\b"),
        UseCase.COMPLIANCE_MONITORING: _compile(
            r"\b(compliance\s*monitoring|regulatory\s*monitoring|policy\s*enforcement)\b",
        ),
        UseCase.WORKFLOW_AUTOMATION: _compile(r"\b(workflow|automation|automate|process|orchestration)\b"),
    }

    AGENT_COUNT_PATTERN = re.compile(r"(\d+)\s*(ai\s*)?(agents?|workflows?|bots?)", re.IGNORECASE)

    # Connector phrases are case-insensitive; the captured name must be capitalised.
    COMPANY_PATTERN = re.compile(
        r"\b(?i:work(?:ing)?\s+(?:at|for)|from|we're|i'm\s+(?:at|with))\s+"
        r"([A-Z][A-Za-z0-9\s&]+?)(?:\.|,|$|\s+(?i:and|we)\b)"
    )

    # Contact details
    EMAIL_PATTERN = re.compile(r"[\w.-]+@[\w.-]+\.\w+")
    PHONE_PATTERN = re.compile(r"(?:\+?1[-.]?)?\(?[0-9]{3}\)?[-.]?[0-9]{3}[-.]?[0-9]{4}")
    NAME_PATTERNS = (
        re.compile(r"(?i:i'm|i am|my name is|this is|call me)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)"),
        re.compile(r"^([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)\s+(?i:here)\b"),
    )
    CONTACT_COMPANY_PATTERNS = (
        re.compile(r"\b(?i:work at|work for|from|at|with)\s+([A-Z][A-Za-z0-9\s&]+?)(?:\.|,|$|\s+(?i:and|in)\b)"),
        re.compile(r"(?i:company is|company's|our company)\s+([A-Z][A-Za-z0-9\s&]+?)(?:\.|,|$)"),
    )
    JOB_TITLE_PATTERNS = (
        re.compile(
            r"(?:i'm a|i am a|i'm the|i am the|work as a?|my role is|my title is)\s+"
            r"([A-Za-z\s]+?)(?:\s+at|\s+for|\.|,|$)",
            re.IGNORECASE,
        ),
    )

    # Conversational buying signals recorded on the user context
    BUYING_SIGNAL_PATTERNS: Tuple[Tuple[Pattern, str], ...] = (
        (re.compile(r"\b(budget|funding|approved)\b", re.IGNORECASE), "budget_discussion"),
        (re.compile(r"\b(timeline|when\s*can|how\s*soon)\b", re.IGNORECASE), "timeline_urgency"),
        (re.compile(r"\b(decision\s*maker|cto|ciso|vp|director)\b", re.IGNORECASE), "authority_mention"),
        (re.compile(r"\b(contract|agreement|proposal|quote)\b", re.IGNORECASE), "procurement_language"),
        (re.compile(r"\b(pilot|poc|proof\s*of\s*concept|trial)\b", re.IGNORECASE), "pilot_interest"),
        (re.compile(r"\b(compare|evaluating|considering)\b", re.IGNORECASE), "active_evaluation"),
    )

    def extract(self, message: str) -> ExtractedEntities:
        """
        Extract profile entities from a message.

        Args:
            message: Visitor message text

        Returns:
            ExtractedEntities; categories with no match are left empty
        """
        entities = ExtractedEntities()

        for industry, patterns in self.INDUSTRY_PATTERNS.items():
            if any(p.search(message) for p in patterns):
                entities.industry = industry
                break

        entities.compliance_frameworks = self._match_all(self.COMPLIANCE_PATTERNS, message)
        entities.pain_points = self._match_all(self.PAIN_POINT_PATTERNS, message)
        entities.use_cases = self._match_all(self.USE_CASE_PATTERNS, message)

        agent_match = self.AGENT_COUNT_PATTERN.search(message)
        if agent_match:
            entities.agent_count = int(agent_match.group(1))

        company_match = self.COMPANY_PATTERN.search(message)
        if company_match:
            entities.company_name = company_match.group(1).strip()

        logger.debug(f"Extracted entities: {entities.to_dict()}")
        return entities

    @staticmethod
    def _match_all(table: Dict, message: str) -> List:
        return [
            value for value, patterns in table.items()
            if any(p.search(message) for p in patterns)
        ]

    def extract_contact_info(self, message: str) -> ContactInfo:
        """Extract name, email, phone, company and job title from a message."""
        info = ContactInfo()

        email_match = self.EMAIL_PATTERN.search(message)
        if email_match:
            info.email = email_match.group(0)

        phone_match = self.PHONE_PATTERN.search(message)
        if phone_match:
            info.phone = phone_match.group(0)

        info.name = self._first_group(self.NAME_PATTERNS, message)
        info.company = self._first_group(self.CONTACT_COMPANY_PATTERNS, message)
        info.job_title = self._first_group(self.JOB_TITLE_PATTERNS, message)

        return info

    @staticmethod
    def _first_group(patterns, message: str) -> Optional[str]:
        for pattern in patterns:
            match = pattern.search(message)
            if match:
                return match.group(1).strip()
        return None

    def detect_buying_signals(self, message: str) -> List[str]:
        """Return the conversational buying-signal tags present in a message."""
        return [signal for pattern, signal in self.BUYING_SIGNAL_PATTERNS if pattern.search(message)]
