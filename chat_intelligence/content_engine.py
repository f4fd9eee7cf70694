"""
Personalised copy for morph cards.

Every generator here is a deterministic function of the user context,
except get_card_follow_up which picks among equivalent prompts using an
injectable random source. Copy templates use a ``{brand}`` placeholder
so the product name can be configured.
"""

import math
import random
import logging
from typing import Callable, Dict, List, Optional

from .context_store import INDUSTRY_NAMES, PAIN_POINT_NAMES
from .models import (
    CardCustomization,
    CardType,
    CaseStudy,
    CompanySize,
    ComplianceFramework,
    ComplianceRisk,
    Industry,
    PainPoint,
    RoiDefaults,
    UserContext,
)

logger = logging.getLogger(__name__)


CASE_STUDIES = {
    "healthcare": {
        "industry": "Healthcare",
        "company_type": "Major Health System",
        "title": "HIPAA-Compliant Patient Data Management",
        "challenge": (
            "A large health system wanted to use AI for patient data summarization and care "
            "coordination but couldn't risk HIPAA violations."
        ),
        "solution": (
            "{brand}'s zero-trust architecture ensured that AI agents only accessed patient data with "
            "proper authorization. Every access is logged with cryptographic proof for HIPAA audits."
        ),
        "results": [
            {"metric": "50%", "label": "Reduced Admin Time"},
            {"metric": "100%", "label": "HIPAA Compliance"},
            {"metric": "40%", "label": "Faster Care Coordination"},
            {"metric": "3x", "label": "AI Deployment Scale"},
        ],
        "quote": (
            "Patient data security is non-negotiable. {brand}'s approach to zero-trust AI governance "
            "was exactly what we needed."
        ),
        "quote_author": "CISO",
    },
    "financial": {
        "industry": "Financial Services",
        "company_type": "Top 5 Global Bank",
        "title": "Automated Loan Underwriting with Complete Audit Trails",
        "challenge": (
            "A leading global bank needed to automate their loan underwriting process while "
            "maintaining strict SOX compliance and Fair Lending Act adherence."
        ),
        "solution": (
            "{brand}'s Foundry platform enabled the bank to build compliant AI agents with built-in "
            "policy enforcement. Every underwriting decision is now backed by cryptographic proof."
        ),
        "results": [
            {"metric": "70%", "label": "Faster Underwriting"},
            {"metric": "100%", "label": "Audit Compliance"},
            {"metric": "$2.3M", "label": "Annual Savings"},
            {"metric": "Zero", "label": "Regulatory Findings"},
        ],
        "quote": (
            "{brand} gave us the confidence to deploy AI at scale. We no longer worry about "
            "compliance - it's built into every agent."
        ),
        "quote_author": "Chief Risk Officer",
    },
    "insurance": {
        "industry": "Insurance",
        "company_type": "Fortune 100 Insurer",
        "title": "Intelligent Claims Processing with Fraud Detection",
        "challenge": (
            "A major insurer needed to accelerate claims processing while maintaining regulatory "
            "compliance with NAIC guidelines and detecting potential fraud."
        ),
        "solution": (
            "{brand} enabled the deployment of AI agents that process claims autonomously while "
            "flagging potential fraud. Every decision is logged and can be reviewed."
        ),
        "results": [
            {"metric": "80%", "label": "Faster Processing"},
            {"metric": "35%", "label": "More Fraud Detected"},
            {"metric": "$5M+", "label": "Fraud Prevented"},
            {"metric": "98%", "label": "Customer Satisfaction"},
        ],
        "quote": "The combination of speed and compliance oversight has transformed our claims operation.",
        "quote_author": "VP of Claims Operations",
    },
    "general": {
        "industry": "Enterprise",
        "company_type": "Fortune 500 Company",
        "title": "Enterprise-Wide AI Governance at Scale",
        "challenge": (
            "A Fortune 500 company was deploying AI across multiple departments but lacked "
            "visibility and control over their AI workforce."
        ),
        "solution": (
            "{brand}'s unified platform provided complete visibility across all AI deployments with "
            "consistent policy enforcement and audit trails."
        ),
        "results": [
            {"metric": "60%", "label": "Faster Deployment"},
            {"metric": "100%", "label": "Policy Compliance"},
            {"metric": "45%", "label": "Cost Reduction"},
            {"metric": "10x", "label": "AI Scale Increase"},
        ],
        "quote": (
            "We finally have the control and visibility we need to confidently scale AI across "
            "the enterprise."
        ),
        "quote_author": "CIO",
    },
}

# Only these industries have a dedicated study; everything else gets "general"
CASE_STUDY_KEYS = {
    Industry.HEALTHCARE: "healthcare",
    Industry.FINANCIAL_SERVICES: "financial",
    Industry.INSURANCE: "insurance",
}

INDUSTRY_MESSAGING = {
    Industry.HEALTHCARE: {
        "headline": "AI Governance Built for Healthcare",
        "challenges": [
            "HIPAA compliance for AI systems",
            "Patient data protection",
            "Clinical workflow automation",
        ],
        "benefits": [
            "HIPAA-ready policy templates",
            "PHI access logging and audit trails",
            "Healthcare-specific compliance rules",
        ],
    },
    Industry.FINANCIAL_SERVICES: {
        "headline": "Enterprise AI Governance for Financial Services",
        "challenges": [
            "SOX and regulatory compliance",
            "Fair lending requirements",
            "Audit and examination readiness",
        ],
        "benefits": [
            "SOX-compliant audit trails",
            "Model risk management integration",
            "Regulatory examination packages",
        ],
    },
    Industry.INSURANCE: {
        "headline": "AI Governance for Modern Insurance",
        "challenges": [
            "NAIC and state regulatory compliance",
            "Claims automation with oversight",
            "Underwriting transparency",
        ],
        "benefits": [
            "Insurance regulatory templates",
            "Claims processing governance",
            "Actuarial model oversight",
        ],
    },
}

PAIN_POINT_SOLUTIONS = {
    PainPoint.COMPLIANCE_COMPLEXITY: {
        "headline": "Simplify AI Compliance",
        "solution": "Compliance rules are compiled into every agent at build time - not bolted on after.",
        "feature": "CAPC - Compliance-Aware Prompt Compiler",
    },
    PainPoint.AUDIT_TRAIL: {
        "headline": "Court-Ready Audit Trails",
        "solution": "Every action is cryptographically signed with immutable, tamper-proof logs.",
        "feature": "TAO - Trust-Aware Agent Orchestration",
    },
    PainPoint.AI_GOVERNANCE: {
        "headline": "Unified AI Governance",
        "solution": "Single platform to build, run, and govern your entire AI workforce.",
        "feature": "{brand} Foundry Platform",
    },
    PainPoint.SECURITY_CONCERNS: {
        "headline": "Zero-Trust AI Security",
        "solution": "Every action requires explicit permission. No implicit trust, no exceptions.",
        "feature": "TAO - Trust-Aware Agent Orchestration",
    },
    PainPoint.SCALING_AI: {
        "headline": "Scale AI with Confidence",
        "solution": "Governance that scales with you - from 10 agents to 10,000.",
        "feature": "Enterprise-grade infrastructure",
    },
    PainPoint.COST_REDUCTION: {
        "headline": "Maximize AI ROI",
        "solution": "Reduce compliance overhead and manual audit costs while scaling faster.",
        "feature": "ROI Calculator",
    },
    PainPoint.RISK_MANAGEMENT: {
        "headline": "Mitigate AI Risk",
        "solution": "Proactive risk management with pre-execution policy enforcement.",
        "feature": "CAPC + TAO Integration",
    },
    PainPoint.MANUAL_PROCESSES: {
        "headline": "Automate Compliance Work",
        "solution": "Eliminate manual policy checks and audit preparation with built-in automation.",
        "feature": "Automated Compliance Reporting",
    },
    PainPoint.LACK_VISIBILITY: {
        "headline": "Complete AI Visibility",
        "solution": "Single dashboard for your entire AI workforce with real-time monitoring.",
        "feature": "ODA-RAG - Observability Dashboard",
    },
    PainPoint.INTEGRATION_CHALLENGES: {
        "headline": "Seamless Integration",
        "solution": "Connect to any LLM, cloud, or enterprise system while maintaining governance.",
        "feature": "Integration Ecosystem",
    },
    PainPoint.QUALITY_CONTROL: {
        "headline": "AI Quality Assurance",
        "solution": "Secondary AI analyst evaluates every output with confidence scoring.",
        "feature": "ODA-RAG - Quality Analysis",
    },
}

COMPLIANCE_FEATURES = {
    ComplianceFramework.HIPAA: "HIPAA-ready policy templates and PHI protection",
    ComplianceFramework.SOX: "SOX-compliant audit trails and controls",
    ComplianceFramework.GDPR: "GDPR data processing and consent management",
    ComplianceFramework.CCPA: "CCPA privacy controls and data rights",
    ComplianceFramework.PCI_DSS: "PCI DSS compliant data handling",
    ComplianceFramework.NAIC: "Insurance regulatory compliance templates",
    ComplianceFramework.FINRA: "FINRA communication monitoring integration",
    ComplianceFramework.FEDRAMP: "FedRAMP-ready security controls",
    ComplianceFramework.ISO27001: "ISO 27001 security framework alignment",
}

DEFAULT_HEADLINE = "The Enterprise Foundry for Trusted AI"

DEFAULT_FEATURES = [
    "Build agents with compliance baked in from day one",
    "Complete audit trails for every AI action",
    "Unified dashboard for AI workforce visibility",
]

COMPARISON_HIGHLIGHTS = {
    PainPoint.AUDIT_TRAIL: "Cryptographic Audit Trails",
    PainPoint.COMPLIANCE_COMPLEXITY: "Compliance-Aware Prompt Compilation",
    PainPoint.SECURITY_CONCERNS: "Zero-Trust Architecture",
    PainPoint.LACK_VISIBILITY: "AI-Powered Quality Scoring",
}

DEFAULT_COMPARISON_HIGHLIGHTS = [
    "Pre-Execution Policy Enforcement",
    "Cryptographic Audit Trails",
    "AI-Powered Quality Scoring",
]

CARD_FOLLOW_UPS = {
    CardType.FEATURES: [
        "Would you like to dive deeper into any of these capabilities?",
        "I can show you how this works for your specific use case. What's your biggest priority?",
    ],
    CardType.COMPARISON: [
        "As you can see, {brand}'s integrated approach is unique. Want to discuss how this applies to your situation?",
        "Would you like to see a case study from your industry?",
    ],
    CardType.TIMELINE: [
        "Does this timeline align with your needs? We can adjust based on your requirements.",
        "Would you like to discuss what a proof-of-concept might look like for your team?",
    ],
    CardType.ROI: [
        "These numbers are based on averages - I can help you refine them for your specific situation.",
        "Would you like to schedule a call with our team for a detailed ROI analysis?",
    ],
    CardType.CASE_STUDY: [
        "This customer had similar challenges. Would you like to discuss how we'd approach your situation?",
        "I can connect you with our team to hear more about results like these.",
    ],
    CardType.ARCHITECTURE: [
        "Would you like to discuss how this integrates with your current infrastructure?",
        "I can arrange a technical deep-dive with our engineering team if you'd like.",
    ],
    CardType.INTEGRATION: [
        "Do you see the integrations you need? We support many more through our open API.",
        "Would you like to discuss your specific integration requirements?",
    ],
}

# ROI calculator seeds
ROI_BASE_AGENT_COUNT = 10
ROI_BASE_SALARY = 120000
ROI_BASE_AUDIT_HOURS = 20
ROI_HIGH_RISK_AUDIT_HOURS = 30
ROI_HIGH_RISK_INDUSTRIES = (Industry.HEALTHCARE, Industry.FINANCIAL_SERVICES, Industry.INSURANCE)
ROI_INDUSTRY_SALARIES = {
    Industry.FINANCIAL_SERVICES: 180000,
    Industry.TECHNOLOGY: 160000,
}
ROI_ENTERPRISE_MIN_AGENTS = 25
ROI_STARTUP_MAX_AGENTS = 10
ROI_STARTUP_SALARY_FACTOR = 0.85


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ContentEngine:
    """
    Builds the personalised content for morph cards.

    Args:
        brand_name: Product name substituted into copy templates
        random_source: Zero-argument callable returning a float in [0, 1),
            used only to pick a card follow-up prompt
    """

    def __init__(
        self,
        brand_name: str = "ArqAI",
        random_source: Optional[Callable[[], float]] = None,
    ):
        self.brand_name = brand_name
        self.random_source = random_source or random.random

    def _brand(self, text: str) -> str:
        return text.replace("{brand}", self.brand_name)

    def get_personalized_case_study(self, context: UserContext) -> CaseStudy:
        study = CASE_STUDIES[CASE_STUDY_KEYS.get(context.industry, "general")]
        return CaseStudy(
            industry=study["industry"],
            company_type=study["company_type"],
            title=study["title"],
            challenge=study["challenge"],
            solution=self._brand(study["solution"]),
            results=[dict(r) for r in study["results"]],
            quote=self._brand(study["quote"]),
            quote_author=study["quote_author"],
        )

    def get_personalized_headline(self, context: UserContext) -> str:
        """Industry headline, else primary pain-point headline, else the default."""
        if context.industry in INDUSTRY_MESSAGING:
            return INDUSTRY_MESSAGING[context.industry]["headline"]
        if context.pain_points:
            return PAIN_POINT_SOLUTIONS[context.pain_points[0]]["headline"]
        return DEFAULT_HEADLINE

    def get_personalized_features(self, context: UserContext) -> List[str]:
        """
        Up to four feature bullets for the visitor.

        Industry benefits come first, then solutions for the first two pain
        points, then features for the first two compliance frameworks.
        """
        features: List[str] = []

        if context.industry in INDUSTRY_MESSAGING:
            features.extend(INDUSTRY_MESSAGING[context.industry]["benefits"])

        for pain_point in context.pain_points[:2]:
            features.append(PAIN_POINT_SOLUTIONS[pain_point]["solution"])

        for framework in context.compliance_frameworks[:2]:
            features.append(COMPLIANCE_FEATURES[framework])

        if not features:
            features = list(DEFAULT_FEATURES)

        return features[:4]

    def get_roi_defaults(self, context: UserContext) -> RoiDefaults:
        agent_count = context.ai_agent_count or ROI_BASE_AGENT_COUNT
        compliance_level = ComplianceRisk.MEDIUM
        avg_salary = ROI_INDUSTRY_SALARIES.get(context.industry, ROI_BASE_SALARY)
        audit_hours = ROI_BASE_AUDIT_HOURS

        if context.industry in ROI_HIGH_RISK_INDUSTRIES:
            compliance_level = ComplianceRisk.HIGH
            audit_hours = ROI_HIGH_RISK_AUDIT_HOURS

        if context.company_size == CompanySize.ENTERPRISE:
            agent_count = max(agent_count, ROI_ENTERPRISE_MIN_AGENTS)
        elif context.company_size == CompanySize.STARTUP:
            agent_count = min(agent_count, ROI_STARTUP_MAX_AGENTS)
            avg_salary = _round_half_up(avg_salary * ROI_STARTUP_SALARY_FACTOR)

        return RoiDefaults(
            ai_agent_count=agent_count,
            avg_salary=avg_salary,
            compliance_level=compliance_level,
            audit_hours_per_agent=audit_hours,
        )

    def get_comparison_highlights(self, context: UserContext) -> List[str]:
        highlights = [
            text for pain_point, text in COMPARISON_HIGHLIGHTS.items()
            if pain_point in context.pain_points
        ]
        return highlights or list(DEFAULT_COMPARISON_HIGHLIGHTS)

    def get_contextual_welcome(self, context: UserContext) -> str:
        if context.industry in INDUSTRY_MESSAGING:
            industry = INDUSTRY_NAMES[context.industry]
            return (
                f"Welcome! I see you're in {industry}. I'd love to show you how {self.brand_name} "
                f"helps {industry.lower()} organizations govern their AI workforce with confidence. "
                "What would you like to know?"
            )

        if context.pain_points:
            pain_point = PAIN_POINT_NAMES[context.pain_points[0]]
            return (
                f"I understand {pain_point.lower()} is a challenge you're facing. "
                f"{self.brand_name} is built specifically to solve this. Would you like to see how?"
            )

        return (
            f"Hi! I'm here to help you explore how {self.brand_name} can help you build, run, "
            "and govern your enterprise AI workforce with confidence. What brings you here today?"
        )

    def get_card_follow_up(self, card_type: CardType, context: UserContext) -> str:
        options = CARD_FOLLOW_UPS.get(card_type, CARD_FOLLOW_UPS[CardType.FEATURES])
        index = min(int(self.random_source() * len(options)), len(options) - 1)
        return self._brand(options[index])

    def get_personalized_subheadline(self, card_type: CardType, context: UserContext) -> str:
        industry_name = INDUSTRY_NAMES.get(context.industry) if context.industry else None
        brand = self.brand_name

        if card_type == CardType.CASE_STUDY:
            if industry_name:
                return (
                    f"See how organizations like yours in {industry_name} are achieving "
                    "compliance and scaling AI with confidence."
                )
            return f"See how leading enterprises are using {brand} to govern their AI workforce with confidence."

        if card_type == CardType.ROI:
            if industry_name:
                return f"Calculate the potential ROI of {brand} for your {industry_name.lower()} organization."
            return (
                f"Estimate the potential return on investment from implementing {brand}'s "
                "enterprise AI governance platform."
            )

        if card_type == CardType.FEATURES:
            if context.pain_points:
                pain_point = PAIN_POINT_NAMES[context.pain_points[0]]
                return f"Explore how {brand} addresses {pain_point.lower()} and more."
            return f"Explore the comprehensive capabilities of the {brand} Foundry platform."

        if card_type == CardType.COMPARISON:
            return f"See how {brand}'s integrated approach compares to traditional solutions."

        if card_type == CardType.ARCHITECTURE:
            return (
                f"The {brand} Foundry is an integrated platform with three core pillars that "
                "work together for end-to-end AI governance."
            )

        if card_type == CardType.TIMELINE:
            if context.company_size == CompanySize.ENTERPRISE:
                return "Our proven enterprise implementation methodology ensures a smooth deployment at scale."
            return (
                "Our proven implementation methodology ensures a smooth deployment of the "
                f"{brand} Foundry platform."
            )

        if card_type == CardType.INTEGRATION:
            return (
                f"{brand} integrates seamlessly with your existing infrastructure while "
                "maintaining complete governance."
            )

        return ""

    def generate_card_customizations(
        self,
        card_type: CardType,
        context: UserContext,
    ) -> CardCustomization:
        """
        Package all personalised content for a card.

        Args:
            card_type: Card being shown
            context: Current user context

        Returns:
            CardCustomization with profile echo, copy, case study and ROI seeds
        """
        return CardCustomization(
            industry=context.industry,
            company_size=context.company_size,
            pain_points=list(context.pain_points),
            compliance_frameworks=list(context.compliance_frameworks),
            headline=self.get_personalized_headline(context),
            subheadline=self.get_personalized_subheadline(card_type, context),
            feature_highlights=self.get_personalized_features(context),
            comparison_highlights=self.get_comparison_highlights(context),
            case_study=self.get_personalized_case_study(context),
            roi_defaults=self.get_roi_defaults(context),
        )
