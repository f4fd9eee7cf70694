"""
Data model for the conversational intelligence engine.

Enumerated tags, the per-session UserContext record, extracted entities,
and the card trigger / customization payloads.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Industry(str, Enum):
    """Industries recognised in conversation."""
    HEALTHCARE = "healthcare"
    FINANCIAL_SERVICES = "financial_services"
    INSURANCE = "insurance"
    MANUFACTURING = "manufacturing"
    RETAIL = "retail"
    TECHNOLOGY = "technology"
    GOVERNMENT = "government"
    ENERGY = "energy"
    TELECOM = "telecom"
    OTHER = "other"


class CompanySize(str, Enum):
    """Company size buckets used by the conversational context."""
    STARTUP = "startup"          # < 50 employees
    SMB = "smb"                  # 50-500 employees
    MIDMARKET = "midmarket"      # 500-5000 employees
    ENTERPRISE = "enterprise"    # 5000+ employees


class ComplianceFramework(str, Enum):
    HIPAA = "hipaa"
    SOX = "sox"
    GDPR = "gdpr"
    CCPA = "ccpa"
    PCI_DSS = "pci_dss"
    NAIC = "naic"
    FINRA = "finra"
    FEDRAMP = "fedramp"
    ISO27001 = "iso27001"


class PainPoint(str, Enum):
    COMPLIANCE_COMPLEXITY = "compliance_complexity"
    AUDIT_TRAIL = "audit_trail"
    AI_GOVERNANCE = "ai_governance"
    SECURITY_CONCERNS = "security_concerns"
    SCALING_AI = "scaling_ai"
    COST_REDUCTION = "cost_reduction"
    RISK_MANAGEMENT = "risk_management"
    MANUAL_PROCESSES = "manual_processes"
    LACK_VISIBILITY = "lack_visibility"
    INTEGRATION_CHALLENGES = "integration_challenges"
    QUALITY_CONTROL = "quality_control"


class UseCase(str, Enum):
    DOCUMENT_PROCESSING = "document_processing"
    CUSTOMER_SERVICE = "customer_service"
    UNDERWRITING = "underwriting"
    CLAIMS_PROCESSING = "claims_processing"
    DATA_ANALYSIS = "data_analysis"
    CODE_GENERATION = "code_generation"
    CONTENT_CREATION = "content_creation"
    FRAUD_DETECTION = "fraud_detection"
    COMPLIANCE_MONITORING = "compliance_monitoring"
    WORKFLOW_AUTOMATION = "workflow_automation"


class ConversationIntent(str, Enum):
    """Conversational intent labels used for card routing."""
    LEARN_PRODUCT = "learn_product"
    SEE_DEMO = "see_demo"
    UNDERSTAND_PRICING = "understand_pricing"
    TECHNICAL_QUESTION = "technical_question"
    COMPARE_SOLUTIONS = "compare_solutions"
    IMPLEMENTATION_TIMELINE = "implementation_timeline"
    CASE_STUDY = "case_study"
    ROI_CALCULATION = "roi_calculation"
    SECURITY_AUDIT = "security_audit"
    GENERAL_INQUIRY = "general_inquiry"


class EngagementLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CardType(str, Enum):
    """Morph cards that can be surfaced during a conversation."""
    FEATURES = "features"
    COMPARISON = "comparison"
    TIMELINE = "timeline"
    ROI = "roi"
    CASE_STUDY = "casestudy"
    ARCHITECTURE = "architecture"
    INTEGRATION = "integration"


class ComplianceRisk(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class UserContext:
    """
    Everything learned about a visitor during one chat session.

    List fields behave as ordered sets and only ever grow. Identity scalars
    (company_name, industry, company_size) are first-write-wins when merged
    from extracted entities.
    """

    session_id: str

    # Company profile
    company_name: Optional[str] = None
    industry: Optional[Industry] = None
    company_size: Optional[CompanySize] = None

    # Pain points & needs
    pain_points: List[PainPoint] = field(default_factory=list)
    use_cases: List[UseCase] = field(default_factory=list)
    compliance_frameworks: List[ComplianceFramework] = field(default_factory=list)

    # AI maturity
    has_existing_ai: Optional[bool] = None
    current_ai_tools: List[str] = field(default_factory=list)
    ai_agent_count: Optional[int] = None

    # Conversation state
    current_intent: Optional[ConversationIntent] = None
    questions_asked: List[str] = field(default_factory=list)
    topics_discussed: List[str] = field(default_factory=list)
    cards_shown: List[str] = field(default_factory=list)

    # Lead quality signals
    engagement_level: EngagementLevel = EngagementLevel.LOW
    buying_signals: List[str] = field(default_factory=list)

    # Contact info
    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None

    created_at: datetime = field(default_factory=utcnow)
    last_active_at: datetime = field(default_factory=utcnow)


@dataclass
class ExtractedEntities:
    """
    Entities found in a single message.

    None / empty means "not mentioned"; to_dict() omits those keys so callers
    can tell absence apart from an explicit value.
    """

    company_name: Optional[str] = None
    industry: Optional[Industry] = None
    compliance_frameworks: List[ComplianceFramework] = field(default_factory=list)
    pain_points: List[PainPoint] = field(default_factory=list)
    use_cases: List[UseCase] = field(default_factory=list)
    agent_count: Optional[int] = None

    def is_empty(self) -> bool:
        return not self.to_dict()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.company_name:
            data["company_name"] = self.company_name
        if self.industry:
            data["industry"] = self.industry.value
        if self.compliance_frameworks:
            data["compliance_frameworks"] = [f.value for f in self.compliance_frameworks]
        if self.pain_points:
            data["pain_points"] = [p.value for p in self.pain_points]
        if self.use_cases:
            data["use_cases"] = [u.value for u in self.use_cases]
        if self.agent_count is not None:
            data["numbers"] = {"agent_count": self.agent_count}
        return data


@dataclass
class ContactInfo:
    """Contact details volunteered in a chat message."""
    name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    job_title: Optional[str] = None
    phone: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        return {
            key: value
            for key, value in (
                ("name", self.name),
                ("email", self.email),
                ("company", self.company),
                ("job_title", self.job_title),
                ("phone", self.phone),
            )
            if value
        }


@dataclass
class CaseStudy:
    industry: str
    company_type: str
    title: str
    challenge: str
    solution: str
    results: List[Dict[str, str]] = field(default_factory=list)
    quote: Optional[str] = None
    quote_author: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "industry": self.industry,
            "company_type": self.company_type,
            "title": self.title,
            "challenge": self.challenge,
            "solution": self.solution,
            "results": [dict(r) for r in self.results],
            "quote": self.quote,
            "quote_author": self.quote_author,
        }


@dataclass
class RoiDefaults:
    """Seed values for the ROI calculator card."""
    ai_agent_count: Optional[int] = None
    avg_salary: Optional[int] = None
    compliance_level: Optional[ComplianceRisk] = None
    audit_hours_per_agent: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.ai_agent_count is not None:
            data["ai_agent_count"] = self.ai_agent_count
        if self.avg_salary is not None:
            data["avg_salary"] = self.avg_salary
        if self.compliance_level is not None:
            data["compliance_level"] = self.compliance_level.value
        if self.audit_hours_per_agent is not None:
            data["audit_hours_per_agent"] = self.audit_hours_per_agent
        return data


@dataclass
class CardCustomization:
    """
    Personalisation payload for a morph card.

    Every field is optional. ``highlighted_features`` carries feature tags
    seeded by the trigger rule; ``feature_highlights`` carries the
    personalised bullet copy produced by the content engine.
    """

    industry: Optional[Industry] = None
    company_size: Optional[CompanySize] = None
    pain_points: Optional[List[PainPoint]] = None
    compliance_frameworks: Optional[List[ComplianceFramework]] = None

    headline: Optional[str] = None
    subheadline: Optional[str] = None
    highlighted_features: Optional[List[str]] = None
    feature_highlights: Optional[List[str]] = None
    comparison_highlights: Optional[List[str]] = None

    case_study: Optional[CaseStudy] = None
    roi_defaults: Optional[RoiDefaults] = None

    def merged_with(self, other: "CardCustomization") -> "CardCustomization":
        """
        Return a copy where fields set on ``other`` win over fields set here.

        ROI defaults are merged field by field.
        """
        merged = CardCustomization()
        for name in self.__dataclass_fields__:
            mine = getattr(self, name)
            theirs = getattr(other, name)
            setattr(merged, name, theirs if theirs is not None else mine)
        if self.roi_defaults is not None and other.roi_defaults is not None:
            merged.roi_defaults = RoiDefaults(**{
                name: (getattr(other.roi_defaults, name)
                       if getattr(other.roi_defaults, name) is not None
                       else getattr(self.roi_defaults, name))
                for name in RoiDefaults.__dataclass_fields__
            })
        return merged

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.industry is not None:
            data["industry"] = self.industry.value
        if self.company_size is not None:
            data["company_size"] = self.company_size.value
        if self.pain_points is not None:
            data["pain_points"] = [p.value for p in self.pain_points]
        if self.compliance_frameworks is not None:
            data["compliance_frameworks"] = [f.value for f in self.compliance_frameworks]
        for key in ("headline", "subheadline", "highlighted_features",
                    "feature_highlights", "comparison_highlights"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.case_study is not None:
            data["case_study"] = self.case_study.to_dict()
        if self.roi_defaults is not None:
            data["roi_defaults"] = self.roi_defaults.to_dict()
        return data


@dataclass
class CardTrigger:
    """Decision to surface a morph card this turn."""
    card_type: CardType
    confidence: float
    reason: str
    customizations: CardCustomization = field(default_factory=CardCustomization)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.card_type.value,
            "confidence": self.confidence,
            "reason": self.reason,
            "customizations": self.customizations.to_dict(),
        }


@dataclass
class ProfilingQuestion:
    """A follow-up question used to fill gaps in the visitor profile."""
    id: str
    question: str
    context_key: str
    priority: int
    condition: Optional[Callable[[UserContext], bool]] = None

    def applies_to(self, context: UserContext) -> bool:
        return self.condition(context) if self.condition else True
