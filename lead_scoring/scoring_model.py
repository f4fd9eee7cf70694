"""
Lead Intelligence Scoring.

Turns the visitor's accumulated messages and known contact fields into a
LeadIntelligence record: a 0-100 buy-intent score, intent category,
urgency, inferred company size and role seniority, qualification status,
and research hints (industry, compliance requirements).
"""

import math
import re
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

from .signal_detector import BehavioralSignal, SignalDetector, SignalType, deduplicate_signals

logger = logging.getLogger(__name__)


class IntentCategory(str, Enum):
    """Buy-intent category."""
    HOT = "hot"      # Score >= 60
    WARM = "warm"    # Score 30-59
    COLD = "cold"    # Score < 30


class UrgencyLevel(str, Enum):
    IMMEDIATE = "immediate"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class LeadCompanySize(str, Enum):
    """Company size as inferred from conversation text."""
    STARTUP = "startup"
    SMB = "smb"
    MID_MARKET = "mid-market"
    ENTERPRISE = "enterprise"


class QualificationStatus(str, Enum):
    QUALIFIED = "qualified"
    NURTURE = "nurture"
    UNQUALIFIED = "unqualified"
    NEW = "new"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class UserInfo:
    """Contact fields known for the visitor."""
    name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    job_title: Optional[str] = None
    phone: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "company": self.company,
            "job_title": self.job_title,
            "phone": self.phone,
        }


@dataclass
class LeadIntelligence:
    """Scored view of a lead, persisted one row per user."""
    user_id: str
    buy_intent_score: int = 0
    intent_category: IntentCategory = IntentCategory.COLD
    urgency: UrgencyLevel = UrgencyLevel.LOW
    company_size: Optional[LeadCompanySize] = None
    qualification_status: QualificationStatus = QualificationStatus.NEW
    behavioral_signals: List[BehavioralSignal] = field(default_factory=list)
    company_research: Optional[Dict[str, Any]] = None
    user_research: Optional[Dict[str, Any]] = None
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def industry(self) -> Optional[str]:
        return (self.company_research or {}).get("industry")

    @property
    def compliance_requirements(self) -> List[str]:
        return list((self.company_research or {}).get("compliance_requirements") or [])

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a storage/API record."""
        return {
            "user_id": self.user_id,
            "buy_intent_score": self.buy_intent_score,
            "intent_category": self.intent_category.value,
            "urgency": self.urgency.value,
            "company_size": self.company_size.value if self.company_size else None,
            "qualification_status": self.qualification_status.value,
            "behavioral_signals": [s.to_dict() for s in self.behavioral_signals],
            "company_research": self.company_research,
            "user_research": self.user_research,
            "updated_at": self.updated_at.isoformat(),
        }

    def to_record(self) -> Dict[str, Any]:
        """Like to_dict, but keeps updated_at as a datetime for storage."""
        record = self.to_dict()
        record["updated_at"] = self.updated_at
        return record

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LeadIntelligence":
        updated_at = data.get("updated_at")
        if isinstance(updated_at, str):
            updated_at = datetime.fromisoformat(updated_at)
        company_size = data.get("company_size")
        return cls(
            user_id=str(data["user_id"]),
            buy_intent_score=int(data.get("buy_intent_score") or 0),
            intent_category=IntentCategory(data.get("intent_category") or "cold"),
            urgency=UrgencyLevel(data.get("urgency") or "low"),
            company_size=LeadCompanySize(company_size) if company_size else None,
            qualification_status=QualificationStatus(data.get("qualification_status") or "new"),
            behavioral_signals=[
                BehavioralSignal.from_dict(s) for s in (data.get("behavioral_signals") or [])
            ],
            company_research=data.get("company_research"),
            user_research=data.get("user_research"),
            updated_at=updated_at or _utcnow(),
        )


def round_half_up(value: float) -> int:
    """Round halves towards positive infinity (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def _compile(*patterns: str) -> Tuple[Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


class LeadIntelligenceScorer:
    """
    Scores leads from behavioral signals.

    Scoring (0-100):
    - Each distinct signal type counts once: weight x confidence
      (demo 40, timeline 30, pricing 25, competitor 20, compliance 20,
      pain point 15, integration 15, feature 10; unknown types 5)
    - 3+ distinct types: +10, 5+ distinct types: a further +15
    - Rounded, capped at 100

    Categories:
    - Score >= 60: hot
    - Score 30-59: warm
    - Score < 30: cold
    """

    INTENT_WEIGHTS = {
        SignalType.PRICING_INTEREST.value: 25,
        SignalType.COMPETITOR_MENTION.value: 20,
        SignalType.TIMELINE_MENTION.value: 30,
        SignalType.PAIN_POINT.value: 15,
        SignalType.FEATURE_INTEREST.value: 10,
        SignalType.COMPLIANCE_MENTION.value: 20,
        SignalType.DEMO_REQUEST.value: 40,
        SignalType.INTEGRATION_QUESTION.value: 15,
        SignalType.COMPANY_SIZE_ENTERPRISE.value: 10,
        SignalType.DECISION_MAKER_ROLE.value: 15,
    }
    DEFAULT_WEIGHT = 5

    DIVERSITY_BONUSES = ((3, 10), (5, 15))
    MAX_SCORE = 100

    HOT_THRESHOLD = 60
    WARM_THRESHOLD = 30

    IMMEDIATE_KEYWORDS = ("asap", "urgent", "immediately", "right away", "today", "this week")
    HIGH_KEYWORDS = ("soon", "next week", "this month", "quickly")
    MEDIUM_KEYWORDS = ("quarter", "next month", "planning")

    COMPANY_SIZE_PATTERNS: Dict[LeadCompanySize, Tuple[Pattern, ...]] = {
        LeadCompanySize.STARTUP: _compile(
            r"startup", r"early stage", r"seed", r"small team", r"just us", r"founder",
        ),
        LeadCompanySize.SMB: _compile(
            r"small business", r"smb", r"50 (employees|people)", r"growing",
        ),
        LeadCompanySize.MID_MARKET: _compile(
            r"mid-?market", r"medium", r"few hundred", r"\d{2,3} (employees|people)",
        ),
        LeadCompanySize.ENTERPRISE: _compile(
            r"enterprise", r"fortune", r"global", r"multinational", r"\d{4,} (employees|people)", r"large",
        ),
    }

    SENIORITY_PATTERNS: Dict[str, Tuple[Pattern, ...]] = {
        "executive": _compile(
            r"ceo", r"cto", r"cio", r"ciso", r"cfo", r"chief", r"president", r"founder", r"owner",
        ),
        "director": _compile(r"director", r"vp", r"vice president", r"head of", r"svp", r"evp"),
        "manager": _compile(r"manager", r"lead", r"principal", r"senior", r"team lead"),
        "individual": _compile(r"analyst", r"engineer", r"developer", r"specialist", r"associate"),
    }

    # Plain substring lookups over the lowercased transcript
    COMPLIANCE_KEYWORDS = {
        "HIPAA": ["hipaa", "health", "patient", "phi", "protected health"],
        "GDPR": ["gdpr", "european", "eu data", "personal data", "data protection"],
        "SOX": ["sox", "sarbanes", "financial reporting", "public company"],
        "FINRA": ["finra", "broker", "dealer", "securities", "trading"],
        "NAIC": ["naic", "insurance", "state insurance"],
        "SOC 2": ["soc 2", "soc2", "type 2", "type ii"],
        "CCPA": ["ccpa", "california", "consumer privacy"],
        "EU AI Act": ["eu ai act", "ai regulation", "european ai"],
    }

    INDUSTRY_KEYWORDS = {
        "Financial Services": ["bank", "financial", "fintech", "investment", "trading", "wealth"],
        "Insurance": ["insurance", "insurer", "claims", "underwriting", "policy"],
        "Healthcare": ["health", "hospital", "clinical", "patient", "medical", "pharma"],
        "Technology": ["tech", "software", "saas", "cloud", "platform"],
        "Manufacturing": ["manufacturing", "factory", "production", "supply chain"],
        "Retail": ["retail", "ecommerce", "consumer", "shopping"],
        "Government": ["government", "federal", "state", "public sector", "agency"],
    }

    def __init__(
        self,
        signal_detector: Optional[SignalDetector] = None,
        custom_weights: Optional[Dict[str, int]] = None,
    ):
        """
        Initialize the scorer.

        Args:
            signal_detector: Detector used to scan messages
            custom_weights: Optional weights overriding the defaults by signal type
        """
        self.signal_detector = signal_detector or SignalDetector()
        self.weights = dict(self.INTENT_WEIGHTS)
        if custom_weights:
            self.weights.update(custom_weights)

    def calculate_intent_score(self, signals: Iterable[BehavioralSignal]) -> int:
        score = 0.0
        seen_types = set()

        for signal in signals:
            signal_type = signal.type_value
            if signal_type in seen_types:
                continue
            seen_types.add(signal_type)
            score += self.weights.get(signal_type, self.DEFAULT_WEIGHT) * signal.confidence

        for min_types, bonus in self.DIVERSITY_BONUSES:
            if len(seen_types) >= min_types:
                score += bonus

        return max(0, min(round_half_up(score), self.MAX_SCORE))

    def get_intent_category(self, score: int) -> IntentCategory:
        if score >= self.HOT_THRESHOLD:
            return IntentCategory.HOT
        if score >= self.WARM_THRESHOLD:
            return IntentCategory.WARM
        return IntentCategory.COLD

    def determine_urgency(
        self,
        signals: Sequence[BehavioralSignal],
        messages: Sequence[str],
    ) -> UrgencyLevel:
        """
        Urgency from keywords and signals, strongest evidence first.

        Immediate keywords win outright; a demo request or soon-style
        phrasing is high; a timeline signal or planning phrasing is medium.
        """
        types = {s.type_value for s in signals}
        text = " ".join(messages).lower()

        if any(k in text for k in self.IMMEDIATE_KEYWORDS):
            return UrgencyLevel.IMMEDIATE
        if SignalType.DEMO_REQUEST.value in types or any(k in text for k in self.HIGH_KEYWORDS):
            return UrgencyLevel.HIGH
        if SignalType.TIMELINE_MENTION.value in types or any(k in text for k in self.MEDIUM_KEYWORDS):
            return UrgencyLevel.MEDIUM
        return UrgencyLevel.LOW

    def infer_company_size(self, messages: Sequence[str]) -> Optional[LeadCompanySize]:
        text = " ".join(messages)
        for size, patterns in self.COMPANY_SIZE_PATTERNS.items():
            if any(p.search(text) for p in patterns):
                return size
        return None

    def infer_role_seniority(self, job_title: Optional[str]) -> Optional[str]:
        """Seniority bucket for a job title; "unknown" if nothing matches."""
        if not job_title:
            return None
        for seniority, patterns in self.SENIORITY_PATTERNS.items():
            if any(p.search(job_title) for p in patterns):
                return seniority
        return "unknown"

    def determine_qualification_status(
        self,
        score: int,
        has_email: bool,
        has_company: bool,
        company_size: Optional[LeadCompanySize] = None,
    ) -> QualificationStatus:
        # Enterprise with solid intent and an email
        if score >= 50 and has_email and company_size == LeadCompanySize.ENTERPRISE:
            return QualificationStatus.QUALIFIED

        if score >= 60 and has_email:
            return QualificationStatus.QUALIFIED

        if score >= 30 and (has_email or has_company):
            return QualificationStatus.NURTURE

        if score < 20 and not has_email and not has_company:
            return QualificationStatus.UNQUALIFIED

        return QualificationStatus.NEW

    def extract_compliance_requirements(self, messages: Sequence[str]) -> List[str]:
        text = " ".join(messages).lower()
        return [
            framework for framework, keywords in self.COMPLIANCE_KEYWORDS.items()
            if any(k in text for k in keywords)
        ]

    def extract_industry(self, messages: Sequence[str]) -> Optional[str]:
        text = " ".join(messages).lower()
        for industry, keywords in self.INDUSTRY_KEYWORDS.items():
            if any(k in text for k in keywords):
                return industry
        return None

    def generate(
        self,
        user_id: str,
        messages: Sequence[str],
        user_info: Optional[UserInfo] = None,
        existing_signals: Optional[Sequence[BehavioralSignal]] = None,
    ) -> LeadIntelligence:
        """
        Generate lead intelligence from the conversation so far.

        Args:
            user_id: Persisted user id
            messages: Every visitor message in the conversation, oldest first
            user_info: Known contact fields
            existing_signals: Signals already recorded for this user

        Returns:
            LeadIntelligence (not yet merged with any stored record)
        """
        user_info = user_info or UserInfo()

        raw_signals: List[BehavioralSignal] = list(existing_signals or [])
        for message in messages:
            raw_signals.extend(self.signal_detector.detect(message))
        signals = deduplicate_signals(raw_signals)

        score = self.calculate_intent_score(signals)
        company_size = self.infer_company_size(messages)
        seniority = self.infer_role_seniority(user_info.job_title)
        compliance = self.extract_compliance_requirements(messages)
        industry = self.extract_industry(messages)

        company_research = None
        if industry or compliance:
            company_research = {"industry": industry}
            if compliance:
                company_research["compliance_requirements"] = compliance

        intelligence = LeadIntelligence(
            user_id=user_id,
            buy_intent_score=score,
            intent_category=self.get_intent_category(score),
            urgency=self.determine_urgency(signals, messages),
            company_size=company_size,
            qualification_status=self.determine_qualification_status(
                score,
                has_email=bool(user_info.email),
                has_company=bool(user_info.company),
                company_size=company_size,
            ),
            behavioral_signals=signals,
            company_research=company_research,
            user_research={"role_seniority": seniority} if seniority else None,
        )

        logger.debug(
            f"Lead intelligence for {user_id}: score={score}, "
            f"category={intelligence.intent_category.value}, urgency={intelligence.urgency.value}"
        )
        return intelligence
