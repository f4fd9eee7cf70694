"""
Morph card trigger decisions.

An ordered cascade of rules decides whether a card is surfaced for the
current message. The first rule that matches wins; the order is
features, comparison, timeline, roi, casestudy, architecture, integration.
"""

import re
import logging
from typing import Callable, List, NamedTuple, Optional, Pattern, Sequence

from .entity_extractor import EntityExtractor
from .intent_classifier import IntentClassifier
from .models import (
    CardCustomization,
    CardTrigger,
    CardType,
    ComplianceFramework,
    ComplianceRisk,
    ConversationIntent,
    ExtractedEntities,
    Industry,
    PainPoint,
    RoiDefaults,
    UserContext,
)

logger = logging.getLogger(__name__)


PAIN_POINT_FEATURES = {
    PainPoint.COMPLIANCE_COMPLEXITY: "capc",
    PainPoint.AUDIT_TRAIL: "tao",
    PainPoint.AI_GOVERNANCE: "capc",
    PainPoint.SECURITY_CONCERNS: "tao",
    PainPoint.SCALING_AI: "oda-rag",
    PainPoint.COST_REDUCTION: "roi",
    PainPoint.RISK_MANAGEMENT: "tao",
    PainPoint.MANUAL_PROCESSES: "capc",
    PainPoint.LACK_VISIBILITY: "oda-rag",
    PainPoint.INTEGRATION_CHALLENGES: "integration",
    PainPoint.QUALITY_CONTROL: "oda-rag",
}

HIGH_RISK_INDUSTRIES = (
    Industry.HEALTHCARE,
    Industry.FINANCIAL_SERVICES,
    Industry.INSURANCE,
    Industry.GOVERNMENT,
)

HIGH_RISK_FRAMEWORKS = (
    ComplianceFramework.HIPAA,
    ComplianceFramework.SOX,
    ComplianceFramework.PCI_DSS,
    ComplianceFramework.FEDRAMP,
)

def pain_point_to_feature(pain_point: PainPoint) -> str:
    """Map a pain point to the product feature tag that addresses it."""
    return PAIN_POINT_FEATURES.get(pain_point, "features")


def infer_compliance_risk(context: UserContext) -> ComplianceRisk:
    """High for regulated industries or strict frameworks, medium for any framework."""
    if context.industry in HIGH_RISK_INDUSTRIES:
        return ComplianceRisk.HIGH
    if any(f in HIGH_RISK_FRAMEWORKS for f in context.compliance_frameworks):
        return ComplianceRisk.HIGH
    if context.compliance_frameworks:
        return ComplianceRisk.MEDIUM
    return ComplianceRisk.LOW


class TriggerRule(NamedTuple):
    card_type: CardType
    pattern: Pattern
    intent: Optional[ConversationIntent]
    confidence: float
    reason: str
    customize: Callable[[UserContext, ExtractedEntities], CardCustomization]


def _feature_tags(context: UserContext, _entities: ExtractedEntities) -> CardCustomization:
    return CardCustomization(
        highlighted_features=[pain_point_to_feature(p) for p in context.pain_points],
    )


def _features(context: UserContext, entities: ExtractedEntities) -> CardCustomization:
    return CardCustomization(
        industry=context.industry or entities.industry,
        pain_points=list(context.pain_points or entities.pain_points),
    )


def _timeline(context: UserContext, _entities: ExtractedEntities) -> CardCustomization:
    return CardCustomization(company_size=context.company_size)


def _roi(context: UserContext, _entities: ExtractedEntities) -> CardCustomization:
    return CardCustomization(
        # Agent count comes from the content engine, which applies size limits
        roi_defaults=RoiDefaults(compliance_level=infer_compliance_risk(context)),
    )


def _case_study(context: UserContext, entities: ExtractedEntities) -> CardCustomization:
    return CardCustomization(industry=context.industry or entities.industry)


def _integration(context: UserContext, _entities: ExtractedEntities) -> CardCustomization:
    return CardCustomization(industry=context.industry)


def _rule(card_type, pattern, intent, confidence, reason, customize) -> TriggerRule:
    return TriggerRule(card_type, re.compile(pattern, re.IGNORECASE), intent, confidence, reason, customize)


TRIGGER_RULES: List[TriggerRule] = [
    _rule(
        CardType.FEATURES,
        r"\b(feature|capability|what\s*can|show\s*me\s*what|functionality)\b",
        ConversationIntent.LEARN_PRODUCT,
        0.8,
        "User asking about features/capabilities",
        _features,
    ),
    _rule(
        CardType.COMPARISON,
        r"\b(compare|vs|versus|different|competitor|alternative)\b",
        ConversationIntent.COMPARE_SOLUTIONS,
        0.85,
        "User interested in comparison",
        _feature_tags,
    ),
    _rule(
        CardType.TIMELINE,
        r"\b(how\s*long|timeline|implement|deploy|get\s*started|onboard)\b",
        ConversationIntent.IMPLEMENTATION_TIMELINE,
        0.8,
        "User asking about implementation",
        _timeline,
    ),
    _rule(
        CardType.ROI,
        r"\b(roi|cost|savings|value|worth|business\s*case|budget)\b",
        ConversationIntent.ROI_CALCULATION,
        0.85,
        "User interested in ROI/value",
        _roi,
    ),
    _rule(
        CardType.CASE_STUDY,
        r"\b(case\s*study|example|customer|success|who\s*uses|similar|like\s*us)\b",
        ConversationIntent.CASE_STUDY,
        0.8,
        "User asking for customer examples",
        _case_study,
    ),
    _rule(
        CardType.ARCHITECTURE,
        r"\b(architecture|how\s*it\s*works|technical|under\s*the\s*hood|platform)\b",
        ConversationIntent.TECHNICAL_QUESTION,
        0.75,
        "User asking technical questions",
        _feature_tags,
    ),
    _rule(
        CardType.INTEGRATION,
        r"\b(integrate|integration|connect|api|ecosystem|work\s*with)\b",
        None,
        0.8,
        "User asking about integrations",
        _integration,
    ),
]


class CardTriggerEngine:
    """
    Decides which morph card, if any, to surface for a message.

    Rules are evaluated strictly in order. Each rule fires on its own
    pattern or on the conversational intent it is tied to.
    """

    def __init__(
        self,
        entity_extractor: Optional[EntityExtractor] = None,
        intent_classifier: Optional[IntentClassifier] = None,
        rules: Optional[Sequence[TriggerRule]] = None,
    ):
        self.entity_extractor = entity_extractor or EntityExtractor()
        self.intent_classifier = intent_classifier or IntentClassifier()
        self.rules = list(rules) if rules is not None else TRIGGER_RULES

    def detect(
        self,
        message: str,
        context: UserContext,
        history: Optional[Sequence[str]] = None,
    ) -> Optional[CardTrigger]:
        """
        Run the trigger cascade for a message.

        Args:
            message: Visitor message text
            context: Current user context
            history: Recent message texts (not consulted by the default rules)

        Returns:
            CardTrigger for the first matching rule, or None
        """
        entities = self.entity_extractor.extract(message)
        intent = self.intent_classifier.classify(message, context)

        for rule in self.rules:
            if rule.pattern.search(message) or (rule.intent is not None and intent == rule.intent):
                trigger = CardTrigger(
                    card_type=rule.card_type,
                    confidence=rule.confidence,
                    reason=rule.reason,
                    customizations=rule.customize(context, entities),
                )
                logger.debug(f"Card trigger: {rule.card_type.value} ({rule.reason})")
                return trigger

        return None
