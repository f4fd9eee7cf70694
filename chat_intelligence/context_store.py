"""
Per-session user context management.

The context is never replaced wholesale: updates return a new UserContext
in which set-valued fields are unioned with what was already known.
"""

import json
import time
import uuid
import logging
from dataclasses import fields, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .models import (
    CompanySize,
    ComplianceFramework,
    ConversationIntent,
    EngagementLevel,
    ExtractedEntities,
    Industry,
    PainPoint,
    UseCase,
    UserContext,
    utcnow,
)

logger = logging.getLogger(__name__)


class ContextDeserializationError(ValueError):
    """Raised when a stored context cannot be parsed back into a UserContext."""


# Fields unioned on update rather than replaced
ACCUMULATING_FIELDS = (
    "pain_points",
    "use_cases",
    "compliance_frameworks",
    "current_ai_tools",
    "questions_asked",
    "topics_discussed",
    "cards_shown",
    "buying_signals",
)

# Fields fixed at creation
FROZEN_FIELDS = ("session_id", "created_at")

COMPLETENESS_WEIGHTS = {
    "industry": 20,
    "company_size": 10,
    "pain_points": 25,
    "compliance_frameworks": 15,
    "use_cases": 15,
    "has_existing_ai": 5,
    "ai_agent_count": 5,
    "email": 5,
}

INDUSTRY_NAMES = {
    Industry.HEALTHCARE: "Healthcare",
    Industry.FINANCIAL_SERVICES: "Financial Services",
    Industry.INSURANCE: "Insurance",
    Industry.MANUFACTURING: "Manufacturing",
    Industry.RETAIL: "Retail",
    Industry.TECHNOLOGY: "Technology",
    Industry.GOVERNMENT: "Government",
    Industry.ENERGY: "Energy",
    Industry.TELECOM: "Telecommunications",
    Industry.OTHER: "Other",
}

PAIN_POINT_NAMES = {
    PainPoint.COMPLIANCE_COMPLEXITY: "Compliance Complexity",
    PainPoint.AUDIT_TRAIL: "Audit Trail Requirements",
    PainPoint.AI_GOVERNANCE: "AI Governance",
    PainPoint.SECURITY_CONCERNS: "Security Concerns",
    PainPoint.SCALING_AI: "Scaling AI Operations",
    PainPoint.COST_REDUCTION: "Cost Reduction",
    PainPoint.RISK_MANAGEMENT: "Risk Management",
    PainPoint.MANUAL_PROCESSES: "Manual Processes",
    PainPoint.LACK_VISIBILITY: "Lack of Visibility",
    PainPoint.INTEGRATION_CHALLENGES: "Integration Challenges",
    PainPoint.QUALITY_CONTROL: "Quality Control",
}

# Enum-typed fields for deserialization
_SCALAR_ENUMS = {
    "industry": Industry,
    "company_size": CompanySize,
    "current_intent": ConversationIntent,
    "engagement_level": EngagementLevel,
}
_LIST_ENUMS = {
    "pain_points": PainPoint,
    "use_cases": UseCase,
    "compliance_frameworks": ComplianceFramework,
}
_DATE_FIELDS = ("created_at", "last_active_at")
_STRING_FIELDS = ("session_id", "company_name", "email", "name", "role")
_STRING_LIST_FIELDS = (
    "current_ai_tools",
    "questions_asked",
    "topics_discussed",
    "cards_shown",
    "buying_signals",
)


def generate_session_id() -> str:
    return f"session_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def create_initial_context(session_id: Optional[str] = None) -> UserContext:
    """Create an empty context for a new chat session."""
    now = utcnow()
    return UserContext(
        session_id=session_id or generate_session_id(),
        created_at=now,
        last_active_at=now,
    )


def _union(existing: List, new: List) -> List:
    merged = list(existing)
    for item in new:
        if item not in merged:
            merged.append(item)
    return merged


def update_context(context: UserContext, updates: Dict[str, Any]) -> UserContext:
    """
    Return a new context with ``updates`` applied.

    Scalar fields present in ``updates`` replace the prior value. Fields in
    ACCUMULATING_FIELDS are unioned with the existing values, keeping first
    occurrence order. ``last_active_at`` is always refreshed.

    Args:
        context: Current context (left untouched)
        updates: Field name to new value

    Returns:
        Updated UserContext

    Raises:
        KeyError: If an update names a field UserContext does not have
    """
    known = {f.name for f in fields(UserContext)}
    changes: Dict[str, Any] = {}

    for key, value in updates.items():
        if key not in known:
            raise KeyError(f"Unknown context field: {key}")
        if key in FROZEN_FIELDS:
            continue
        if key in ACCUMULATING_FIELDS:
            changes[key] = _union(getattr(context, key), value or [])
        else:
            changes[key] = value

    for key in ACCUMULATING_FIELDS:
        if key not in changes:
            changes[key] = list(getattr(context, key))

    changes["last_active_at"] = utcnow()
    return replace(context, **changes)


def merge_entities_into_context(
    context: UserContext,
    entities: ExtractedEntities,
) -> UserContext:
    """
    Merge extracted entities into the context.

    Company name and industry are only taken when not already known, as is
    the agent count (which also marks the visitor as already running AI).
    """
    updates: Dict[str, Any] = {}

    if entities.company_name and not context.company_name:
        updates["company_name"] = entities.company_name

    if entities.industry and not context.industry:
        updates["industry"] = entities.industry

    if entities.compliance_frameworks:
        updates["compliance_frameworks"] = entities.compliance_frameworks

    if entities.pain_points:
        updates["pain_points"] = entities.pain_points

    if entities.use_cases:
        updates["use_cases"] = entities.use_cases

    if entities.agent_count and context.ai_agent_count is None:
        updates["ai_agent_count"] = entities.agent_count
        updates["has_existing_ai"] = True

    return update_context(context, updates)


def get_context_completeness(context: UserContext) -> int:
    """Weighted 0-100 measure of how much of the profile is known."""
    score = 0
    if context.industry:
        score += COMPLETENESS_WEIGHTS["industry"]
    if context.company_size:
        score += COMPLETENESS_WEIGHTS["company_size"]
    if context.pain_points:
        score += COMPLETENESS_WEIGHTS["pain_points"]
    if context.compliance_frameworks:
        score += COMPLETENESS_WEIGHTS["compliance_frameworks"]
    if context.use_cases:
        score += COMPLETENESS_WEIGHTS["use_cases"]
    if context.has_existing_ai is not None:
        score += COMPLETENESS_WEIGHTS["has_existing_ai"]
    if context.ai_agent_count is not None:
        score += COMPLETENESS_WEIGHTS["ai_agent_count"]
    if context.email:
        score += COMPLETENESS_WEIGHTS["email"]
    return score


def calculate_engagement_level(context: UserContext, message_count: int) -> EngagementLevel:
    """
    Derive the engagement level from interaction patterns.

    Points: 5+ messages (+2), 10+ messages (+2), 2+ cards shown (+2),
    3+ topics (+2), any buying signal (+3), email known (+3).
    8 or more is high, 4 or more is medium.
    """
    score = 0
    if message_count >= 5:
        score += 2
    if message_count >= 10:
        score += 2
    if len(context.cards_shown) >= 2:
        score += 2
    if len(context.topics_discussed) >= 3:
        score += 2
    if context.buying_signals:
        score += 3
    if context.email:
        score += 3

    if score >= 8:
        return EngagementLevel.HIGH
    if score >= 4:
        return EngagementLevel.MEDIUM
    return EngagementLevel.LOW


def get_context_summary(context: UserContext) -> Dict[str, Any]:
    """Compact view of the context returned with every chat response."""
    summary: Dict[str, Any] = {
        "engagement_level": context.engagement_level.value,
        "completeness": get_context_completeness(context),
    }
    if context.industry:
        summary["industry"] = context.industry.value
    if context.pain_points:
        summary["pain_points"] = [p.value for p in context.pain_points]
    if context.compliance_frameworks:
        summary["compliance_frameworks"] = [f.value for f in context.compliance_frameworks]
    return summary


def _to_json_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, list):
        return [_to_json_value(v) for v in value]
    return value


def _check_value_types(values: Dict[str, Any]) -> None:
    """Reject JSON values whose type does not fit the UserContext field."""
    def present(key):
        return values.get(key) is not None

    for key in _STRING_FIELDS:
        if present(key) and not isinstance(values[key], str):
            raise ContextDeserializationError(f"{key} must be a string")
    for key in _STRING_LIST_FIELDS:
        if present(key) and not (
            isinstance(values[key], list) and all(isinstance(v, str) for v in values[key])
        ):
            raise ContextDeserializationError(f"{key} must be a list of strings")
    for key in _LIST_ENUMS:
        if present(key) and not isinstance(values[key], list):
            raise ContextDeserializationError(f"{key} must be a list")
    # bool is an int subclass
    count = values.get("ai_agent_count")
    if count is not None and (isinstance(count, bool) or not isinstance(count, int)):
        raise ContextDeserializationError("ai_agent_count must be an integer")
    if present("has_existing_ai") and not isinstance(values["has_existing_ai"], bool):
        raise ContextDeserializationError("has_existing_ai must be a boolean")


def serialize_context(context: UserContext) -> str:
    """Serialize a context to JSON; dates become ISO-8601 strings."""
    return json.dumps({f.name: _to_json_value(getattr(context, f.name)) for f in fields(UserContext)})


def deserialize_context(data: str) -> UserContext:
    """
    Parse a serialized context.

    Unknown keys are ignored. Missing optional fields take their defaults.

    Raises:
        ContextDeserializationError: If the payload is not valid JSON, lacks a
            session id, or carries values of the wrong type or outside the
            known enumerations
    """
    try:
        parsed = json.loads(data)
    except (TypeError, ValueError) as e:
        raise ContextDeserializationError(f"Invalid context payload: {e}") from e

    if not isinstance(parsed, dict) or not parsed.get("session_id"):
        raise ContextDeserializationError("Context payload has no session_id")

    known = {f.name for f in fields(UserContext)}
    kwargs: Dict[str, Any] = {k: v for k, v in parsed.items() if k in known}
    _check_value_types(kwargs)

    try:
        for key, enum_cls in _SCALAR_ENUMS.items():
            if kwargs.get(key) is not None:
                kwargs[key] = enum_cls(kwargs[key])
        for key, enum_cls in _LIST_ENUMS.items():
            if kwargs.get(key) is not None:
                kwargs[key] = [enum_cls(v) for v in kwargs[key]]
        for key in _DATE_FIELDS:
            if kwargs.get(key) is not None:
                kwargs[key] = datetime.fromisoformat(kwargs[key])
            else:
                kwargs.pop(key, None)
        if kwargs.get("engagement_level") is None:
            kwargs.pop("engagement_level", None)
        for key in ACCUMULATING_FIELDS:
            if kwargs.get(key) is None:
                kwargs.pop(key, None)
            else:
                kwargs[key] = list(kwargs[key])
        return UserContext(**kwargs)
    except (TypeError, ValueError) as e:
        raise ContextDeserializationError(f"Invalid context field: {e}") from e
