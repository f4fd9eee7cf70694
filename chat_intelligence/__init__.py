"""
Conversational intelligence for the website chat assistant.

This package turns free-text visitor messages into structured context:
- Entity extraction (industry, compliance, pain points, use cases)
- Conversational intent classification
- Session-scoped user context with additive merges
- Profiling-question scheduling
- Morph card triggers and personalised card content
"""

from .models import (
    CardCustomization,
    CardTrigger,
    CardType,
    CompanySize,
    ComplianceFramework,
    ConversationIntent,
    EngagementLevel,
    ExtractedEntities,
    Industry,
    PainPoint,
    UseCase,
    UserContext,
)
from .entity_extractor import EntityExtractor
from .intent_classifier import IntentClassifier
from .context_store import (
    ContextDeserializationError,
    create_initial_context,
    deserialize_context,
    merge_entities_into_context,
    serialize_context,
    update_context,
)
from .profiling import ProfilingScheduler
from .card_triggers import CardTriggerEngine
from .content_engine import ContentEngine

__all__ = [
    "CardCustomization",
    "CardTrigger",
    "CardType",
    "CompanySize",
    "ComplianceFramework",
    "ConversationIntent",
    "EngagementLevel",
    "ExtractedEntities",
    "Industry",
    "PainPoint",
    "UseCase",
    "UserContext",
    "EntityExtractor",
    "IntentClassifier",
    "ContextDeserializationError",
    "create_initial_context",
    "deserialize_context",
    "merge_entities_into_context",
    "serialize_context",
    "update_context",
    "ProfilingScheduler",
    "CardTriggerEngine",
    "ContentEngine",
]
