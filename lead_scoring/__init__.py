"""
Lead Scoring Module.

This module provides lead qualification and scoring capabilities:
- Behavioral signal detection (demo, pricing, timeline, compliance, ...)
- Buy-intent scoring (0-100 scale), urgency and qualification
- Priority tiers and sales notification dispatch
- Persistence of users, conversations and lead intelligence
"""

from .signal_detector import BehavioralSignal, SignalDetector, SignalType, deduplicate_signals
from .scoring_model import (
    IntentCategory,
    LeadCompanySize,
    LeadIntelligence,
    LeadIntelligenceScorer,
    QualificationStatus,
    UrgencyLevel,
    UserInfo,
)
from .lead_router import LeadRouter, PriorityTier, get_lead_priority_tier
from .store import InMemoryLeadStore, LeadStore
from .lead_service import LeadProcessingResult, LeadService, merge_lead_intelligence

__all__ = [
    "BehavioralSignal",
    "SignalDetector",
    "SignalType",
    "deduplicate_signals",
    "IntentCategory",
    "LeadCompanySize",
    "LeadIntelligence",
    "LeadIntelligenceScorer",
    "QualificationStatus",
    "UrgencyLevel",
    "UserInfo",
    "LeadRouter",
    "PriorityTier",
    "get_lead_priority_tier",
    "InMemoryLeadStore",
    "LeadStore",
    "LeadProcessingResult",
    "LeadService",
    "merge_lead_intelligence",
]
