"""
Lead Intelligence API Routes for the sales dashboard.
"""

import logging
from datetime import datetime
from typing import List, Dict, Any, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from lead_scoring.scoring_model import (
    IntentCategory,
    LeadCompanySize,
    QualificationStatus,
    UrgencyLevel,
)

from ..services import get_services

logger = logging.getLogger(__name__)

router = APIRouter()


# Models
class LeadUser(BaseModel):
    id: str
    session_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    job_title: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None


class LeadIntelligenceOut(BaseModel):
    user_id: str
    buy_intent_score: int = 0
    intent_category: IntentCategory = IntentCategory.COLD
    urgency: UrgencyLevel = UrgencyLevel.LOW
    company_size: Optional[LeadCompanySize] = None
    qualification_status: QualificationStatus = QualificationStatus.NEW
    behavioral_signals: List[Dict[str, Any]] = []
    company_research: Optional[Dict[str, Any]] = None
    user_research: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Lead(BaseModel):
    user: Optional[LeadUser] = None
    intelligence: Optional[LeadIntelligenceOut] = None


class LeadList(BaseModel):
    leads: List[Lead]
    total: int


class LeadStats(BaseModel):
    total: int
    hot: int
    warm: int
    cold: int
    qualified: int
    enterprise: int
    recent_leads: int


@router.get("/leads", response_model=LeadList)
async def list_leads(
    intent_category: Optional[IntentCategory] = None,
    company_size: Optional[LeadCompanySize] = None,
    urgency: Optional[UrgencyLevel] = None,
    qualification_status: Optional[QualificationStatus] = None,
    limit: int = Query(100, ge=1, le=100),
):
    """List leads, most recently updated first."""
    filters = {
        "intent_category": intent_category.value if intent_category else None,
        "company_size": company_size.value if company_size else None,
        "urgency": urgency.value if urgency else None,
        "qualification_status": qualification_status.value if qualification_status else None,
    }
    rows = await get_services().lead_service.get_all_leads(filters, limit=limit)
    leads = [Lead(**row) for row in rows]
    return LeadList(leads=leads, total=len(leads))


@router.get("/leads/stats", response_model=LeadStats)
async def get_lead_stats():
    """Lead counts by category, qualification and recency."""
    return LeadStats(**await get_services().lead_service.get_lead_stats())


@router.get("/leads/session/{session_id}", response_model=Lead)
async def get_lead_by_session(session_id: str):
    """Get the user and lead intelligence for a chat session."""
    result = await get_services().lead_service.get_lead_by_session(session_id)
    if result is None:
        raise HTTPException(status_code=503, detail="Lead store unavailable")
    if result["user"] is None:
        raise HTTPException(status_code=404, detail="Lead not found")
    return Lead(**result)
