"""
Chat API Routes.
"""

import logging
from typing import List, Dict, Any, Optional

from fastapi import APIRouter, BackgroundTasks, Request
from pydantic import BaseModel, Field

from lead_scoring.scoring_model import UserInfo
from llm.orchestrator import ChatTurnRequest, ChatTurnResult

from ..middleware.metrics import (
    record_card_trigger,
    record_intent,
    record_lead_score,
    record_llm_failure,
    record_llm_latency,
    record_priority_tier,
)
from ..middleware.rate_limit import get_client_ip
from ..services import get_services

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Request / Response Models ─────────────────────────────────────

class HistoryMessage(BaseModel):
    role: str = Field(..., pattern="^(user|assistant)$")
    content: str


class PageContext(BaseModel):
    current_page: str = "/"
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_company: Optional[str] = None


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)
    session_id: Optional[str] = None
    user_context: Optional[str] = None
    conversation_history: List[HistoryMessage] = []
    page_context: PageContext = Field(default_factory=PageContext)


class ContextSummary(BaseModel):
    industry: Optional[str] = None
    pain_points: Optional[List[str]] = None
    compliance_frameworks: Optional[List[str]] = None
    engagement_level: Optional[str] = None
    completeness: Optional[int] = None


class MorphTrigger(BaseModel):
    type: str
    confidence: float
    reason: str
    customizations: Dict[str, Any] = {}


class ChatResponse(BaseModel):
    response: str
    session_id: str
    user_context: str
    context_summary: ContextSummary
    extracted_info: Dict[str, str] = {}
    morph_trigger: Optional[MorphTrigger] = None
    intent: Optional[str] = None
    profiling_question: Optional[str] = None
    used_fallback: bool = False
    error: bool = False


# ── Endpoints ─────────────────────────────────────────────────────

@router.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest, http_request: Request, background_tasks: BackgroundTasks):
    """
    Process one chat turn.

    The reply, context and morph card are computed inline; lead
    intelligence and visitor-session recording run after the response.
    """
    services = get_services()
    page_context = request.page_context.model_dump()
    history = [m.model_dump() for m in request.conversation_history]

    result = await services.orchestrator.process_turn(ChatTurnRequest(
        message=request.message,
        session_id=request.session_id,
        user_context=request.user_context,
        conversation_history=history,
        page_context=page_context,
    ))

    _record_turn_metrics(result)

    contact = result.extracted_info
    context = result.context
    user_info = UserInfo(
        name=page_context.get("user_name") or contact.get("name") or context.name,
        email=page_context.get("user_email") or contact.get("email") or context.email,
        company=page_context.get("user_company") or contact.get("company") or context.company_name,
        job_title=contact.get("job_title") or context.role,
        phone=contact.get("phone"),
    )

    background_tasks.add_task(
        _process_lead_intelligence,
        result.session_id,
        request.message,
        user_info,
        history,
        page_context,
    )
    background_tasks.add_task(
        services.lead_service.record_session,
        result.session_id,
        ip_address=get_client_ip(http_request),
        user_agent=http_request.headers.get("user-agent"),
        language=http_request.headers.get("accept-language"),
        current_page=page_context.get("current_page"),
    )
    background_tasks.add_task(_log_chat_analytics, result, len(request.message))

    return ChatResponse(**result.to_dict())


# ── Helpers ───────────────────────────────────────────────────────

def _record_turn_metrics(result: ChatTurnResult):
    if result.intent:
        record_intent(result.intent.value)
    if result.morph_trigger:
        record_card_trigger(result.morph_trigger.card_type.value)
    if result.error:
        record_llm_failure()
    elif result.llm_provider:
        record_llm_latency(result.llm_provider, result.llm_latency_ms / 1000)


async def _process_lead_intelligence(
    session_id: str,
    message: str,
    user_info: UserInfo,
    history: List[Dict[str, str]],
    page_context: Dict[str, Any],
):
    """Score and persist the lead (background task)."""
    services = get_services()
    try:
        outcome = await services.lead_service.process_message_for_intelligence(
            session_id, message, user_info, history, page_context
        )
    except Exception as e:
        logger.error(f"Lead intelligence processing error for {session_id}: {e}")
        return

    if outcome.intelligence is None:
        return
    record_lead_score(outcome.intelligence.buy_intent_score)
    record_priority_tier(outcome.priority_tier.value)
    if outcome.priority_tier.value == "tier1":
        logger.info(f"Hot lead detected in session {session_id}")


def _log_chat_analytics(result: ChatTurnResult, message_length: int):
    """Log chat analytics (background task)."""
    logger.info(
        "Chat analytics",
        extra={
            "session_id": result.session_id,
            "message_length": message_length,
            "intent": result.intent.value if result.intent else None,
            "card": result.morph_trigger.card_type.value if result.morph_trigger else None,
            "engagement": result.context_summary.get("engagement_level"),
            "used_fallback": result.used_fallback,
            "processing_time_ms": result.processing_time_ms,
        },
    )
