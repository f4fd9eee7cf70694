"""
Lead Persistence Service.

Ties the scorer, the router and the LeadStore together for one chat
turn: upsert the user, replace the conversation transcript, merge the
lead intelligence row, compute the priority tier and dispatch
notifications.

Every store call is best-effort. With no store configured, or when a
write fails, the service logs and returns None so the chat response can
still be produced from in-memory context.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from .lead_router import LeadRouter, PriorityTier, get_lead_priority_tier
from .scoring_model import (
    LeadIntelligence,
    LeadIntelligenceScorer,
    QualificationStatus,
    UrgencyLevel,
    UserInfo,
)
from .signal_detector import deduplicate_signals
from .store import LEAD_FILTER_FIELDS, LeadStore, Record

logger = logging.getLogger(__name__)

DEFAULT_SIGNAL_CAP = 50
RECENT_LEADS_WINDOW = timedelta(hours=24)

URGENCY_RANK = {
    UrgencyLevel.LOW: 0,
    UrgencyLevel.MEDIUM: 1,
    UrgencyLevel.HIGH: 2,
    UrgencyLevel.IMMEDIATE: 3,
}
QUALIFICATION_RANK = {
    QualificationStatus.UNQUALIFIED: 0,
    QualificationStatus.NEW: 1,
    QualificationStatus.NURTURE: 2,
    QualificationStatus.QUALIFIED: 3,
}


@dataclass
class LeadProcessingResult:
    """Outcome of processing one chat turn for lead intelligence."""
    user: Optional[Record] = None
    intelligence: Optional[LeadIntelligence] = None
    priority_tier: PriorityTier = PriorityTier.TIER3

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user": self.user,
            "intelligence": self.intelligence.to_dict() if self.intelligence else None,
            "priority_tier": self.priority_tier.value,
        }


def merge_lead_intelligence(
    existing: Optional[LeadIntelligence],
    incoming: LeadIntelligence,
    scorer: LeadIntelligenceScorer,
    signal_cap: int = DEFAULT_SIGNAL_CAP,
) -> LeadIntelligence:
    """
    Merge freshly scored intelligence into the stored row.

    - Signals: stored + incoming, deduplicated, keeping the last ``signal_cap``
    - Score: max(stored, incoming), so it never decreases
    - Category follows the merged score
    - Urgency and qualification keep the higher of stored and incoming
    - Inferred fields the new pass could not determine keep their stored value
    """
    if existing is None:
        signals = deduplicate_signals(incoming.behavioral_signals)[-signal_cap:]
        return LeadIntelligence(
            user_id=incoming.user_id,
            buy_intent_score=incoming.buy_intent_score,
            intent_category=incoming.intent_category,
            urgency=incoming.urgency,
            company_size=incoming.company_size,
            qualification_status=incoming.qualification_status,
            behavioral_signals=signals,
            company_research=incoming.company_research,
            user_research=incoming.user_research,
            updated_at=incoming.updated_at,
        )

    signals = deduplicate_signals(
        list(existing.behavioral_signals) + list(incoming.behavioral_signals)
    )[-signal_cap:]
    score = max(existing.buy_intent_score, incoming.buy_intent_score)

    return LeadIntelligence(
        user_id=incoming.user_id,
        buy_intent_score=score,
        intent_category=scorer.get_intent_category(score),
        urgency=max(existing.urgency, incoming.urgency, key=URGENCY_RANK.__getitem__),
        company_size=incoming.company_size or existing.company_size,
        qualification_status=max(
            existing.qualification_status,
            incoming.qualification_status,
            key=QUALIFICATION_RANK.__getitem__,
        ),
        behavioral_signals=signals,
        company_research=incoming.company_research or existing.company_research,
        user_research=incoming.user_research or existing.user_research,
        updated_at=datetime.now(timezone.utc),
    )


class LeadService:
    """
    Persists users, conversations and lead intelligence.

    Args:
        store: LeadStore implementation, or None when persistence is not configured
        scorer: Lead intelligence scorer
        router: Notification router
        signal_cap: Maximum behavioral signals kept per lead
    """

    def __init__(
        self,
        store: Optional[LeadStore] = None,
        scorer: Optional[LeadIntelligenceScorer] = None,
        router: Optional[LeadRouter] = None,
        signal_cap: int = DEFAULT_SIGNAL_CAP,
    ):
        self.store = store
        self.scorer = scorer or LeadIntelligenceScorer()
        self.router = router or LeadRouter()
        self.signal_cap = signal_cap

    @property
    def is_configured(self) -> bool:
        return self.store is not None

    def _store_or_warn(self) -> Optional[LeadStore]:
        if self.store is None:
            logger.warning("Lead store not configured")
        return self.store

    async def _find_user(self, session_id: str) -> Optional[Record]:
        if self.store is None:
            return None
        try:
            return await self.store.get_user_by_session(session_id)
        except Exception as e:
            logger.error(f"Error loading user for session {session_id}: {e}")
            return None

    async def upsert_user(self, session_id: str, fields: Dict[str, Any]) -> Optional[Record]:
        """
        Create the user for a session, or update it with the known fields.

        None values never overwrite stored contact details.
        """
        store = self._store_or_warn()
        if store is None:
            return None

        known = {k: v for k, v in fields.items() if v is not None}
        try:
            existing = await store.get_user_by_session(session_id)
            if existing:
                if not known:
                    return existing
                return await store.update_user(existing["id"], known)
            return await store.insert_user({"session_id": session_id, **known})
        except Exception as e:
            logger.error(f"Error upserting user for session {session_id}: {e}")
            return None

    async def upsert_conversation(
        self,
        user_id: str,
        session_id: str,
        messages: Sequence[Dict[str, str]],
        page_context: Optional[Dict[str, Any]] = None,
    ) -> Optional[Record]:
        """Replace the active conversation's transcript, creating it if needed."""
        store = self._store_or_warn()
        if store is None:
            return None

        transcript = [{"role": m["role"], "content": m["content"]} for m in messages]
        try:
            existing = await store.get_active_conversation(session_id)
            if existing:
                return await store.update_conversation(
                    existing["id"], {"messages": transcript, "page_context": page_context}
                )
            return await store.insert_conversation({
                "user_id": user_id,
                "session_id": session_id,
                "messages": transcript,
                "page_context": page_context,
                "started_at": datetime.now(timezone.utc),
                "is_active": True,
            })
        except Exception as e:
            logger.error(f"Error upserting conversation for session {session_id}: {e}")
            return None

    async def upsert_lead_intelligence(
        self, user_id: str, intelligence: LeadIntelligence
    ) -> Optional[LeadIntelligence]:
        """
        Merge intelligence into the user's stored row.

        Returns:
            The merged intelligence as stored, or None on failure
        """
        store = self._store_or_warn()
        if store is None:
            return None

        def _merge(existing: Optional[Record]) -> Record:
            stored = LeadIntelligence.from_dict(existing) if existing else None
            merged = merge_lead_intelligence(stored, intelligence, self.scorer, self.signal_cap)
            return merged.to_record()

        try:
            row = await store.upsert_lead_intelligence(user_id, _merge)
        except Exception as e:
            logger.error(f"Error upserting lead intelligence for user {user_id}: {e}")
            return None
        return LeadIntelligence.from_dict(row)

    async def process_message_for_intelligence(
        self,
        session_id: str,
        user_message: str,
        user_info: Optional[UserInfo] = None,
        conversation_history: Optional[Sequence[Dict[str, str]]] = None,
        page_context: Optional[Dict[str, Any]] = None,
    ) -> LeadProcessingResult:
        """
        Score the conversation so far and persist the result.

        Args:
            session_id: Chat session id
            user_message: The visitor's latest message
            user_info: Contact fields known for the visitor
            conversation_history: Prior turns as {"role", "content"} dicts
            page_context: Page the visitor is on

        Returns:
            LeadProcessingResult; tier3 with no user when persistence is unavailable
        """
        user_info = user_info or UserInfo()
        history = list(conversation_history or [])

        previous = await self._find_user(session_id)
        user = await self.upsert_user(session_id, user_info.to_dict())
        if not user:
            return LeadProcessingResult()

        transcript = history + [{"role": "user", "content": user_message}]
        await self.upsert_conversation(user["id"], session_id, transcript, page_context)

        user_messages = [m["content"] for m in transcript if m.get("role") == "user"]
        # Contact details from earlier turns count toward qualification
        contact = UserInfo(**{k: user.get(k) for k in user_info.to_dict()})

        existing_signals = []
        try:
            existing = await self.store.get_lead_intelligence(user["id"])
            if existing:
                existing_signals = LeadIntelligence.from_dict(existing).behavioral_signals
        except Exception as e:
            logger.error(f"Error loading lead intelligence for user {user['id']}: {e}")

        scored = self.scorer.generate(user["id"], user_messages, contact, existing_signals)
        stored = await self.upsert_lead_intelligence(user["id"], scored)
        intelligence = stored or scored

        tier = get_lead_priority_tier(intelligence)
        confirmed = bool(previous and previous.get("email") and previous.get("name"))
        self.router.dispatch(intelligence, contact, tier, welcome=not confirmed)

        logger.info(
            f"Lead {user['id']} ({session_id}): score={intelligence.buy_intent_score}, "
            f"category={intelligence.intent_category.value}, tier={tier.value}"
        )
        return LeadProcessingResult(user=user, intelligence=intelligence, priority_tier=tier)

    async def get_lead_by_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        """
        Look up the user and intelligence for a session.

        Returns:
            {"user": ..., "intelligence": ...} with None values for unknown
            sessions, or None if the store is unavailable
        """
        store = self._store_or_warn()
        if store is None:
            return None
        try:
            user = await store.get_user_by_session(session_id)
            if not user:
                return {"user": None, "intelligence": None}
            intelligence = await store.get_lead_intelligence(user["id"])
            return {"user": user, "intelligence": intelligence}
        except Exception as e:
            logger.error(f"Error getting lead by session {session_id}: {e}")
            return None

    async def get_all_leads(
        self, filters: Optional[Dict[str, Optional[str]]] = None, limit: int = 100
    ) -> List[Dict[str, Any]]:
        """Leads for the sales dashboard, most recently updated first."""
        store = self._store_or_warn()
        if store is None:
            return []

        applied = {k: v for k, v in (filters or {}).items() if k in LEAD_FILTER_FIELDS and v}
        try:
            rows = await store.list_lead_intelligence(applied, limit=limit)
        except Exception as e:
            logger.error(f"Error listing leads: {e}")
            return []

        leads = []
        for row in rows:
            user = row.pop("user", None)
            leads.append({"user": user, "intelligence": row})
        return leads

    async def get_lead_stats(self) -> Dict[str, int]:
        empty = {
            "total": 0, "hot": 0, "warm": 0, "cold": 0,
            "qualified": 0, "enterprise": 0, "recent_leads": 0,
        }
        store = self._store_or_warn()
        if store is None:
            return empty

        since = datetime.now(timezone.utc) - RECENT_LEADS_WINDOW
        try:
            return {
                "total": await store.count_lead_intelligence(),
                "hot": await store.count_lead_intelligence({"intent_category": "hot"}),
                "warm": await store.count_lead_intelligence({"intent_category": "warm"}),
                "cold": await store.count_lead_intelligence({"intent_category": "cold"}),
                "qualified": await store.count_lead_intelligence({"qualification_status": "qualified"}),
                "enterprise": await store.count_lead_intelligence({"company_size": "enterprise"}),
                "recent_leads": await store.count_lead_intelligence(since=since),
            }
        except Exception as e:
            logger.error(f"Error getting lead stats: {e}")
            return empty

    async def record_session(
        self,
        session_id: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        country: Optional[str] = None,
        language: Optional[str] = None,
        current_page: Optional[str] = None,
    ) -> Optional[Record]:
        """Create or touch the visitor session, appending unseen pages."""
        store = self._store_or_warn()
        if store is None:
            return None

        now = datetime.now(timezone.utc)
        page_visit = {"page": current_page, "timestamp": now.isoformat(), "duration": 0} if current_page else None

        try:
            existing = await store.get_visitor_session(session_id)
            if existing:
                pages = list(existing.get("pages_visited") or [])
                if page_visit and not any(p.get("page") == current_page for p in pages):
                    pages.append(page_visit)
                return await store.update_visitor_session(
                    existing["id"], {"last_activity": now, "pages_visited": pages}
                )
            return await store.insert_visitor_session({
                "session_id": session_id,
                "ip_address": ip_address,
                "user_agent": user_agent,
                "detected_country": country,
                "detected_language": language,
                "pages_visited": [page_visit] if page_visit else [],
                "first_visit": now,
                "last_activity": now,
            })
        except Exception as e:
            logger.error(f"Error recording session {session_id}: {e}")
            return None
