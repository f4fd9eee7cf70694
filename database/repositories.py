"""
Repository classes for the lead-intelligence data access layer.

Each repository encapsulates CRUD operations for a specific model.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Conversation, LeadIntelligence, User, VisitorSession

logger = logging.getLogger(__name__)


def row_to_dict(row) -> Dict[str, Any]:
    """Column values of an ORM row as a plain dict."""
    return {c.name: getattr(row, c.name) for c in row.__table__.columns}


class UserRepository:
    """Data access for chat users."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> User:
        user = User(**kwargs)
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_session(self, session_id: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.session_id == session_id)
        )
        return result.scalar_one_or_none()

    async def update(self, user_id: str, **kwargs) -> Optional[User]:
        await self.session.execute(
            update(User).where(User.id == user_id).values(**kwargs)
        )
        await self.session.flush()
        return await self.get_by_id(user_id)


class ConversationRepository:
    """Data access for conversations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> Conversation:
        conv = Conversation(**kwargs)
        self.session.add(conv)
        await self.session.flush()
        return conv

    async def get_by_id(self, conversation_id: str) -> Optional[Conversation]:
        result = await self.session.execute(
            select(Conversation).where(Conversation.id == conversation_id)
        )
        return result.scalar_one_or_none()

    async def get_active_by_session(self, session_id: str) -> Optional[Conversation]:
        result = await self.session.execute(
            select(Conversation)
            .where(Conversation.session_id == session_id, Conversation.is_active == True)
            .order_by(Conversation.started_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def update(self, conversation_id: str, **kwargs) -> Optional[Conversation]:
        await self.session.execute(
            update(Conversation).where(Conversation.id == conversation_id).values(**kwargs)
        )
        await self.session.flush()
        return await self.get_by_id(conversation_id)


class LeadIntelligenceRepository:
    """Data access for lead intelligence rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> LeadIntelligence:
        intel = LeadIntelligence(**kwargs)
        self.session.add(intel)
        await self.session.flush()
        return intel

    async def get_by_user(self, user_id: str, for_update: bool = False) -> Optional[LeadIntelligence]:
        q = select(LeadIntelligence).where(LeadIntelligence.user_id == user_id)
        if for_update:
            q = q.with_for_update()
        result = await self.session.execute(q)
        return result.scalar_one_or_none()

    async def update(self, intel: LeadIntelligence, **kwargs) -> LeadIntelligence:
        for k, v in kwargs.items():
            if hasattr(intel, k):
                setattr(intel, k, v)
        await self.session.flush()
        return intel

    @staticmethod
    def _apply_filters(q, filters: Optional[Dict[str, str]]):
        for column, value in (filters or {}).items():
            if value is not None:
                q = q.where(getattr(LeadIntelligence, column) == value)
        return q

    async def list_with_users(
        self, filters: Optional[Dict[str, str]] = None, limit: int = 100
    ) -> List[Tuple[LeadIntelligence, User]]:
        q = (
            select(LeadIntelligence, User)
            .join(User, LeadIntelligence.user_id == User.id)
            .order_by(LeadIntelligence.updated_at.desc())
            .limit(limit)
        )
        q = self._apply_filters(q, filters)
        result = await self.session.execute(q)
        return [(row[0], row[1]) for row in result.all()]

    async def count(
        self, filters: Optional[Dict[str, str]] = None, since: Optional[datetime] = None
    ) -> int:
        q = select(func.count(LeadIntelligence.id))
        q = self._apply_filters(q, filters)
        if since is not None:
            q = q.where(LeadIntelligence.created_at >= since)
        result = await self.session.execute(q)
        return result.scalar_one() or 0


class VisitorSessionRepository:
    """Data access for visitor sessions."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs) -> VisitorSession:
        visit = VisitorSession(**kwargs)
        self.session.add(visit)
        await self.session.flush()
        return visit

    async def get_by_id(self, visitor_session_id: str) -> Optional[VisitorSession]:
        result = await self.session.execute(
            select(VisitorSession).where(VisitorSession.id == visitor_session_id)
        )
        return result.scalar_one_or_none()

    async def get_by_session(self, session_id: str) -> Optional[VisitorSession]:
        result = await self.session.execute(
            select(VisitorSession).where(VisitorSession.session_id == session_id)
        )
        return result.scalar_one_or_none()

    async def update(self, visitor_session_id: str, **kwargs) -> Optional[VisitorSession]:
        await self.session.execute(
            update(VisitorSession).where(VisitorSession.id == visitor_session_id).values(**kwargs)
        )
        await self.session.flush()
        return await self.get_by_id(visitor_session_id)
