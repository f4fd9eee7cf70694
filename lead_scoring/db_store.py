"""
SQLAlchemy-backed LeadStore.

Each operation runs in its own session and transaction. The lead
intelligence upsert locks the existing row (SELECT ... FOR UPDATE) so
concurrent turns for the same visitor serialize their read-merge-write.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.repositories import (
    ConversationRepository,
    LeadIntelligenceRepository,
    UserRepository,
    VisitorSessionRepository,
    row_to_dict,
)

from .store import LeadMerge, Record

logger = logging.getLogger(__name__)


class DbLeadStore:
    """LeadStore over the database repositories."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    # Users

    async def get_user_by_session(self, session_id: str) -> Optional[Record]:
        async with self.session_factory() as session:
            user = await UserRepository(session).get_by_session(session_id)
            return row_to_dict(user) if user else None

    async def insert_user(self, record: Record) -> Record:
        async with self.session_factory() as session, session.begin():
            user = await UserRepository(session).create(**record)
            return row_to_dict(user)

    async def update_user(self, user_id: str, fields: Record) -> Record:
        async with self.session_factory() as session, session.begin():
            user = await UserRepository(session).update(user_id, **fields)
            if user is None:
                raise KeyError(f"No user with id {user_id}")
            return row_to_dict(user)

    # Conversations

    async def get_active_conversation(self, session_id: str) -> Optional[Record]:
        async with self.session_factory() as session:
            conv = await ConversationRepository(session).get_active_by_session(session_id)
            return row_to_dict(conv) if conv else None

    async def insert_conversation(self, record: Record) -> Record:
        async with self.session_factory() as session, session.begin():
            conv = await ConversationRepository(session).create(**record)
            return row_to_dict(conv)

    async def update_conversation(self, conversation_id: str, fields: Record) -> Record:
        async with self.session_factory() as session, session.begin():
            conv = await ConversationRepository(session).update(conversation_id, **fields)
            if conv is None:
                raise KeyError(f"No conversation with id {conversation_id}")
            return row_to_dict(conv)

    # Lead intelligence

    async def get_lead_intelligence(self, user_id: str) -> Optional[Record]:
        async with self.session_factory() as session:
            intel = await LeadIntelligenceRepository(session).get_by_user(user_id)
            return row_to_dict(intel) if intel else None

    async def upsert_lead_intelligence(self, user_id: str, merge: LeadMerge) -> Record:
        async with self.session_factory() as session, session.begin():
            repo = LeadIntelligenceRepository(session)
            intel = await repo.get_by_user(user_id, for_update=True)
            fields = merge(row_to_dict(intel) if intel else None)
            fields["user_id"] = user_id
            if intel is None:
                intel = await repo.create(**fields)
            else:
                intel = await repo.update(intel, **fields)
            return row_to_dict(intel)

    async def list_lead_intelligence(
        self, filters: Optional[Dict[str, str]] = None, limit: int = 100
    ) -> List[Record]:
        async with self.session_factory() as session:
            rows = await LeadIntelligenceRepository(session).list_with_users(filters, limit)
            result = []
            for intel, user in rows:
                item = row_to_dict(intel)
                item["user"] = row_to_dict(user)
                result.append(item)
            return result

    async def count_lead_intelligence(
        self, filters: Optional[Dict[str, str]] = None, since: Optional[datetime] = None
    ) -> int:
        async with self.session_factory() as session:
            return await LeadIntelligenceRepository(session).count(filters, since)

    # Visitor sessions

    async def get_visitor_session(self, session_id: str) -> Optional[Record]:
        async with self.session_factory() as session:
            visit = await VisitorSessionRepository(session).get_by_session(session_id)
            return row_to_dict(visit) if visit else None

    async def insert_visitor_session(self, record: Record) -> Record:
        async with self.session_factory() as session, session.begin():
            visit = await VisitorSessionRepository(session).create(**record)
            return row_to_dict(visit)

    async def update_visitor_session(self, visitor_session_id: str, fields: Record) -> Record:
        async with self.session_factory() as session, session.begin():
            visit = await VisitorSessionRepository(session).update(visitor_session_id, **fields)
            if visit is None:
                raise KeyError(f"No visitor session with id {visitor_session_id}")
            return row_to_dict(visit)
