"""
Lead store interface and an in-memory implementation.

Records are plain dicts keyed by column name. Every insert assigns an
``id`` and timestamps.
"""

import copy
import uuid
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
LeadMerge = Callable[[Optional[Record]], Record]

LEAD_FILTER_FIELDS = ("intent_category", "company_size", "urgency", "qualification_status")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class LeadStore(Protocol):
    """Persistence operations needed by the lead service."""

    async def get_user_by_session(self, session_id: str) -> Optional[Record]: ...

    async def insert_user(self, record: Record) -> Record: ...

    async def update_user(self, user_id: str, fields: Record) -> Record: ...

    async def get_active_conversation(self, session_id: str) -> Optional[Record]: ...

    async def insert_conversation(self, record: Record) -> Record: ...

    async def update_conversation(self, conversation_id: str, fields: Record) -> Record: ...

    async def get_lead_intelligence(self, user_id: str) -> Optional[Record]: ...

    async def upsert_lead_intelligence(self, user_id: str, merge: LeadMerge) -> Record:
        """
        Atomically read, merge and write the lead row for ``user_id``.

        ``merge`` receives the existing row (or None) and returns the
        fields to store.
        """
        ...

    async def list_lead_intelligence(
        self, filters: Optional[Dict[str, str]] = None, limit: int = 100
    ) -> List[Record]: ...

    async def count_lead_intelligence(
        self, filters: Optional[Dict[str, str]] = None, since: Optional[datetime] = None
    ) -> int: ...

    async def get_visitor_session(self, session_id: str) -> Optional[Record]: ...

    async def insert_visitor_session(self, record: Record) -> Record: ...

    async def update_visitor_session(self, visitor_session_id: str, fields: Record) -> Record: ...


class InMemoryLeadStore:
    """Dict-backed LeadStore for development and tests."""

    def __init__(self):
        self.users: Dict[str, Record] = {}
        self.conversations: Dict[str, Record] = {}
        self.lead_intelligence: Dict[str, Record] = {}
        self.visitor_sessions: Dict[str, Record] = {}

    @staticmethod
    def _insert(table: Dict[str, Record], record: Record) -> Record:
        row = copy.deepcopy(record)
        row.setdefault("id", uuid.uuid4().hex)
        now = _now()
        row.setdefault("created_at", now)
        row.setdefault("updated_at", now)
        table[row["id"]] = row
        return copy.deepcopy(row)

    @staticmethod
    def _update(table: Dict[str, Record], row_id: str, fields: Record) -> Record:
        if row_id not in table:
            raise KeyError(f"No row with id {row_id}")
        row = table[row_id]
        row.update(copy.deepcopy(fields))
        row["updated_at"] = _now()
        return copy.deepcopy(row)

    @staticmethod
    def _find(table: Dict[str, Record], **criteria) -> Optional[Record]:
        for row in table.values():
            if all(row.get(k) == v for k, v in criteria.items()):
                return copy.deepcopy(row)
        return None

    # Users

    async def get_user_by_session(self, session_id: str) -> Optional[Record]:
        return self._find(self.users, session_id=session_id)

    async def insert_user(self, record: Record) -> Record:
        return self._insert(self.users, record)

    async def update_user(self, user_id: str, fields: Record) -> Record:
        return self._update(self.users, user_id, fields)

    # Conversations

    async def get_active_conversation(self, session_id: str) -> Optional[Record]:
        return self._find(self.conversations, session_id=session_id, is_active=True)

    async def insert_conversation(self, record: Record) -> Record:
        return self._insert(self.conversations, record)

    async def update_conversation(self, conversation_id: str, fields: Record) -> Record:
        return self._update(self.conversations, conversation_id, fields)

    # Lead intelligence

    async def get_lead_intelligence(self, user_id: str) -> Optional[Record]:
        return self._find(self.lead_intelligence, user_id=user_id)

    async def upsert_lead_intelligence(self, user_id: str, merge: LeadMerge) -> Record:
        existing = self._find(self.lead_intelligence, user_id=user_id)
        fields = merge(existing)
        fields["user_id"] = user_id
        if existing:
            return self._update(self.lead_intelligence, existing["id"], fields)
        return self._insert(self.lead_intelligence, fields)

    def _filtered(self, filters: Optional[Dict[str, str]], since: Optional[datetime]) -> List[Record]:
        rows = []
        for row in self.lead_intelligence.values():
            if filters and any(row.get(k) != v for k, v in filters.items() if v is not None):
                continue
            if since is not None and row["created_at"] < since:
                continue
            rows.append(row)
        return rows

    async def list_lead_intelligence(
        self, filters: Optional[Dict[str, str]] = None, limit: int = 100
    ) -> List[Record]:
        rows = sorted(self._filtered(filters, None), key=lambda r: r["updated_at"], reverse=True)
        result = []
        for row in rows:
            user = self.users.get(row["user_id"])
            if user is None:
                continue
            item = copy.deepcopy(row)
            item["user"] = copy.deepcopy(user)
            result.append(item)
            if len(result) >= limit:
                break
        return result

    async def count_lead_intelligence(
        self, filters: Optional[Dict[str, str]] = None, since: Optional[datetime] = None
    ) -> int:
        return len(self._filtered(filters, since))

    # Visitor sessions

    async def get_visitor_session(self, session_id: str) -> Optional[Record]:
        return self._find(self.visitor_sessions, session_id=session_id)

    async def insert_visitor_session(self, record: Record) -> Record:
        return self._insert(self.visitor_sessions, record)

    async def update_visitor_session(self, visitor_session_id: str, fields: Record) -> Record:
        return self._update(self.visitor_sessions, visitor_session_id, fields)
