"""
SQLAlchemy ORM models for the lead-intelligence service.

Tables: users (one per chat session), conversations, lead_intelligence
(one row per user) and visitor_sessions.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, Text, ForeignKey,
    JSON, Index,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class User(Base):
    """A chat visitor, keyed by session id."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    session_id = Column(String(100), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    company = Column(String(255), nullable=True)
    job_title = Column(String(255), nullable=True)
    phone = Column(String(40), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    conversations = relationship("Conversation", back_populates="user", cascade="all, delete-orphan")
    intelligence = relationship("LeadIntelligence", back_populates="user", uselist=False)


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    session_id = Column(String(100), nullable=False)
    messages = Column(JSON, default=list)  # [{"role": ..., "content": ...}]
    page_context = Column(JSON, nullable=True)
    is_active = Column(Boolean, default=True)
    started_at = Column(DateTime(timezone=True), default=_utcnow)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    user = relationship("User", back_populates="conversations")

    __table_args__ = (
        Index("ix_conv_session_active", "session_id", "is_active"),
    )


class LeadIntelligence(Base):
    __tablename__ = "lead_intelligence"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    buy_intent_score = Column(Integer, default=0)
    intent_category = Column(String(10), default="cold")  # hot, warm, cold
    urgency = Column(String(10), default="low")  # immediate, high, medium, low
    company_size = Column(String(20), nullable=True)  # startup, smb, mid-market, enterprise
    qualification_status = Column(String(15), default="new")  # qualified, nurture, unqualified, new
    behavioral_signals = Column(JSON, default=list)
    company_research = Column(JSON, nullable=True)
    user_research = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    user = relationship("User", back_populates="intelligence")

    __table_args__ = (
        Index("ix_lead_intel_category", "intent_category"),
        Index("ix_lead_intel_updated", "updated_at"),
    )


class VisitorSession(Base):
    __tablename__ = "visitor_sessions"

    id = Column(String(36), primary_key=True, default=_uuid)
    session_id = Column(String(100), unique=True, nullable=False, index=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    detected_country = Column(String(64), nullable=True)
    detected_language = Column(String(32), nullable=True)
    pages_visited = Column(JSON, default=list)  # [{"page", "timestamp", "duration"}]
    first_visit = Column(DateTime(timezone=True), default=_utcnow)
    last_activity = Column(DateTime(timezone=True), default=_utcnow)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
