from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatMessage(SQLModel, table=True):
    __tablename__ = "chat_messages"
    __table_args__ = {"extend_existing": True}
    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: str = Field(index=True)
    role: str
    content: str
    created_at: datetime = Field(default_factory=utcnow)


class User(SQLModel, table=True):
    __tablename__ = "users"
    __table_args__ = {"extend_existing": True}
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    password_hash: str
    created_at: datetime = Field(default_factory=utcnow)


class MoodEntry(SQLModel, table=True):
    __tablename__ = "mood_entries"
    __table_args__ = {"extend_existing": True}
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True, foreign_key="users.id")
    # 1 (low) .. 10 (great)
    mood_score: int
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class JournalEntry(SQLModel, table=True):
    __tablename__ = "journal_entries"
    __table_args__ = {"extend_existing": True}
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True, foreign_key="users.id")
    entry: str
    created_at: datetime = Field(default_factory=utcnow)


class SessionAnalytics(SQLModel, table=True):
    __tablename__ = "session_analytics"
    __table_args__ = {"extend_existing": True}
    id: Optional[int] = Field(default=None, primary_key=True)
    # Opaque client-side id; anonymous sessions are recorded too
    user_id: str = Field(index=True)
    duration: int = 0
    message_count: int = 0
    session_date: Optional[datetime] = None
