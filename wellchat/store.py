# wellchat/store.py
from __future__ import annotations
import logging
from typing import List, Protocol

from sqlmodel import Session, select

from wellchat.models import ChatMessage

logger = logging.getLogger(__name__)


class MessageStore(Protocol):
    def insert(self, conversation_id: str, role: str, content: str) -> bool:
        ...


class SQLMessageStore:
    """Best-effort writer for chat turns. Failures are logged and reported as False, never raised."""

    def __init__(self, engine):
        self.engine = engine

    def insert(self, conversation_id: str, role: str, content: str) -> bool:
        try:
            with Session(self.engine) as db:
                db.add(ChatMessage(session_id=conversation_id, role=role, content=content))
                db.commit()
            return True
        except Exception:
            logger.exception("Failed to store %s message for session=%s", role, conversation_id)
            return False

    def list_messages(self, conversation_id: str) -> List[ChatMessage]:
        with Session(self.engine) as db:
            return list(db.exec(
                select(ChatMessage).where(ChatMessage.session_id == conversation_id).order_by(ChatMessage.created_at, ChatMessage.id)
            ).all())
