"""Persistence for chat sessions and their messages."""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlmodel import Session, col, select

from core.db import Database
from core.errors import NotFound
from domains.chat.models import SENDER_AI, ChatSession, Message, utcnow

LOGGER = logging.getLogger(__name__)


class ConversationStore:
    """CRUD over sessions and messages.

    Every operation runs in its own short-lived SQLModel session so returned rows
    are detached snapshots, safe to use after the request's database work is done.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    @staticmethod
    def _require_session(db: Session, session_id: str) -> ChatSession:
        chat_session = db.get(ChatSession, session_id)
        if chat_session is None:
            raise NotFound(f"Chat session '{session_id}' not found")
        return chat_session

    def list_sessions(self) -> List[Tuple[ChatSession, Optional[Message]]]:
        """Return sessions, most recently updated first, each with its latest message."""

        with self.database.session() as db:
            sessions = db.exec(
                select(ChatSession).order_by(col(ChatSession.updated_at).desc())
            ).all()
            listing: List[Tuple[ChatSession, Optional[Message]]] = []
            for chat_session in sessions:
                latest = db.exec(
                    select(Message)
                    .where(Message.chat_session_id == chat_session.id)
                    .order_by(col(Message.timestamp).desc())
                    .limit(1)
                ).first()
                listing.append((chat_session, latest))
            return listing

    def create_session(self, title: str, greeting: Optional[str] = None) -> ChatSession:
        with self.database.session() as db:
            chat_session = ChatSession(title=title)
            db.add(chat_session)
            if greeting:
                db.add(Message(chat_session_id=chat_session.id, sender=SENDER_AI, content=greeting))
            db.commit()
            db.refresh(chat_session)
            LOGGER.info("Created chat session %s.", chat_session.id)
            return chat_session

    def get_session(self, session_id: str) -> ChatSession:
        with self.database.session() as db:
            return self._require_session(db, session_id)

    def list_messages(self, session_id: str) -> List[Message]:
        with self.database.session() as db:
            self._require_session(db, session_id)
            rows = db.exec(
                select(Message)
                .where(Message.chat_session_id == session_id)
                .order_by(col(Message.timestamp))
            ).all()
            return list(rows)

    def create_message(self, session_id: str, sender: str, content: str) -> Message:
        with self.database.session() as db:
            chat_session = self._require_session(db, session_id)
            message = Message(chat_session_id=session_id, sender=sender, content=content)
            chat_session.updated_at = utcnow()
            db.add(message)
            db.add(chat_session)
            db.commit()
            db.refresh(message)
            return message

    def get_message(self, message_id: str) -> Message:
        with self.database.session() as db:
            message = db.get(Message, message_id)
            if message is None:
                raise NotFound(f"Message '{message_id}' not found")
            return message

    def update_session_title(self, session_id: str, title: str) -> ChatSession:
        with self.database.session() as db:
            chat_session = self._require_session(db, session_id)
            chat_session.title = title
            chat_session.updated_at = utcnow()
            db.add(chat_session)
            db.commit()
            db.refresh(chat_session)
            LOGGER.info("Renamed chat session %s.", session_id)
            return chat_session

    def delete_session(self, session_id: str) -> None:
        with self.database.session() as db:
            chat_session = self._require_session(db, session_id)
            db.delete(chat_session)
            db.commit()
            LOGGER.info("Deleted chat session %s.", session_id)
