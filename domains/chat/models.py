from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlmodel import Field, Relationship, SQLModel

SENDER_USER = "user"
SENDER_AI = "ai"
SENDERS = (SENDER_USER, SENDER_AI)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex


class ChatSession(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    title: str = Field(default="New Conversation")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, index=True)
    messages: List["Message"] = Relationship(
        back_populates="session",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "passive_deletes": True},
    )


class Message(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    content: str
    sender: str
    timestamp: datetime = Field(default_factory=utcnow, index=True)
    chat_session_id: str = Field(foreign_key="chatsession.id", index=True, ondelete="CASCADE")
    session: Optional[ChatSession] = Relationship(back_populates="messages")
