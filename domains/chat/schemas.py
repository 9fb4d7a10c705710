from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """Payload for both chat endpoints; presence is checked by the relay."""

    model_config = ConfigDict(populate_by_name=True)

    content: Optional[str] = None
    chat_session_id: Optional[str] = Field(default=None, alias="chatSessionId")


class ExchangeMessage(BaseModel):
    content: str
    sender: Literal["user", "ai"]


class TitleRequest(BaseModel):
    messages: Optional[List[ExchangeMessage]] = None


class SessionPayload(BaseModel):
    title: Optional[str] = None
