from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from core.errors import ValidationError
from core.i18n import translate
from domains.chat.models import ChatSession, Message
from domains.chat.schemas import SessionPayload, TitleRequest
from domains.chat.store import ConversationStore
from domains.config.resolver import ConfigResolver
from domains.deps import get_conversation_store, get_resolver, get_title_generator
from services.titles import TitleGenerator

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


def session_dict(chat_session: ChatSession, latest: Optional[Message] = None) -> Dict[str, Any]:
    data = chat_session.model_dump()
    data["latest_message"] = latest.model_dump() if latest is not None else None
    return data


def _require_title(payload: SessionPayload) -> str:
    title = (payload.title or "").strip()
    if not title:
        raise ValidationError("Title must not be empty.")
    return title


@router.get("")
def list_sessions(store: ConversationStore = Depends(get_conversation_store)):
    return [session_dict(chat_session, latest) for chat_session, latest in store.list_sessions()]


@router.post("")
def create_session(
    payload: SessionPayload,
    store: ConversationStore = Depends(get_conversation_store),
    resolver: ConfigResolver = Depends(get_resolver),
):
    title = _require_title(payload)
    greeting = translate(resolver.resolve_language(), "chat.greeting")
    chat_session = store.create_session(title, greeting=greeting)
    messages = store.list_messages(chat_session.id)
    return session_dict(chat_session, messages[-1] if messages else None)


@router.get("/{session_id}")
def get_session(session_id: str, store: ConversationStore = Depends(get_conversation_store)):
    chat_session = store.get_session(session_id)
    data = chat_session.model_dump()
    data["messages"] = [message.model_dump() for message in store.list_messages(session_id)]
    return data


@router.patch("/{session_id}")
def rename_session(
    session_id: str,
    payload: SessionPayload,
    store: ConversationStore = Depends(get_conversation_store),
):
    title = _require_title(payload)
    return session_dict(store.update_session_title(session_id, title))


@router.delete("/{session_id}")
def delete_session(session_id: str, store: ConversationStore = Depends(get_conversation_store)):
    store.delete_session(session_id)
    return {"success": True}


@router.post("/{session_id}/generate-title")
async def generate_title(
    session_id: str,
    payload: TitleRequest,
    store: ConversationStore = Depends(get_conversation_store),
    resolver: ConfigResolver = Depends(get_resolver),
    titles: TitleGenerator = Depends(get_title_generator),
):
    if not payload.messages:
        raise ValidationError("Messages must not be empty.")

    store.get_session(session_id)
    title = await titles.generate(payload.messages, resolver.resolve_language())
    updated = store.update_session_title(session_id, title)
    return {"success": True, "title": updated.title}
