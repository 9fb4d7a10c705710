from __future__ import annotations

from functools import partial
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from core.config import BASE_DIR
from core.errors import NotFound
from core.i18n import translate
from domains.chat.store import ConversationStore
from domains.config.resolver import ConfigResolver
from domains.deps import get_conversation_store, get_resolver

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

router = APIRouter(include_in_schema=False)


def _page_context(resolver: ConfigResolver, store: ConversationStore) -> Dict[str, Any]:
    language = resolver.resolve_language()
    return {
        "language": language,
        "t": partial(translate, language),
        "sessions": store.list_sessions(),
        "use_streaming": resolver.use_streaming(),
    }


@router.get("/")
def home(
    store: ConversationStore = Depends(get_conversation_store),
    resolver: ConfigResolver = Depends(get_resolver),
) -> RedirectResponse:
    """Open the most recent conversation, starting one when there is none."""

    sessions = store.list_sessions()
    if sessions:
        target = sessions[0][0].id
    else:
        language = resolver.resolve_language()
        target = store.create_session(
            translate(language, "chat.new"),
            greeting=translate(language, "chat.greeting"),
        ).id
    return RedirectResponse(url=f"/chat/{target}", status_code=303)


@router.get("/chat/{session_id}", response_class=HTMLResponse)
def chat_page(
    request: Request,
    session_id: str,
    store: ConversationStore = Depends(get_conversation_store),
    resolver: ConfigResolver = Depends(get_resolver),
) -> HTMLResponse:
    context = _page_context(resolver, store)
    try:
        chat_session = store.get_session(session_id)
    except NotFound:
        return templates.TemplateResponse(request, "not_found.html", context, status_code=404)

    context.update(session=chat_session, messages=store.list_messages(session_id))
    return templates.TemplateResponse(request, "chat.html", context)


@router.get("/settings", response_class=HTMLResponse)
def settings_page(
    request: Request,
    store: ConversationStore = Depends(get_conversation_store),
    resolver: ConfigResolver = Depends(get_resolver),
) -> HTMLResponse:
    context = _page_context(resolver, store)
    context["has_api_key"] = resolver.user_credential() is not None
    return templates.TemplateResponse(request, "settings.html", context)
