from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from domains.chat.schemas import ChatRequest
from domains.chat.store import ConversationStore
from domains.deps import get_conversation_store, get_relay, get_title_generator
from services.relay import ChatTurn, RelayState, StreamingRelay
from services.sse import SSE_HEADERS
from services.titles import TitleGenerator, refresh_title

router = APIRouter(prefix="/api/chat", tags=["chat"])


async def title_after_turn(turn: ChatTurn, generator: TitleGenerator, store: ConversationStore) -> None:
    """Name the session once its first exchange has completed."""

    if not turn.first_exchange or turn.state is not RelayState.COMPLETED or turn.reply_message is None:
        return
    await refresh_title(
        generator,
        store,
        turn.session_id,
        [turn.user_message, turn.reply_message],
        turn.language,
    )


@router.post("")
async def chat(
    payload: ChatRequest,
    background_tasks: BackgroundTasks,
    relay: StreamingRelay = Depends(get_relay),
    titles: TitleGenerator = Depends(get_title_generator),
    store: ConversationStore = Depends(get_conversation_store),
):
    turn = await relay.complete(payload.content, payload.chat_session_id)
    background_tasks.add_task(title_after_turn, turn, titles, store)
    return {"userMessage": turn.user_message.model_dump(), "aiResponse": turn.reply}


@router.post("/stream")
async def chat_stream(
    payload: ChatRequest,
    relay: StreamingRelay = Depends(get_relay),
    titles: TitleGenerator = Depends(get_title_generator),
    store: ConversationStore = Depends(get_conversation_store),
) -> StreamingResponse:
    turn = relay.begin(payload.content, payload.chat_session_id)
    return StreamingResponse(
        relay.stream(turn),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
        background=BackgroundTask(title_after_turn, turn, titles, store),
    )
