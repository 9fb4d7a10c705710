"""Relay a chat turn to the completion provider and back to the browser.

A turn moves through ``RelayState`` in order. The user's message is written
before anything goes upstream and is never rolled back. The assistant's reply
is written once the provider has finished, so a failed stream leaves no
partial answer behind. A client that disconnects keeps whatever text had
already been generated.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, List, Optional, Sequence

from core.errors import ValidationError
from domains.chat.models import SENDER_AI, SENDER_USER, Message
from domains.chat.store import ConversationStore
from domains.config.models import DEFAULT_LANGUAGE
from domains.config.resolver import ConfigResolver
from services.llm import CompletionClient
from services.sse import content_event, done_event, error_event

LOGGER = logging.getLogger(__name__)


class RelayState(str, Enum):
    IDLE = "idle"
    USER_MESSAGE_PERSISTED = "user_message_persisted"
    HISTORY_LOADED = "history_loaded"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


def is_first_exchange(prior: Sequence[Message]) -> bool:
    """True when nothing but the seeded greeting precedes the new user message."""

    if not prior:
        return True
    return len(prior) == 1 and prior[0].sender == SENDER_AI


@dataclass
class ChatTurn:
    session_id: str
    user_message: Optional[Message] = None
    history: List[Message] = field(default_factory=list)
    system_prompt: str = ""
    language: str = DEFAULT_LANGUAGE
    first_exchange: bool = False
    state: RelayState = RelayState.IDLE
    reply: Optional[str] = None
    reply_message: Optional[Message] = None
    error: Optional[str] = None


class StreamingRelay:
    def __init__(
        self,
        store: ConversationStore,
        client: CompletionClient,
        resolver: ConfigResolver,
    ) -> None:
        self.store = store
        self.client = client
        self.resolver = resolver

    def begin(self, content: Optional[str], chat_session_id: Optional[str]) -> ChatTurn:
        """Validate the request, persist the user's message and load the history."""

        if not content or not content.strip() or not chat_session_id:
            raise ValidationError("Both 'content' and 'chatSessionId' are required.")

        self.store.get_session(chat_session_id)
        turn = ChatTurn(session_id=chat_session_id)

        turn.user_message = self.store.create_message(chat_session_id, SENDER_USER, content)
        turn.state = RelayState.USER_MESSAGE_PERSISTED
        LOGGER.info("Stored user message %s in session %s.", turn.user_message.id, chat_session_id)

        turn.history = self.store.list_messages(chat_session_id)
        prior = [message for message in turn.history if message.id != turn.user_message.id]
        turn.first_exchange = is_first_exchange(prior)
        turn.language = self.resolver.resolve_language()
        turn.system_prompt = self.resolver.resolve_system_prompt(turn.language)
        turn.state = RelayState.HISTORY_LOADED
        return turn

    def _store_reply(self, turn: ChatTurn, text: str) -> None:
        turn.reply_message = self.store.create_message(turn.session_id, SENDER_AI, text)
        turn.reply = text
        LOGGER.info("Stored assistant reply %s in session %s.", turn.reply_message.id, turn.session_id)

    def _finish(self, turn: ChatTurn, text: str) -> None:
        self._store_reply(turn, text)
        turn.state = RelayState.COMPLETED

    async def stream(self, turn: ChatTurn) -> AsyncIterator[str]:
        """Yield SSE frames: one per fragment, then exactly one done or error frame."""

        turn.state = RelayState.STREAMING
        fragments = self.client.complete_stream(turn.history, turn.system_prompt)
        accumulated: List[str] = []
        failure: Optional[str] = None
        try:
            async for fragment in fragments:
                if not fragment:
                    continue
                accumulated.append(fragment)
                yield content_event(fragment)
            self._finish(turn, "".join(accumulated))
        except (GeneratorExit, asyncio.CancelledError):
            # the client went away; keep what was generated, skip the terminal frame
            if accumulated:
                LOGGER.info("Client left session %s mid-stream; keeping the generated text.", turn.session_id)
                self._store_reply(turn, "".join(accumulated))
            raise
        except Exception as exc:
            LOGGER.exception("Streaming turn failed for session %s.", turn.session_id)
            failure = str(exc) or "Error while processing the request."
        finally:
            await fragments.aclose()

        if failure is not None:
            turn.state = RelayState.FAILED
            turn.error = failure
            yield error_event(failure)
            return
        yield done_event()

    async def complete(self, content: Optional[str], chat_session_id: Optional[str]) -> ChatTurn:
        """Run a whole turn without streaming; failures propagate to the caller."""

        turn = self.begin(content, chat_session_id)
        try:
            text = await self.client.complete_once(turn.history, turn.system_prompt)
            self._finish(turn, text)
        except Exception as exc:
            turn.state = RelayState.FAILED
            turn.error = str(exc)
            raise
        return turn
