"""Short conversation titles generated from the opening exchange."""
from __future__ import annotations

import logging
from typing import Iterable, Protocol, Sequence

from domains.chat.models import SENDER_USER
from domains.chat.store import ConversationStore
from domains.config.models import DEFAULT_LANGUAGE
from services.llm import CompletionClient

LOGGER = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 15
TITLE_MAX_TOKENS = 30
QUOTE_CHARACTERS = "\"'`“”‘’「」『』《》"

FALLBACK_TITLES = {
    "zh": "新对话",
    "en": "New Conversation",
}

TITLE_PROMPT = (
    "You name conversations. Read the conversation below and reply with a short topic label "
    f"of at most {MAX_TITLE_LENGTH} characters, written in the conversation's language. "
    "Reply with the label only: no punctuation, no quotes, no explanation."
)


class ExchangeEntry(Protocol):
    content: str
    sender: str


class _TranscriptTurn:
    sender = SENDER_USER

    def __init__(self, content: str) -> None:
        self.content = content


def fallback_title(language: str = DEFAULT_LANGUAGE) -> str:
    return FALLBACK_TITLES.get(language, FALLBACK_TITLES[DEFAULT_LANGUAGE])


def build_transcript(exchange: Iterable[ExchangeEntry]) -> str:
    lines = []
    for entry in exchange:
        label = "User" if entry.sender == SENDER_USER else "Assistant"
        lines.append(f"{label}: {entry.content}")
    return "\n".join(lines)


def clean_title(raw: str) -> str:
    title = raw.strip()
    for quote in QUOTE_CHARACTERS:
        title = title.replace(quote, "")
    return title.strip()[:MAX_TITLE_LENGTH].strip()


class TitleGenerator:
    def __init__(self, client: CompletionClient) -> None:
        self.client = client

    async def generate(self, exchange: Sequence[ExchangeEntry], language: str = DEFAULT_LANGUAGE) -> str:
        """Return a label for the exchange, or the fallback label; never raises."""

        transcript = build_transcript(exchange)
        try:
            raw = await self.client.complete_once(
                [_TranscriptTurn(transcript)],
                TITLE_PROMPT,
                max_tokens=TITLE_MAX_TOKENS,
            )
        except Exception:
            LOGGER.warning("Title generation failed; using the fallback title.", exc_info=True)
            return fallback_title(language)

        title = clean_title(raw)
        if not title:
            LOGGER.info("Title generation returned nothing usable; using the fallback title.")
            return fallback_title(language)
        return title


async def refresh_title(
    generator: TitleGenerator,
    store: ConversationStore,
    session_id: str,
    exchange: Sequence[ExchangeEntry],
    language: str = DEFAULT_LANGUAGE,
) -> None:
    """Generate and store a session title after the reply has been delivered."""

    try:
        title = await generator.generate(exchange, language)
        store.update_session_title(session_id, title)
        LOGGER.info("Session %s titled %r.", session_id, title)
    except Exception:
        LOGGER.warning("Could not update the title of session %s.", session_id, exc_info=True)
