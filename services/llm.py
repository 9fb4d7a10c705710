from __future__ import annotations

import logging
from typing import AsyncIterator, Callable, Dict, List, Optional, Protocol, Sequence

from openai import APIStatusError, AsyncOpenAI, OpenAIError

from core.config import DEFAULT_MODEL
from core.errors import UpstreamError
from domains.chat.models import SENDER_USER
from domains.config.resolver import ConfigResolver

LOGGER = logging.getLogger(__name__)

TEMPERATURE = 0.7
MAX_TOKENS = 1000


class HistoryEntry(Protocol):
    content: str
    sender: str


def _upstream_error(exc: OpenAIError) -> UpstreamError:
    if isinstance(exc, APIStatusError):
        return UpstreamError(f"OpenAI API error {exc.status_code}: {exc.message}", status=exc.status_code)
    return UpstreamError(f"OpenAI API call failed: {exc}")


class CompletionClient:
    """Chat-completion calls against an OpenAI-compatible endpoint."""

    def __init__(
        self,
        resolver: ConfigResolver,
        *,
        client_factory: Callable[..., AsyncOpenAI] = AsyncOpenAI,
        model: str = DEFAULT_MODEL,
        base_url: Optional[str] = None,
    ) -> None:
        self.resolver = resolver
        self.client_factory = client_factory
        self.model = model
        self.base_url = base_url

    def _client(self) -> AsyncOpenAI:
        # the key can change between calls, so build a client each time
        return self.client_factory(api_key=self.resolver.resolve_credential(), base_url=self.base_url)

    @staticmethod
    def build_messages(history: Sequence[HistoryEntry], system_prompt: str) -> List[Dict[str, str]]:
        messages = [{"role": "system", "content": system_prompt}]
        for entry in history:
            role = "user" if entry.sender == SENDER_USER else "assistant"
            messages.append({"role": role, "content": entry.content})
        return messages

    async def complete_once(
        self,
        history: Sequence[HistoryEntry],
        system_prompt: str,
        *,
        max_tokens: int = MAX_TOKENS,
    ) -> str:
        client = self._client()
        messages = self.build_messages(history, system_prompt)
        LOGGER.info("Requesting completion with %d messages.", len(messages))
        try:
            completion = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=TEMPERATURE,
                max_tokens=max_tokens,
            )
        except OpenAIError as exc:
            LOGGER.error("Completion request failed: %s", exc)
            raise _upstream_error(exc) from exc
        finally:
            await client.close()

        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""

    async def complete_stream(
        self, history: Sequence[HistoryEntry], system_prompt: str
    ) -> AsyncIterator[str]:
        """Yield non-empty text fragments as the provider produces them.

        Closing the generator early closes the upstream response as well.
        """

        client = self._client()
        messages = self.build_messages(history, system_prompt)
        LOGGER.info("Opening completion stream with %d messages.", len(messages))
        stream = None
        try:
            stream = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=TEMPERATURE,
                max_tokens=MAX_TOKENS,
                stream=True,
            )
            async for chunk in stream:
                if not chunk.choices:
                    continue
                fragment = chunk.choices[0].delta.content
                if fragment:
                    yield fragment
        except OpenAIError as exc:
            LOGGER.error("Completion stream failed: %s", exc)
            raise _upstream_error(exc) from exc
        finally:
            if stream is not None:
                await stream.close()
            await client.close()
