from __future__ import annotations

import asyncio
import codecs
import json
from types import SimpleNamespace as NS
from typing import Any, Dict, List, Optional, Union

import httpx
import openai
import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import Settings
from core.db import Database
from domains.chat.store import ConversationStore
from domains.config.resolver import ConfigResolver
from domains.config.store import ConfigStore
from services.llm import CompletionClient
from services.sse import DATA_PREFIX, EVENT_DELIMITER
from services.titles import TITLE_PROMPT


def connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))


def run(coro):
    return asyncio.run(coro)


async def collect(agen) -> List[Any]:
    return [item async for item in agen]


class SSEDecoder:
    """Turn response chunks back into event payloads, the way the browser script reads them.

    Chunks may split an event, or a multi-byte character, anywhere.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._utf8 = codecs.getincrementaldecoder("utf-8")()

    def feed(self, chunk: Union[bytes, str]) -> List[Dict[str, Any]]:
        if isinstance(chunk, bytes):
            chunk = self._utf8.decode(chunk)
        self._buffer += chunk.replace("\r\n", "\n")

        events: List[Dict[str, Any]] = []
        while EVENT_DELIMITER in self._buffer:
            raw, self._buffer = self._buffer.split(EVENT_DELIMITER, 1)
            data = [
                line[len(DATA_PREFIX):].lstrip(" ")
                for line in raw.split("\n")
                if line.startswith(DATA_PREFIX)
            ]
            if data:
                events.append(json.loads("\n".join(data)))
        return events

    @property
    def pending(self) -> str:
        return self._buffer


class FakeStream:
    def __init__(self, fragments: List[Optional[str]], error: Optional[Exception] = None) -> None:
        self.fragments = fragments
        self.error = error
        self.closed = False
        self.delivered = 0

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for fragment in self.fragments:
            self.delivered += 1
            yield NS(choices=[NS(delta=NS(content=fragment))])
        if self.error is not None:
            raise self.error

    async def close(self) -> None:
        self.closed = True


class FakeCompletions:
    def __init__(self, factory: "FakeOpenAIFactory") -> None:
        self.factory = factory

    async def create(self, **kwargs: Any):
        factory = self.factory
        factory.calls.append(kwargs)
        is_title = kwargs["messages"][0]["content"] == TITLE_PROMPT
        if is_title and factory.title_error is not None:
            raise factory.title_error
        if is_title:
            return NS(choices=[NS(message=NS(content=factory.title_reply))])
        if factory.create_error is not None:
            raise factory.create_error
        if kwargs.get("stream"):
            stream = FakeStream(list(factory.fragments), factory.stream_error)
            factory.streams.append(stream)
            return stream
        return NS(choices=[NS(message=NS(content=factory.reply))])


class FakeOpenAI:
    def __init__(self, factory: "FakeOpenAIFactory") -> None:
        self.factory = factory
        self.chat = NS(completions=FakeCompletions(factory))

    async def close(self) -> None:
        self.factory.closed_clients += 1


class FakeOpenAIFactory:
    """Replaces AsyncOpenAI; records every client built and every request made."""

    def __init__(self) -> None:
        self.fragments: List[Optional[str]] = ["Hello", "", ", ", "world", "!"]
        self.reply = "A whole reply."
        self.title_reply = '"变量声明"'
        self.create_error: Optional[Exception] = None
        self.stream_error: Optional[Exception] = None
        self.title_error: Optional[Exception] = None
        self.calls: List[Dict[str, Any]] = []
        self.api_keys: List[str] = []
        self.streams: List[FakeStream] = []
        self.closed_clients = 0

    def __call__(self, api_key: str, base_url: Optional[str] = None) -> FakeOpenAI:
        self.api_keys.append(api_key)
        return FakeOpenAI(self)

    @property
    def chat_calls(self) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["messages"][0]["content"] != TITLE_PROMPT]

    @property
    def title_calls(self) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["messages"][0]["content"] == TITLE_PROMPT]


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.init()
    yield db
    db.dispose()


@pytest.fixture
def environ() -> Dict[str, str]:
    return {"OPENAI_API_KEY": "env-key"}


@pytest.fixture
def openai_factory() -> FakeOpenAIFactory:
    return FakeOpenAIFactory()


@pytest.fixture
def store(database) -> ConversationStore:
    return ConversationStore(database)


@pytest.fixture
def config_store(database) -> ConfigStore:
    return ConfigStore(database)


@pytest.fixture
def resolver(config_store, environ) -> ConfigResolver:
    return ConfigResolver(config_store, environ=environ)


@pytest.fixture
def completion_client(resolver, openai_factory) -> CompletionClient:
    return CompletionClient(resolver, client_factory=openai_factory)


@pytest.fixture
def client(database, environ, openai_factory):
    application = create_app(Settings(database_url="sqlite://"), database=database, environ=environ)
    application.state.openai_factory = openai_factory
    with TestClient(application) as test_client:
        yield test_client
