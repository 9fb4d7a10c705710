"""FastAPI dependencies that wire stores and services to the shared database handle."""
from __future__ import annotations

from fastapi import Depends, Request

from core.db import Database, get_database
from domains.chat.store import ConversationStore
from domains.config.resolver import ConfigResolver
from domains.config.store import ConfigStore
from services.llm import CompletionClient
from services.relay import StreamingRelay
from services.titles import TitleGenerator


def get_conversation_store(database: Database = Depends(get_database)) -> ConversationStore:
    return ConversationStore(database)


def get_config_store(database: Database = Depends(get_database)) -> ConfigStore:
    return ConfigStore(database)


def get_resolver(request: Request, store: ConfigStore = Depends(get_config_store)) -> ConfigResolver:
    return ConfigResolver(store, environ=request.app.state.environ)


def get_completion_client(
    request: Request, resolver: ConfigResolver = Depends(get_resolver)
) -> CompletionClient:
    settings = request.app.state.settings
    return CompletionClient(
        resolver,
        client_factory=request.app.state.openai_factory,
        model=settings.openai_model,
        base_url=settings.openai_base_url,
    )


def get_relay(
    store: ConversationStore = Depends(get_conversation_store),
    client: CompletionClient = Depends(get_completion_client),
    resolver: ConfigResolver = Depends(get_resolver),
) -> StreamingRelay:
    return StreamingRelay(store, client, resolver)


def get_title_generator(client: CompletionClient = Depends(get_completion_client)) -> TitleGenerator:
    return TitleGenerator(client)
