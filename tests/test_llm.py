from types import SimpleNamespace as NS

import pytest

from conftest import collect, connection_error, run
from core.errors import CredentialMissing, UpstreamError
from domains.config.resolver import ConfigResolver
from services.llm import MAX_TOKENS, TEMPERATURE, CompletionClient


def test_build_messages_maps_senders_to_roles():
    history = [NS(sender="ai", content="greeting"), NS(sender="user", content="question")]

    messages = CompletionClient.build_messages(history, "be helpful")

    assert messages == [
        {"role": "system", "content": "be helpful"},
        {"role": "assistant", "content": "greeting"},
        {"role": "user", "content": "question"},
    ]


def test_complete_once_sends_fixed_parameters(completion_client, openai_factory):
    reply = run(completion_client.complete_once([NS(sender="user", content="hi")], "prompt"))

    assert reply == "A whole reply."
    call = openai_factory.calls[0]
    assert call["model"] == "gpt-3.5-turbo"
    assert call["temperature"] == TEMPERATURE == 0.7
    assert call["max_tokens"] == MAX_TOKENS == 1000
    assert "stream" not in call
    assert openai_factory.api_keys == ["env-key"]
    assert openai_factory.closed_clients == 1


def test_complete_stream_skips_empty_fragments(completion_client, openai_factory):
    openai_factory.fragments = ["Hel", None, "", "lo"]

    fragments = run(collect(completion_client.complete_stream([NS(sender="user", content="hi")], "p")))

    assert fragments == ["Hel", "lo"]
    assert openai_factory.calls[0]["stream"] is True
    assert openai_factory.streams[0].closed
    assert openai_factory.closed_clients == 1


def test_provider_errors_become_upstream_errors(completion_client, openai_factory):
    openai_factory.create_error = connection_error()

    with pytest.raises(UpstreamError):
        run(completion_client.complete_once([], "p"))
    with pytest.raises(UpstreamError):
        run(collect(completion_client.complete_stream([], "p")))
    assert openai_factory.closed_clients == 2


def test_mid_stream_failure_closes_the_stream(completion_client, openai_factory):
    openai_factory.stream_error = connection_error()

    async def consume():
        received = []
        with pytest.raises(UpstreamError):
            async for fragment in completion_client.complete_stream([], "p"):
                received.append(fragment)
        return received

    assert run(consume()) == ["Hello", ", ", "world", "!"]
    assert openai_factory.streams[0].closed


def test_missing_credential_stops_before_any_request(config_store, openai_factory):
    client = CompletionClient(ConfigResolver(config_store, environ={}), client_factory=openai_factory)

    with pytest.raises(CredentialMissing):
        run(client.complete_once([], "p"))
    assert openai_factory.calls == []


def test_user_key_is_preferred(config_store, completion_client, openai_factory):
    config_store.save_user_config(openai_key="user-key")

    run(completion_client.complete_once([], "p"))

    assert openai_factory.api_keys == ["user-key"]
